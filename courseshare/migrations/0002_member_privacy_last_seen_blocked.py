from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("courseshare", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="member",
            name="privacy",
            field=models.IntegerField(choices=[(0, "Show login name and gamer tag"), (1, "Show login name only"), (2, "Show gamer tag only")], default=0),
        ),
        migrations.AddField(
            model_name="member",
            name="last_seen",
            field=models.JSONField(blank=True, default=list),
        ),
        migrations.AlterField(
            model_name="relation",
            name="relation_type",
            field=models.CharField(choices=[("friend", "Friend"), ("following", "Following"), ("follower", "Follower"), ("blocked", "Blocked")], max_length=20),
        ),
    ]
