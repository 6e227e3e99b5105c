import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import courseshare.models.member


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="Member",
            fields=[
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(default=False, help_text="Designates that this user has all permissions without explicitly assigning them.", verbose_name="superuser status")),
                ("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="email address")),
                ("is_staff", models.BooleanField(default=False, help_text="Designates whether the user can log into this admin site.", verbose_name="staff status")),
                ("is_active", models.BooleanField(default=True, help_text="Designates whether this user should be treated as active. Unselect this instead of deleting accounts.", verbose_name="active")),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("username", models.CharField(max_length=60, unique=True)),
                ("role", models.IntegerField(choices=[(0, "Guest"), (1, "Member"), (2, "Admin")], default=1)),
                ("language", models.IntegerField(choices=[(0, "English"), (1, "German"), (2, "French")], default=0)),
                ("gamer_tag", models.CharField(blank=True, max_length=60)),
                ("groups", models.ManyToManyField(blank=True, help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.", related_name="user_set", related_query_name="user", to="auth.group", verbose_name="groups")),
                ("user_permissions", models.ManyToManyField(blank=True, help_text="Specific permissions for this user.", related_name="user_set", related_query_name="user", to="auth.permission", verbose_name="user permissions")),
            ],
            options={
                "verbose_name": "Member",
                "verbose_name_plural": "Members",
            },
            managers=[
                ("objects", courseshare.models.member.MemberManager()),
            ],
        ),
        migrations.CreateModel(
            name="Course",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=120)),
                ("sharing_code", models.PositiveIntegerField(unique=True)),
                ("course_type", models.IntegerField(choices=[(0, "Standard"), (1, "Community")], default=1)),
                ("series", models.IntegerField(choices=[(0, "Road Racing"), (1, "Dirt Racing"), (2, "Cross Country"), (3, "Street Scene"), (4, "Drag Racing")], default=0)),
                ("car_class", models.IntegerField(choices=[(0, "D"), (1, "C"), (2, "B"), (3, "A"), (4, "S1"), (5, "S2"), (6, "X")], default=3)),
                ("game", models.IntegerField(choices=[(0, "Forza Horizon 4"), (1, "Forza Horizon 5"), (2, "Forza Motorsport")], default=1)),
                ("visibility", models.IntegerField(choices=[(0, "Public"), (1, "Friends only"), (2, "Private")], default=0)),
                ("description", models.CharField(blank=True, max_length=200)),
                ("created_name", models.CharField(max_length=60)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("modified_name", models.CharField(blank=True, max_length=60)),
                ("modified_at", models.DateTimeField(blank=True, null=True)),
                ("touched_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("rating", models.FloatField(default=0)),
                ("record_version", models.PositiveIntegerField(default=1)),
                ("created_by", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="courses", to=settings.AUTH_USER_MODEL)),
                ("modified_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="modified_courses", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [models.Index(fields=["-rating", "-touched_at"], name="course_rating_recency")],
            },
        ),
        migrations.CreateModel(
            name="Comment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_name", models.CharField(max_length=60)),
                ("comment", models.TextField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("course", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="comments", to="courseshare.course")),
                ("created_by", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="comments", to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name="Relation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("user_name", models.CharField(max_length=60)),
                ("reference_name", models.CharField(max_length=60)),
                ("reference_type", models.CharField(choices=[("user", "User")], default="user", max_length=20)),
                ("relation_type", models.CharField(choices=[("friend", "Friend"), ("following", "Following"), ("follower", "Follower")], max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("reference", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="referenced_by", to=settings.AUTH_USER_MODEL)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="relations", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "constraints": [models.UniqueConstraint(fields=("user", "reference", "relation_type"), name="unique_relation_per_direction")],
            },
        ),
        migrations.CreateModel(
            name="Visit",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("profile_type", models.CharField(max_length=20)),
                ("profile_id", models.CharField(db_index=True, max_length=64)),
                ("visited_at", models.DateTimeField(auto_now_add=True)),
                ("visitor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="visits", to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name="Vote",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("value", models.SmallIntegerField()),
                ("voted_at", models.DateTimeField(auto_now=True)),
                ("course", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="votes", to="courseshare.course")),
                ("member", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="votes", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "constraints": [models.UniqueConstraint(fields=("course", "member"), name="one_vote_per_member")],
            },
        ),
    ]
