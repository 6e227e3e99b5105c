from rest_framework import serializers
from courseshare.lookups import Language, Privacy, Role
from courseshare.models import Member


class MemberSignupSerializer(serializers.ModelSerializer):
    password = serializers.CharField(
        write_only = True,
        min_length = 8,
        max_length = 32,
        style = {"input_type": "password"},
        error_messages = {
            "min_length": "Password must be at least 8 characters long.",
            "max_length": "Password must be no more than 32 characters long.",
        })
    language = serializers.ChoiceField(choices=Language.choices, required=False)
    privacy = serializers.ChoiceField(choices=Privacy.choices, required=False)

    class Meta:
        model = Member
        fields = ["username", "email", "password", "language", "gamer_tag", "privacy"]

    def validate_email(self, value):
        if value and Member.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("E-mail address already taken.")
        return value

    def create(self, validated_data):
        """
        Create a new Member with a hashed password and the member role.

        Args:
            validated_data (dict): Validated fields from the signup request.

        Returns:
            Member: The created Member instance.
        """
        password = validated_data.pop("password")
        member = Member(role=Role.MEMBER, **validated_data)
        member.set_password(password)
        member.save()
        return member
