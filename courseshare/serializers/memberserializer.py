from rest_framework import serializers
from courseshare.models import Member


class MemberSerializer(serializers.ModelSerializer):
    """
    Member profile.

    When the context carries ``viewer_id`` the member's privacy setting is
    applied for that viewer: a hidden login name or gamer tag is sent blank.
    The member always sees their own profile in full.
    """
    type         = serializers.SerializerMethodField()
    id           = serializers.UUIDField(read_only=True)
    loginName    = serializers.CharField(source="username", read_only=True)
    roleCode     = serializers.IntegerField(source="role", read_only=True)
    roleText     = serializers.CharField(source="get_role_display", read_only=True)
    languageCode = serializers.IntegerField(source="language", read_only=True)
    languageText = serializers.CharField(source="get_language_display", read_only=True)
    gamerTag     = serializers.CharField(source="gamer_tag", read_only=True)
    privacyCode  = serializers.IntegerField(source="privacy", read_only=True)
    privacyText  = serializers.CharField(source="get_privacy_display", read_only=True)
    lastSeen     = serializers.ListField(source="last_seen", child=serializers.CharField(), read_only=True)

    class Meta:
        model  = Member
        fields = [
            "type", "id", "loginName", "roleCode", "roleText", "languageCode", "languageText",
            "gamerTag", "privacyCode", "privacyText", "lastSeen",
        ]

    def get_type(self, obj):
        return "member"

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if "viewer_id" in self.context:
            hidden = instance.hidden_from(self.context["viewer_id"])
            if "username" in hidden:
                data["loginName"] = ""
            if "gamer_tag" in hidden:
                data["gamerTag"] = ""
        return data
