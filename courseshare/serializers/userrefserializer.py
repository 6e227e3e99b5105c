from rest_framework import serializers


class UserRefSerializer(serializers.Serializer):
    """Serializes a social.UserRef; the reference is always the other member."""
    userID        = serializers.UUIDField(source="user_id")
    userName      = serializers.CharField(source="user_name")
    referenceID   = serializers.UUIDField(source="reference_id")
    referenceName = serializers.CharField(source="reference_name")
    referenceType = serializers.CharField(source="reference_type")
    relationType  = serializers.CharField(source="relation_type")


class FriendRequestSerializer(serializers.Serializer):
    friendID = serializers.CharField()


class FollowSerializer(serializers.Serializer):
    userID = serializers.CharField()


class BlockSerializer(serializers.Serializer):
    blockedUserID = serializers.CharField()
