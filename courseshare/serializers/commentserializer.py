from rest_framework import serializers
from courseshare.models import Comment


class CommentSerializer(serializers.ModelSerializer):
    type        = serializers.SerializerMethodField()
    id          = serializers.UUIDField(read_only=True)
    course      = serializers.UUIDField(source="course_id", read_only=True)
    createdID   = serializers.UUIDField(source="created_by_id", read_only=True)
    createdName = serializers.CharField(source="created_name", read_only=True)
    comment     = serializers.CharField(allow_blank=True)
    published   = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Comment
        fields = ["type", "id", "course", "createdID", "createdName", "comment", "published"]

    def get_type(self, obj):
        return "comment"


class VoteSerializer(serializers.Serializer):
    vote = serializers.IntegerField()
