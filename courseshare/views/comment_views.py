from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from courseshare.exceptions import NoData
from courseshare.serializers import CommentSerializer, VoteSerializer
from courseshare.views.base import caller_id, engine


class CourseCommentsAPIView(APIView):
    """
    API endpoint to retrieve or create comments for a course.

    URL params:
      - pk: id of the course

    Both reading and writing require read access to the course.
    """

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsAuthenticated()]
        return []

    def get(self, request, pk):
        app = engine()
        credentials = app.credentials.resolve(caller_id(request))
        try:
            comments = app.comments.list(pk, credentials)
        except NoData:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response(CommentSerializer(comments, many=True).data, status=status.HTTP_200_OK)

    def post(self, request, pk):
        serializer = CommentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = engine().comments.add(pk, serializer.validated_data["comment"], caller_id(request))
        return Response(CommentSerializer(comment).data, status=status.HTTP_201_CREATED)


class CourseVoteAPIView(APIView):
    """
    POST /api/courses/{pk}/votes/  {"vote": 1 | -1}

    Casts or replaces the caller's vote and returns the new rating.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        serializer = VoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        rating = engine().votes.cast(pk, serializer.validated_data["vote"], caller_id(request))
        return Response({"rating": rating}, status=status.HTTP_200_OK)
