from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from courseshare.exceptions import NoData
from courseshare.serializers import BlockSerializer, FollowSerializer, FriendRequestSerializer, UserRefSerializer
from courseshare.views.base import caller_id, engine


class FriendManagerAPIView(APIView):
    """
        API endpoint for managing the caller's friends.

        Methods:
        - POST: add a friend. Body: {"friendID": "<member id>"}
        - DELETE: remove a friend. Body: {"friendID": "<member id>"}

        A friendship is one shared record, so either member may remove it.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = FriendRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        engine().social.add_friend(caller_id(request), serializer.validated_data["friendID"])
        return Response(status=status.HTTP_201_CREATED)

    def delete(self, request):
        serializer = FriendRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        engine().social.remove_friend(caller_id(request), serializer.validated_data["friendID"])
        return Response(status=status.HTTP_204_NO_CONTENT)


class FollowManagerAPIView(APIView):
    """
        API endpoint for following members.

        Methods:
        - POST: follow a member. Body: {"userID": "<member id>"}
        - DELETE: stop following a member. Body: {"userID": "<member id>"}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = FollowSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        engine().social.follow(caller_id(request), serializer.validated_data["userID"])
        return Response(status=status.HTTP_201_CREATED)

    def delete(self, request):
        serializer = FollowSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        engine().social.unfollow(caller_id(request), serializer.validated_data["userID"])
        return Response(status=status.HTTP_204_NO_CONTENT)


class BlockManagerAPIView(APIView):
    """
        API endpoint for the caller's ignore list.

        Methods:
        - GET: list blocked members (204 when none).
        - POST: block a member. Body: {"blockedUserID": "<member id>"}
        - DELETE: unblock a member. Body: {"blockedUserID": "<member id>"}
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        try:
            references = engine().social.blocked(caller_id(request))
        except NoData:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response(UserRefSerializer(references, many=True).data, status=status.HTTP_200_OK)

    def post(self, request):
        serializer = BlockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        engine().social.block(caller_id(request), serializer.validated_data["blockedUserID"])
        return Response(status=status.HTTP_201_CREATED)

    def delete(self, request):
        serializer = BlockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        engine().social.unblock(caller_id(request), serializer.validated_data["blockedUserID"])
        return Response(status=status.HTTP_204_NO_CONTENT)
