from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from courseshare.analytics import track_view
from courseshare.directory import parse_id
from courseshare.exceptions import NoData, store_operation
from courseshare.models import Member
from courseshare.serializers import MemberSerializer, UserRefSerializer
from courseshare.views.base import caller_id, engine


class MemberDetailAPIView(APIView):
    """
    GET /api/members/{pk}/

    Returns a member profile with the member's privacy setting applied for
    everyone but the member. A fresh view (not a refresh by the same client)
    is recorded as a visit.
    """
    def get(self, request, pk):
        uid = parse_id(pk)
        with store_operation("MemberDetailAPIView.get"):
            member = Member.objects.filter(pk=uid).first()
        if member is None:
            # nothing found is not an error to the client
            return Response(status=status.HTTP_204_NO_CONTENT)

        app = engine()
        data = MemberSerializer(member, context={"viewer_id": caller_id(request) or None}).data

        track_view(request, app.registry, app.tracker, "member", uid)
        return Response(data, status=status.HTTP_200_OK)


class RelationListAPIView(APIView):
    """
    Lists one kind of relation of a member, ordered by name.

    Subclasses name the SocialGraph query in ``relation``. An empty list is
    answered with 204 No Content.
    """
    relation = None

    def get(self, request, pk):
        query = getattr(engine().social, self.relation)
        try:
            references = query(pk)
        except NoData:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response(UserRefSerializer(references, many=True).data, status=status.HTTP_200_OK)


class FriendsListAPIView(RelationListAPIView):
    """GET /api/members/{pk}/friends/"""
    relation = "friends"


class FollowingListAPIView(RelationListAPIView):
    """GET /api/members/{pk}/following/ - who the member follows."""
    relation = "following"


class FollowersListAPIView(RelationListAPIView):
    """GET /api/members/{pk}/followers/ - who follows the member."""
    relation = "followers"
