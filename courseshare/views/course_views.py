from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from courseshare.analytics import track_view
from courseshare.exceptions import NoData
from courseshare.repositories import SearchParams
from courseshare.serializers import CourseListItemSerializer, CourseSerializer
from courseshare.views.base import caller_id, engine, int_param


class CourseListAPIView(APIView):
    """
    API endpoint to search and create courses.

    Methods:
    - GET: search courses visible to the caller.
      Query params: search (name or sharing code), type, series, game.
      At most 20 results, best rated and most recent first; 204 when none.
    - POST: create a course owned by the caller.
    """

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsAuthenticated()]
        return []

    def get(self, request):
        app = engine()
        credentials = app.credentials.resolve(caller_id(request))
        params = SearchParams(
            term=request.query_params.get("search", ""),
            course_type=int_param(request, "type"),
            series=int_param(request, "series"),
            game=int_param(request, "game"),
        )
        try:
            courses = app.courses.search(params, credentials)
        except NoData:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response(CourseListItemSerializer(courses, many=True).data, status=status.HTTP_200_OK)

    def post(self, request):
        serializer = CourseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        course = engine().courses.create(serializer.validated_data, caller_id(request))
        return Response(CourseSerializer(course).data, status=status.HTTP_201_CREATED)


class CourseDetailAPIView(APIView):
    """
    API endpoint for a single course.

    Methods:
    - GET: read the course if the caller may see it (204 when it does not exist).
    - PUT / PATCH: update the course. The body must carry the ``recordVersion``
      the caller read; if someone saved in between, the update is refused with
      "record changed by another user" and the caller has to re-read.
    """

    def get_permissions(self):
        if self.request.method in ("PUT", "PATCH"):
            return [IsAuthenticated()]
        return []

    def get(self, request, pk):
        app = engine()
        credentials = app.credentials.resolve(caller_id(request))
        try:
            course = app.courses.get(pk, credentials)
        except NoData:
            return Response(status=status.HTTP_204_NO_CONTENT)

        data = dict(CourseSerializer(course).data)
        data["userVote"] = app.votes.user_vote(course.pk, credentials.user_id)

        track_view(request, app.registry, app.tracker, "course", course.pk)
        return Response(data, status=status.HTTP_200_OK)

    def put(self, request, pk):
        return self._update(request, pk)

    def patch(self, request, pk):
        return self._update(request, pk)

    def _update(self, request, pk):
        serializer = CourseSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        changes = dict(serializer.validated_data)

        expected_version = changes.pop("record_version", None)
        if expected_version is None:
            raise ValidationError({"recordVersion": "This field is required."})

        course = engine().courses.update(pk, changes, expected_version, caller_id(request))
        return Response(CourseSerializer(course).data, status=status.HTTP_200_OK)


class SharingCodeExistsAPIView(APIView):
    """GET /api/courses/sharing/{code}/exists/ - in-form check while typing."""

    def get(self, request, code):
        exists = engine().courses.sharing_code_exists(code)
        return Response({"exists": exists}, status=status.HTTP_200_OK)
