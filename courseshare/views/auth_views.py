from django.contrib.auth import authenticate, login, logout
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from courseshare.serializers import MemberSerializer, MemberSignupSerializer
from courseshare.views.base import engine


class MemberSignupAPIView(APIView):
    """
        API endpoint for member signup.

        Accepts a POST request with 'username', 'email' and 'password' and
        creates a new Member with the member role.

        Example request:
        {
            "username": "driver1",
            "email": "driver1@example.com",
            "password": "12345678"
        }
    """
    def post(self, request):
        serializer = MemberSignupSerializer(data=request.data)
        if serializer.is_valid():
            member = serializer.save()
            return Response(MemberSerializer(member).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


class MemberLoginAPIView(APIView):
    """
    API endpoint for member login.

    Accepts a POST request with 'username' and 'password'.
    If credentials are valid, logs in the member, records the login time
    (the last five are kept) and returns the profile.
    """
    def post(self, request):
        # If a member is already logged in, log them out so a new login can occur
        if request.user.is_authenticated:
            logout(request)

        member = authenticate(
            username=request.data.get("username"),
            password=request.data.get("password"),
        )
        if member is None:
            return Response({"error": "invalid user name or password"},
                            status=status.HTTP_401_UNAUTHORIZED)

        login(request, member)
        engine().names.set_last_seen(member.pk)
        member.refresh_from_db(fields=["last_seen"])
        return Response(MemberSerializer(member).data, status=status.HTTP_200_OK)


class MemberLogoutAPIView(APIView):
    """Logs out the currently authenticated member."""
    def post(self, request):
        logout(request)
        return Response({"message": "Logged out successfully."}, status=status.HTTP_200_OK)
