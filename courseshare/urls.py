from django.urls import path
from courseshare import views


urlpatterns = [
    path("api/signup/", views.MemberSignupAPIView.as_view(), name="api_member_signup"),
    path("api/login/", views.MemberLoginAPIView.as_view(), name="api_member_login"),
    path("api/logout/", views.MemberLogoutAPIView.as_view(), name="api_member_logout"),

    # Members & relations
    path("api/members/<str:pk>/", views.MemberDetailAPIView.as_view(), name="api_member_detail"),
    path("api/members/<str:pk>/friends/", views.FriendsListAPIView.as_view(), name="api_member_friends"),
    path("api/members/<str:pk>/following/", views.FollowingListAPIView.as_view(), name="api_member_following"),
    path("api/members/<str:pk>/followers/", views.FollowersListAPIView.as_view(), name="api_member_followers"),

    path("api/friends/", views.FriendManagerAPIView.as_view(), name="api_friends"),
    path("api/following/", views.FollowManagerAPIView.as_view(), name="api_following"),
    path("api/blocked/", views.BlockManagerAPIView.as_view(), name="api_blocked"),

    # Courses
    path("api/courses/", views.CourseListAPIView.as_view(), name="api_courses"),
    path("api/courses/sharing/<int:code>/exists/", views.SharingCodeExistsAPIView.as_view(), name="api_sharing_code_exists"),
    path("api/courses/<str:pk>/", views.CourseDetailAPIView.as_view(), name="api_course_detail"),
    path("api/courses/<str:pk>/comments/", views.CourseCommentsAPIView.as_view(), name="api_course_comments"),
    path("api/courses/<str:pk>/votes/", views.CourseVoteAPIView.as_view(), name="api_course_votes"),
]
