from .auth_views import MemberSignupAPIView, MemberLoginAPIView, MemberLogoutAPIView
from .member_views import MemberDetailAPIView, FriendsListAPIView, FollowingListAPIView, FollowersListAPIView
from .social_views import FriendManagerAPIView, FollowManagerAPIView, BlockManagerAPIView
from .course_views import CourseListAPIView, CourseDetailAPIView, SharingCodeExistsAPIView
from .comment_views import CourseCommentsAPIView, CourseVoteAPIView
