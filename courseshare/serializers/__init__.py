from .memberserializer import MemberSerializer
from .signupserializer import MemberSignupSerializer
from .userrefserializer import UserRefSerializer, FriendRequestSerializer, FollowSerializer, BlockSerializer
from .courseserializer import CourseSerializer, CourseListItemSerializer
from .commentserializer import CommentSerializer, VoteSerializer
