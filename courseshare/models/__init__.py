from .member import Member
from .relation import Relation
from .course import Course
from .comment import Comment
from .vote import Vote
from .visit import Visit
