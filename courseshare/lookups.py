from django.db import models


class Role(models.IntegerChoices):
    GUEST = 0, "Guest"
    MEMBER = 1, "Member"
    ADMIN = 2, "Admin"


class Visibility(models.IntegerChoices):
    """Ordered access class of a course: PUBLIC < FRIENDS < PRIVATE."""
    PUBLIC = 0, "Public"
    FRIENDS = 1, "Friends only"
    PRIVATE = 2, "Private"


class Language(models.IntegerChoices):
    EN = 0, "English"
    DE = 1, "German"
    FR = 2, "French"


class CourseType(models.IntegerChoices):
    STANDARD = 0, "Standard"
    CUSTOM = 1, "Community"


class Series(models.IntegerChoices):
    ROAD = 0, "Road Racing"
    DIRT = 1, "Dirt Racing"
    CROSS_COUNTRY = 2, "Cross Country"
    STREET = 3, "Street Scene"
    DRAG = 4, "Drag Racing"


class CarClass(models.IntegerChoices):
    D = 0, "D"
    C = 1, "C"
    B = 2, "B"
    A = 3, "A"
    S1 = 4, "S1"
    S2 = 5, "S2"
    X = 6, "X"


class Game(models.IntegerChoices):
    FH4 = 0, "Forza Horizon 4"
    FH5 = 1, "Forza Horizon 5"
    FM = 2, "Forza Motorsport"


class RelationType(models.TextChoices):
    # "follower" is never stored; it is the inverse read of "following"
    FRIEND = "friend", "Friend"
    FOLLOWING = "following", "Following"
    FOLLOWER = "follower", "Follower"
    BLOCKED = "blocked", "Blocked"


class ReferenceType(models.TextChoices):
    USER = "user", "User"


class Privacy(models.IntegerChoices):
    """Which identity fields other members may see on a profile."""
    SHOW_ALL = 0, "Show login name and gamer tag"
    LOGIN_NAME = 1, "Show login name only"
    GAMER_TAG = 2, "Show gamer tag only"
