import uuid
from django.db import models
from django.contrib.auth.models import AbstractUser, UserManager

from courseshare.lookups import Language, Privacy, Role

FIELD_MAX_LENGTH = 60
LAST_SEEN_WINDOW = 5


class MemberManager(UserManager):
    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("role", Role.ADMIN)
        return super().create_superuser(username, email, password, **extra_fields)


class Member(AbstractUser):
    """
    Represents a registered identity. Inherits from Django's AbstractUser and
    adds the fields the access-control engine resolves into Credentials.

    Fields:
        id (UUID): Primary key, also the caller id handed to the engine.
        username (str): Unique login name, used as the display name of relations.
        role (int): Guest, Member or Admin (see lookups.Role).
        language (int): Preferred language for user facing texts.
        gamer_tag (str, optional): Public in-game tag.
        privacy (int): Which of login name and gamer tag other members see.
        last_seen (list): ISO timestamps of the last logins, newest last.

    Notes:
        - `password`, `email` and the other auth fields are inherited.
        - The friend list is not a column; it lives in the Relation table.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # overriding 'username' to make the max_length shorter
    username = models.CharField(max_length=FIELD_MAX_LENGTH, unique=True)

    role = models.IntegerField(choices=Role.choices, default=Role.MEMBER)
    language = models.IntegerField(choices=Language.choices, default=Language.EN)
    gamer_tag = models.CharField(max_length=FIELD_MAX_LENGTH, blank=True)
    privacy = models.IntegerField(choices=Privacy.choices, default=Privacy.SHOW_ALL)
    last_seen = models.JSONField(default=list, blank=True)

    objects = MemberManager()

    class Meta:
        verbose_name = "Member"
        verbose_name_plural = "Members"

    def __str__(self):
        return self.username

    def hidden_from(self, viewer_id):
        """Names of the identity fields the privacy setting withholds from ``viewer_id``."""
        if viewer_id is not None and str(viewer_id) == str(self.pk):
            return ()
        if self.privacy == Privacy.LOGIN_NAME:
            return ("gamer_tag",)
        if self.privacy == Privacy.GAMER_TAG:
            return ("username",)
        return ()
