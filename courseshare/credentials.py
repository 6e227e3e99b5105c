import logging
from dataclasses import dataclass, field

from courseshare.directory import parse_id
from courseshare.exceptions import InvalidUser, store_operation
from courseshare.lookups import Language, Role
from courseshare.models import Member

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    """
    Per-request snapshot of who is calling: role, language and friend set.

    Built fresh by CredentialResolver for every request and never cached.
    ``user_id`` is None for anonymous callers.
    """
    user_id: object = None
    login_name: str = ""
    role: int = Role.GUEST
    language: int = Language.EN
    friends: frozenset = field(default_factory=frozenset)

    @classmethod
    def anonymous(cls):
        return cls()

    @property
    def is_guest(self):
        return self.role == Role.GUEST

    @property
    def is_admin(self):
        return self.role == Role.ADMIN

    def is_friend(self, user_id):
        return user_id in self.friends


class CredentialResolver:
    """Resolve a caller id into Credentials, loading the friend set from the social graph."""

    def __init__(self, social_graph):
        self.social_graph = social_graph

    def resolve(self, caller_id):
        # anonymous visitors get the default role without touching the store
        if not caller_id:
            return Credentials.anonymous()

        uid = parse_id(caller_id)
        with store_operation("CredentialResolver.resolve"):
            account = (
                Member.objects.filter(pk=uid)
                .values("username", "role", "language")
                .first()
            )
        if account is None:
            raise InvalidUser()

        # the complete set, not the capped list shown on profiles
        friends = self.social_graph.friend_ids(uid)

        return Credentials(
            user_id=uid,
            login_name=account["username"],
            role=account["role"],
            language=account["language"],
            friends=friends,
        )
