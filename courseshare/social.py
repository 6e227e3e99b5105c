import logging
from dataclasses import dataclass

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Case, F, Q, When

from courseshare.directory import MemberDirectory, parse_id
from courseshare.exceptions import DuplicateRelation, NoData, SelfReference, store_operation
from courseshare.lookups import ReferenceType, RelationType
from courseshare.models import Relation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserRef:
    """A relation seen from ``user_id``: ``reference_id`` is always the other party."""
    user_id: object
    user_name: str
    reference_id: object
    reference_name: str
    reference_type: str = ReferenceType.USER
    relation_type: str = RelationType.FRIEND


class SocialGraph:
    """
    Friend, following, follower and blocked relations on top of one Relation table.

    A friendship is stored once and matched from either endpoint; a follow is
    stored once and read forward (following) or inverse (followers). Lists
    are ordered by the other member's name and capped at ``limit``; the
    friend id set used for access checks is never capped.
    """

    def __init__(self, names=None, limit=None):
        self.names = names or MemberDirectory()
        self.limit = limit or getattr(settings, "SOCIAL_LIST_LIMIT", 20)

    def _references(self, uid, condition, relation_type, operation):
        # the other party is whichever endpoint is not ``uid``
        other_id = Case(When(user_id=uid, then=F("reference_id")), default=F("user_id"))
        other_name = Case(When(user_id=uid, then=F("reference_name")), default=F("user_name"))
        own_name = Case(When(user_id=uid, then=F("user_name")), default=F("reference_name"))
        with store_operation(operation):
            rows = list(
                Relation.objects.filter(condition)
                .annotate(other_id=other_id, other_name=other_name, own_name=own_name)
                .order_by("other_name")
                .values("other_id", "other_name", "own_name")[: self.limit]
            )
        if not rows:
            raise NoData()

        return [
            UserRef(uid, r["own_name"], parse_id(r["other_id"]), r["other_name"], relation_type=relation_type)
            for r in rows
        ]

    def friends(self, user_id):
        uid = parse_id(user_id)
        return self._references(
            uid,
            Q(relation_type=RelationType.FRIEND) & (Q(user_id=uid) | Q(reference_id=uid)),
            RelationType.FRIEND,
            "SocialGraph.friends",
        )

    def friend_ids(self, user_id):
        """Every friend of ``user_id`` as a set of ids, without the list cap."""
        uid = parse_id(user_id)
        with store_operation("SocialGraph.friend_ids"):
            pairs = Relation.objects.filter(
                Q(relation_type=RelationType.FRIEND) & (Q(user_id=uid) | Q(reference_id=uid))
            ).values_list("user_id", "reference_id")
            return frozenset(b if a == uid else a for a, b in pairs)

    def following(self, user_id):
        uid = parse_id(user_id)
        return self._references(
            uid,
            Q(relation_type=RelationType.FOLLOWING, user_id=uid),
            RelationType.FOLLOWING,
            "SocialGraph.following",
        )

    def followers(self, user_id):
        uid = parse_id(user_id)
        # same stored kind as following, matched on the other column
        return self._references(
            uid,
            Q(relation_type=RelationType.FOLLOWING, reference_id=uid),
            RelationType.FOLLOWER,
            "SocialGraph.followers",
        )

    def blocked(self, user_id):
        """The member's ignore list."""
        uid = parse_id(user_id)
        return self._references(
            uid,
            Q(relation_type=RelationType.BLOCKED, user_id=uid),
            RelationType.BLOCKED,
            "SocialGraph.blocked",
        )

    def add_friend(self, user_id, friend_id):
        a, b = self._pair(user_id, friend_id)
        with store_operation("SocialGraph.add_friend"):
            if self._friendship(a, b).exists():
                raise DuplicateRelation()
            return self._insert(a, b, RelationType.FRIEND)

    def follow(self, user_id, follow_id):
        return self._add_directed(user_id, follow_id, RelationType.FOLLOWING, "SocialGraph.follow")

    def block(self, user_id, blocked_id):
        return self._add_directed(user_id, blocked_id, RelationType.BLOCKED, "SocialGraph.block")

    def remove_friend(self, user_id, friend_id):
        """Delete the shared friendship row, whichever member stored it."""
        a, b = self._pair(user_id, friend_id)
        with store_operation("SocialGraph.remove_friend"):
            deleted, _ = self._friendship(a, b).delete()
        if not deleted:
            raise NoData()
        logger.info("friendship %s/%s removed by %s", a, b, a)

    def unfollow(self, user_id, follow_id):
        self._remove_directed(user_id, follow_id, RelationType.FOLLOWING, "SocialGraph.unfollow")

    def unblock(self, user_id, blocked_id):
        self._remove_directed(user_id, blocked_id, RelationType.BLOCKED, "SocialGraph.unblock")

    def _add_directed(self, user_id, other_id, relation_type, operation):
        a, b = self._pair(user_id, other_id)
        with store_operation(operation):
            if Relation.objects.filter(relation_type=relation_type, user_id=a, reference_id=b).exists():
                raise DuplicateRelation()
            return self._insert(a, b, relation_type)

    def _remove_directed(self, user_id, other_id, relation_type, operation):
        a, b = self._pair(user_id, other_id)
        with store_operation(operation):
            deleted, _ = Relation.objects.filter(
                relation_type=relation_type, user_id=a, reference_id=b
            ).delete()
        if not deleted:
            raise NoData()

    def _pair(self, user_id, other_id):
        a, b = parse_id(user_id), parse_id(other_id)
        if a == b:
            raise SelfReference()
        return a, b

    def _friendship(self, a, b):
        return Relation.objects.filter(relation_type=RelationType.FRIEND).filter(
            Q(user_id=a, reference_id=b) | Q(user_id=b, reference_id=a)
        )

    def _insert(self, a, b, relation_type):
        user_name = self.names.name_of(a)
        reference_name = self.names.name_of(b)
        try:
            with transaction.atomic():
                relation = Relation.objects.create(
                    user_id=a,
                    user_name=user_name,
                    reference_id=b,
                    reference_name=reference_name,
                    reference_type=ReferenceType.USER,
                    relation_type=relation_type,
                )
        except IntegrityError:
            raise DuplicateRelation()
        logger.info("%s %s %s", user_name, relation_type, reference_name)
        return relation
