import logging
import uuid

from django.db import DatabaseError, transaction
from django.utils import timezone

from courseshare.exceptions import InvalidIdentifier, InvalidUser, store_operation
from courseshare.models import Member
from courseshare.models.member import LAST_SEEN_WINDOW

logger = logging.getLogger(__name__)


def parse_id(value):
    """Return ``value`` as a UUID or raise InvalidIdentifier."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise InvalidIdentifier()


class MemberDirectory:
    """Name resolver handed to the stores that stamp member names on records."""

    def name_of(self, user_id):
        uid = parse_id(user_id)
        with store_operation("MemberDirectory.name_of"):
            name = Member.objects.filter(pk=uid).values_list("username", flat=True).first()
        if name is None:
            raise InvalidUser()
        return name

    def set_last_seen(self, user_id, now=None):
        """
        Append a login timestamp, keeping the last LAST_SEEN_WINDOW entries.

        Not essential to the login itself: a store failure is logged and
        the login goes ahead.
        """
        stamp = (now or timezone.now()).isoformat()
        try:
            with transaction.atomic():
                member = Member.objects.select_for_update().only("id", "last_seen").filter(pk=user_id).first()
                if member is None:
                    return
                member.last_seen = (list(member.last_seen or []) + [stamp])[-LAST_SEEN_WINDOW:]
                member.save(update_fields=["last_seen"])
        except DatabaseError:
            logger.warning("could not record last login of %s", user_id, exc_info=True)
