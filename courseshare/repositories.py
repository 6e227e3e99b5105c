import logging
from dataclasses import dataclass

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F, Q, Sum
from django.utils import timezone

from courseshare.directory import parse_id
from courseshare.exceptions import (
    CommentTextMissing,
    CourseNameMissing,
    InvalidVote,
    NoData,
    PermissionGuest,
    RecordChanged,
    SharingCodeMissing,
    SharingCodeTaken,
    store_operation,
)
from courseshare.lookups import CourseType, Visibility
from courseshare.models import Comment, Course, Vote
from courseshare.permissions import grant

logger = logging.getLogger(__name__)

# a search term that is not a sharing code is compared against this, which no course has
NO_SHARING_CODE = -1
MAX_SHARING_CODE = 2147483647

EDITABLE_FIELDS = ("name", "sharing_code", "series", "car_class", "game", "visibility", "description")
LIST_FIELDS = (
    "id", "name", "sharing_code", "series", "car_class", "game",
    "created_by", "created_name", "rating", "touched_at",
)


@dataclass
class SearchParams:
    term: str = ""
    course_type: int = None
    series: int = None
    game: int = None


def parse_sharing_code(term):
    """Read a search term as a sharing code, falling back to a value nothing matches."""
    try:
        code = int(term.strip())
    except (ValueError, AttributeError):
        return NO_SHARING_CODE
    if code <= 0 or code > MAX_SHARING_CODE:
        return NO_SHARING_CODE
    return code


def visibility_filter(credentials):
    """Restrict a course query to what the caller may see."""
    if credentials.is_admin:
        return Q()
    if credentials.is_guest:
        return Q(visibility=Visibility.PUBLIC)
    return (
        Q(visibility=Visibility.PUBLIC)
        | Q(created_by_id=credentials.user_id)
        | Q(visibility=Visibility.FRIENDS, created_by_id__in=credentials.friends)
    )


class CourseRepository:
    """
    Search and mutation of courses on behalf of a caller.

    Visibility is enforced through the caller's Credentials: searches are
    scoped by role and friend set, reads and updates go through grant().
    Updates use an optimistic lock on ``record_version``; a stale version is
    reported as RecordChanged and never retried here.
    """

    def __init__(self, credential_resolver, name_resolver, page_size=None):
        self.credentials = credential_resolver
        self.names = name_resolver
        self.page_size = page_size or getattr(settings, "SEARCH_PAGE_SIZE", 20)

    def validate(self, fields, partial=False):
        """Return a cleaned copy of the editable ``fields``."""
        cleaned = {key: value for key, value in fields.items() if key in EDITABLE_FIELDS}

        if not partial or "name" in cleaned:
            cleaned["name"] = (cleaned.get("name") or "").strip()
            if not cleaned["name"]:
                raise CourseNameMissing()

        if not partial or "sharing_code" in cleaned:
            code = cleaned.get("sharing_code")
            if not code or int(code) <= 0:
                raise SharingCodeMissing()
            cleaned["sharing_code"] = int(code)

        return cleaned

    def sharing_code_exists(self, code):
        with store_operation("CourseRepository.sharing_code_exists"):
            return Course.objects.filter(sharing_code=code).exists()

    def search(self, params, credentials):
        query = visibility_filter(credentials)

        if params.course_type is not None:
            query &= Q(course_type=params.course_type)
        if params.series is not None:
            query &= Q(series=params.series)
        if params.game is not None:
            query &= Q(game=params.game)

        term = (params.term or "").strip()
        if term:
            query &= Q(name__icontains=term) | Q(sharing_code=parse_sharing_code(term))

        with store_operation("CourseRepository.search"):
            courses = list(
                Course.objects.filter(query)
                .only(*LIST_FIELDS)
                .order_by("-rating", "-touched_at")[: self.page_size]
            )

        if not courses:
            raise NoData()
        return courses

    def get(self, course_id, credentials):
        cid = parse_id(course_id)
        with store_operation("CourseRepository.get"):
            course = Course.objects.filter(pk=cid).first()
        if course is None:
            raise NoData()
        grant(course.visibility, course.created_by_id, credentials)
        return course

    def create(self, fields, caller_id):
        credentials = self.credentials.resolve(caller_id)
        if credentials.is_guest:
            raise PermissionGuest()

        cleaned = self.validate(fields)
        now = timezone.now()

        with store_operation("CourseRepository.create"):
            try:
                with transaction.atomic():
                    course = Course.objects.create(
                        created_by_id=credentials.user_id,
                        created_name=self.names.name_of(credentials.user_id),
                        created_at=now,
                        touched_at=now,
                        rating=0,
                        record_version=1,
                        course_type=CourseType.CUSTOM,
                        **cleaned,
                    )
            except IntegrityError:
                if self.sharing_code_exists(cleaned["sharing_code"]):
                    raise SharingCodeTaken()
                raise

        logger.info("course %s created by %s", course.pk, credentials.login_name)
        return course

    def update(self, course_id, changes, expected_version, caller_id):
        """
        Apply ``changes`` if ``expected_version`` is still the stored version.

        On success the stored version is incremented by exactly one and the
        modifier is stamped. The version compare is repeated inside the
        UPDATE statement so that of N writers holding the same version only
        one can win.
        """
        cid = parse_id(course_id)
        with store_operation("CourseRepository.update"):
            current = (
                Course.objects.filter(pk=cid)
                .values("created_by_id", "visibility", "record_version")
                .first()
            )
        if current is None:
            raise NoData()

        credentials = self.credentials.resolve(caller_id)
        grant(current["visibility"], current["created_by_id"], credentials)
        if credentials.is_guest:
            raise PermissionGuest()

        if expected_version != current["record_version"]:
            raise RecordChanged()

        cleaned = self.validate(changes, partial=True)
        now = timezone.now()

        with store_operation("CourseRepository.update"):
            try:
                with transaction.atomic():
                    updated = Course.objects.filter(pk=cid, record_version=expected_version).update(
                        record_version=F("record_version") + 1,
                        modified_by_id=credentials.user_id,
                        modified_name=credentials.login_name,
                        modified_at=now,
                        touched_at=now,
                        **cleaned,
                    )
            except IntegrityError:
                code = cleaned.get("sharing_code")
                if code is not None and Course.objects.filter(sharing_code=code).exclude(pk=cid).exists():
                    raise SharingCodeTaken()
                raise

        if updated != 1:
            # another writer got there first
            raise RecordChanged()

        logger.info("course %s updated to version %d by %s", cid, expected_version + 1, credentials.login_name)
        with store_operation("CourseRepository.update"):
            course = Course.objects.filter(pk=cid).first()
        if course is None:
            # deleted right after our update
            raise NoData()
        return course


class CommentRepository:
    """Comments on courses; reading and writing both require read access to the course."""

    def __init__(self, courses, limit=50):
        self.courses = courses
        self.limit = limit

    def add(self, course_id, text, caller_id):
        credentials = self.courses.credentials.resolve(caller_id)
        if credentials.is_guest:
            raise PermissionGuest()

        course = self.courses.get(course_id, credentials)
        text = (text or "").strip()
        if not text:
            raise CommentTextMissing()

        with store_operation("CommentRepository.add"):
            return Comment.objects.create(
                course=course,
                created_by_id=credentials.user_id,
                created_name=credentials.login_name,
                comment=text,
            )

    def list(self, course_id, credentials):
        course = self.courses.get(course_id, credentials)
        with store_operation("CommentRepository.list"):
            comments = list(Comment.objects.filter(course=course).order_by("-created_at")[: self.limit])
        if not comments:
            raise NoData()
        return comments


class VoteRepository:
    """Up/down votes; the course rating is kept as the sum of its votes."""

    def __init__(self, courses):
        self.courses = courses

    def cast(self, course_id, value, caller_id):
        if value not in (-1, 1):
            raise InvalidVote()

        credentials = self.courses.credentials.resolve(caller_id)
        if credentials.is_guest:
            raise PermissionGuest()
        course = self.courses.get(course_id, credentials)

        with store_operation("VoteRepository.cast"), transaction.atomic():
            Vote.objects.update_or_create(
                course=course,
                member_id=credentials.user_id,
                defaults={"value": value},
            )
            rating = Vote.objects.filter(course=course).aggregate(total=Sum("value"))["total"] or 0
            # rating is not content: the record version stays untouched
            Course.objects.filter(pk=course.pk).update(rating=rating)
        return rating

    def user_vote(self, course_id, user_id):
        if user_id is None:
            return 0
        with store_operation("VoteRepository.user_vote"):
            value = (
                Vote.objects.filter(course_id=parse_id(course_id), member_id=user_id)
                .values_list("value", flat=True)
                .first()
            )
        return value or 0
