import logging
from contextlib import contextmanager

from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class CourseshareError(APIException):
    """
    Base class of every domain and system error raised by the engine.

    Each error carries a numeric application code next to its message so a
    client can pick a translated, targeted message. Domain errors answer with
    422 (Unprocessable Entity); the client treats them as application errors
    rather than crashes.
    """
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    app_code = 99999
    default_detail = "server problem"
    default_code = "error"


# categories

class NotFoundError(CourseshareError):
    status_code = status.HTTP_404_NOT_FOUND


class PermissionDeniedError(CourseshareError):
    pass


class ConflictError(CourseshareError):
    pass


class InvalidInputError(CourseshareError):
    pass


class SystemFailure(CourseshareError):
    """Unexpected failure of a collaborator (store timeout, decode error...)."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    app_code = 99999
    default_detail = "server problem"
    default_code = "system_error"

    def __init__(self, provenance="", detail=None):
        super().__init__(detail)
        self.provenance = provenance


# not found

class NoData(NotFoundError):
    app_code = 10015
    default_detail = "no data found"
    default_code = "no_data"


class InvalidUser(NotFoundError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    app_code = 10001
    default_detail = "invalid request"
    default_code = "invalid_user"


# permissions

class PermissionGuest(PermissionDeniedError):
    app_code = 10006
    default_detail = "user is guest"
    default_code = "permission_guest"


class PermissionNotShared(PermissionDeniedError):
    app_code = 10007
    default_detail = "item is not shared"
    default_code = "permission_not_shared"


class PermissionPrivate(PermissionDeniedError):
    app_code = 10008
    default_detail = "item is private"
    default_code = "permission_private"


# conflicts

class RecordChanged(ConflictError):
    app_code = 10004
    default_detail = "record changed by another user"
    default_code = "record_changed"


class DuplicateKey(ConflictError):
    app_code = 10014
    default_detail = "duplicate key"
    default_code = "duplicate_key"


class SharingCodeTaken(DuplicateKey):
    default_detail = "duplicate sharing code"
    default_code = "sharing_code_taken"


class DuplicateRelation(ConflictError):
    app_code = 10012
    default_detail = "could not add or remove friend"
    default_code = "duplicate_relation"


# invalid input

class SelfReference(InvalidInputError):
    app_code = 10012
    default_detail = "could not add or remove friend"
    default_code = "self_reference"


class InvalidIdentifier(InvalidInputError):
    app_code = 10001
    default_detail = "invalid request"
    default_code = "invalid_identifier"


class CourseNameMissing(InvalidInputError):
    app_code = 10013
    default_detail = "course name is required"
    default_code = "course_name_missing"


class SharingCodeMissing(InvalidInputError):
    app_code = 10016
    default_detail = "sharing code is required"
    default_code = "sharing_code_missing"


class CommentTextMissing(InvalidInputError):
    app_code = 10017
    default_detail = "comment text is required"
    default_code = "comment_text_missing"


class InvalidVote(InvalidInputError):
    app_code = 10001
    default_detail = "invalid request"
    default_code = "invalid_vote"


@contextmanager
def store_operation(operation):
    """
    Escalate database failures raised inside the block as SystemFailure.

    Domain errors pass through untouched. Callers that need to map an
    IntegrityError to a domain conflict catch it inside the block.
    """
    try:
        yield
    except DatabaseError as e:
        raise SystemFailure(provenance=operation) from e


def exception_handler(exc, context):
    """
    Render engine errors as {"code": ..., "msg": ...}.

    System failures are logged with their provenance and cause; the client only
    ever sees the generic message. Anything else goes to DRF's default handler.
    """
    if isinstance(exc, SystemFailure):
        view = context.get("view")
        logger.error(
            "system failure in %s (%s)",
            exc.provenance or "unknown operation",
            type(view).__name__ if view is not None else "no view",
            exc_info=exc.__cause__ or exc,
        )
    elif isinstance(exc, CourseshareError):
        logger.debug("domain error %s: %s", exc.app_code, exc.detail)

    if isinstance(exc, CourseshareError):
        return Response(
            {"code": exc.app_code, "msg": str(exc.detail)},
            status=exc.status_code,
        )
    return drf_exception_handler(exc, context)
