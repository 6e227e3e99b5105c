import logging
import time

import requests
from django.conf import settings
from django.db import DatabaseError

from courseshare.models import Visit
from courseshare.registry import client_key

logger = logging.getLogger(__name__)


def _escape_tag(value):
    return str(value).replace("\\", "\\\\").replace(",", "\\,").replace("=", "\\=").replace(" ", "\\ ")


class Tracker:
    """
    Records profile and course visits.

    Visits are stored locally and, when ANALYTICS_URL is configured, also sent
    to an InfluxDB v2 write endpoint. Analytics is best effort: a failure is
    logged and never reaches the caller.
    """

    def __init__(self, url=None, org=None, bucket=None, token=None, timeout=5):
        self.url = url if url is not None else getattr(settings, "ANALYTICS_URL", "")
        self.org = org if org is not None else getattr(settings, "ANALYTICS_ORG", "")
        self.bucket = bucket if bucket is not None else getattr(settings, "ANALYTICS_BUCKET", "")
        self.token = token if token is not None else getattr(settings, "ANALYTICS_TOKEN", "")
        self.timeout = timeout

    def save_visitor(self, profile_type, profile_id, visitor_id=None):
        try:
            Visit.objects.create(profile_type=profile_type, profile_id=str(profile_id), visitor_id=visitor_id)
        except DatabaseError:
            logger.exception("could not store visit of %s:%s", profile_type, profile_id)
            return

        if self.url:
            self._send(profile_type, profile_id, visitor_id)

    def visitor_count(self, profile_type, profile_id):
        return Visit.objects.filter(profile_type=profile_type, profile_id=str(profile_id)).count()

    def _send(self, profile_type, profile_id, visitor_id):
        line = "visits,profileType={},profileID={} visitor=\"{}\" {}".format(
            _escape_tag(profile_type),
            _escape_tag(profile_id),
            visitor_id or "",
            int(time.time()),
        )
        headers = {"Content-Type": "text/plain; charset=utf-8"}
        if self.token:
            headers["Authorization"] = f"Token {self.token}"
        try:
            resp = requests.post(
                f"{self.url.rstrip('/')}/api/v2/write",
                params={"org": self.org, "bucket": self.bucket, "precision": "s"},
                data=line.encode("utf-8"),
                headers=headers,
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException:
            logger.warning("analytics endpoint rejected visit of %s:%s", profile_type, profile_id, exc_info=True)


def track_view(request, registry, tracker, profile_type, profile_id):
    """Log a view only when the registry says it is not a refresh of the same resource."""
    profile_key = f"{profile_type}:{profile_id}"
    if not registry.continue_(client_key(request), profile_key):
        return False
    visitor_id = request.user.pk if request.user.is_authenticated else None
    tracker.save_visitor(profile_type, profile_id, visitor_id)
    return True
