"""
WSGI config for the courseshare service.

Besides building the application this starts the background sweep of the
request registry, so only long running server processes get one.
"""
import os

from django.apps import apps
from django.conf import settings
from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "courseshare_site.settings")

application = get_wsgi_application()

if settings.REQUEST_REGISTRY_FLUSH_INTERVAL > 0:
    from courseshare.registry import start_flush_ticker

    registry_ticker = start_flush_ticker(
        apps.get_app_config("courseshare").registry,
        settings.REQUEST_REGISTRY_FLUSH_INTERVAL,
    )
