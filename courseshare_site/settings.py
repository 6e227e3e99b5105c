"""
Django settings for the courseshare service.

Everything deployment specific is read from the environment; the defaults
give a local SQLite setup suitable for development and tests.
"""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.environ.get("SECRET_KEY", "django-insecure-courseshare-dev-key")
DEBUG = env_bool("DEBUG", True)
ALLOWED_HOSTS = [h for h in os.environ.get("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "courseshare",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "courseshare_site.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "courseshare_site.wsgi.application"

# Store operations are bounded by this many seconds
STORE_TIMEOUT = int(os.environ.get("STORE_TIMEOUT", "10"))

if os.environ.get("DB_ENGINE", "sqlite") == "postgresql":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.environ.get("DB_NAME", "courseshare"),
            "USER": os.environ.get("DB_USER", "courseshare"),
            "PASSWORD": os.environ.get("DB_PASSWORD", ""),
            "HOST": os.environ.get("DB_HOST", "localhost"),
            "PORT": os.environ.get("DB_PORT", "5432"),
            "OPTIONS": {
                "options": f"-c statement_timeout={STORE_TIMEOUT * 1000}",
            },
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": os.environ.get("DB_NAME", str(BASE_DIR / "db.sqlite3")),
            "OPTIONS": {
                "timeout": STORE_TIMEOUT,
                # take the write lock at BEGIN
                "transaction_mode": "IMMEDIATE",
            },
            # file backed so tests can run several connections at once
            "TEST": {
                "NAME": str(BASE_DIR / "test_courseshare.sqlite3"),
            },
        }
    }

AUTH_USER_MODEL = "courseshare.Member"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
]

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
        "rest_framework.authentication.BasicAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.AllowAny",
    ],
    "EXCEPTION_HANDLER": "courseshare.exceptions.exception_handler",
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Request registry: refresh suppression for visit tracking
REQUEST_REGISTRY_CAPACITY = int(os.environ.get("REQUEST_REGISTRY_CAPACITY", "5000"))
REQUEST_REGISTRY_TTL = int(os.environ.get("REQUEST_REGISTRY_TTL", str(15 * 60)))
REQUEST_REGISTRY_FLUSH_INTERVAL = int(os.environ.get("REQUEST_REGISTRY_FLUSH_INTERVAL", "60"))

# InfluxDB v2 write endpoint for visits; empty disables remote analytics
ANALYTICS_URL = os.environ.get("ANALYTICS_URL", "")
ANALYTICS_ORG = os.environ.get("ANALYTICS_ORG", "")
ANALYTICS_BUCKET = os.environ.get("ANALYTICS_BUCKET", "visits")
ANALYTICS_TOKEN = os.environ.get("ANALYTICS_TOKEN", "")

SOCIAL_LIST_LIMIT = int(os.environ.get("SOCIAL_LIST_LIMIT", "20"))
SEARCH_PAGE_SIZE = int(os.environ.get("SEARCH_PAGE_SIZE", "20"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "courseshare": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "django.request": {
            "handlers": ["console"],
            "level": "ERROR",
            "propagate": False,
        },
    },
}
