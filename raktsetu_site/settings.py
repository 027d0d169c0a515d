"""
Django settings for the Raktsetu API.

Values come from the environment; a `.env` file next to manage.py is loaded
first when present.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")


def env_bool(name, default=False):
    return os.environ.get(name, str(int(default))).strip().lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-only-insecure-key-change-me")
DEBUG = env_bool("DJANGO_DEBUG")
ALLOWED_HOSTS = [h.strip() for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h.strip()]

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "raktsetu",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
]

ROOT_URLCONF = "raktsetu_site.urls"
WSGI_APPLICATION = "raktsetu_site.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("RAKTSETU_DB_PATH", str(BASE_DIR / "db.sqlite3")),
        # select_for_update() is a no-op on SQLite; BEGIN IMMEDIATE takes the
        # write lock when the transaction opens, so writers queue instead
        "OPTIONS": {
            "transaction_mode": "IMMEDIATE",
            "timeout": int(os.environ.get("RAKTSETU_DB_TIMEOUT", "20")),
        },
        # file-backed so concurrent test threads share one database
        "TEST": {"NAME": str(BASE_DIR / "test_db.sqlite3")},
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
# night-bonus hours are read in this zone
TIME_ZONE = os.environ.get("RAKTSETU_TIME_ZONE", "Asia/Kolkata")
USE_I18N = True
USE_TZ = True

# ---------------- Raktsetu ----------------
RAKTSETU_FULFILLMENT_THRESHOLD = 3
RAKTSETU_NOTIFICATION_BACKEND = "raktsetu.notifications.DatabaseBackend"

# ---------------- Logging ----------------
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "default"},
    },
    "loggers": {
        "django": {"handlers": ["console"], "level": "WARNING"},
        "raktsetu": {
            "handlers": ["console"],
            "level": os.environ.get("RAKTSETU_LOG_LEVEL", "INFO").upper(),
            "propagate": False,
        },
    },
}
