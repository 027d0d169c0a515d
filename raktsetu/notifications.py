# raktsetu/notifications.py
"""
Outbound notification sink.

Lifecycle code calls `notify()`; where the message goes is decided by the
backend named in settings.RAKTSETU_NOTIFICATION_BACKEND. The default backend
stores a Notification row in the caller's transaction, so the mobile client
can poll `/api/notifications/` and nothing is sent for a rolled-back change.
"""
import logging
from functools import lru_cache

from django.conf import settings
from django.utils.module_loading import import_string

from .models import Notification

logger = logging.getLogger(__name__)

DEFAULT_BACKEND = "raktsetu.notifications.DatabaseBackend"


class BaseBackend:
    def send(self, recipient, kind, title, body, blood_request=None, data=None):
        raise NotImplementedError


class LoggingBackend(BaseBackend):
    def send(self, recipient, kind, title, body, blood_request=None, data=None):
        logger.info("notify user=%s kind=%s request=%s: %s",
                    recipient.pk, kind, getattr(blood_request, "pk", None), title)
        return None


class DatabaseBackend(LoggingBackend):
    def send(self, recipient, kind, title, body, blood_request=None, data=None):
        note = Notification.objects.create(
            recipient=recipient,
            kind=kind,
            title=title,
            body=body,
            data=data or {},
            blood_request=blood_request,
        )
        super().send(recipient, kind, title, body, blood_request=blood_request, data=data)
        return note


@lru_cache(maxsize=None)
def _load_backend(path):
    return import_string(path)()


def get_backend():
    return _load_backend(getattr(settings, "RAKTSETU_NOTIFICATION_BACKEND", DEFAULT_BACKEND))


def notify(recipient, kind, title, body, blood_request=None, **data):
    return get_backend().send(recipient, kind, title, body, blood_request=blood_request, data=data)
