# raktsetu/audit.py
import logging

from .models import AuditEvent

logger = logging.getLogger(__name__)


def _get_role(user):
    if user is not None and user.is_authenticated and hasattr(user, "profile"):
        return user.profile.role
    return ""


def log_event(user, action, role=None, **details):
    """
    Create AuditEvent.
    role – override role shown on the row (default: the user's current role).
    details – extra dict persisted.
    Runs inside the caller's transaction, so a rolled-back action leaves no row.
    """
    role_val = role if role is not None else _get_role(user)
    authenticated = user is not None and user.is_authenticated
    event = AuditEvent.objects.create(
        user=user if authenticated else None,
        role=role_val or "",
        action=action,
        details=details or {},
    )
    logger.debug("audit %s by user=%s %s", action, user.pk if authenticated else None, details)
    return event
