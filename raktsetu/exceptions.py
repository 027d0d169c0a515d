# raktsetu/exceptions.py


class RaktsetuError(Exception):
    """
    Base for every error reported to API callers.
    kind        – stable machine-readable code rendered as {"error": kind}
    status_code – HTTP status used by the views
    """
    kind = "error"
    status_code = 400
    retryable = False

    def __init__(self, message="", **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self):
        payload = {"error": self.kind, "message": self.message}
        if self.retryable:
            payload["retryable"] = True
        payload.update(self.extra)
        return payload


class ValidationError(RaktsetuError):
    kind = "validation_error"

    def __init__(self, message="Validation Error", errors=None):
        super().__init__(message, errors=errors or {})
        self.errors = errors or {}


class NotFoundError(RaktsetuError):
    kind = "not_found"
    status_code = 404


class InvalidStateError(RaktsetuError):
    kind = "invalid_state"


class IncompatibleError(RaktsetuError):
    kind = "incompatible_blood_type"
    status_code = 403


class AlreadyAcceptedError(RaktsetuError):
    kind = "already_accepted"


class AlreadyCompletedError(RaktsetuError):
    kind = "already_completed"
    status_code = 409


class PreconditionError(RaktsetuError):
    kind = "precondition_failed"


class NotAssignedError(RaktsetuError):
    kind = "not_assigned"


class ForbiddenError(RaktsetuError):
    kind = "forbidden"
    status_code = 403


class TransientError(RaktsetuError):
    # persistence connectivity/timeouts; safe for the caller to retry
    kind = "transient_failure"
    status_code = 503
    retryable = True
