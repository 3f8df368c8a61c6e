"""
Domain exceptions raised by the scheduling core.

Every error carries a machine-readable kind and a human-readable message.
The HTTP layer renders them through a single exception handler, so the
core never has to know about status codes beyond the class attribute.
"""


class ServiceError(Exception):
    """Base class for every error the core reports to its callers."""
    kind = "service_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class NotFound(ServiceError):
    """The regimen or dose log does not exist for the calling user."""
    kind = "not_found"
    status_code = 404


class ValidationError(ServiceError):
    """Malformed input: missing fields, bad time labels, inverted windows."""
    kind = "validation_error"
    status_code = 422


class InvalidState(ServiceError):
    """The operation is well-formed but not allowed by the schedule or the clock."""
    kind = "invalid_state"
    status_code = 409


class StorageError(ServiceError):
    """The database failed underneath an operation. Not retried."""
    kind = "storage_error"
    status_code = 503
