class MediationError(Exception):
    """Base class for errors that map onto an HTTP status code."""

    status_code = 500
    message = "Server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(MediationError):
    status_code = 400
    message = "Validation failed"

    def __init__(self, fields: list[str], message: str | None = None):
        super().__init__(message)
        self.fields = fields

    def to_dict(self) -> dict:
        return {"error": self.message, "fields": self.fields}


class AccessDenied(MediationError):
    status_code = 403
    message = "Access denied"


class NotFound(MediationError):
    status_code = 404
    message = "Not found"


class NoFieldsToUpdate(MediationError):
    status_code = 400
    message = "No fields to update"


class StorageError(MediationError):
    """Raised when the DB fails (connection loss, constraint violation).

    The original exception is kept as ``__cause__`` for diagnostics; callers
    only ever see the generic message.
    """

    status_code = 500
    message = "Server error"
