class TaskError(Exception):
    """Base class for failures surfaced to API clients."""

    status_code = 500
    message = "Internal error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidInput(TaskError):
    status_code = 400
    message = "Title and description are required"


class Unauthorized(TaskError):
    status_code = 401
    message = "Unauthorized"


class Forbidden(TaskError):
    status_code = 403
    message = "Forbidden: You do not own this task"


class NotFound(TaskError):
    status_code = 404
    message = "Task not found"


class InternalFailure(TaskError):
    status_code = 500


class StoreError(Exception):
    """Raised by a task store when the underlying database fails."""


class AuthProviderError(Exception):
    """Raised when the identity provider cannot be reached or answers garbage."""


class AuthUnavailable(TaskError):
    status_code = 502
    message = "Authentication provider unavailable"
