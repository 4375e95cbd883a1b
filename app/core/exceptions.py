"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class BadRequestException(AppException):
    """Bad request exception, optionally carrying every failed rule."""

    def __init__(self, message: str = "Bad request", errors: list[str] | None = None):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)
        self.errors = errors or []


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class SlotUnavailableException(ConflictException):
    """A uniqueness constraint rejected the write inside a transaction."""

    def __init__(self, message: str = "This time slot is no longer available."):
        """Initialize with 409 status code."""
        super().__init__(message)
