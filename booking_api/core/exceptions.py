"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500, details: str | None = None):
        """Initialize exception with message, status code and optional details."""
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, message: str = "Bad request", details: str | None = None):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400, details=details)


class ConflictException(BadRequestException):
    """Scheduling conflict: the provider's slot is already taken (400)."""

    def __init__(self, message: str = "Time slot already booked for this provider"):
        """Initialize with 400 status code."""
        super().__init__(message)


class InvalidTransitionException(BadRequestException):
    """Lifecycle operation not allowed from the appointment's current status."""

    def __init__(self, message: str = "Invalid status transition"):
        """Initialize with 400 status code."""
        super().__init__(message)


class OperationFailedException(AppException):
    """Unexpected failure while performing an operation."""

    def __init__(self, message: str = "Operation failed", details: str | None = None):
        """Initialize with 500 status code."""
        super().__init__(message, status_code=500, details=details)
