"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    retryable = False

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation."""

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class CapacityError(ValidationError):
    """Raised when an attendance change would break the capacity bounds."""

    def __init__(self, message="Attendance is out of range."):
        """Initialize the error."""
        super().__init__(message)


class ForbiddenError(AppError):
    """Raised when the caller is unknown or not allowed to act."""

    def __init__(self, message="Forbidden."):
        """Initialize the error."""
        super().__init__(message, 403)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class ProviderError(AppError):
    """Base class for failures of the device-group provider."""


class ProviderRejectedError(ProviderError):
    """Raised when the provider refuses an operation (4xx)."""

    def __init__(self, message="The messaging provider rejected the request.", provider_status=None):
        """Initialize the error."""
        super().__init__(message, 502)
        self.provider_status = provider_status


class ProviderBadResponseError(ProviderError):
    """Raised when the provider reply cannot be understood."""

    def __init__(self, message="The messaging provider sent a malformed reply."):
        """Initialize the error."""
        super().__init__(message, 502)


class ProviderUnavailableError(ProviderError):
    """Raised on transport failures, timeouts and 5xx replies."""

    retryable = True

    def __init__(self, message="The messaging provider is unavailable."):
        """Initialize the error."""
        super().__init__(message, 503)


class StoreConflictError(AppError):
    """Raised when a transaction keeps conflicting after all attempts."""

    retryable = True

    def __init__(self, message="The record was modified concurrently. Try again."):
        """Initialize the error."""
        super().__init__(message, 409)


class StoreUnavailableError(AppError):
    """Raised when the record store cannot serve the request."""

    def __init__(self, message="The record store is unavailable."):
        """Initialize the error."""
        super().__init__(message, 500)
