class EventHubError(Exception):
    """Base class for domain errors."""


class PermissionDenied(EventHubError):
    """Raised when user has insufficient permissions."""


class ValidationError(EventHubError):
    """Raised when input fails validation."""


class NotFoundError(EventHubError):
    """Raised when a requested record does not exist."""


class BackendError(EventHubError):
    """Raised when the backend rejects a query or procedure call."""


class PaymentError(EventHubError):
    """Raised when a payment cannot be processed."""
