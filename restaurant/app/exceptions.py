"""Custom exceptions for the restaurant application."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from restaurant.app.middleware.rate_limit.models import Rejected


class RestaurantException(Exception):
    """Base class for application exceptions with HTTP status code.

    All custom exceptions inherit from this class and define their
    specific status_code for consistent HTTP response handling.
    """
    status_code: int = 500

    def __init__(self, message: str = "Internal server error"):
        self.message = message
        super().__init__(message)


class RateLimitExceededError(RestaurantException):
    """Raised when a caller has used up the admission quota of an endpoint.

    Carries the rejection so the handler can render the retry hint and the
    X-RateLimit-* headers. Maps to HTTP 429 Too Many Requests.
    """
    status_code = 429

    def __init__(self, rejection: "Rejected"):
        self.rejection = rejection
        super().__init__(rejection.message)


class StoreUnavailableError(RestaurantException):
    """Raised by a rate limit store when its backend cannot be reached.

    Never surfaced to HTTP callers: the admission controller logs it and
    fails open.
    """

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        detail = f"Rate limit store failed during {operation}"
        if cause is not None:
            detail += f": {cause}"
        super().__init__(detail)


class ValidationFailedError(RestaurantException):
    """Raised when submitted form data fails validation.

    Maps to HTTP 400 Bad Request with the list of field errors.
    """
    status_code = 400

    def __init__(self, message: str = "Invalid data", details: list[str] | None = None):
        self.details = details or []
        super().__init__(message)


class ConflictError(RestaurantException):
    """Raised when a booking cannot be honoured (no tables, no capacity).

    Maps to HTTP 400 Bad Request with an optional suggestion.
    """
    status_code = 400

    def __init__(self, message: str, suggestion=None):
        self.suggestion = suggestion
        super().__init__(message)


class NotFoundError(RestaurantException):
    """Raised when a requested record does not exist. Maps to HTTP 404."""
    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class AuthenticationError(RestaurantException):
    """Raised when admin token authentication fails.

    Maps to HTTP 401 Unauthorized.
    """
    status_code = 401

    def __init__(self, detail: str = "Invalid or missing admin token"):
        self.detail = detail
        super().__init__(detail)
