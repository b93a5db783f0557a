"""Exceptions raised by the Data Phantom API client."""
from typing import Optional


class PhantomApiError(Exception):
    """Base class for API failures."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MissingCredentialError(PhantomApiError):
    """Raised before any request when no bearer token is available."""

    def __init__(self, message: str = "No authentication token"):
        super().__init__(message)


class InvalidIdentifierError(PhantomApiError):
    """Raised when the backend rejects an identifier (HTTP 400)."""

    def __init__(self, message: str = "Invalid reconciliation ID format"):
        super().__init__(message, status_code=400)


class NotFoundError(PhantomApiError):
    """Raised when a result or sample blob does not exist (HTTP 404)."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message, status_code=404)


class TransientApiError(PhantomApiError):
    """Network failure or retryable server response."""

    pass


class ServerError(TransientApiError):
    """Backend failure (HTTP 500)."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message, status_code=status_code)


class MappingValidationError(ValueError):
    """Raised when a mapping breaks a client-side invariant."""

    pass
