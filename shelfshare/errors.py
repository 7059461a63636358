"""Exception types raised by the ShelfShare clients."""
from typing import Optional


class ShelfShareError(Exception):
    """Base class for all client errors."""


class NetworkError(ShelfShareError):
    """Request failed in transport or returned a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthError(NetworkError):
    """Backend rejected the bearer token (HTTP 401)."""

    def __init__(self, message: str = "Not authenticated", status_code: Optional[int] = 401):
        super().__init__(message, status_code)


class ValidationError(ShelfShareError, ValueError):
    """Input rejected before any request was sent."""


def error_from_response(status_code: int, body) -> NetworkError:
    """
    Build the matching error for a non-2xx response.

    Args:
        status_code: HTTP status code
        body: Decoded JSON body, or None if it was not JSON

    Returns:
        AuthError for 401, NetworkError otherwise
    """
    message = None
    if isinstance(body, dict):
        message = body.get("message")
    message = message or f"Request failed with status {status_code}"

    if status_code == 401:
        return AuthError(message, status_code)
    return NetworkError(message, status_code)
