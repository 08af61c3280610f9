"""Custom exception hierarchy for the admin gateway."""

from typing import Any

DEFAULT_ERROR = "Error while forwarding request to upstream"


class GatewayError(Exception):
    """Base exception for all gateway errors.

    Attributes:
        status_code: HTTP status reported to the caller
        error: Detail placed in the ``error`` field of the response body
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.error = error if error is not None else DEFAULT_ERROR


class ConfigurationError(GatewayError):
    """Raised when configuration is missing or invalid."""


class MethodNotAllowed(GatewayError):
    """Inbound method is not one of GET/POST/PUT/DELETE."""

    status_code = 405


class MultipartParseError(GatewayError):
    """Inbound multipart body could not be parsed."""

    status_code = 400


class RequestTooLarge(GatewayError):
    """Request body or uploaded file exceeds size limit."""

    status_code = 413


class UpstreamError(GatewayError):
    """Raised when the upstream service returns an error.

    Attributes:
        message: Error message
        status_code: HTTP status code from upstream (500 when unknown)
        payload: Decoded upstream error body, if any
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message, status_code=status_code, error=payload)
        self.payload = payload


class UpstreamTimeoutError(UpstreamError):
    """Raised when an upstream request times out."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=None)


class UpstreamConnectionError(UpstreamError):
    """Raised when unable to connect to the upstream service."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=None)


class LoginError(UpstreamError):
    """Raised when the upstream login call fails or yields no token."""
