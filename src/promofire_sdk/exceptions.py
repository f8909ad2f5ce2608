"""
Custom exceptions for the Promofire SDK.

Every failure surfaced to SDK consumers is one of the variants below, built
at the place where the failure happened:

- NotConfiguredError: a domain call was made before configure() succeeded
- TransportError: network-level failure reported by the HTTP backend
- DecodingError: response body is not JSON or has an unexpected shape
- BackendError: structured error returned by the Promofire service
- UnknownError: anything not covered above
"""

from typing import Any, Optional


class PromofireError(Exception):
    """
    Base exception for all SDK-level failures.

    Args:
        message (str): Short explanation of the error.
        details (Any | None): Optional structured details (e.g., raw response body).
    """

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotConfiguredError(PromofireError):
    """Raised when the SDK has no configured session to run an operation with."""

    def __init__(
        self,
        message: str = "Promofire SDK is not configured. Call configure() first.",
        details: Optional[Any] = None,
    ):
        super().__init__(message, details)


class TransportError(PromofireError):
    """Network-level failure (connection refused, timeout, TLS, ...)."""


class DecodingError(PromofireError):
    """Response could not be decoded into the expected payload."""


class BackendError(PromofireError):
    """
    Structured failure returned by the Promofire service.

    Args:
        error_type (str): Error identifier from the response body (``error``).
        message (str): Human readable message (``message``).
        status_code (int): ``statusCode`` from the body, or the HTTP status.
    """

    def __init__(
        self,
        error_type: str,
        message: str,
        status_code: int,
        details: Optional[Any] = None,
    ):
        super().__init__(message, details)
        self.error_type = error_type
        self.status_code = status_code

    def __str__(self) -> str:
        return f"{self.error_type}: {self.message}"


class UnknownError(PromofireError):
    """Fallback for failures that fit no other category."""

    def __init__(
        self,
        message: str,
        details: Optional[Any] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
