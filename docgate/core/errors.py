"""Application-level exception types.

This module defines the domain errors raised by the rate limiter, the
serializer, the transports and the submitter, so callers can handle every
failure of a submission through one hierarchy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and callers.

    Fields are optional; each error fills in what it knows.
    """

    code: str
    message: str
    hint: str
    capacity: int
    window_seconds: float
    timeout_seconds: float
    http_status: int
    endpoint_url: str
    request_type: str
    error_type: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class InvalidConfigurationError(ValidationAppError):
    """Raised when a rate limiter is built with a non-positive capacity or window."""


class AcquireCancelledError(AppError):
    """Raised when a caller gives up waiting for a permit.

    No permit was consumed; the caller may retry ``acquire`` later.
    """


class SerializationAppError(AppError):
    """Raised when a request cannot be converted to its wire form."""


class TransportAppError(AppError):
    """Raised when the transport fails to deliver a request or read its response."""
