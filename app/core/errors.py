"""Application-level exception types.

This module defines the operational errors raised by pipeline stages, route
handlers and collaborators. Each class carries the HTTP status it maps to so
the centralized renderer never has to guess.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep the shape flexible while encouraging
    consistent keys across the codebase.
    """

    hint: str
    path: str
    limit: int
    actual_value: int
    fields: list[dict[str, Any]]
    resource: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for operational failures with a client-safe message.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    status_code: ClassVar[int] = 400

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input fails validation."""


class NotFoundAppError(AppError):
    """Raised when a path or document does not exist."""

    status_code = 404


class PayloadTooLargeAppError(AppError):
    """Raised when a request body exceeds its size ceiling."""

    status_code = 413


class WebhookSignatureError(AppError):
    """Raised when a payment webhook payload fails signature verification."""
