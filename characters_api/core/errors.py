"""Application exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses. Each error kind carries
the HTTP status it maps to; translation to an HTTP response happens only in
``characters_api.core.exception_handlers``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Iterable, Mapping, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep the shape flexible while encouraging
    consistent keys across the codebase.
    """

    code: str
    message: str
    hint: str
    field: str
    fields: list[str]
    errors: list[dict[str, Any]]
    id: str
    collection: str
    backend: str
    limit: int
    remaining: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass(eq=False)
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

    http_status: ClassVar[int] = 400

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""

    http_status: ClassVar[int] = 400


class NotFoundAppError(AppError):
    """Raised when a record id is unknown in its collection."""

    http_status: ClassVar[int] = 404


class RateLimitAppError(AppError):
    """Describes a throttled request.

    Rejection is an expected outcome, so this is rendered by the rate limit
    middleware as a value rather than raised through the route stack.
    """

    http_status: ClassVar[int] = 429


class StorageAppError(AppError):
    """Raised when a storage backend fails (I/O, corrupt data, remote API)."""

    http_status: ClassVar[int] = 500


def summarize_validation_errors(errors: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Reduce pydantic error dicts to JSON-safe ``loc``/``msg``/``type`` entries."""

    return [
        {
            "loc": [str(part) for part in err.get("loc", ())],
            "msg": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in errors
    ]
