"""Application-level exception types.

Rate-limit denials are not errors and never appear here; they are returned
as ready-made 429 responses by ``talon.core.rate_limit``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    field: str
    upstream_status: int
    upstream_path: str
    request_id: str
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
    """Raised when request input fails validation."""


@dataclass
class GatewayAppError(AppError):
    """Raised when the agent gateway is unreachable or answers with an error.

    Attributes:
        status_code: Upstream HTTP status, or 502 when no response arrived.
    """

    status_code: int = 502
