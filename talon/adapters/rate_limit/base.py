"""Rate limiter interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a single admission check.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max requests per window.
        remaining: Requests left in the current window (0 when blocked).
        reset_at: UNIX epoch milliseconds when the current window expires.
        retry_after_seconds: Suggested wait in whole seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, key: str, max_requests: int, window_seconds: int) -> RateLimitResult:
        """Admit or reject one request for ``key``.

        Args:
            key: Unique identifier (client IP, namespaced by policy).
            max_requests: Ceiling for the window.
            window_seconds: Window length in seconds.

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def cleanup(self) -> int:
        """Drop expired windows and return how many were removed."""
        raise NotImplementedError

    @abstractmethod
    def stats(self) -> dict[str, int]:
        """Return informational counters about the store."""
        raise NotImplementedError
