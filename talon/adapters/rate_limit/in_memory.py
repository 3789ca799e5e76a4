"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: a single lock guards the window store, so check, cleanup and
  stats never interleave.
- Windows open on the first request for a key (not aligned to the clock) and
  expire lazily on read; a background sweep only reclaims memory.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from talon.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class _WindowState:
    count: int
    reset_at: int


def _is_expired(state: _WindowState, now: int) -> bool:
    """Shared expiry predicate for check and cleanup.

    A request landing exactly on ``reset_at`` still belongs to the old window.
    """
    return now > state.reset_at


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests per key in a fixed window.

    Each key gets a window of ``window_seconds`` starting at its first
    request. Up to ``max_requests`` calls are admitted inside that window;
    later calls are rejected without being counted until the window expires.

    Important:
        This limiter is per-process only. If the API runs with multiple
        workers, each worker enforces its own independent limits.
    """

    def __init__(self, *, clock: Callable[[], int] = _now_ms) -> None:
        """Initialize the limiter.

        Args:
            clock: Time source returning UNIX time in milliseconds.
        """
        self._clock = clock
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _WindowState] = {}
        self._sweeper: threading.Thread | None = None
        self._sweeper_stop = threading.Event()

    def check(self, key: str, max_requests: int, window_seconds: int) -> RateLimitResult:
        """Admit or reject one request for ``key``.

        Args:
            key: Unique identifier for rate limiting.
            max_requests: Maximum admitted requests per window.
            window_seconds: Window length in seconds.

        Returns:
            RateLimitResult with the decision and window metadata.

        Raises:
            ValueError: If key is empty or the limits are not positive.
        """
        if not key:
            raise ValueError("key must be a non-empty string")
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        with self._lock:
            now = self._clock()
            state = self._state_by_key.get(key)

            if state is None or _is_expired(state, now):
                state = _WindowState(count=1, reset_at=now + window_seconds * 1000)
                self._state_by_key[key] = state
                return RateLimitResult(
                    allowed=True,
                    limit=max_requests,
                    remaining=max_requests - 1,
                    reset_at=state.reset_at,
                    retry_after_seconds=None,
                )

            if state.count >= max_requests:
                retry_after = max(1, math.ceil((state.reset_at - now) / 1000))
                return RateLimitResult(
                    allowed=False,
                    limit=max_requests,
                    remaining=0,
                    reset_at=state.reset_at,
                    retry_after_seconds=retry_after,
                )

            state.count += 1
            return RateLimitResult(
                allowed=True,
                limit=max_requests,
                remaining=max_requests - state.count,
                reset_at=state.reset_at,
                retry_after_seconds=None,
            )

    def cleanup(self) -> int:
        """Remove expired windows.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            now = self._clock()
            expired_keys = [k for k, state in self._state_by_key.items() if _is_expired(state, now)]
            for key in expired_keys:
                del self._state_by_key[key]
            active_keys = len(self._state_by_key)

        if expired_keys:
            logger.debug(
                "rate_limit.cleanup",
                extra={"removed": len(expired_keys), "active_keys": active_keys},
            )
        return len(expired_keys)

    def stats(self) -> dict[str, int]:
        """Return the number of windows currently held."""
        with self._lock:
            return {"active_keys": len(self._state_by_key)}

    def reset(self) -> None:
        """Drop every window."""
        with self._lock:
            self._state_by_key.clear()

    def start_cleanup(self, interval_seconds: float = 60.0) -> None:
        """Run ``cleanup`` every ``interval_seconds`` on a daemon thread.

        Calling this while a sweeper is already running does nothing.
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        if self._sweeper is not None and self._sweeper.is_alive():
            return

        self._sweeper_stop.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_loop,
            args=(interval_seconds,),
            name="rate-limit-cleanup",
            daemon=True,
        )
        self._sweeper.start()
        logger.info("rate_limit.cleanup_started", extra={"interval_s": interval_seconds})

    def stop_cleanup(self, timeout: float | None = 5.0) -> None:
        """Stop the background sweeper if one is running."""
        sweeper = self._sweeper
        if sweeper is None:
            return
        self._sweeper_stop.set()
        sweeper.join(timeout)
        self._sweeper = None
        logger.info("rate_limit.cleanup_stopped")

    def _sweep_loop(self, interval_seconds: float) -> None:
        while not self._sweeper_stop.wait(interval_seconds):
            try:
                self.cleanup()
            except Exception:
                logger.exception("rate_limit.cleanup_failed")
