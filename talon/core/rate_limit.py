"""Rate limit policies and the admission check used by gateway routes.

Every protected route starts with::

    limited = check_rate_limit(request, SEND_MESSAGE)
    if limited is not None:
        return limited

``check_rate_limit`` returns ``None`` when the caller may proceed, or a
ready-made 429 response otherwise. Denial is a normal outcome, never an
exception.

Clients are identified by ``X-Forwarded-For`` (first hop), then
``X-Real-IP``. Requests carrying neither share the ``"default"`` key, so
behind a proxy that strips both headers each policy acts as one global
limit.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType

from fastapi import Request, status
from fastapi.responses import JSONResponse

from talon.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from talon.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from talon.core.config import settings

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_KEY = "default"


@dataclass(frozen=True)
class RatePolicy:
    """Named request ceiling for one category of gateway operation."""

    name: str
    max_requests: int
    window_seconds: int

    def __post_init__(self) -> None:
        if self.max_requests < 1:
            raise ValueError(f"{self.name}: max_requests must be >= 1")
        if self.window_seconds < 1:
            raise ValueError(f"{self.name}: window_seconds must be >= 1")


API_DEFAULT = RatePolicy("API_DEFAULT", max_requests=60, window_seconds=60)
# Memory search hits the embedding backend
SEARCH = RatePolicy("SEARCH", max_requests=20, window_seconds=60)
SEND_MESSAGE = RatePolicy("SEND_MESSAGE", max_requests=10, window_seconds=60)
SPAWN = RatePolicy("SPAWN", max_requests=5, window_seconds=300)
# Re-indexing rebuilds the whole vector store
INDEX = RatePolicy("INDEX", max_requests=2, window_seconds=600)

RATE_LIMITS = MappingProxyType(
    {policy.name: policy for policy in (API_DEFAULT, SEARCH, SEND_MESSAGE, SPAWN, INDEX)}
)


_limiter: AbstractRateLimiter | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return the process-wide limiter, creating it on first use."""

    global _limiter
    if _limiter is None:
        _limiter = InMemoryFixedWindowRateLimiter()
    return _limiter


def set_rate_limiter(limiter: AbstractRateLimiter | None) -> None:
    """Replace the process-wide limiter (tests inject isolated instances)."""

    global _limiter
    _limiter = limiter


def get_client_key(request: Request) -> str:
    """Derive the rate limit identity of the caller from proxy headers.

    Examples:
        ``X-Forwarded-For: 1.2.3.4, 5.6.7.8`` -> ``"1.2.3.4"``
        ``X-Real-IP: 9.9.9.9`` only -> ``"9.9.9.9"``
        neither header -> ``"default"``
    """

    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip() or DEFAULT_CLIENT_KEY

    return DEFAULT_CLIENT_KEY


def _hash_client_key(key: str) -> str:
    """Hash the client key for logging without exposing addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def format_reset_at(reset_at_ms: int) -> str:
    """Format an epoch-millisecond timestamp as ISO-8601 UTC (``...000Z``)."""

    moment = datetime.fromtimestamp(reset_at_ms / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Build the X-RateLimit-* headers describing a window."""

    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": format_reset_at(result.reset_at),
    }


def build_rate_limited_response(result: RateLimitResult) -> JSONResponse:
    """Shape a denied check into the 429 response returned to the client."""

    retry_after = result.retry_after_seconds or 1
    headers = {"Retry-After": str(retry_after)}
    if settings.app.rate_limit_include_headers:
        headers.update(rate_limit_headers(result))

    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"error": "Too many requests", "retryAfter": retry_after},
        headers=headers,
    )


def check_rate_limit(
    request: Request,
    policy: RatePolicy = API_DEFAULT,
    *,
    limiter: AbstractRateLimiter | None = None,
) -> JSONResponse | None:
    """Admit the request under ``policy`` or return the 429 to send instead.

    Windows are kept per (policy, client) pair, so exhausting one category
    of operation leaves the caller's budget for the others untouched.
    The store key is ``"<policy>:<client>"`` rather than the bare client key,
    so policies never share a single window.

    Args:
        request: Incoming request; only its headers are read.
        policy: Ceiling to enforce.
        limiter: Limiter to use; defaults to the process-wide instance.

    Returns:
        None when the request may proceed, otherwise a 429 JSONResponse.
    """

    if not settings.app.rate_limit_enabled:
        return None

    limiter = limiter or get_rate_limiter()
    client_key = get_client_key(request)
    result = limiter.check(
        f"{policy.name}:{client_key}",
        policy.max_requests,
        policy.window_seconds,
    )

    log_extra = {
        "policy": policy.name,
        "key_hash": _hash_client_key(client_key),
        "limit": result.limit,
        "remaining": result.remaining,
        "window_s": policy.window_seconds,
    }

    if result.allowed:
        logger.debug("rate_limit.allowed", extra=log_extra)
        return None

    logger.warning(
        "rate_limit.exceeded",
        extra={**log_extra, "retry_after_s": result.retry_after_seconds},
    )
    return build_rate_limited_response(result)
