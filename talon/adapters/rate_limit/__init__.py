"""Rate limiting adapters.

Routes depend on the abstract limiter so the in-memory store can later be
replaced by a shared backend without touching the HTTP layer.
"""

from talon.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from talon.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = ["AbstractRateLimiter", "InMemoryFixedWindowRateLimiter", "RateLimitResult"]
