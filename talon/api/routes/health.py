from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from talon import __version__
from talon.core.config import settings
from talon.core.rate_limit import get_rate_limiter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check used by load balancers and the dashboard.

    Returns:
        dict: Service identity plus the number of live rate limit windows.
    """

    return {
        "status": "ok",
        "service": "talon",
        "version": __version__,
        "environment": settings.app_env,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "rateLimit": {"activeKeys": get_rate_limiter().stats()["active_keys"]},
    }
