from __future__ import annotations

from fastapi import APIRouter, Request

from talon.core.rate_limit import API_DEFAULT, check_rate_limit, get_rate_limiter

router = APIRouter(tags=["Rate limit"])


@router.get("/ratelimit/stats")
def rate_limit_stats(request: Request):
    """Report how many client windows the limiter is currently tracking."""
    limited = check_rate_limit(request, API_DEFAULT)
    if limited is not None:
        return limited

    return {"activeKeys": get_rate_limiter().stats()["active_keys"]}
