from __future__ import annotations

from talon.api.routes.health import router as health_router
from talon.api.routes.index import router as index_router
from talon.api.routes.ratelimit import router as ratelimit_router
from talon.api.routes.search import router as search_router
from talon.api.routes.send import router as send_router
from talon.api.routes.spawn import router as spawn_router

__all__ = [
    "health_router",
    "index_router",
    "ratelimit_router",
    "search_router",
    "send_router",
    "spawn_router",
]
