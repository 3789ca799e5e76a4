"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any ``talon`` import so the settings
object is built for the testing environment.
"""

import os

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("GATEWAY_URL", "http://gateway.test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Any
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from talon.adapters.gateway.base import AbstractGatewayClient
from talon.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from talon.api.deps import get_gateway_client
from talon.core import rate_limit as rate_limit_module
from talon.core.app_factory import create_app
from talon.core.config import settings
from talon.core.errors import GatewayAppError

START_MS = 1_700_000_000_000


class FakeGatewayClient(AbstractGatewayClient):
    """In-process gateway double recording every forwarded call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.responses: dict[str, dict[str, Any]] = {
            "send_message": {"ok": True, "reply": "pong"},
            "spawn_session": {"sessionKey": "agent:main:subagent:1"},
            "list_agents": {"agents": [{"id": "main"}]},
            "memory_search": {"results": [{"path": "MEMORY.md", "score": 0.9}]},
            "memory_index": {"status": "indexing"},
            "memory_status": {"indexed": 42},
        }
        self.errors: dict[str, GatewayAppError] = {}
        self.closed = False

    async def _call(self, name: str, payload: Any = None) -> dict[str, Any]:
        self.calls.append((name, payload))
        if name in self.errors:
            raise self.errors[name]
        return self.responses[name]

    async def send_message(self, payload):
        return await self._call("send_message", payload)

    async def spawn_session(self, payload):
        return await self._call("spawn_session", payload)

    async def list_agents(self):
        return await self._call("list_agents")

    async def memory_search(self, payload):
        return await self._call("memory_search", payload)

    async def memory_index(self, payload):
        return await self._call("memory_index", payload)

    async def memory_status(self):
        return await self._call("memory_status")

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> Mock:
    """Controllable millisecond clock."""
    return Mock(return_value=START_MS)


@pytest.fixture
def limiter(clock: Mock):
    """Isolated limiter installed as the process-wide instance."""
    instance = InMemoryFixedWindowRateLimiter(clock=clock)
    previous = rate_limit_module._limiter
    rate_limit_module.set_rate_limiter(instance)
    yield instance
    instance.stop_cleanup()
    rate_limit_module.set_rate_limiter(previous)


@pytest.fixture
def rate_limit_settings(monkeypatch: pytest.MonkeyPatch):
    """Pin the rate limit toggles to their defaults for the test."""
    monkeypatch.setattr(settings.app, "rate_limit_enabled", True)
    monkeypatch.setattr(settings.app, "rate_limit_include_headers", True)
    return settings.app


@pytest.fixture
def gateway() -> FakeGatewayClient:
    return FakeGatewayClient()


@pytest.fixture
def client(limiter, gateway: FakeGatewayClient, rate_limit_settings) -> TestClient:
    """Test client wired to the fake gateway and the isolated limiter."""
    app = create_app()
    app.dependency_overrides[get_gateway_client] = lambda: gateway
    return TestClient(app)
