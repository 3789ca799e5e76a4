"""httpx-based gateway client."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from talon.adapters.gateway.base import AbstractGatewayClient
from talon.core.errors import GatewayAppError

logger = logging.getLogger(__name__)


class HttpGatewayClient(AbstractGatewayClient):
    """Calls the gateway's JSON HTTP API with an optional bearer token."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create the underlying async HTTP client.

        Args:
            base_url: Gateway root URL, e.g. ``http://localhost:6820``.
            token: Bearer token; the Authorization header is omitted when unset.
            timeout_seconds: Per-request timeout.
            transport: Optional transport override (tests use ``httpx.MockTransport``).
        """
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout_seconds,
            transport=transport,
        )

    async def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            response = await self.client.request(method, path, json=payload)
        except httpx.HTTPError as exc:
            logger.error(
                "gateway.unreachable",
                extra={"path": path, "error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            raise GatewayAppError(
                code="gateway_unreachable",
                message="Gateway is unreachable",
                details={"upstream_path": path},
                status_code=502,
            ) from exc

        if response.is_error:
            logger.error(
                "gateway.request_failed",
                extra={
                    "path": path,
                    "upstream_status": response.status_code,
                    "upstream_body": response.text[:500],
                },
            )
            raise GatewayAppError(
                code="gateway_error",
                message=f"Gateway error: {response.status_code}",
                details={"upstream_status": response.status_code, "upstream_path": path},
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise GatewayAppError(
                code="gateway_invalid_response",
                message="Gateway returned invalid JSON",
                details={"upstream_path": path},
                status_code=502,
            ) from exc

    async def send_message(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/api/sessions/send", payload)

    async def spawn_session(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/api/sessions/spawn", payload)

    async def list_agents(self) -> dict[str, Any]:
        return await self._request("GET", "/api/agents/list")

    async def memory_search(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/api/memory/search", payload)

    async def memory_index(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/api/memory/index", payload)

    async def memory_status(self) -> dict[str, Any]:
        return await self._request("GET", "/api/memory/status")

    async def aclose(self) -> None:
        await self.client.aclose()
