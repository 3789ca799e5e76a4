"""Factory for the gateway client used by the API routes."""

from talon.adapters.gateway.base import AbstractGatewayClient
from talon.adapters.gateway.http_client import HttpGatewayClient
from talon.core.config import settings


def create_gateway_client() -> AbstractGatewayClient:
    """Build a gateway client from ``settings.gateway``."""
    return HttpGatewayClient(
        base_url=settings.gateway.url,
        token=settings.gateway.token,
        timeout_seconds=settings.gateway.timeout_seconds,
    )
