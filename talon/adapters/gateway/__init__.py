"""Clients for the external agent gateway that Talon supervises."""

from talon.adapters.gateway.base import AbstractGatewayClient
from talon.adapters.gateway.http_client import HttpGatewayClient

__all__ = ["AbstractGatewayClient", "HttpGatewayClient"]
