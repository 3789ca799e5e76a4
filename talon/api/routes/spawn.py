import logging

from fastapi import APIRouter, Depends, Request

from talon.adapters.gateway.base import AbstractGatewayClient
from talon.api.deps import get_gateway_client, parse_body
from talon.core.errors import GatewayAppError
from talon.core.rate_limit import SPAWN, check_rate_limit
from talon.schemas.gateway import SpawnRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Sessions"])


@router.post("/spawn")
async def spawn_agent(
    request: Request,
    gateway: AbstractGatewayClient = Depends(get_gateway_client),
):
    """Start a sub-agent session for a task (strictly rate limited)."""
    limited = check_rate_limit(request, SPAWN)
    if limited is not None:
        return limited

    body = await parse_body(request, SpawnRequest)
    try:
        result = await gateway.spawn_session(body.to_gateway())
    except GatewayAppError as exc:
        raise GatewayAppError(
            code="spawn_failed",
            message=f"Spawn failed: {exc.status_code}",
            details=exc.details,
            status_code=exc.status_code,
        ) from exc

    logger.info("gateway.session_spawned", extra={"agent_id": body.agent_id, "label": body.label})
    return result


@router.get("/spawn")
async def list_spawnable_agents(gateway: AbstractGatewayClient = Depends(get_gateway_client)):
    """List agents available for spawning; an unavailable gateway yields none."""
    try:
        return await gateway.list_agents()
    except GatewayAppError as exc:
        logger.warning("gateway.agents_unavailable", extra={"error_code": exc.code})
        return {"agents": []}
