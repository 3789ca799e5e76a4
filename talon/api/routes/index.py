import logging

from fastapi import APIRouter, Depends, Request

from talon.adapters.gateway.base import AbstractGatewayClient
from talon.api.deps import get_gateway_client, parse_body
from talon.core.errors import GatewayAppError
from talon.core.rate_limit import INDEX, check_rate_limit
from talon.schemas.gateway import IndexRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Memory"])


@router.get("/index")
async def index_status(gateway: AbstractGatewayClient = Depends(get_gateway_client)):
    """Report whether memory indexing is available on the gateway."""
    try:
        data = await gateway.memory_status()
    except GatewayAppError:
        return {"status": "unavailable", "message": "Indexing is unavailable on the gateway"}
    return {**data, "status": "ok"}


@router.post("/index")
async def rebuild_index(
    request: Request,
    gateway: AbstractGatewayClient = Depends(get_gateway_client),
):
    """Trigger a memory re-index; the most expensive gateway operation."""
    limited = check_rate_limit(request, INDEX)
    if limited is not None:
        return limited

    body = await parse_body(request, IndexRequest, allow_empty=True)
    try:
        data = await gateway.memory_index(body.to_gateway())
    except GatewayAppError as exc:
        logger.warning("gateway.index_unavailable", extra={"error_code": exc.code})
        return {
            "status": "unavailable",
            "message": f"Indexing is unavailable on the gateway ({exc.status_code})",
        }

    logger.info("gateway.index_started", extra={"scope": body.scope, "full": body.full})
    return data
