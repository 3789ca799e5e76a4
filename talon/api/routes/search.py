import logging

from fastapi import APIRouter, Depends, Request

from talon.adapters.gateway.base import AbstractGatewayClient
from talon.api.deps import get_gateway_client, parse_body
from talon.core.errors import GatewayAppError, ValidationAppError
from talon.core.rate_limit import SEARCH, check_rate_limit
from talon.schemas.gateway import SearchRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Memory"])


async def _search(gateway: AbstractGatewayClient, body: SearchRequest) -> dict:
    # Search degrades to empty results rather than failing the dashboard
    try:
        data = await gateway.memory_search(body.to_gateway())
    except GatewayAppError as exc:
        logger.warning("gateway.search_unavailable", extra={"error_code": exc.code})
        return {
            "results": [],
            "query": body.query,
            "message": "Gateway memory search unavailable",
        }

    return {"results": data.get("results") or [], "query": body.query}


@router.post("/search")
async def search_memory(
    request: Request,
    gateway: AbstractGatewayClient = Depends(get_gateway_client),
):
    """Semantic search over agent memory via the gateway."""
    limited = check_rate_limit(request, SEARCH)
    if limited is not None:
        return limited

    body = await parse_body(request, SearchRequest)
    return await _search(gateway, body)


@router.get("/search")
async def search_memory_get(
    request: Request,
    gateway: AbstractGatewayClient = Depends(get_gateway_client),
):
    """Query-string variant of POST /search (``query`` or ``q``)."""
    limited = check_rate_limit(request, SEARCH)
    if limited is not None:
        return limited

    params = request.query_params
    query = params.get("query") or params.get("q")
    if not query:
        raise ValidationAppError(code="invalid_request", message="Query parameter required")

    try:
        body = SearchRequest.model_validate(
            {
                "query": query,
                "limit": params.get("limit", 10),
                "scope": params.get("scope"),
                "scopeId": params.get("scopeId"),
            }
        )
    except ValueError as exc:
        raise ValidationAppError(code="invalid_request", message=str(exc)) from exc

    return await _search(gateway, body)
