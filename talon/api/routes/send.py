import logging

from fastapi import APIRouter, Depends, Request

from talon.adapters.gateway.base import AbstractGatewayClient
from talon.api.deps import get_gateway_client, parse_body
from talon.core.rate_limit import SEND_MESSAGE, check_rate_limit
from talon.schemas.gateway import SendMessageRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Sessions"])


@router.post("/send")
async def send_message(
    request: Request,
    gateway: AbstractGatewayClient = Depends(get_gateway_client),
):
    """Forward a message to an agent or session through the gateway.

    Body:
        ``{"message": str, "agentId"?: str, "sessionKey"?: str, "timeoutSeconds"?: int}``

    Returns:
        The gateway's JSON response, or 429 when the caller is over the
        SEND_MESSAGE limit. Gateway failures keep the upstream status.
    """
    limited = check_rate_limit(request, SEND_MESSAGE)
    if limited is not None:
        return limited

    body = await parse_body(request, SendMessageRequest)
    result = await gateway.send_message(body.to_gateway())
    logger.info(
        "gateway.message_sent",
        extra={"agent_id": body.agent_id, "has_session_key": bool(body.session_key)},
    )
    return result
