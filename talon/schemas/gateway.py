"""Pydantic schemas for requests forwarded to the agent gateway.

Field aliases follow the gateway's camelCase JSON; snake_case names are
accepted too.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _GatewayRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    def to_gateway(self) -> dict:
        """Serialize with gateway field names, dropping unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


class SendMessageRequest(_GatewayRequest):
    """Message for an agent (new conversation) or an existing session."""

    message: str = Field(..., min_length=1, description="Text to deliver.")
    agent_id: str | None = Field(None, alias="agentId")
    session_key: str | None = Field(None, alias="sessionKey")
    timeout_seconds: int = Field(120, alias="timeoutSeconds", ge=1)

    @model_validator(mode="after")
    def _require_target(self) -> "SendMessageRequest":
        if not self.agent_id and not self.session_key:
            raise ValueError("Either agentId or sessionKey is required")
        return self


class SpawnRequest(_GatewayRequest):
    """Task handed to a new sub-agent session."""

    task: str = Field(..., min_length=1)
    agent_id: str | None = Field(None, alias="agentId")
    label: str | None = None
    model: str | None = None
    thinking: str | None = None
    run_timeout_seconds: int = Field(300, alias="runTimeoutSeconds", ge=1)
    cleanup: Literal["keep", "delete"] = "keep"


class SearchRequest(_GatewayRequest):
    """Semantic memory search."""

    query: str = Field(..., min_length=1)
    scope: str | None = None
    scope_id: str | None = Field(None, alias="scopeId")
    limit: int = Field(10, ge=1, le=100)
    min_score: float = Field(0.5, alias="minScore", ge=0.0, le=1.0)

    def to_gateway(self) -> dict:
        payload = {
            "query": self.query,
            "maxResults": self.limit,
            "minScore": self.min_score,
        }
        scope = self.scope_id or self.scope
        if scope:
            payload["scope"] = scope
        return payload


class IndexRequest(_GatewayRequest):
    """Memory re-index trigger."""

    scope: str | None = None
    full: bool = False
