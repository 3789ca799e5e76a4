"""Shared FastAPI dependencies and request helpers for the API routes."""

from __future__ import annotations

import json
from typing import TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from talon.adapters.gateway.base import AbstractGatewayClient
from talon.core.errors import ValidationAppError

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_gateway_client(request: Request) -> AbstractGatewayClient:
    """Return the gateway client created in the app lifespan."""
    return request.app.state.gateway


def _describe(error: dict) -> str:
    field = ".".join(str(part) for part in error.get("loc", ()))
    if error.get("type") == "missing":
        return f"{field} is required"
    message = error.get("msg", "Invalid value").removeprefix("Value error, ")
    return f"{field}: {message}" if field else message


async def parse_body(request: Request, model: type[ModelT], *, allow_empty: bool = False) -> ModelT:
    """Read the JSON body and validate it against ``model``.

    Routes call this only after the rate limit check, so throttled clients
    never pay for body parsing.

    Raises:
        ValidationAppError: If the body is not JSON or fails validation.
    """
    raw = await request.body()
    if not raw.strip():
        if not allow_empty:
            raise ValidationAppError(code="invalid_request", message="Request body is required")
        data: object = {}
    else:
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise ValidationAppError(
                code="invalid_json",
                message="Request body must be valid JSON",
            ) from exc

    try:
        return model.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        raise ValidationAppError(
            code="invalid_request",
            message=_describe(first),
            details={"field": ".".join(str(p) for p in first.get("loc", ()))},
        ) from exc
