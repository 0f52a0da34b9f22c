"""Endpoint de sincronização em lote.

POST /sync/{platform}
    body: {"store_id": "...", "entity_type": "product", "items": [...],
           "strategy": "merge_fields"?}

Itens são objetos nativos da plataforma (mesmo formato da API REST dela),
convertidos pelo adapter e reconciliados um a um. Falha de um item entra
em `errors` sem interromper o lote.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from api.routes.dependencies import (
    ServiceUnavailableError,
    get_container,
    request_correlation_id,
    resolve_platform,
    unavailable_response,
)
from app.domain.conflicts import ConflictStrategy  # noqa: TC001 - schema do Pydantic
from app.domain.entities import EntityType  # noqa: TC001 - schema do Pydantic
from app.observability import correlation_scope

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_SYNC_ITEMS = 500


class SyncRequest(BaseModel):
    """Lote de objetos nativos de uma loja."""

    store_id: str | None = None
    entity_type: EntityType
    items: list[dict[str, Any]] = Field(default_factory=list, max_length=MAX_SYNC_ITEMS)
    strategy: ConflictStrategy | None = None


@router.post("/{platform}")
async def sync_platform(platform: str, body: SyncRequest, request: Request) -> JSONResponse:
    """Reconcilia o lote e devolve contadores agregados."""
    resolved = resolve_platform(request, platform)
    if isinstance(resolved, JSONResponse):
        return resolved

    try:
        container = get_container(request)
    except ServiceUnavailableError:
        return unavailable_response(request)

    with correlation_scope(request_correlation_id(request)) as correlation_id:
        result = await container.pipeline.sync_batch(
            resolved,
            body.store_id,
            body.items,
            entity_type=body.entity_type,
            strategy=body.strategy,
        )
        logger.info(
            "sync_request_completed",
            extra={
                "platform": resolved.value,
                "entity_type": body.entity_type.value,
                "items": len(body.items),
                "errors_count": len(result.errors),
            },
        )

    content = result.to_dict()
    content["correlation_id"] = correlation_id
    return JSONResponse(status_code=200, content=content)
