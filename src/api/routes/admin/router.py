"""Endpoints operacionais.

Endpoints:
- GET    /admin/rate-limits/{platform}/{identifier}: contadores e limites
- DELETE /admin/rate-limits/{platform}/{identifier}: zera as janelas correntes
- GET    /admin/conflicts: conflitos aguardando revisão manual
- GET    /admin/dead-letters: itens que esgotaram as tentativas

Sem autenticação própria: expor apenas em rede interna ou atrás de IAM.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from api.routes.dependencies import (
    ServiceUnavailableError,
    error_response,
    get_container,
    request_correlation_id,
    resolve_platform,
    unavailable_response,
)
from utils.errors import ErrorCode, InfrastructureError

logger = logging.getLogger(__name__)

router = APIRouter()


def _store_unavailable(request: Request, exc: InfrastructureError) -> JSONResponse:
    logger.warning("admin_store_unavailable", extra={"error_type": type(exc).__name__})
    return error_response(
        503,
        ErrorCode.TRANSIENT_FAILURE,
        "Store unavailable",
        request_correlation_id(request),
    )


@router.get("/rate-limits/{platform}/{identifier}")
async def get_rate_limit_status(platform: str, identifier: str, request: Request) -> JSONResponse:
    resolved = resolve_platform(request, platform)
    if isinstance(resolved, JSONResponse):
        return resolved
    try:
        status = await get_container(request).rate_limiter.get_status(resolved, identifier)
    except ServiceUnavailableError:
        return unavailable_response(request)
    except InfrastructureError as exc:
        return _store_unavailable(request, exc)
    return JSONResponse(content=status)


@router.delete("/rate-limits/{platform}/{identifier}")
async def reset_rate_limit(platform: str, identifier: str, request: Request) -> JSONResponse:
    resolved = resolve_platform(request, platform)
    if isinstance(resolved, JSONResponse):
        return resolved
    try:
        await get_container(request).rate_limiter.reset(resolved, identifier)
    except ServiceUnavailableError:
        return unavailable_response(request)
    except InfrastructureError as exc:
        return _store_unavailable(request, exc)
    return JSONResponse(
        content={"success": True, "platform": resolved.value, "identifier": identifier}
    )


@router.get("/conflicts")
async def list_conflicts(
    request: Request,
    limit: int = Query(default=50, ge=1, le=500),
) -> JSONResponse:
    try:
        items = await get_container(request).review_queue.list_pending(limit)
    except ServiceUnavailableError:
        return unavailable_response(request)
    except InfrastructureError as exc:
        return _store_unavailable(request, exc)
    return JSONResponse(content={"count": len(items), "items": items})


@router.get("/dead-letters")
async def list_dead_letters(
    request: Request,
    limit: int = Query(default=50, ge=1, le=500),
) -> JSONResponse:
    try:
        items = await get_container(request).dead_letters.list_recent(limit)
    except ServiceUnavailableError:
        return unavailable_response(request)
    except InfrastructureError as exc:
        return _store_unavailable(request, exc)
    return JSONResponse(content={"count": len(items), "items": items})
