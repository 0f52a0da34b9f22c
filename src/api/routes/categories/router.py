"""Consultas de hierarquia de categorias por escopo (platform, store_id).

Endpoints:
- GET /categories/{platform}/tree
- GET /categories/{platform}/statistics
- GET /categories/{platform}/{category_id}/path
"""

from __future__ import annotations

from fastapi import APIRouter, Request
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

router = APIRouter()


def _transient(request: Request) -> JSONResponse:
    return error_response(
        503,
        ErrorCode.TRANSIENT_FAILURE,
        "Category store unavailable",
        request_correlation_id(request),
    )


@router.get("/{platform}/tree")
async def category_tree(
    platform: str,
    request: Request,
    store_id: str | None = None,
) -> JSONResponse:
    resolved = resolve_platform(request, platform)
    if isinstance(resolved, JSONResponse):
        return resolved
    try:
        queries = get_container(request).category_queries
        tree = await queries.tree(resolved, store_id)
    except ServiceUnavailableError:
        return unavailable_response(request)
    except InfrastructureError:
        return _transient(request)
    return JSONResponse(content={"platform": resolved.value, "store_id": store_id, "tree": tree})


@router.get("/{platform}/statistics")
async def category_statistics(
    platform: str,
    request: Request,
    store_id: str | None = None,
) -> JSONResponse:
    resolved = resolve_platform(request, platform)
    if isinstance(resolved, JSONResponse):
        return resolved
    try:
        stats = await get_container(request).category_queries.statistics(resolved, store_id)
    except ServiceUnavailableError:
        return unavailable_response(request)
    except InfrastructureError:
        return _transient(request)
    return JSONResponse(content={"platform": resolved.value, "store_id": store_id, **stats})


@router.get("/{platform}/{category_id}/path")
async def category_path(
    platform: str,
    category_id: str,
    request: Request,
    store_id: str | None = None,
) -> JSONResponse:
    """Breadcrumb raiz → categoria. 404 se a categoria não existir no escopo."""
    resolved = resolve_platform(request, platform)
    if isinstance(resolved, JSONResponse):
        return resolved
    try:
        path = await get_container(request).category_queries.path(resolved, store_id, category_id)
    except ServiceUnavailableError:
        return unavailable_response(request)
    except InfrastructureError:
        return _transient(request)
    if path is None:
        return error_response(
            404, ErrorCode.NOT_FOUND, "Category not found", request_correlation_id(request)
        )
    return JSONResponse(content={"category_id": category_id, "path": path})
