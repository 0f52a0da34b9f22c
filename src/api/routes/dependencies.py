"""Acesso ao container de serviços e helpers comuns das rotas."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi.responses import JSONResponse

from app.domain.platform import parse_platform
from app.observability import generate_correlation_id
from utils.errors import ErrorCode

if TYPE_CHECKING:
    from fastapi import Request

    from app.bootstrap.dependencies import ServiceContainer
    from app.domain.platform import Platform


class ServiceUnavailableError(RuntimeError):
    """Container ainda não inicializado (lifespan não rodou)."""


def get_container(request: Request) -> ServiceContainer:
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise ServiceUnavailableError("service_container_not_ready")
    return container


def request_correlation_id(request: Request) -> str:
    return request.headers.get("x-correlation-id") or generate_correlation_id()


def error_response(
    status_code: int,
    code: ErrorCode,
    message: str,
    correlation_id: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Corpo de erro padrão fora do pipeline (plataforma inválida, 503...)."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": {"code": code.value, "message": message},
            "correlation_id": correlation_id,
        },
        headers=headers,
    )


def resolve_platform(request: Request, value: str) -> Platform | JSONResponse:
    """Platform do path, ou resposta 404 INVALID_PLATFORM."""
    platform = parse_platform(value)
    if platform is None:
        return error_response(
            404,
            ErrorCode.INVALID_PLATFORM,
            f"Unsupported platform: {value}",
            request_correlation_id(request),
        )
    return platform


def unavailable_response(request: Request) -> JSONResponse:
    return error_response(
        503,
        ErrorCode.TRANSIENT_FAILURE,
        "Service not ready",
        request_correlation_id(request),
    )
