"""Endpoint de webhooks das plataformas de e-commerce.

Endpoints:
- POST /webhooks/{platform}: recebimento de eventos (hotmart, nuvemshop,
  woocommerce)

Todo o fluxo (content type, tamanho, rate limit, assinatura, validação,
reconciliação) fica no IngestionPipeline; a rota só monta o envelope com
o corpo bruto e devolve o IngestResult. O corpo é lido em streaming com
teto de max_body_bytes, então um payload grande é recusado sem ser
carregado inteiro em memória.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

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
from app.domain.envelope import WebhookEnvelope
from utils.errors import ErrorCode

if TYPE_CHECKING:
    from app.domain.platform import Platform

logger = logging.getLogger(__name__)

router = APIRouter()


def client_identifier(request: Request, trusted_proxy_count: int = 0) -> str:
    """IP de origem usado como identidade no rate limit.

    Sem proxies confiáveis vale o peer TCP. Com N proxies, vale o hop N
    posições a partir da direita do X-Forwarded-For; os hops à esquerda
    são escritos pelo remetente e não entram na identidade.
    """
    peer = request.client.host if request.client else "unknown"
    if trusted_proxy_count <= 0:
        return peer
    forwarded = request.headers.get("x-forwarded-for", "")
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    if len(hops) < trusted_proxy_count:
        return peer
    return hops[-trusted_proxy_count]


def build_envelope(
    request: Request,
    platform: Platform,
    raw_body: bytes,
    trusted_proxy_count: int = 0,
) -> WebhookEnvelope:
    """Envelope com headers em minúsculas e IP de origem como identificador."""
    headers = {key.lower(): value for key, value in request.headers.items()}
    return WebhookEnvelope(
        platform=platform,
        raw_body=raw_body,
        headers=headers,
        source_identifier=client_identifier(request, trusted_proxy_count),
    )


def declared_length(request: Request) -> int | None:
    raw = request.headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


async def read_body(request: Request, max_bytes: int) -> bytes | None:
    """Corpo completo, ou None assim que a leitura passar de max_bytes."""
    chunks: list[bytes] = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > max_bytes:
            return None
        chunks.append(chunk)
    return b"".join(chunks)


def _too_large(request: Request, platform: Platform, max_bytes: int) -> JSONResponse:
    logger.warning(
        "webhook_payload_too_large",
        extra={
            "platform": platform.value,
            "declared_bytes": declared_length(request),
            "max_body_bytes": max_bytes,
        },
    )
    return error_response(
        413,
        ErrorCode.PAYLOAD_TOO_LARGE,
        "Payload too large",
        request_correlation_id(request),
    )


@router.post("/{platform}")
async def receive_webhook(platform: str, request: Request) -> JSONResponse:
    """Recebe webhook da plataforma e responde com o resultado da ingestão."""
    resolved = resolve_platform(request, platform)
    if isinstance(resolved, JSONResponse):
        return resolved

    try:
        container = get_container(request)
    except ServiceUnavailableError:
        return unavailable_response(request)

    settings = container.pipeline.settings
    declared = declared_length(request)
    if declared is not None and declared > settings.max_body_bytes:
        return _too_large(request, resolved, settings.max_body_bytes)

    raw_body = await read_body(request, settings.max_body_bytes)
    if raw_body is None:
        return _too_large(request, resolved, settings.max_body_bytes)

    envelope = build_envelope(request, resolved, raw_body, settings.trusted_proxy_count)
    result = await container.pipeline.ingest(envelope)
    return JSONResponse(
        status_code=result.http_status,
        content=result.body,
        headers=result.headers or None,
    )
