"""Endpoints de health check para Cloud Run."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config.settings import get_base_settings, get_store_settings

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Resposta do health check."""

    status: str
    service: str
    timestamp: str
    version: str = "1.0.0"


@dataclass(frozen=True, slots=True)
class DependencyCheck:
    """Resultado de checagem de dependência."""

    status: Literal["ok", "skipped", "failed"]
    latency_ms: float | None = None
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "latency_ms": self.latency_ms,
            "error": self.error,
        }


SKIPPED = DependencyCheck(status="skipped")


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness probe — verifica se o serviço está rodando."""
    return HealthResponse(
        status="healthy",
        service=get_base_settings().service_name,
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/ready")
async def readiness_check(request: Request) -> JSONResponse:
    """Readiness probe.

    Redis e Firestore só são checados quando o backend correspondente está
    selecionado; o pool de reconciliação precisa estar rodando.
    """
    stores = get_store_settings()
    state = request.app.state
    uses_firestore = stores.entity_backend == "firestore" or stores.failure_backend == "firestore"

    redis_check, firestore_check = await asyncio.gather(
        _check_redis(getattr(state, "redis_client", None))
        if stores.counter_backend == "redis"
        else _skipped(),
        _check_firestore(getattr(state, "firestore_client", None))
        if uses_firestore
        else _skipped(),
    )
    container = getattr(state, "container", None)
    workers_running = bool(container is not None and container.pool.running)

    ready = (
        workers_running
        and redis_check.status != "failed"
        and firestore_check.status != "failed"
    )
    payload = {
        "status": "ready" if ready else "not_ready",
        "checks": {
            "redis": redis_check.as_dict(),
            "firestore": firestore_check.as_dict(),
            "reconciliation_workers": {
                "status": "ok" if workers_running else "failed",
                "pending": container.pool.pending if container is not None else None,
            },
        },
        "timestamp": datetime.now(UTC).isoformat(),
    }
    if not ready:
        logger.warning("readiness_check_failed", extra={"checks": payload["checks"]})
    return JSONResponse(content=payload, status_code=200 if ready else 503)


async def _skipped() -> DependencyCheck:
    return SKIPPED


async def _check_redis(redis_client: Any | None) -> DependencyCheck:
    if redis_client is None:
        return DependencyCheck(status="failed", error="not_configured")
    started_at = time.perf_counter()
    try:
        await asyncio.wait_for(redis_client.ping(), timeout=2.0)
    except TimeoutError:
        return DependencyCheck(status="failed", error="timeout")
    except Exception as exc:
        return DependencyCheck(status="failed", error=type(exc).__name__)
    latency_ms = (time.perf_counter() - started_at) * 1000
    return DependencyCheck(status="ok", latency_ms=round(latency_ms, 2))


async def _check_firestore(firestore_client: Any | None) -> DependencyCheck:
    if firestore_client is None:
        return DependencyCheck(status="failed", error="not_configured")
    started_at = time.perf_counter()
    try:
        await asyncio.wait_for(
            asyncio.to_thread(_read_firestore_health_doc, firestore_client),
            timeout=3.0,
        )
    except TimeoutError:
        return DependencyCheck(status="failed", error="timeout")
    except Exception as exc:
        return DependencyCheck(status="failed", error=type(exc).__name__)
    latency_ms = (time.perf_counter() - started_at) * 1000
    return DependencyCheck(status="ok", latency_ms=round(latency_ms, 2))


def _read_firestore_health_doc(firestore_client: Any) -> None:
    # Leitura simples: documento inexistente também prova conectividade.
    firestore_client.collection("_health").document("check").get()
