"""Registro de métricas via structured logging.

As métricas são registradas como logs estruturados e agregadas depois
pelo sistema de logs (BigQuery, Cloud Logging metrics, etc.).

Métricas suportadas:
- Latência: tempo de execução por componente/operação
- Ingestão: desfecho de cada webhook por plataforma/status HTTP
- Rate limit: decisões de admissão (incluindo fail open)
- Conflito: estratégia aplicada e vencedor
- Retry/Dead-letter: reprocessamentos e falhas permanentes

Uso:
    from app.observability import record_latency

    start = time.perf_counter()
    # ... operação ...
    record_latency("reconciliation", "apply", (time.perf_counter() - start) * 1000)
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def record_latency(
    component: str,
    operation: str,
    latency_ms: float,
    correlation_id: str | None = None,
) -> None:
    """Registra latência de operação.

    Args:
        component: Nome do componente (ex: "ingestion", "reconciliation")
        operation: Nome da operação (ex: "ingest", "apply")
        latency_ms: Latência em milissegundos
        correlation_id: ID de correlação para rastreamento
    """
    logger.info(
        "metric_latency",
        extra={
            "metric_type": "latency",
            "component": component,
            "operation": operation,
            "latency_ms": round(latency_ms, 2),
            "correlation_id": correlation_id,
        },
    )


def record_ingest_outcome(
    platform: str,
    outcome: str,
    http_status: int,
    event: str | None = None,
) -> None:
    """Registra desfecho de um webhook (accepted, ignored, rejected...)."""
    logger.info(
        "metric_ingest_outcome",
        extra={
            "metric_type": "ingest_outcome",
            "platform": platform,
            "outcome": outcome,
            "http_status": http_status,
            "event": event,
        },
    )


def record_rate_limit_decision(platform: str, *, allowed: bool, degraded: bool = False) -> None:
    """Registra decisão do rate limiter."""
    logger.debug(
        "metric_rate_limit",
        extra={
            "metric_type": "rate_limit",
            "platform": platform,
            "allowed": allowed,
            "degraded": degraded,
        },
    )


def record_conflict_resolution(
    platform: str,
    entity_type: str,
    strategy: str,
    winner: str,
    *,
    pending_review: bool = False,
) -> None:
    """Registra decisão do resolvedor de conflitos (auditoria)."""
    logger.info(
        "metric_conflict",
        extra={
            "metric_type": "conflict",
            "platform": platform,
            "entity_type": entity_type,
            "strategy": strategy,
            "winner": winner,
            "pending_review": pending_review,
        },
    )


def record_retry(platform: str, attempt: int, delay_seconds: float, error_type: str) -> None:
    """Registra reprocessamento agendado."""
    logger.info(
        "metric_retry",
        extra={
            "metric_type": "retry",
            "platform": platform,
            "attempt": attempt,
            "delay_seconds": round(delay_seconds, 3),
            "error_type": error_type,
        },
    )


def record_dead_letter(platform: str, reason: str, attempts: int) -> None:
    """Registra item movido para dead-letter."""
    logger.warning(
        "metric_dead_letter",
        extra={
            "metric_type": "dead_letter",
            "platform": platform,
            "reason": reason,
            "attempts": attempts,
        },
    )
