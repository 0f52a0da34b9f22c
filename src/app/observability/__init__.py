"""Observabilidade — logs estruturados, correlation_id, métricas.

Re-exporta funções de correlation_id e métricas para uso em toda a aplicação.

Uso:
    from app.observability import get_correlation_id, set_correlation_id
    from app.observability import record_latency, record_ingest_outcome
"""

from app.observability.correlation import (
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from app.observability.metrics import (
    record_conflict_resolution,
    record_dead_letter,
    record_ingest_outcome,
    record_latency,
    record_rate_limit_decision,
    record_retry,
)

__all__ = [
    "correlation_scope",
    "generate_correlation_id",
    "get_correlation_id",
    "record_conflict_resolution",
    "record_dead_letter",
    "record_ingest_outcome",
    "record_latency",
    "record_rate_limit_decision",
    "record_retry",
    "reset_correlation_id",
    "set_correlation_id",
]
