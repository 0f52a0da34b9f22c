"""Itens publicados no canal de falhas (dead-letter)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class DeadLetterItem:
    """Tarefa de reconciliação que esgotou as tentativas.

    Não carrega o corpo bruto do webhook, só a entidade já normalizada.

    Attributes:
        key: Chave de reconciliação serializada
        platform: Plataforma de origem
        entity: Entidade candidata (dict JSON-safe)
        attempts: Número de tentativas realizadas
        error_type: Classe da última exceção
        reason: transient_exhausted | non_transient | shutdown | worker_error
        correlation_id: Correlation ID da requisição original
    """

    key: str
    platform: str
    entity: dict[str, Any]
    attempts: int
    error_type: str
    reason: str
    correlation_id: str = ""
    failed_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "platform": self.platform,
            "entity": self.entity,
            "attempts": self.attempts,
            "error_type": self.error_type,
            "reason": self.reason,
            "correlation_id": self.correlation_id,
            "failed_at": self.failed_at.isoformat(),
        }
