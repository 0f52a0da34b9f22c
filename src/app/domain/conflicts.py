"""Estratégias e registro de conflito entre versões de uma entidade."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from app.domain.entities import UnifiedEntity


class ConflictStrategy(StrEnum):
    TIMESTAMP_WINS = "timestamp_wins"
    PLATFORM_PRIORITY = "platform_priority"
    MERGE_FIELDS = "merge_fields"
    MANUAL_REVIEW = "manual_review"


Winner = Literal["incoming", "current", "merged"]


@dataclass(frozen=True, slots=True)
class ConflictRecord:
    """Comparação efêmera entre candidato recebido e estado armazenado.

    Não é persistido além da decisão; quando `pending_review` é True o
    registro vai para a fila de revisão manual e `resolved` é o estado
    atual, intocado.
    """

    incoming: UnifiedEntity
    current: UnifiedEntity | None
    strategy: ConflictStrategy
    resolved: UnifiedEntity
    winner: Winner
    pending_review: bool = False

    @property
    def changed(self) -> bool:
        """True se a escrita alteraria o estado armazenado."""
        if self.pending_review:
            return False
        if self.current is None:
            return True
        return self.resolved != self.current

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.incoming.reconciliation_key.as_string(),
            "strategy": self.strategy.value,
            "winner": self.winner,
            "pending_review": self.pending_review,
            "incoming": self.incoming.to_dict(),
            "current": self.current.to_dict() if self.current else None,
        }
