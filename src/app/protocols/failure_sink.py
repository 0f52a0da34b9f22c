"""Protocolos do canal de falhas: dead-letter e revisão manual de conflitos."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from app.domain.conflicts import ConflictRecord
    from app.domain.failures import DeadLetterItem


class DeadLetterSinkProtocol(ABC):
    """Destino out-of-band de itens que falharam permanentemente."""

    @abstractmethod
    async def publish(self, item: DeadLetterItem) -> None:
        """Publica item. Levanta FailureChannelError se não conseguir."""

    @abstractmethod
    async def list_recent(self, limit: int = 50) -> list[dict[str, Any]]:
        """Itens mais recentes, do mais novo para o mais antigo."""


class ConflictReviewQueueProtocol(ABC):
    """Fila de conflitos aguardando resolução humana."""

    @abstractmethod
    async def enqueue(self, record: ConflictRecord) -> None:
        """Registra conflito pendente. O estado armazenado não é tocado."""

    @abstractmethod
    async def list_pending(self, limit: int = 50) -> list[dict[str, Any]]:
        """Conflitos pendentes, do mais antigo para o mais novo."""
