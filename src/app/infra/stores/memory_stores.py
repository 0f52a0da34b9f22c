"""Stores em memória — apenas para desenvolvimento e testes.

ATENÇÃO: Não usar em staging/production. Sem persistência entre reinícios
e sem compartilhamento entre instâncias.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any

from app.domain.entities import Category, EntityType, ReconciliationKey, entity_from_dict
from app.protocols.counter_store import ConsumeResult, CounterStoreProtocol
from app.protocols.entity_repository import EntityRepositoryProtocol
from app.protocols.failure_sink import ConflictReviewQueueProtocol, DeadLetterSinkProtocol

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from app.domain.conflicts import ConflictRecord
    from app.domain.entities import UnifiedEntity
    from app.domain.failures import DeadLetterItem
    from app.domain.platform import Platform
    from app.protocols.counter_store import CounterWindow


class MemoryCounterStore(CounterStoreProtocol):
    """Contadores com expiração em memória (dev/test).

    Args:
        clock: Relógio em epoch seconds (injetável para testes)
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._counters: dict[str, tuple[int, float]] = {}  # key -> (count, expires_at)
        self._lock = asyncio.Lock()

    def _current(self, key: str, now: float) -> int:
        entry = self._counters.get(key)
        if entry is None:
            return 0
        count, expires_at = entry
        if now >= expires_at:
            del self._counters[key]
            return 0
        return count

    def _purge_expired(self, now: float) -> None:
        # Chaves de janela mudam a cada minuto/hora e não são relidas depois.
        expired = [key for key, (_, expires_at) in self._counters.items() if now >= expires_at]
        for key in expired:
            del self._counters[key]

    def key_count(self) -> int:
        """Chaves ainda guardadas (expiradas incluídas até a próxima limpeza)."""
        return len(self._counters)

    async def consume_if_below(self, windows: Sequence[CounterWindow]) -> ConsumeResult:
        async with self._lock:
            now = self._clock()
            self._purge_expired(now)
            counts = [self._current(window.key, now) for window in windows]
            if any(count >= window.limit for count, window in zip(counts, windows, strict=True)):
                return ConsumeResult(admitted=False, counts=tuple(counts))

            updated: list[int] = []
            for count, window in zip(counts, windows, strict=True):
                expires_at = self._counters.get(window.key, (0, now + window.ttl_seconds))[1]
                self._counters[window.key] = (count + 1, expires_at)
                updated.append(count + 1)
            return ConsumeResult(admitted=True, counts=tuple(updated))

    async def get_counts(self, keys: Sequence[str]) -> list[int]:
        async with self._lock:
            now = self._clock()
            return [self._current(key, now) for key in keys]

    async def reset(self, keys: Sequence[str]) -> None:
        async with self._lock:
            for key in keys:
                self._counters.pop(key, None)

    async def ping(self) -> bool:
        return True


class MemoryEntityRepository(EntityRepositoryProtocol):
    """Repositório em memória para dev/test.

    Guarda o dict serializado, como um backend real faria, para que a
    leitura devolva uma cópia independente da entidade gravada.
    """

    def __init__(self) -> None:
        self._entities: dict[str, dict[str, Any]] = {}

    async def get_entity_by_key(
        self,
        platform: Platform,
        store_id: str | None,
        external_id: str,
        entity_type: EntityType,
    ) -> UnifiedEntity | None:
        key = ReconciliationKey(platform, store_id, external_id, entity_type).as_string()
        data = self._entities.get(key)
        return entity_from_dict(data) if data is not None else None

    async def upsert_entity(self, entity: UnifiedEntity) -> UnifiedEntity:
        self._entities[entity.reconciliation_key.as_string()] = entity.to_dict()
        return entity

    async def list_categories_by_scope(
        self,
        platform: Platform,
        store_id: str | None,
    ) -> list[Category]:
        categories: list[Category] = []
        for data in self._entities.values():
            if (
                data.get("entity_type") == EntityType.CATEGORY.value
                and data.get("platform") == platform.value
                and data.get("store_id") == store_id
            ):
                categories.append(Category.model_validate(data))
        return categories

    def __len__(self) -> int:
        return len(self._entities)


class MemoryDeadLetterSink(DeadLetterSinkProtocol):
    """Dead-letter em memória (dev/test)."""

    def __init__(self) -> None:
        self._items: list[dict[str, Any]] = []

    async def publish(self, item: DeadLetterItem) -> None:
        self._items.append(item.to_dict())

    async def list_recent(self, limit: int = 50) -> list[dict[str, Any]]:
        return list(reversed(self._items))[:limit]


class MemoryConflictReviewQueue(ConflictReviewQueueProtocol):
    """Fila de revisão em memória usada em dev/test.

    O mesmo candidato reentregue para a mesma chave não duplica a pendência.
    """

    def __init__(self) -> None:
        self._records: list[dict[str, Any]] = []

    async def enqueue(self, record: ConflictRecord) -> None:
        data = record.to_dict()
        if any(
            pending["key"] == data["key"] and pending["incoming"] == data["incoming"]
            for pending in self._records
        ):
            return
        self._records.append(data)

    async def list_pending(self, limit: int = 50) -> list[dict[str, Any]]:
        return self._records[:limit]
