"""Testes do ReconciliationWorkerPool com stores em memória."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from app.domain.conflicts import ConflictStrategy
from app.domain.entities import EntityType, UnifiedEntity
from app.domain.platform import Platform
from app.domain.statuses import DELETED_STATUS
from app.infra.stores.memory_stores import (
    MemoryConflictReviewQueue,
    MemoryDeadLetterSink,
    MemoryEntityRepository,
)
from app.services.conflict_resolver import ConflictResolver
from app.services.reconciliation_worker import (
    ReconciliationStatus,
    ReconciliationTask,
    ReconciliationWorkerPool,
)
from app.services.retry_scheduler import RetryScheduler
from config.settings.platforms import RetryConfig
from utils.errors import FirestoreUnavailableError

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class FlakyRepository(MemoryEntityRepository):
    """Falha nas primeiras `failures` escritas."""

    def __init__(self, failures: int, error: Exception | None = None) -> None:
        super().__init__()
        self.failures = failures
        self.error = error or FirestoreUnavailableError("unavailable")
        self.upsert_calls = 0

    async def upsert_entity(self, entity: UnifiedEntity) -> UnifiedEntity:
        self.upsert_calls += 1
        if self.upsert_calls <= self.failures:
            raise self.error
        return await super().upsert_entity(entity)


def _order(status: str = "processing", updated_at: datetime | None = NOW) -> UnifiedEntity:
    return UnifiedEntity(
        platform=Platform.NUVEMSHOP,
        entity_type=EntityType.ORDER,
        external_id="1001",
        store_id="77",
        name="1001",
        status=status,
        updated_at=updated_at,
    )


def _task(
    candidate: UnifiedEntity | None = None,
    strategy: ConflictStrategy = ConflictStrategy.TIMESTAMP_WINS,
    attempt: int = 0,
) -> ReconciliationTask:
    return ReconciliationTask(
        candidate=candidate or _order(),
        strategy=strategy,
        correlation_id="corr-1",
        attempt=attempt,
    )


def _pool(
    repository: MemoryEntityRepository | None = None,
    *,
    retry: RetryConfig | None = None,
) -> tuple[ReconciliationWorkerPool, MemoryDeadLetterSink, MemoryConflictReviewQueue]:
    dead_letters = MemoryDeadLetterSink()
    review_queue = MemoryConflictReviewQueue()
    policy = retry or RetryConfig(max_retries=2, base_delay_seconds=0.01, max_delay_seconds=0.05)
    pool = ReconciliationWorkerPool(
        repository=repository if repository is not None else MemoryEntityRepository(),
        resolver=ConflictResolver(),
        retry_scheduler=RetryScheduler(lambda _platform: policy, jitter=False),
        dead_letters=dead_letters,
        review_queue=review_queue,
        worker_count=2,
        persistence_timeout=1.0,
    )
    return pool, dead_letters, review_queue


async def _wait_until(predicate: object, timeout: float = 1.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():  # type: ignore[operator]
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.01)


class TestApply:
    """Aplicação direta sob o lock da chave."""

    @pytest.mark.asyncio
    async def test_create_then_redelivery_is_unchanged(self) -> None:
        """Mesmo candidato duas vezes: created e depois unchanged."""
        repository = MemoryEntityRepository()
        pool, _, _ = _pool(repository)

        first = await pool.apply(_task())
        second = await pool.apply(_task())

        assert first.status is ReconciliationStatus.CREATED
        assert first.applied is True
        assert second.status is ReconciliationStatus.UNCHANGED
        assert len(repository) == 1

    @pytest.mark.asyncio
    async def test_newer_candidate_updates(self) -> None:
        """Candidato mais recente substitui o estado."""
        repository = MemoryEntityRepository()
        pool, _, _ = _pool(repository)
        await pool.apply(_task())

        outcome = await pool.apply(
            _task(_order(status="shipped", updated_at=NOW + timedelta(minutes=5)))
        )

        stored = await repository.get_entity_by_key(
            Platform.NUVEMSHOP, "77", "1001", EntityType.ORDER
        )
        assert outcome.status is ReconciliationStatus.UPDATED
        assert stored is not None and stored.status == "shipped"

    @pytest.mark.asyncio
    async def test_manual_review_enqueues_and_keeps_state(self) -> None:
        """manual_review: estado intocado, conflito na fila."""
        repository = MemoryEntityRepository()
        pool, _, review_queue = _pool(repository)
        await pool.apply(_task())

        outcome = await pool.apply(
            _task(_order(status="cancelled"), strategy=ConflictStrategy.MANUAL_REVIEW)
        )

        stored = await repository.get_entity_by_key(
            Platform.NUVEMSHOP, "77", "1001", EntityType.ORDER
        )
        pending = await review_queue.list_pending()
        assert outcome.status is ReconciliationStatus.PENDING_REVIEW
        assert stored is not None and stored.status == "processing"
        assert len(pending) == 1
        assert pending[0]["key"] == "nuvemshop:77:order:1001"

    @pytest.mark.asyncio
    async def test_deletion_without_timestamp_is_idempotent(self) -> None:
        """Remoção sem updated_at herda o timestamp atual; reentrega é no-op."""
        repository = MemoryEntityRepository()
        pool, _, _ = _pool(repository)
        await pool.apply(_task())
        tombstone = _order(status=DELETED_STATUS, updated_at=None)

        first = await pool.apply(_task(tombstone))
        second = await pool.apply(_task(tombstone))

        stored = await repository.get_entity_by_key(
            Platform.NUVEMSHOP, "77", "1001", EntityType.ORDER
        )
        assert first.status is ReconciliationStatus.UPDATED
        assert second.status is ReconciliationStatus.UNCHANGED
        assert stored is not None
        assert stored.status == DELETED_STATUS
        assert stored.updated_at == NOW

    @pytest.mark.asyncio
    async def test_concurrent_writes_on_same_key_are_serialized(self) -> None:
        """Escritas concorrentes na mesma chave: exatamente uma cria."""
        repository = MemoryEntityRepository()
        pool, _, _ = _pool(repository)

        outcomes = await asyncio.gather(*(pool.apply(_task()) for _ in range(5)))

        statuses = [outcome.status for outcome in outcomes]
        assert statuses.count(ReconciliationStatus.CREATED) == 1
        assert statuses.count(ReconciliationStatus.UNCHANGED) == 4


class TestFailureHandling:
    """Retry de falhas transitórias e dead-letter."""

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried_until_applied(self) -> None:
        """Primeira escrita falha; o retry agendado aplica a entidade."""
        repository = FlakyRepository(failures=1)
        pool, dead_letters, _ = _pool(repository)
        pool.start()

        outcome = await pool.run(_task())
        await _wait_until(lambda: len(repository) == 1)
        await pool.drain(timeout_seconds=1.0)

        assert outcome.status is ReconciliationStatus.RETRY_SCHEDULED
        assert outcome.error_type == "FirestoreUnavailableError"
        assert repository.upsert_calls == 2
        assert await dead_letters.list_recent() == []

    @pytest.mark.asyncio
    async def test_non_transient_failure_goes_to_dead_letter(self) -> None:
        """Falha permanente não é reprocessada."""
        repository = FlakyRepository(failures=1, error=ValueError("bad document"))
        pool, dead_letters, _ = _pool(repository)

        outcome = await pool.process(_task())

        items = await dead_letters.list_recent()
        assert outcome.status is ReconciliationStatus.DEAD_LETTER
        assert len(items) == 1
        assert items[0]["reason"] == "non_transient"
        assert items[0]["error_type"] == "ValueError"
        assert items[0]["attempts"] == 1
        assert items[0]["correlation_id"] == "corr-1"
        assert items[0]["entity"]["external_id"] == "1001"

    @pytest.mark.asyncio
    async def test_exhausted_retries_go_to_dead_letter(self) -> None:
        """Última tentativa permitida falhando => transient_exhausted."""
        repository = FlakyRepository(failures=10)
        pool, dead_letters, _ = _pool(repository)

        outcome = await pool.process(_task(attempt=2))

        items = await dead_letters.list_recent()
        assert outcome.status is ReconciliationStatus.DEAD_LETTER
        assert outcome.attempts == 3
        assert items[0]["reason"] == "transient_exhausted"

    @pytest.mark.asyncio
    async def test_dead_letter_publish_failure_is_not_raised(self) -> None:
        """Falha do canal de dead-letter é logada e o desfecho preservado."""
        repository = FlakyRepository(failures=1, error=ValueError("bad"))
        pool, dead_letters, _ = _pool(repository)

        async def _broken_publish(item: object) -> None:
            raise FirestoreUnavailableError("down")

        dead_letters.publish = _broken_publish  # type: ignore[method-assign]

        outcome = await pool.process(_task())

        assert outcome.status is ReconciliationStatus.DEAD_LETTER


class TestLifecycle:
    """start/submit/drain."""

    @pytest.mark.asyncio
    async def test_submit_requires_running_pool(self) -> None:
        """Pool parado rejeita enfileiramento."""
        pool, _, _ = _pool()

        with pytest.raises(RuntimeError):
            await pool.submit(_task())

    @pytest.mark.asyncio
    async def test_submitted_tasks_are_processed_before_drain_returns(self) -> None:
        """drain aguarda a fila esvaziar."""
        repository = MemoryEntityRepository()
        pool, _, _ = _pool(repository)
        pool.start()
        assert pool.running is True

        for index in range(5):
            candidate = _order().model_copy(update={"external_id": str(index)})
            await pool.submit(_task(candidate))
        await pool.drain(timeout_seconds=1.0)

        assert len(repository) == 5
        assert pool.running is False
        assert pool.pending == 0

    @pytest.mark.asyncio
    async def test_drain_dead_letters_pending_retries(self) -> None:
        """Retry aguardando atraso no shutdown vira dead-letter (shutdown)."""
        repository = FlakyRepository(failures=10)
        slow = RetryConfig(max_retries=3, base_delay_seconds=60.0, max_delay_seconds=60.0)
        pool, dead_letters, _ = _pool(repository, retry=slow)
        pool.start()

        outcome = await pool.run(_task())
        assert pool.pending == 1
        await pool.drain(timeout_seconds=0.5)

        items = await dead_letters.list_recent()
        assert outcome.status is ReconciliationStatus.RETRY_SCHEDULED
        assert [item["reason"] for item in items] == ["shutdown"]
        assert items[0]["attempts"] == 2
