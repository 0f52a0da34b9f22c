"""Pool de workers de reconciliação.

Cada webhook aceito vira uma ReconciliationTask numa asyncio.Queue. Os
workers aplicam a tarefa sob o lock da chave de reconciliação:
lê o estado atual, decide com o ConflictResolver e grava o vencedor.

Falha transitória => reenfileira após o atraso do RetryScheduler (task
atrasada rastreada). Falha permanente ou tentativas esgotadas => item vai
para o canal de dead-letter. Nenhuma falha é descartada em silêncio.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from app.domain.failures import DeadLetterItem
from app.domain.statuses import DELETED_STATUS
from app.observability import (
    record_conflict_resolution,
    record_dead_letter,
    record_latency,
    record_retry,
)
from app.services.key_locks import KeyedLocks
from utils.errors import PersistenceTimeoutError

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from app.domain.conflicts import ConflictRecord, ConflictStrategy
    from app.domain.entities import UnifiedEntity
    from app.protocols.entity_repository import EntityRepositoryProtocol
    from app.protocols.failure_sink import ConflictReviewQueueProtocol, DeadLetterSinkProtocol
    from app.services.conflict_resolver import ConflictResolver
    from app.services.retry_scheduler import RetryScheduler

logger = logging.getLogger(__name__)


class ReconciliationStatus(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    PENDING_REVIEW = "pending_review"
    RETRY_SCHEDULED = "retry_scheduled"
    DEAD_LETTER = "dead_letter"


@dataclass(frozen=True, slots=True)
class ReconciliationOutcome:
    """Desfecho de uma tentativa de reconciliação."""

    status: ReconciliationStatus
    key: str
    attempts: int
    record: ConflictRecord | None = None
    error_type: str | None = None

    @property
    def applied(self) -> bool:
        return self.status in (ReconciliationStatus.CREATED, ReconciliationStatus.UPDATED)


@dataclass(slots=True)
class ReconciliationTask:
    """Unidade de trabalho: candidato normalizado + estratégia escolhida.

    Attributes:
        candidate: Entidade candidata (já com regras de negócio aplicadas)
        strategy: Estratégia de conflito desta chamada
        correlation_id: Correlation ID da requisição de origem
        attempt: Tentativa atual (0 = primeira execução)
        future: Resolvido no primeiro desfecho (modo inline)
    """

    candidate: UnifiedEntity
    strategy: ConflictStrategy
    correlation_id: str = ""
    attempt: int = 0
    future: asyncio.Future[ReconciliationOutcome] | None = field(default=None, repr=False)

    @property
    def key(self) -> str:
        return self.candidate.reconciliation_key.as_string()

    def resolve(self, outcome: ReconciliationOutcome) -> None:
        if self.future is not None and not self.future.done():
            self.future.set_result(outcome)


class ReconciliationWorkerPool:
    """Fila + workers com lock por chave, retry e dead-letter.

    Args:
        repository: Persistência de entidades
        resolver: Resolvedor de conflitos
        retry_scheduler: Política de retry por plataforma
        dead_letters: Canal de falhas permanentes
        review_queue: Fila de revisão manual
        worker_count: Número de workers concorrentes
        queue_maxsize: Capacidade da fila (backpressure no enqueue)
        persistence_timeout: Timeout de cada chamada de persistência (s)
    """

    def __init__(
        self,
        *,
        repository: EntityRepositoryProtocol,
        resolver: ConflictResolver,
        retry_scheduler: RetryScheduler,
        dead_letters: DeadLetterSinkProtocol,
        review_queue: ConflictReviewQueueProtocol,
        worker_count: int = 4,
        queue_maxsize: int = 1000,
        persistence_timeout: float = 10.0,
    ) -> None:
        self._repository = repository
        self._resolver = resolver
        self._retry = retry_scheduler
        self._dead_letters = dead_letters
        self._review_queue = review_queue
        self._worker_count = max(1, worker_count)
        self._persistence_timeout = persistence_timeout
        self._queue: asyncio.Queue[ReconciliationTask] = asyncio.Queue(maxsize=queue_maxsize)
        self._locks = KeyedLocks()
        self._workers: list[asyncio.Task[Any]] = []
        self._delayed: set[asyncio.Task[Any]] = set()

    @property
    def running(self) -> bool:
        return bool(self._workers)

    @property
    def pending(self) -> int:
        """Tarefas na fila mais retries aguardando atraso."""
        return self._queue.qsize() + len(self._delayed)

    # ──────────────────────────────────────────────────────────────
    # Ciclo de vida
    # ──────────────────────────────────────────────────────────────

    def start(self) -> None:
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._worker_loop(index), name=f"reconciliation-worker-{index}")
            for index in range(self._worker_count)
        ]
        logger.info("reconciliation_workers_started", extra={"workers": self._worker_count})

    async def drain(self, timeout_seconds: float = 30.0) -> None:
        """Aguarda a fila esvaziar e encerra workers e retries pendentes.

        Tarefas que não terminarem dentro do timeout vão para dead-letter
        com reason=shutdown.
        """
        if not self._workers:
            return

        logger.info(
            "reconciliation_shutdown_wait",
            extra={
                "queued": self._queue.qsize(),
                "delayed": len(self._delayed),
                "timeout_seconds": timeout_seconds,
            },
        )
        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout_seconds)
        except TimeoutError:
            logger.warning(
                "reconciliation_shutdown_timeout",
                extra={"queued": self._queue.qsize()},
            )

        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []

        delayed = list(self._delayed)
        for retry_task in delayed:
            retry_task.cancel()
        await asyncio.gather(*delayed, return_exceptions=True)

        leftover = 0
        while not self._queue.empty():
            queued = self._queue.get_nowait()
            self._queue.task_done()
            queued.resolve(await self._dead_letter(queued, "ShutdownError", "shutdown"))
            leftover += 1

        logger.info(
            "reconciliation_workers_stopped",
            extra={"dead_lettered_on_shutdown": leftover, "cancelled_retries": len(delayed)},
        )

    # ──────────────────────────────────────────────────────────────
    # Enfileiramento
    # ──────────────────────────────────────────────────────────────

    async def submit(self, task: ReconciliationTask) -> None:
        """Enfileira sem aguardar o processamento (modo async)."""
        if not self._workers:
            raise RuntimeError("reconciliation_pool_not_running")
        await self._queue.put(task)

    async def run(self, task: ReconciliationTask) -> ReconciliationOutcome:
        """Enfileira e aguarda o primeiro desfecho da tarefa (modo inline).

        O future é protegido por asyncio.shield: cancelar quem aguarda
        (ex.: cliente desconectou) não cancela a escrita em andamento.
        """
        loop = asyncio.get_running_loop()
        task.future = loop.create_future()
        await self.submit(task)
        return await asyncio.shield(task.future)

    # ──────────────────────────────────────────────────────────────
    # Processamento
    # ──────────────────────────────────────────────────────────────

    async def _worker_loop(self, index: int) -> None:
        while True:
            task = await self._queue.get()
            try:
                await self.process(task)
            except Exception as exc:
                logger.error(
                    "reconciliation_worker_error",
                    extra={"worker": index, "error_type": type(exc).__name__},
                )
                task.resolve(await self._dead_letter(task, type(exc).__name__, "worker_error"))
            finally:
                self._queue.task_done()

    async def process(self, task: ReconciliationTask) -> ReconciliationOutcome:
        """Executa uma tentativa e trata falha (retry ou dead-letter)."""
        start = time.perf_counter()
        try:
            outcome = await self.apply(task)
        except Exception as exc:
            outcome = await self._handle_failure(task, exc)
        task.resolve(outcome)
        record_latency(
            "reconciliation",
            "process",
            (time.perf_counter() - start) * 1000,
            task.correlation_id or None,
        )
        return outcome

    async def apply(self, task: ReconciliationTask) -> ReconciliationOutcome:
        """Aplica a tarefa uma vez, sob o lock da chave. Falhas propagam.

        Args:
            task: Tarefa de reconciliação

        Returns:
            ReconciliationOutcome com status created/updated/unchanged/pending_review.
        """
        candidate = task.candidate
        key = candidate.reconciliation_key
        async with self._locks.hold(task.key):
            current = await self._persist(
                self._repository.get_entity_by_key(
                    key.platform, key.store_id, key.external_id, key.entity_type
                )
            )
            candidate = _inherit_tombstone_timestamp(candidate, current)
            record = self._resolver.decide(current, candidate, task.strategy)
            record_conflict_resolution(
                key.platform.value,
                key.entity_type.value,
                task.strategy.value,
                record.winner,
                pending_review=record.pending_review,
            )

            if record.pending_review:
                await self._persist(self._review_queue.enqueue(record))
                status = ReconciliationStatus.PENDING_REVIEW
            elif not record.changed:
                status = ReconciliationStatus.UNCHANGED
            else:
                await self._persist(self._repository.upsert_entity(record.resolved))
                status = (
                    ReconciliationStatus.CREATED
                    if current is None
                    else ReconciliationStatus.UPDATED
                )

        logger.info(
            "reconciliation_applied",
            extra={
                "platform": key.platform.value,
                "entity_type": key.entity_type.value,
                "status": status.value,
                "winner": record.winner,
                "attempt": task.attempt,
                "correlation_id": task.correlation_id,
            },
        )
        return ReconciliationOutcome(status, task.key, task.attempt + 1, record)

    async def _persist(self, call: Awaitable[Any]) -> Any:
        try:
            return await asyncio.wait_for(call, timeout=self._persistence_timeout)
        except TimeoutError as exc:
            raise PersistenceTimeoutError("persistence_timeout") from exc

    async def _handle_failure(
        self, task: ReconciliationTask, exc: Exception
    ) -> ReconciliationOutcome:
        platform = task.candidate.platform
        error_type = type(exc).__name__
        decision = self._retry.next_step(platform, task.attempt, exc)
        logger.warning(
            "reconciliation_failed",
            extra={
                "platform": platform.value,
                "attempt": task.attempt,
                "error_type": error_type,
                "retry": decision.retry,
                "reason": decision.reason,
                "correlation_id": task.correlation_id,
            },
        )

        if decision.retry:
            record_retry(platform.value, task.attempt + 1, decision.delay_seconds, error_type)
            self._schedule_retry(replace(task, attempt=task.attempt + 1), decision.delay_seconds)
            return ReconciliationOutcome(
                ReconciliationStatus.RETRY_SCHEDULED,
                task.key,
                task.attempt + 1,
                error_type=error_type,
            )
        return await self._dead_letter(task, error_type, decision.reason)

    def _schedule_retry(self, task: ReconciliationTask, delay_seconds: float) -> None:
        delayed = asyncio.create_task(self._requeue_after(task, delay_seconds))
        self._delayed.add(delayed)
        delayed.add_done_callback(self._delayed.discard)

    async def _requeue_after(self, task: ReconciliationTask, delay_seconds: float) -> None:
        try:
            await asyncio.sleep(delay_seconds)
        except asyncio.CancelledError:
            await self._dead_letter(task, "ShutdownError", "shutdown")
            raise
        await self._queue.put(task)

    async def _dead_letter(
        self, task: ReconciliationTask, error_type: str, reason: str
    ) -> ReconciliationOutcome:
        platform = task.candidate.platform.value
        attempts = task.attempt + 1
        item = DeadLetterItem(
            key=task.key,
            platform=platform,
            entity=task.candidate.to_dict(),
            attempts=attempts,
            error_type=error_type,
            reason=reason,
            correlation_id=task.correlation_id,
        )
        record_dead_letter(platform, reason, attempts)
        try:
            await self._dead_letters.publish(item)
        except Exception as exc:
            logger.critical(
                "dead_letter_publish_failed",
                extra={
                    "key": task.key,
                    "platform": platform,
                    "reason": reason,
                    "error_type": type(exc).__name__,
                },
            )
        return ReconciliationOutcome(
            ReconciliationStatus.DEAD_LETTER, task.key, attempts, error_type=error_type
        )


def _inherit_tombstone_timestamp(
    candidate: UnifiedEntity, current: UnifiedEntity | None
) -> UnifiedEntity:
    """Remoção sem timestamp empata com o estado atual (e vence o desempate).

    Webhooks de remoção costumam trazer só o id. Herdar o updated_at atual
    mantém a reentrega idempotente: a segunda remoção é igual ao estado gravado.
    """
    if (
        current is None
        or candidate.status != DELETED_STATUS
        or candidate.updated_at is not None
    ):
        return candidate
    return candidate.model_copy(update={"updated_at": current.updated_at})
