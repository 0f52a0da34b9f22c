"""Composition root — conecta stores concretas aos serviços.

`build_container()` lê as settings e cria tudo; `assemble_container()`
recebe stores já construídas (usado pelos testes com stores em memória).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.bootstrap.dependencies_services import (
    create_category_query_service,
    create_ingestion_pipeline,
    create_rate_limiter,
    create_worker_pool,
)
from app.bootstrap.dependencies_stores import (
    create_conflict_review_queue,
    create_counter_store,
    create_dead_letter_sink,
    create_entity_repository,
)
from config.settings import get_ingestion_settings, get_platform_settings

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.domain.platform import Platform
    from app.protocols.counter_store import CounterStoreProtocol
    from app.protocols.entity_repository import EntityRepositoryProtocol
    from app.protocols.failure_sink import ConflictReviewQueueProtocol, DeadLetterSinkProtocol
    from app.services import (
        CategoryQueryService,
        IngestionPipeline,
        RateLimiter,
        ReconciliationWorkerPool,
    )
    from config.settings import IngestionSettings, PlatformSettings


@dataclass(frozen=True, slots=True)
class ServiceContainer:
    """Serviços compartilhados pela aplicação (um por processo)."""

    counter_store: CounterStoreProtocol
    repository: EntityRepositoryProtocol
    dead_letters: DeadLetterSinkProtocol
    review_queue: ConflictReviewQueueProtocol
    rate_limiter: RateLimiter
    pool: ReconciliationWorkerPool
    pipeline: IngestionPipeline
    category_queries: CategoryQueryService

    def start(self) -> None:
        self.pool.start()

    async def shutdown(self, timeout_seconds: float = 30.0) -> None:
        await self.pool.drain(timeout_seconds=timeout_seconds)


def assemble_container(
    *,
    counter_store: CounterStoreProtocol,
    repository: EntityRepositoryProtocol,
    dead_letters: DeadLetterSinkProtocol,
    review_queue: ConflictReviewQueueProtocol,
    ingestion_settings: IngestionSettings | None = None,
    platform_settings: Callable[[Platform], PlatformSettings] | None = None,
) -> ServiceContainer:
    """Monta o container a partir de stores prontas.

    Args:
        counter_store: Contadores do rate limit
        repository: Repositório de entidades
        dead_letters: Canal de dead-letter
        review_queue: Fila de revisão manual
        ingestion_settings: Settings de ingestão (default: env)
        platform_settings: Provider de settings por plataforma (default: env)

    Returns:
        ServiceContainer com o pool ainda parado
    """
    settings = ingestion_settings or get_ingestion_settings()
    platforms = platform_settings or get_platform_settings

    rate_limiter = create_rate_limiter(counter_store, platforms)
    pool = create_worker_pool(
        repository=repository,
        dead_letters=dead_letters,
        review_queue=review_queue,
        settings=settings,
        platform_settings=platforms,
    )
    return ServiceContainer(
        counter_store=counter_store,
        repository=repository,
        dead_letters=dead_letters,
        review_queue=review_queue,
        rate_limiter=rate_limiter,
        pool=pool,
        pipeline=create_ingestion_pipeline(
            rate_limiter=rate_limiter,
            pool=pool,
            settings=settings,
            platform_settings=platforms,
        ),
        category_queries=create_category_query_service(repository, settings),
    )


def build_container() -> ServiceContainer:
    """Cria o container com os backends selecionados por env."""
    return assemble_container(
        counter_store=create_counter_store(),
        repository=create_entity_repository(),
        dead_letters=create_dead_letter_sink(),
        review_queue=create_conflict_review_queue(),
    )
