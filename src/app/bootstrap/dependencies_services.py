"""Factories de serviços: rate limiter, reconciliação e pipeline."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from api.normalizers import build_default_registry
from app.services import (
    CategoryQueryService,
    ConflictResolver,
    IngestionPipeline,
    RateLimiter,
    ReconciliationWorkerPool,
    RetryScheduler,
    SignatureVerifier,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from api.normalizers.registry import AdapterRegistry
    from app.domain.platform import Platform
    from app.protocols.counter_store import CounterStoreProtocol
    from app.protocols.entity_repository import EntityRepositoryProtocol
    from app.protocols.failure_sink import ConflictReviewQueueProtocol, DeadLetterSinkProtocol
    from config.settings import IngestionSettings, PlatformSettings

logger = logging.getLogger(__name__)


def create_rate_limiter(
    counter_store: CounterStoreProtocol,
    platform_settings: Callable[[Platform], PlatformSettings],
) -> RateLimiter:
    """Cria RateLimiter com limites lidos das settings de cada plataforma."""
    return RateLimiter(counter_store, lambda platform: platform_settings(platform).rate_limit)


def create_retry_scheduler(
    settings: IngestionSettings,
    platform_settings: Callable[[Platform], PlatformSettings],
) -> RetryScheduler:
    return RetryScheduler(
        lambda platform: platform_settings(platform).retry,
        jitter=settings.retry_jitter,
    )


def create_worker_pool(
    *,
    repository: EntityRepositoryProtocol,
    dead_letters: DeadLetterSinkProtocol,
    review_queue: ConflictReviewQueueProtocol,
    settings: IngestionSettings,
    platform_settings: Callable[[Platform], PlatformSettings],
) -> ReconciliationWorkerPool:
    """Cria pool de reconciliação (ainda não iniciado)."""
    pool = ReconciliationWorkerPool(
        repository=repository,
        resolver=ConflictResolver(),
        retry_scheduler=create_retry_scheduler(settings, platform_settings),
        dead_letters=dead_letters,
        review_queue=review_queue,
        worker_count=settings.worker_count,
        queue_maxsize=settings.queue_maxsize,
        persistence_timeout=settings.persistence_timeout_seconds,
    )
    logger.info(
        "reconciliation_pool_created",
        extra={"worker_count": settings.worker_count, "queue_maxsize": settings.queue_maxsize},
    )
    return pool


def create_ingestion_pipeline(
    *,
    rate_limiter: RateLimiter,
    pool: ReconciliationWorkerPool,
    settings: IngestionSettings,
    platform_settings: Callable[[Platform], PlatformSettings],
    registry: AdapterRegistry | None = None,
) -> IngestionPipeline:
    pipeline = IngestionPipeline(
        registry=registry or build_default_registry(),
        verifier=SignatureVerifier(),
        rate_limiter=rate_limiter,
        pool=pool,
        settings=settings,
        platform_settings=platform_settings,
    )
    logger.info(
        "ingestion_pipeline_created",
        extra={"processing_mode": settings.processing_mode},
    )
    return pipeline


def create_category_query_service(
    repository: EntityRepositoryProtocol,
    settings: IngestionSettings,
) -> CategoryQueryService:
    return CategoryQueryService(repository, persistence_timeout=settings.persistence_timeout_seconds)
