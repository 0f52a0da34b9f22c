"""Factories de stores e infra baseadas nas settings de backend."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.bootstrap.clients import create_async_redis_client, create_firestore_client
from app.infra.http_client import HttpClient, HttpClientConfig
from app.infra.stores import (
    FirestoreConflictReviewQueue,
    FirestoreDeadLetterSink,
    FirestoreEntityRepository,
    HttpDeadLetterNotifier,
    MemoryConflictReviewQueue,
    MemoryCounterStore,
    MemoryDeadLetterSink,
    MemoryEntityRepository,
    RedisCounterStore,
)
from config.settings import get_base_settings, get_firestore_settings, get_store_settings

if TYPE_CHECKING:
    from app.protocols.counter_store import CounterStoreProtocol
    from app.protocols.entity_repository import EntityRepositoryProtocol
    from app.protocols.failure_sink import ConflictReviewQueueProtocol, DeadLetterSinkProtocol

logger = logging.getLogger(__name__)


def _warn_memory_in_non_dev(component: str) -> None:
    environment = get_base_settings().environment
    if environment != "development":
        logger.warning(
            "memory_store_in_non_dev",
            extra={"component": component, "backend": "memory", "environment": environment},
        )


def create_counter_store() -> CounterStoreProtocol:
    """Cria store de contadores do rate limit (RATE_LIMIT_BACKEND)."""
    backend = get_store_settings().counter_backend

    if backend == "redis":
        store: CounterStoreProtocol = RedisCounterStore(create_async_redis_client())
    else:
        _warn_memory_in_non_dev("counter_store")
        store = MemoryCounterStore()

    logger.info("counter_store_created", extra={"backend": backend})
    return store


def create_entity_repository() -> EntityRepositoryProtocol:
    """Cria repositório de entidades (ENTITY_STORE_BACKEND)."""
    backend = get_store_settings().entity_backend

    if backend == "firestore":
        repository: EntityRepositoryProtocol = FirestoreEntityRepository(
            create_firestore_client(),
            collection=get_firestore_settings().collection_entities,
        )
    else:
        _warn_memory_in_non_dev("entity_repository")
        repository = MemoryEntityRepository()

    logger.info("entity_repository_created", extra={"backend": backend})
    return repository


def _uses_firestore_records() -> bool:
    """Falhas persistem no Firestore se for o backend, ou o registro do http."""
    settings = get_store_settings()
    if settings.failure_backend == "firestore":
        return True
    return settings.failure_backend == "http" and bool(get_base_settings().gcp_project)


def create_dead_letter_sink() -> DeadLetterSinkProtocol:
    """Cria canal de dead-letter (FAILURE_SINK_BACKEND).

    - memory: lista em memória (dev)
    - firestore: collection append-only
    - http: registro (Firestore se houver projeto, senão memória) + POST
    """
    settings = get_store_settings()

    if _uses_firestore_records():
        sink: DeadLetterSinkProtocol = FirestoreDeadLetterSink(
            create_firestore_client(),
            collection=get_firestore_settings().collection_dead_letters,
        )
    else:
        sink = MemoryDeadLetterSink()

    if settings.failure_backend == "http":
        http_client = HttpClient(
            HttpClientConfig(timeout_seconds=settings.failure_webhook_timeout_seconds)
        )
        sink = HttpDeadLetterNotifier(sink, http_client, settings.failure_webhook_url)

    logger.info("dead_letter_sink_created", extra={"backend": settings.failure_backend})
    return sink


def create_conflict_review_queue() -> ConflictReviewQueueProtocol:
    """Cria fila de revisão manual de conflitos."""
    if _uses_firestore_records():
        queue: ConflictReviewQueueProtocol = FirestoreConflictReviewQueue(
            create_firestore_client(),
            collection=get_firestore_settings().collection_conflicts,
        )
        backend = "firestore"
    else:
        queue = MemoryConflictReviewQueue()
        backend = "memory"

    logger.info("conflict_review_queue_created", extra={"backend": backend})
    return queue
