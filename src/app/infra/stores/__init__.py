"""Stores — implementações concretas de persistência.

Módulos disponíveis:
    - redis_counter_store: Contadores de rate limit usando Redis (Upstash)
    - firestore_entity_repository: Entidades unificadas usando Firestore
    - firestore_failure_store: Dead-letter e conflitos pendentes usando Firestore
    - http_dead_letter_notifier: Notificação de dead-letter por webhook
    - memory_stores: Stores em memória para desenvolvimento/testes
"""

from __future__ import annotations

from app.infra.stores.firestore_entity_repository import FirestoreEntityRepository
from app.infra.stores.firestore_failure_store import (
    FirestoreConflictReviewQueue,
    FirestoreDeadLetterSink,
)
from app.infra.stores.http_dead_letter_notifier import HttpDeadLetterNotifier
from app.infra.stores.memory_stores import (
    MemoryConflictReviewQueue,
    MemoryCounterStore,
    MemoryDeadLetterSink,
    MemoryEntityRepository,
)
from app.infra.stores.redis_counter_store import RedisCounterStore

__all__ = [
    # Firestore
    "FirestoreConflictReviewQueue",
    "FirestoreDeadLetterSink",
    "FirestoreEntityRepository",
    # HTTP
    "HttpDeadLetterNotifier",
    # Memory (dev/test)
    "MemoryConflictReviewQueue",
    "MemoryCounterStore",
    "MemoryDeadLetterSink",
    "MemoryEntityRepository",
    # Redis (Upstash)
    "RedisCounterStore",
]
