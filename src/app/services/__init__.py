"""Serviços de aplicação.

Unidades reutilizáveis de orquestração (sem IO direto).
Implementações concretas de IO ficam em app/infra/.
"""

from app.services.category_hierarchy import CategoryHierarchyBuilder, CategoryNode, build_tree
from app.services.category_queries import CategoryQueryService
from app.services.conflict_resolver import ConflictResolver
from app.services.ingestion_pipeline import IngestionPipeline
from app.services.key_locks import KeyedLocks
from app.services.rate_limiter import RateLimitDecision, RateLimiter
from app.services.reconciliation_worker import (
    ReconciliationOutcome,
    ReconciliationStatus,
    ReconciliationTask,
    ReconciliationWorkerPool,
)
from app.services.retry_scheduler import RetryDecision, RetryScheduler, is_transient, schedule_retry
from app.services.signature_verifier import (
    SignatureVerifier,
    VerificationReason,
    VerificationResult,
    compute_signature,
)

__all__ = [
    "CategoryHierarchyBuilder",
    "CategoryNode",
    "CategoryQueryService",
    "ConflictResolver",
    "IngestionPipeline",
    "KeyedLocks",
    "RateLimitDecision",
    "RateLimiter",
    "ReconciliationOutcome",
    "ReconciliationStatus",
    "ReconciliationTask",
    "ReconciliationWorkerPool",
    "RetryDecision",
    "RetryScheduler",
    "SignatureVerifier",
    "VerificationReason",
    "VerificationResult",
    "build_tree",
    "compute_signature",
    "is_transient",
    "schedule_retry",
]
