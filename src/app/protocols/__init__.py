"""Protocolos e contratos do core da aplicação."""

from .counter_store import ConsumeResult, CounterStoreProtocol, CounterWindow
from .entity_repository import EntityRepositoryProtocol
from .failure_sink import ConflictReviewQueueProtocol, DeadLetterSinkProtocol
from .http_client import OutboundPosterProtocol
from .platform_adapter import AdapterContext, PlatformAdapterProtocol, ValidationResult

__all__ = [
    "AdapterContext",
    "ConflictReviewQueueProtocol",
    "ConsumeResult",
    "CounterStoreProtocol",
    "CounterWindow",
    "DeadLetterSinkProtocol",
    "EntityRepositoryProtocol",
    "OutboundPosterProtocol",
    "PlatformAdapterProtocol",
    "ValidationResult",
]
