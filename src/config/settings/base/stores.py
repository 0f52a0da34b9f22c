"""Settings de backends de armazenamento.

Seleciona onde vivem contadores de rate limit, entidades unificadas e
itens de falha (dead-letter e conflitos pendentes de revisão).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from config.settings.base.core import BaseSettings

CounterBackend = Literal["memory", "redis"]
EntityStoreBackend = Literal["memory", "firestore"]
FailureSinkBackend = Literal["memory", "firestore", "http"]


@dataclass(frozen=True)
class StoreSettings:
    """Configurações de stores.

    Attributes:
        counter_backend: Backend dos contadores de rate limit (memory|redis)
        entity_backend: Backend do repositório de entidades (memory|firestore)
        failure_backend: Canal de falhas (memory|firestore|http)
        failure_webhook_url: URL notificada quando failure_backend=http
        failure_webhook_timeout_seconds: Timeout do POST de notificação
    """

    counter_backend: CounterBackend = "memory"
    entity_backend: EntityStoreBackend = "memory"
    failure_backend: FailureSinkBackend = "memory"
    failure_webhook_url: str = ""
    failure_webhook_timeout_seconds: float = 5.0

    def validate(self, base: BaseSettings) -> list[str]:
        """Valida combinação de backends com o ambiente.

        Args:
            base: BaseSettings para verificar ambiente e conexões.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.counter_backend == "memory" and not base.is_development:
            errors.append(
                "RATE_LIMIT_BACKEND=memory proibido em staging/production. Use Redis."
            )
        if self.counter_backend == "redis" and not base.redis_url:
            errors.append("RATE_LIMIT_BACKEND=redis requer REDIS_URL configurado")

        if self.entity_backend == "memory" and not base.is_development:
            errors.append(
                "ENTITY_STORE_BACKEND=memory proibido em staging/production. Use Firestore."
            )
        if self.entity_backend == "firestore" and not base.gcp_project:
            errors.append("ENTITY_STORE_BACKEND=firestore requer GCP_PROJECT configurado")

        if self.failure_backend == "firestore" and not base.gcp_project:
            errors.append("FAILURE_SINK_BACKEND=firestore requer GCP_PROJECT configurado")
        if self.failure_backend == "http" and not self.failure_webhook_url:
            errors.append("FAILURE_SINK_BACKEND=http requer FAILURE_WEBHOOK_URL")

        if self.failure_webhook_timeout_seconds <= 0:
            errors.append("FAILURE_WEBHOOK_TIMEOUT_SECONDS deve ser > 0")

        return errors


def _load_stores_from_env() -> StoreSettings:
    """Carrega StoreSettings de variáveis de ambiente."""
    counter_str = os.getenv("RATE_LIMIT_BACKEND", "memory").lower()
    counter_backend: CounterBackend = "redis" if counter_str == "redis" else "memory"

    entity_str = os.getenv("ENTITY_STORE_BACKEND", "memory").lower()
    entity_backend: EntityStoreBackend = (
        "firestore" if entity_str == "firestore" else "memory"
    )

    failure_str = os.getenv("FAILURE_SINK_BACKEND", "memory").lower()
    failure_backend: FailureSinkBackend = (
        failure_str if failure_str in ("firestore", "http") else "memory"
    )

    return StoreSettings(
        counter_backend=counter_backend,
        entity_backend=entity_backend,
        failure_backend=failure_backend,
        failure_webhook_url=os.getenv("FAILURE_WEBHOOK_URL", ""),
        failure_webhook_timeout_seconds=float(
            os.getenv("FAILURE_WEBHOOK_TIMEOUT_SECONDS", "5.0")
        ),
    )


@lru_cache(maxsize=1)
def get_store_settings() -> StoreSettings:
    """Retorna instância cacheada de StoreSettings."""
    return _load_stores_from_env()
