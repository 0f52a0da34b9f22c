"""Settings do pipeline de ingestão e reconciliação."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import TYPE_CHECKING, Literal

from app.domain.conflicts import ConflictStrategy
from app.domain.entities import EntityType

if TYPE_CHECKING:
    from config.settings.base.core import BaseSettings

ProcessingMode = Literal["inline", "async"]

DEFAULT_MAX_BODY_BYTES = 1024 * 1024


@dataclass(frozen=True)
class IngestionSettings:
    """Configurações de ingestão.

    Attributes:
        max_body_bytes: Tamanho máximo do corpo (rejeitado antes da assinatura)
        allow_unsigned: Modo relaxado: secret ausente só gera warning (dev)
        processing_mode: inline (aguarda commit) | async (202 após enfileirar)
        default_strategy: Estratégia de conflito global
        strategy_overrides: Estratégia por tipo de entidade
        worker_count: Tamanho do pool de workers de reconciliação
        queue_maxsize: Capacidade da fila de reconciliação
        persistence_timeout_seconds: Timeout de cada chamada ao repositório
        retry_jitter: Aplica jitter de ±25% nos atrasos de retry
        trusted_proxy_count: Proxies reversos confiáveis na frente do serviço;
            0 usa o peer TCP e ignora X-Forwarded-For
    """

    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    allow_unsigned: bool = False
    processing_mode: ProcessingMode = "inline"
    default_strategy: ConflictStrategy = ConflictStrategy.TIMESTAMP_WINS
    strategy_overrides: dict[EntityType, ConflictStrategy] = field(default_factory=dict)
    worker_count: int = 4
    queue_maxsize: int = 1000
    persistence_timeout_seconds: float = 10.0
    retry_jitter: bool = True
    trusted_proxy_count: int = 0

    def strategy_for(self, entity_type: EntityType) -> ConflictStrategy:
        """Estratégia efetiva para o tipo de entidade."""
        return self.strategy_overrides.get(entity_type, self.default_strategy)

    def validate(self, base: BaseSettings) -> list[str]:
        """Valida configurações de ingestão.

        Args:
            base: BaseSettings para verificar ambiente.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.max_body_bytes <= 0:
            errors.append("WEBHOOK_MAX_BODY_BYTES deve ser > 0")

        if self.allow_unsigned and not base.is_development:
            errors.append("WEBHOOK_ALLOW_UNSIGNED=true proibido em staging/production")

        if self.worker_count <= 0:
            errors.append("RECONCILIATION_WORKERS deve ser > 0")

        if self.queue_maxsize <= 0:
            errors.append("RECONCILIATION_QUEUE_SIZE deve ser > 0")

        if self.persistence_timeout_seconds <= 0:
            errors.append("PERSISTENCE_TIMEOUT_SECONDS deve ser > 0")

        if self.trusted_proxy_count < 0:
            errors.append("TRUSTED_PROXY_COUNT deve ser >= 0")

        return errors


def _parse_strategy(value: str | None, default: ConflictStrategy) -> ConflictStrategy:
    if not value:
        return default
    try:
        return ConflictStrategy(value.strip().lower())
    except ValueError:
        return default


def _load_strategy_overrides() -> dict[EntityType, ConflictStrategy]:
    overrides: dict[EntityType, ConflictStrategy] = {}
    for entity_type in EntityType:
        raw = os.getenv(f"CONFLICT_STRATEGY_{entity_type.value.upper()}")
        if raw:
            overrides[entity_type] = _parse_strategy(raw, ConflictStrategy.TIMESTAMP_WINS)
    return overrides


def _load_ingestion_from_env() -> IngestionSettings:
    """Carrega IngestionSettings de variáveis de ambiente."""
    mode_str = os.getenv("WEBHOOK_PROCESSING_MODE", "inline").lower()
    processing_mode: ProcessingMode = "async" if mode_str == "async" else "inline"

    return IngestionSettings(
        max_body_bytes=int(os.getenv("WEBHOOK_MAX_BODY_BYTES", str(DEFAULT_MAX_BODY_BYTES))),
        allow_unsigned=os.getenv("WEBHOOK_ALLOW_UNSIGNED", "").lower() in ("true", "1", "yes"),
        processing_mode=processing_mode,
        default_strategy=_parse_strategy(
            os.getenv("CONFLICT_STRATEGY"), ConflictStrategy.TIMESTAMP_WINS
        ),
        strategy_overrides=_load_strategy_overrides(),
        worker_count=int(os.getenv("RECONCILIATION_WORKERS", "4")),
        queue_maxsize=int(os.getenv("RECONCILIATION_QUEUE_SIZE", "1000")),
        persistence_timeout_seconds=float(os.getenv("PERSISTENCE_TIMEOUT_SECONDS", "10")),
        retry_jitter=os.getenv("RETRY_JITTER", "true").lower() in ("true", "1"),
        trusted_proxy_count=int(os.getenv("TRUSTED_PROXY_COUNT", "0")),
    )


@lru_cache(maxsize=1)
def get_ingestion_settings() -> IngestionSettings:
    """Retorna instância cacheada de IngestionSettings."""
    return _load_ingestion_from_env()
