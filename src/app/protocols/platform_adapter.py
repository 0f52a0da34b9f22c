"""Protocolo dos adapters de plataforma.

Conjunto de capacidades implementado uma vez por plataforma e selecionado
por registro (chave = Platform). O pipeline só conhece este contrato.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from app.domain.entities import EntityType, UnifiedEntity
    from app.domain.events import EventKind
    from app.domain.platform import Platform


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Resultado de validação estrutural (independente de regras de negócio)."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class AdapterContext:
    """Contexto de parse.

    Attributes:
        entity_type: Tipo de entidade esperado no payload
        store_id: Escopo multi-tenant informado pelo transporte/sync
        event: Evento canônico detectado (None em sync)
        language: Locale preferido para textos multi-idioma
    """

    entity_type: EntityType
    store_id: str | None = None
    event: EventKind | None = None
    language: str = "en"


class PlatformAdapterProtocol(Protocol):
    """Capacidades de um adapter de plataforma."""

    platform: Platform
    # Header com o escopo da loja quando o payload não o traz (ex.: WooCommerce).
    store_id_header: str | None

    def detect_event(self, payload: dict[str, Any]) -> EventKind | None:
        """Mapeia evento nativo para canônico. Desconhecido retorna None."""
        ...

    def validate_structure(self, payload: dict[str, Any]) -> ValidationResult:
        """Checa campos obrigatórios (identificador + contexto de recurso)."""
        ...

    def extract_store_id(self, payload: dict[str, Any]) -> str | None:
        """Escopo multi-tenant presente no envelope do webhook."""
        ...

    def parse(self, payload: dict[str, Any], context: AdapterContext) -> UnifiedEntity:
        """Converte payload nativo em entidade candidata.

        Raises:
            AdapterParseError: Se o payload não puder ser mapeado.
        """
        ...

    def apply_business_rules(self, candidate: UnifiedEntity) -> UnifiedEntity:
        """Normalizações específicas da plataforma. Nunca falha."""
        ...
