"""Modelo unificado de entidades (produto, cliente, pedido, categoria, cupom).

Todos os adapters convergem para UnifiedEntity. Campos de domínio variáveis
por tipo ficam em `attributes`; extras específicos da plataforma ficam em
`metadata` e nunca participam da identidade.

Identidade: (platform, store_id, external_id, entity_type) identifica uma
única entidade lógica. Essa tupla é a chave de reconciliação.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - usado em runtime pelo schema do Pydantic
from enum import StrEnum
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field

from app.domain.platform import Platform


class EntityType(StrEnum):
    PRODUCT = "product"
    CUSTOMER = "customer"
    ORDER = "order"
    CATEGORY = "category"
    COUPON = "coupon"


class ReconciliationKey(NamedTuple):
    """Chave lógica de uma entidade entre atualizações."""

    platform: Platform
    store_id: str | None
    external_id: str
    entity_type: EntityType

    def as_string(self) -> str:
        """Representação estável usada em locks, logs e IDs de documento."""
        store = self.store_id or "-"
        return f"{self.platform.value}:{store}:{self.entity_type.value}:{self.external_id}"


# Campos que identificam a entidade; nenhum merge pode alterá-los.
IDENTITY_FIELDS = frozenset({"platform", "entity_type", "external_id", "store_id"})


class UnifiedEntity(BaseModel):
    """Registro agnóstico de plataforma."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    platform: Platform
    entity_type: EntityType
    external_id: str = Field(..., min_length=1)
    store_id: str | None = None

    name: str | None = None
    status: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)

    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def reconciliation_key(self) -> ReconciliationKey:
        return ReconciliationKey(
            platform=self.platform,
            store_id=self.store_id,
            external_id=self.external_id,
            entity_type=self.entity_type,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serializa para dict JSON-safe (persistência e respostas HTTP)."""
        return self.model_dump(mode="json")


class Category(UnifiedEntity):
    """Categoria com referência opcional ao pai no mesmo escopo.

    O grafo de pais restrito a um escopo (platform, store_id) deve ser
    acíclico; categorias cujo pai não existe são tratadas como raízes órfãs.
    """

    entity_type: EntityType = EntityType.CATEGORY
    parent_id: str | None = None
    level: int = Field(default=0, ge=0)
    menu_order: int = 0
    product_count: int = Field(default=0, ge=0)
    slug: str | None = None
    description: str | None = None


def entity_from_dict(data: dict[str, Any]) -> UnifiedEntity:
    """Reconstrói a entidade a partir do dict persistido, respeitando o subtipo."""
    if data.get("entity_type") == EntityType.CATEGORY.value:
        return Category.model_validate(data)
    return UnifiedEntity.model_validate(data)
