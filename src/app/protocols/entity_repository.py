"""Protocolo do colaborador de persistência de entidades unificadas.

O core não define schema: só depende destas três operações.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.domain.entities import Category, EntityType, UnifiedEntity
    from app.domain.platform import Platform


class EntityRepositoryProtocol(ABC):
    """Contrato assíncrono de leitura/escrita por chave de reconciliação."""

    @abstractmethod
    async def get_entity_by_key(
        self,
        platform: Platform,
        store_id: str | None,
        external_id: str,
        entity_type: EntityType,
    ) -> UnifiedEntity | None:
        """Retorna a entidade armazenada para a chave, ou None."""

    @abstractmethod
    async def upsert_entity(self, entity: UnifiedEntity) -> UnifiedEntity:
        """Cria ou substitui a entidade da chave e retorna o estado gravado."""

    @abstractmethod
    async def list_categories_by_scope(
        self,
        platform: Platform,
        store_id: str | None,
    ) -> list[Category]:
        """Lista plana de categorias do escopo (platform, store_id)."""
