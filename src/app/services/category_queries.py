"""Consultas de hierarquia de categorias sobre o repositório.

Categorias removidas (status deleted) ficam fora da árvore, dos caminhos
e das estatísticas.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from app.domain.statuses import DELETED_STATUS
from app.services.category_hierarchy import CategoryHierarchyBuilder
from utils.errors import PersistenceTimeoutError

if TYPE_CHECKING:
    from app.domain.platform import Platform
    from app.protocols.entity_repository import EntityRepositoryProtocol


class CategoryQueryService:
    def __init__(
        self,
        repository: EntityRepositoryProtocol,
        persistence_timeout: float = 10.0,
    ) -> None:
        self._repository = repository
        self._timeout = persistence_timeout

    async def _builder(self, platform: Platform, store_id: str | None) -> CategoryHierarchyBuilder:
        try:
            categories = await asyncio.wait_for(
                self._repository.list_categories_by_scope(platform, store_id),
                timeout=self._timeout,
            )
        except TimeoutError as exc:
            raise PersistenceTimeoutError("persistence_timeout") from exc
        return CategoryHierarchyBuilder(c for c in categories if c.status != DELETED_STATUS)

    async def tree(self, platform: Platform, store_id: str | None) -> list[dict[str, Any]]:
        builder = await self._builder(platform, store_id)
        return [node.to_dict() for node in builder.build_tree()]

    async def path(
        self, platform: Platform, store_id: str | None, category_id: str
    ) -> list[dict[str, Any]] | None:
        """Breadcrumb da raiz até a categoria, ou None se ela não existir."""
        builder = await self._builder(platform, store_id)
        path = builder.compute_path(category_id)
        if not path:
            return None
        return [
            {
                "category_id": category.external_id,
                "name": category.name,
                "slug": category.slug,
                "level": category.level,
            }
            for category in path
        ]

    async def statistics(self, platform: Platform, store_id: str | None) -> dict[str, Any]:
        builder = await self._builder(platform, store_id)
        stats = builder.statistics()
        stats["flagged"] = builder.flagged()
        return stats
