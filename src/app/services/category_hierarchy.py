"""Montagem de árvore de categorias a partir de lista plana.

Regras:
- Pai só é válido no mesmo escopo (platform, store_id)
- Pai inexistente => raiz órfã sinalizada (missing_parent)
- Ciclo (inclusive auto-referência) => cada membro vira raiz sinalizada (cycle)
- Raiz tem level 0; filho tem level do pai + 1
- Caminho (breadcrumb) vai da raiz até a própria categoria

A detecção de ciclo roda uma vez na construção; depois disso o grafo
efetivo de pais é acíclico e nenhuma travessia pode entrar em loop.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from app.domain.statuses import DELETED_STATUS, CategoryStatus

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from app.domain.entities import Category

logger = logging.getLogger(__name__)

ScopedId = tuple[str, str | None, str]

FLAG_CYCLE = "cycle"
FLAG_MISSING_PARENT = "missing_parent"

TOP_CATEGORIES_LIMIT = 10
_INACTIVE_STATUSES = frozenset(
    {CategoryStatus.INACTIVE.value, CategoryStatus.ARCHIVED.value, DELETED_STATUS}
)


def _scoped_id(category: Category, external_id: str | None = None) -> ScopedId:
    return (category.platform.value, category.store_id, external_id or category.external_id)


def _sort_key(category: Category) -> tuple[int, str, str]:
    return (category.menu_order, category.name or "", category.external_id)


@dataclass(slots=True)
class CategoryNode:
    """Nó da floresta de categorias."""

    category: Category
    parent: Category | None = None
    children: list[CategoryNode] = field(default_factory=list)
    flag: str | None = None

    @property
    def level(self) -> int:
        return self.category.level

    @property
    def flagged(self) -> bool:
        return self.flag is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.to_dict(),
            "parent_id": self.parent.external_id if self.parent else None,
            "level": self.level,
            "flagged": self.flagged,
            "flag_reason": self.flag,
            "children": [child.to_dict() for child in self.children],
        }


class CategoryHierarchyBuilder:
    """Hierarquia validada de um conjunto plano de categorias.

    Args:
        categories: Categorias de um ou mais escopos (platform, store_id).
    """

    def __init__(self, categories: Iterable[Category]) -> None:
        self._index: dict[ScopedId, Category] = {}
        for category in categories:
            scoped = _scoped_id(category)
            if scoped in self._index:
                logger.warning(
                    "category_duplicate_ignored",
                    extra={"platform": scoped[0], "category_id": category.external_id},
                )
                continue
            self._index[scoped] = category

        self._parent: dict[ScopedId, ScopedId | None] = {}
        self._flags: dict[ScopedId, str] = {}
        self._resolve_parents()
        self._levels = self._compute_levels()

    # ──────────────────────────────────────────────────────────────
    # Construção
    # ──────────────────────────────────────────────────────────────

    def _resolve_parents(self) -> None:
        for scoped, category in self._index.items():
            parent_id = category.parent_id
            if not parent_id:
                self._parent[scoped] = None
                continue
            parent_scoped = _scoped_id(category, parent_id)
            if parent_scoped not in self._index:
                self._parent[scoped] = None
                self._flags[scoped] = FLAG_MISSING_PARENT
                continue
            self._parent[scoped] = parent_scoped

        for member in self._find_cycle_members():
            self._parent[member] = None
            self._flags[member] = FLAG_CYCLE

        if self._flags:
            logger.warning(
                "category_hierarchy_flagged",
                extra={
                    "cycle_members": sum(1 for f in self._flags.values() if f == FLAG_CYCLE),
                    "missing_parents": sum(
                        1 for f in self._flags.values() if f == FLAG_MISSING_PARENT
                    ),
                },
            )

    def _find_cycle_members(self) -> set[ScopedId]:
        members: set[ScopedId] = set()
        done: set[ScopedId] = set()
        for start in self._index:
            if start in done:
                continue
            path: list[ScopedId] = []
            position: dict[ScopedId, int] = {}
            node: ScopedId | None = start
            while node is not None and node not in done:
                if node in position:
                    members.update(path[position[node]:])
                    break
                position[node] = len(path)
                path.append(node)
                node = self._parent.get(node)
            done.update(path)
        return members

    def _compute_levels(self) -> dict[ScopedId, int]:
        children: dict[ScopedId, list[ScopedId]] = {}
        for scoped, parent in self._parent.items():
            if parent is not None:
                children.setdefault(parent, []).append(scoped)

        levels: dict[ScopedId, int] = {}
        queue = deque((root, 0) for root, parent in self._parent.items() if parent is None)
        while queue:
            node, level = queue.popleft()
            levels[node] = level
            queue.extend((child, level + 1) for child in children.get(node, ()))
        return levels

    def _find(
        self,
        category_id: str,
        platform: str | None = None,
        store_id: str | None = None,
    ) -> ScopedId | None:
        for scoped in self._index:
            if scoped[2] != category_id:
                continue
            if platform is not None and scoped[0] != platform:
                continue
            if store_id is not None and scoped[1] != store_id:
                continue
            return scoped
        return None

    def _with_level(self, scoped: ScopedId) -> Category:
        category = self._index[scoped]
        level = self._levels.get(scoped, 0)
        if category.level == level:
            return category
        return category.model_copy(update={"level": level})

    # ──────────────────────────────────────────────────────────────
    # Consultas
    # ──────────────────────────────────────────────────────────────

    def build_tree(self) -> list[CategoryNode]:
        """Floresta ordenada por (menu_order, name, id) em cada nível."""
        nodes = {
            scoped: CategoryNode(category=self._with_level(scoped), flag=self._flags.get(scoped))
            for scoped in self._index
        }
        roots: list[CategoryNode] = []
        for scoped, node in nodes.items():
            parent = self._parent.get(scoped)
            if parent is None:
                roots.append(node)
                continue
            parent_node = nodes[parent]
            node.parent = parent_node.category
            parent_node.children.append(node)

        for node in nodes.values():
            node.children.sort(key=lambda child: _sort_key(child.category))
        roots.sort(key=lambda root: _sort_key(root.category))
        return roots

    def compute_level(
        self,
        category_id: str,
        *,
        platform: str | None = None,
        store_id: str | None = None,
    ) -> int | None:
        """Nível da categoria (0 = raiz) ou None se desconhecida."""
        scoped = self._find(category_id, platform, store_id)
        return None if scoped is None else self._levels.get(scoped, 0)

    def compute_path(
        self,
        category_id: str,
        *,
        platform: str | None = None,
        store_id: str | None = None,
    ) -> list[Category]:
        """Breadcrumb da raiz até a categoria (lista vazia se desconhecida)."""
        scoped = self._find(category_id, platform, store_id)
        path: list[Category] = []
        visited: set[ScopedId] = set()
        while scoped is not None and scoped not in visited:
            visited.add(scoped)
            path.append(self._with_level(scoped))
            scoped = self._parent.get(scoped)
        path.reverse()
        return path

    def flatten(self) -> list[Category]:
        """Lista em profundidade (pré-ordem) com levels calculados."""
        ordered: list[Category] = []
        stack = list(reversed(self.build_tree()))
        while stack:
            node = stack.pop()
            ordered.append(node.category)
            stack.extend(reversed(node.children))
        return ordered

    def flagged(self) -> dict[str, str]:
        """external_id -> motivo, para categorias sinalizadas."""
        return {scoped[2]: flag for scoped, flag in self._flags.items()}

    def statistics(self) -> dict[str, Any]:
        """Estatísticas agregadas do conjunto."""
        categories = list(self._index.values())
        with_products = [c for c in categories if c.product_count > 0]
        total_products = sum(c.product_count for c in with_products)
        average = round(total_products / len(with_products), 2) if with_products else 0.0
        top = sorted(categories, key=lambda c: (-c.product_count, c.external_id))
        return {
            "total_categories": len(categories),
            "active_categories": sum(
                1 for c in categories if (c.status or "") not in _INACTIVE_STATUSES
            ),
            "root_categories": sum(1 for parent in self._parent.values() if parent is None),
            "orphan_categories": len(self._flags),
            "max_depth": max(self._levels.values(), default=0),
            "categories_with_products": len(with_products),
            "average_products_per_category": average,
            "top_categories": [
                {
                    "category_id": c.external_id,
                    "name": c.name,
                    "product_count": c.product_count,
                }
                for c in top[:TOP_CATEGORIES_LIMIT]
            ],
        }


def build_tree(categories: Sequence[Category]) -> list[CategoryNode]:
    """Atalho: floresta de uma lista plana de categorias."""
    return CategoryHierarchyBuilder(categories).build_tree()
