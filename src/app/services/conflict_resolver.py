"""Resolução de conflitos entre versão armazenada e versão recebida.

Função pura sobre (current, incoming, strategy): sem estado oculto e
determinística para entradas idênticas, o que torna a reentrega de um
mesmo webhook idempotente.

Estratégias:
- timestamp_wins: maior updated_at vence inteiro; empate favorece incoming
- platform_priority: ordem total entre plataformas; empate cai em timestamp
- merge_fields: união campo a campo; ausente/vazio nunca apaga valor atual
  (ausente = não preenchido pelo adapter, incluindo defaults do modelo)
- manual_review: nada é aplicado; incoming vai para revisão humana
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.domain.conflicts import ConflictRecord, ConflictStrategy
from app.domain.entities import IDENTITY_FIELDS
from app.domain.platform import Platform

if TYPE_CHECKING:
    from collections.abc import Mapping

    from app.domain.entities import UnifiedEntity

DEFAULT_PLATFORM_PRIORITY: dict[Platform, int] = {
    Platform.WOOCOMMERCE: 3,
    Platform.NUVEMSHOP: 2,
    Platform.HOTMART: 1,
}

_OLDEST = datetime.min.replace(tzinfo=UTC)


def _as_aware(value: datetime | None) -> datetime:
    if value is None:
        return _OLDEST
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def _union_lists(current: list[Any], incoming: list[Any]) -> list[Any]:
    merged = list(current)
    for item in incoming:
        if item not in merged:
            merged.append(item)
    return merged


def _merge_values(current: Any, incoming: Any) -> Any:
    if _is_empty(incoming):
        return current
    if isinstance(current, dict) and isinstance(incoming, dict):
        return _merge_dicts(current, incoming)
    if isinstance(current, list) and isinstance(incoming, list):
        return _union_lists(current, incoming)
    return incoming


def _merge_dicts(current: Mapping[str, Any], incoming: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(current)
    for key, value in incoming.items():
        merged[key] = _merge_values(merged.get(key), value)
    return merged


class ConflictResolver:
    """Decide a versão vencedora de uma entidade.

    Args:
        platform_priority: Ordem total entre plataformas (maior vence).
    """

    def __init__(self, platform_priority: Mapping[Platform, int] | None = None) -> None:
        self._priority = dict(platform_priority or DEFAULT_PLATFORM_PRIORITY)

    def resolve(
        self,
        current: UnifiedEntity | None,
        incoming: UnifiedEntity,
        strategy: ConflictStrategy,
    ) -> UnifiedEntity:
        """Retorna a entidade vencedora (estado a ser gravado)."""
        return self.decide(current, incoming, strategy).resolved

    def decide(
        self,
        current: UnifiedEntity | None,
        incoming: UnifiedEntity,
        strategy: ConflictStrategy,
    ) -> ConflictRecord:
        """Compara as versões e devolve o registro completo da decisão.

        Args:
            current: Estado armazenado (None = caminho de criação)
            incoming: Candidato recebido
            strategy: Estratégia aplicada nesta chamada

        Returns:
            ConflictRecord com `resolved`, vencedor e flag de revisão.
        """
        if current is None:
            return ConflictRecord(incoming, None, strategy, incoming, "incoming")

        if incoming == current:
            return ConflictRecord(incoming, current, strategy, current, "current")

        if strategy is ConflictStrategy.MANUAL_REVIEW:
            return ConflictRecord(
                incoming, current, strategy, current, "current", pending_review=True
            )

        if strategy is ConflictStrategy.MERGE_FIELDS:
            merged = self._merge(current, incoming)
            winner = "current" if merged == current else "merged"
            return ConflictRecord(incoming, current, strategy, merged, winner)

        if strategy is ConflictStrategy.PLATFORM_PRIORITY:
            incoming_rank = self._priority.get(incoming.platform, 0)
            current_rank = self._priority.get(current.platform, 0)
            if incoming_rank != current_rank:
                if incoming_rank > current_rank:
                    return ConflictRecord(incoming, current, strategy, incoming, "incoming")
                return ConflictRecord(incoming, current, strategy, current, "current")

        # timestamp_wins e desempate de platform_priority
        if _as_aware(incoming.updated_at) >= _as_aware(current.updated_at):
            return ConflictRecord(incoming, current, strategy, incoming, "incoming")
        return ConflictRecord(incoming, current, strategy, current, "current")

    @staticmethod
    def _merge(current: UnifiedEntity, incoming: UnifiedEntity) -> UnifiedEntity:
        base = current.model_dump()
        # Só campos que o adapter preencheu; defaults do modelo não contam como valor.
        updates = incoming.model_dump(exclude_unset=True)
        for field, value in updates.items():
            if field in IDENTITY_FIELDS or field not in base:
                continue
            if field in ("created_at", "updated_at"):
                continue
            base[field] = _merge_values(base[field], value)

        created = [ts for ts in (current.created_at, incoming.created_at) if ts is not None]
        if created:
            base["created_at"] = min(created, key=_as_aware)
        updated = [ts for ts in (current.updated_at, incoming.updated_at) if ts is not None]
        if updated:
            base["updated_at"] = max(updated, key=_as_aware)

        return type(current).model_validate(base)
