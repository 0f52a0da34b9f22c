"""Registro de adapters por plataforma.

Adicionar uma plataforma = implementar o adapter e registrá-lo aqui;
o pipeline não muda.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .hotmart import HotmartAdapter
from .nuvemshop import NuvemshopAdapter
from .woocommerce import WooCommerceAdapter

if TYPE_CHECKING:
    from collections.abc import Iterable

    from app.domain.platform import Platform
    from app.protocols.platform_adapter import PlatformAdapterProtocol


class AdapterRegistry:
    def __init__(self, adapters: Iterable[PlatformAdapterProtocol]) -> None:
        self._adapters = {adapter.platform: adapter for adapter in adapters}

    def get(self, platform: Platform) -> PlatformAdapterProtocol | None:
        return self._adapters.get(platform)

    def platforms(self) -> list[Platform]:
        return sorted(self._adapters, key=lambda platform: platform.value)

    def __contains__(self, platform: object) -> bool:
        return platform in self._adapters


def build_default_registry() -> AdapterRegistry:
    """Registro com os adapters de todas as plataformas suportadas."""
    return AdapterRegistry([HotmartAdapter(), NuvemshopAdapter(), WooCommerceAdapter()])
