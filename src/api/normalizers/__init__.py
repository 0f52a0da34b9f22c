"""Adapters de plataforma: conversão de payloads externos para o modelo unificado.

Estrutura:
- base.py: validação estrutural, dispatch por tipo de entidade e helpers
- hotmart/, nuvemshop/, woocommerce/: adapter + tabelas de mapeamento
- registry.py: seleção do adapter por Platform

Cada plataforma mantém seus mapeamentos isolados; nada de tipos nativos
vaza para fora deste pacote.
"""

from .base import BasePlatformAdapter
from .hotmart import HotmartAdapter
from .nuvemshop import NuvemshopAdapter
from .registry import AdapterRegistry, build_default_registry
from .woocommerce import WooCommerceAdapter

__all__ = [
    "AdapterRegistry",
    "BasePlatformAdapter",
    "HotmartAdapter",
    "NuvemshopAdapter",
    "WooCommerceAdapter",
    "build_default_registry",
]
