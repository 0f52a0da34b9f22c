"""Adapter Hotmart: compras, assinaturas, produtos digitais e cupons."""

from .adapter import DEFAULT_STORE_ID, HotmartAdapter

__all__ = ["DEFAULT_STORE_ID", "HotmartAdapter"]
