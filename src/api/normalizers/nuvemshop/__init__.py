"""Adapter Nuvemshop: pedidos, produtos, clientes, categorias e cupons."""

from .adapter import NuvemshopAdapter

__all__ = ["NuvemshopAdapter"]
