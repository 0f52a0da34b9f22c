"""Adapter WooCommerce: pedidos, produtos, clientes, categorias e cupons."""

from .adapter import WooCommerceAdapter

__all__ = ["WooCommerceAdapter"]
