"""Tabelas de mapeamento WooCommerce -> vocabulário unificado."""

from __future__ import annotations

from app.domain.events import EventKind
from app.domain.statuses import (
    DiscountType,
    OrderStatus,
    PaymentStatus,
    ProductStatus,
    StockStatus,
)

# Chave: "{resource}.{event}" (mesmo formato do header X-WC-Webhook-Topic).
EVENTS: dict[str, EventKind] = {
    "order.created": EventKind.ORDER_CREATED,
    "order.updated": EventKind.ORDER_UPDATED,
    "order.deleted": EventKind.ORDER_CANCELLED,
    "order.restored": EventKind.ORDER_UPDATED,
    "order.refunded": EventKind.ORDER_REFUNDED,
    "product.created": EventKind.PRODUCT_CREATED,
    "product.updated": EventKind.PRODUCT_UPDATED,
    "product.deleted": EventKind.PRODUCT_DELETED,
    "product.restored": EventKind.PRODUCT_UPDATED,
    "customer.created": EventKind.CUSTOMER_CREATED,
    "customer.updated": EventKind.CUSTOMER_UPDATED,
    "customer.deleted": EventKind.CUSTOMER_DELETED,
    "coupon.created": EventKind.COUPON_CREATED,
    "coupon.updated": EventKind.COUPON_UPDATED,
    "coupon.deleted": EventKind.COUPON_DELETED,
    "coupon.restored": EventKind.COUPON_UPDATED,
}

PRODUCT_STATUS: dict[str, ProductStatus] = {
    "publish": ProductStatus.ACTIVE,
    "draft": ProductStatus.DRAFT,
    "pending": ProductStatus.DRAFT,
    "private": ProductStatus.INACTIVE,
    "trash": ProductStatus.ARCHIVED,
}

ORDER_STATUS: dict[str, OrderStatus] = {
    "pending": OrderStatus.PENDING,
    "on-hold": OrderStatus.PENDING,
    "processing": OrderStatus.PROCESSING,
    "completed": OrderStatus.DELIVERED,
    "cancelled": OrderStatus.CANCELLED,
    "refunded": OrderStatus.REFUNDED,
    "failed": OrderStatus.FAILED,
}

# Status de pagamento inferido do status do pedido.
PAYMENT_STATUS: dict[OrderStatus, PaymentStatus] = {
    OrderStatus.PROCESSING: PaymentStatus.PAID,
    OrderStatus.DELIVERED: PaymentStatus.PAID,
    OrderStatus.REFUNDED: PaymentStatus.REFUNDED,
    OrderStatus.FAILED: PaymentStatus.FAILED,
    OrderStatus.CANCELLED: PaymentStatus.VOIDED,
}

STOCK_STATUS: dict[str, StockStatus] = {
    "instock": StockStatus.IN_STOCK,
    "outofstock": StockStatus.OUT_OF_STOCK,
    "onbackorder": StockStatus.ON_BACKORDER,
}

DISCOUNT_TYPE: dict[str, DiscountType] = {
    "percent": DiscountType.PERCENTAGE,
    "fixed_cart": DiscountType.FIXED_CART,
    "fixed_product": DiscountType.FIXED_PRODUCT,
}


def product_status(value: str | None) -> ProductStatus:
    return PRODUCT_STATUS.get((value or "").lower(), ProductStatus.DRAFT)


def order_status(value: str | None) -> OrderStatus:
    status = (value or "").lower().removeprefix("wc-")
    return ORDER_STATUS.get(status, OrderStatus.PENDING)


def stock_status(value: str | None) -> StockStatus | None:
    return STOCK_STATUS.get((value or "").lower())


def discount_type(value: str | None) -> DiscountType:
    return DISCOUNT_TYPE.get((value or "").lower(), DiscountType.FIXED_CART)
