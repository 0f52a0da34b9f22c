"""Tabelas de mapeamento Nuvemshop -> vocabulário unificado."""

from __future__ import annotations

from app.domain.events import EventKind
from app.domain.statuses import DiscountType, OrderStatus, PaymentStatus

EVENTS: dict[str, EventKind] = {
    "order/created": EventKind.ORDER_CREATED,
    "order/updated": EventKind.ORDER_UPDATED,
    "order/paid": EventKind.ORDER_PAID,
    "order/cancelled": EventKind.ORDER_CANCELLED,
    "order/fulfilled": EventKind.ORDER_FULFILLED,
    "order/packed": EventKind.ORDER_PACKED,
    "order/shipped": EventKind.ORDER_SHIPPED,
    "order/delivered": EventKind.ORDER_DELIVERED,
    "product/created": EventKind.PRODUCT_CREATED,
    "product/updated": EventKind.PRODUCT_UPDATED,
    "product/deleted": EventKind.PRODUCT_DELETED,
    "customer/created": EventKind.CUSTOMER_CREATED,
    "customer/updated": EventKind.CUSTOMER_UPDATED,
    "customer/deleted": EventKind.CUSTOMER_DELETED,
    "category/created": EventKind.CATEGORY_CREATED,
    "category/updated": EventKind.CATEGORY_UPDATED,
    "category/deleted": EventKind.CATEGORY_DELETED,
    "app/uninstalled": EventKind.APP_UNINSTALLED,
    "app/suspended": EventKind.APP_SUSPENDED,
    "app/resumed": EventKind.APP_RESUMED,
}

ORDER_STATUS: dict[str, OrderStatus] = {
    "open": OrderStatus.PENDING,
    "pending": OrderStatus.PENDING,
    "closed": OrderStatus.DELIVERED,
    "completed": OrderStatus.DELIVERED,
    "cancelled": OrderStatus.CANCELLED,
    "canceled": OrderStatus.CANCELLED,
}

PAYMENT_STATUS: dict[str, PaymentStatus] = {
    "pending": PaymentStatus.PENDING,
    "awaiting_payment": PaymentStatus.PENDING,
    "authorized": PaymentStatus.AUTHORIZED,
    "paid": PaymentStatus.PAID,
    "completed": PaymentStatus.PAID,
    "voided": PaymentStatus.VOIDED,
    "cancelled": PaymentStatus.VOIDED,
    "refunded": PaymentStatus.REFUNDED,
}

# Eventos de ciclo do pedido que implicam status, mesmo sem corpo completo.
EVENT_ORDER_STATUS: dict[EventKind, OrderStatus] = {
    EventKind.ORDER_CANCELLED: OrderStatus.CANCELLED,
    EventKind.ORDER_PACKED: OrderStatus.PROCESSING,
    EventKind.ORDER_FULFILLED: OrderStatus.SHIPPED,
    EventKind.ORDER_SHIPPED: OrderStatus.SHIPPED,
    EventKind.ORDER_DELIVERED: OrderStatus.DELIVERED,
}

COUPON_TYPE: dict[str, DiscountType] = {
    "percentage": DiscountType.PERCENTAGE,
    "absolute": DiscountType.FIXED_CART,
    "shipping": DiscountType.FIXED_CART,
}


def order_status(value: str | None) -> OrderStatus:
    return ORDER_STATUS.get((value or "").lower(), OrderStatus.PENDING)


def payment_status(value: str | None) -> PaymentStatus:
    return PAYMENT_STATUS.get((value or "").lower(), PaymentStatus.PENDING)


def coupon_type(value: str | None) -> DiscountType:
    return COUPON_TYPE.get((value or "").lower(), DiscountType.PERCENTAGE)
