"""Tabelas de mapeamento Hotmart -> vocabulário unificado."""

from __future__ import annotations

from app.domain.events import EventKind
from app.domain.statuses import (
    CouponStatus,
    OrderStatus,
    PaymentStatus,
    ProductStatus,
    ProductType,
)

EVENTS: dict[str, EventKind] = {
    "PURCHASE_COMPLETED": EventKind.PURCHASE_COMPLETED,
    "PURCHASE_REFUNDED": EventKind.PURCHASE_REFUNDED,
    "SUBSCRIPTION_CANCELLATION": EventKind.SUBSCRIPTION_CANCELLED,
    "SUBSCRIPTION_CREATED": EventKind.SUBSCRIPTION_CREATED,
    "SUBSCRIPTION_RENEWED": EventKind.SUBSCRIPTION_RENEWED,
    "COMMISSION_GENERATED": EventKind.COMMISSION_GENERATED,
}

PRODUCT_STATUS: dict[str, ProductStatus] = {
    "DRAFT": ProductStatus.DRAFT,
    "ACTIVE": ProductStatus.ACTIVE,
    "PAUSED": ProductStatus.INACTIVE,
    "NOT_APPROVED": ProductStatus.DRAFT,
    "IN_REVIEW": ProductStatus.DRAFT,
    "CHANGES_PENDING_ON_PRODUCT": ProductStatus.DRAFT,
    "DELETED": ProductStatus.ARCHIVED,
}

PRODUCT_FORMAT: dict[str, ProductType] = {
    "EBOOK": ProductType.DIGITAL,
    "SOFTWARE": ProductType.DIGITAL,
    "MOBILE_APPS": ProductType.DIGITAL,
    "VIDEOS": ProductType.DIGITAL,
    "AUDIOS": ProductType.DIGITAL,
    "ONLINE_COURSE": ProductType.DIGITAL,
    "ETICKET": ProductType.SERVICE,
    "COMMUNITY": ProductType.SERVICE,
    "BUNDLE": ProductType.GROUPED,
    "PHYSICAL": ProductType.PHYSICAL,
}

ORDER_STATUS: dict[str, OrderStatus] = {
    "approved": OrderStatus.CONFIRMED,
    "complete": OrderStatus.CONFIRMED,
    "completed": OrderStatus.CONFIRMED,
    "canceled": OrderStatus.CANCELLED,
    "cancelled": OrderStatus.CANCELLED,
    "refunded": OrderStatus.REFUNDED,
    "pending": OrderStatus.PENDING,
}

PAYMENT_STATUS: dict[str, PaymentStatus] = {
    "approved": PaymentStatus.PAID,
    "complete": PaymentStatus.PAID,
    "completed": PaymentStatus.PAID,
    "canceled": PaymentStatus.VOIDED,
    "cancelled": PaymentStatus.VOIDED,
    "refunded": PaymentStatus.REFUNDED,
    "pending": PaymentStatus.PENDING,
}

# Eventos que fixam o status do pedido independentemente do bloco purchase.
EVENT_ORDER_STATUS: dict[EventKind, OrderStatus] = {
    EventKind.PURCHASE_REFUNDED: OrderStatus.REFUNDED,
    EventKind.SUBSCRIPTION_CANCELLED: OrderStatus.CANCELLED,
}

COUPON_STATUS: dict[str, CouponStatus] = {
    "valid": CouponStatus.ACTIVE,
    "active": CouponStatus.ACTIVE,
    "expired": CouponStatus.EXPIRED,
    "inactive": CouponStatus.INACTIVE,
    "used": CouponStatus.USED,
}


def product_status(value: str | None) -> ProductStatus:
    return PRODUCT_STATUS.get((value or "").upper(), ProductStatus.ACTIVE)


def product_type(value: str | None) -> ProductType:
    return PRODUCT_FORMAT.get((value or "").upper(), ProductType.DIGITAL)


def order_status(value: str | None) -> OrderStatus:
    return ORDER_STATUS.get((value or "").lower(), OrderStatus.PENDING)


def payment_status(value: str | None) -> PaymentStatus:
    return PAYMENT_STATUS.get((value or "").lower(), PaymentStatus.PENDING)


def coupon_status(value: str | None) -> CouponStatus:
    return COUPON_STATUS.get((value or "").lower(), CouponStatus.INACTIVE)
