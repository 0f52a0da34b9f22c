"""Vocabulários canônicos de status e tipos do modelo unificado.

Cada adapter mapeia os status nativos da plataforma para estes enums.
Status nativo desconhecido cai num default seguro, nunca em erro.
"""

from __future__ import annotations

from enum import StrEnum


class ProductStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DRAFT = "draft"
    ARCHIVED = "archived"


class ProductType(StrEnum):
    PHYSICAL = "physical"
    DIGITAL = "digital"
    SERVICE = "service"
    GROUPED = "grouped"


class StockStatus(StrEnum):
    IN_STOCK = "in_stock"
    OUT_OF_STOCK = "out_of_stock"
    ON_BACKORDER = "on_backorder"


class OrderStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    FAILED = "failed"


class PaymentStatus(StrEnum):
    PENDING = "pending"
    AUTHORIZED = "authorized"
    PAID = "paid"
    REFUNDED = "refunded"
    VOIDED = "voided"
    FAILED = "failed"


class CustomerStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class CouponStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    USED = "used"


class DiscountType(StrEnum):
    PERCENTAGE = "percentage"
    FIXED_CART = "fixed_cart"
    FIXED_PRODUCT = "fixed_product"


class CategoryStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


# Status gravado quando o evento é de remoção (product.deleted etc.)
DELETED_STATUS = "deleted"
