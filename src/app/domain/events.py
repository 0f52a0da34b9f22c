"""Vocabulário canônico de eventos de webhook.

Os adapters traduzem nomes nativos (ex.: `order/paid`, `PURCHASE_COMPLETED`,
`product` + `deleted`) para estes valores. Eventos sem entidade associada
(ex.: ciclo de vida do app) são reconhecidos mas não geram escrita.
"""

from __future__ import annotations

from enum import StrEnum

from app.domain.entities import EntityType


class EventKind(StrEnum):
    ORDER_CREATED = "order.created"
    ORDER_UPDATED = "order.updated"
    ORDER_PAID = "order.paid"
    ORDER_CANCELLED = "order.cancelled"
    ORDER_FULFILLED = "order.fulfilled"
    ORDER_PACKED = "order.packed"
    ORDER_SHIPPED = "order.shipped"
    ORDER_DELIVERED = "order.delivered"
    ORDER_REFUNDED = "order.refunded"

    PRODUCT_CREATED = "product.created"
    PRODUCT_UPDATED = "product.updated"
    PRODUCT_DELETED = "product.deleted"

    CUSTOMER_CREATED = "customer.created"
    CUSTOMER_UPDATED = "customer.updated"
    CUSTOMER_DELETED = "customer.deleted"

    CATEGORY_CREATED = "category.created"
    CATEGORY_UPDATED = "category.updated"
    CATEGORY_DELETED = "category.deleted"

    COUPON_CREATED = "coupon.created"
    COUPON_UPDATED = "coupon.updated"
    COUPON_DELETED = "coupon.deleted"

    PURCHASE_COMPLETED = "purchase.completed"
    PURCHASE_REFUNDED = "purchase.refunded"
    SUBSCRIPTION_CREATED = "subscription.created"
    SUBSCRIPTION_RENEWED = "subscription.renewed"
    SUBSCRIPTION_CANCELLED = "subscription.cancelled"
    COMMISSION_GENERATED = "commission.generated"

    APP_UNINSTALLED = "app.uninstalled"
    APP_SUSPENDED = "app.suspended"
    APP_RESUMED = "app.resumed"

    @property
    def entity_type(self) -> EntityType | None:
        """Tipo de entidade afetado, ou None para eventos sem escrita."""
        return _ENTITY_BY_RESOURCE.get(self.value.split(".", 1)[0])

    @property
    def is_deletion(self) -> bool:
        return self.value.endswith(".deleted")


# Compras e assinaturas Hotmart viram pedidos no modelo unificado.
_ENTITY_BY_RESOURCE: dict[str, EntityType] = {
    "order": EntityType.ORDER,
    "purchase": EntityType.ORDER,
    "subscription": EntityType.ORDER,
    "product": EntityType.PRODUCT,
    "customer": EntityType.CUSTOMER,
    "category": EntityType.CATEGORY,
    "coupon": EntityType.COUPON,
}
