"""Adapter Hotmart.

Hotmart vende produtos digitais: não há estoque nem frete, e não existe
loja no sentido tradicional. O escopo multi-tenant é o `ucode` do produtor;
sem ele, usa-se a loja sentinela `hotmart-default`.

Compras e assinaturas viram pedidos; comissões e categorias não têm
representação no modelo unificado.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from api.normalizers.base import (
    BasePlatformAdapter,
    as_bool,
    as_dict,
    as_id,
    drop_none,
    parse_datetime,
    to_amount,
    to_int,
)
from app.domain.entities import EntityType, UnifiedEntity
from app.domain.platform import Platform
from app.domain.statuses import (
    CustomerStatus,
    DiscountType,
    OrderStatus,
    PaymentStatus,
    ProductType,
)

from . import mappings

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from app.domain.events import EventKind
    from app.protocols.platform_adapter import AdapterContext

DEFAULT_STORE_ID = "hotmart-default"
DEFAULT_CURRENCY = "BRL"


class HotmartAdapter(BasePlatformAdapter):
    platform: ClassVar[Platform] = Platform.HOTMART
    required_fields: ClassVar[tuple[str, ...]] = ("id", "event", "data")

    def detect_event(self, payload: dict[str, Any]) -> EventKind | None:
        return mappings.EVENTS.get(str(payload.get("event") or "").upper())

    def extract_store_id(self, payload: dict[str, Any]) -> str | None:
        producer = as_dict(self.entity_data(payload).get("producer"))
        return as_id(producer.get("ucode"))

    def _parsers(
        self,
    ) -> dict[EntityType, Callable[[dict[str, Any], AdapterContext], UnifiedEntity]]:
        return {
            EntityType.ORDER: self._parse_order,
            EntityType.PRODUCT: self._parse_product,
            EntityType.CUSTOMER: self._parse_customer,
            EntityType.COUPON: self._parse_coupon,
        }

    def _store_id(self, payload: dict[str, Any], context: AdapterContext) -> str | None:
        return context.store_id or self.extract_store_id(payload)

    # ──────────────────────────────────────────────────────────────
    # Parsers
    # ──────────────────────────────────────────────────────────────

    def _parse_order(self, payload: dict[str, Any], context: AdapterContext) -> UnifiedEntity:
        data = self.entity_data(payload)
        purchase = as_dict(data.get("purchase"))
        subscription = as_dict(data.get("subscription"))
        subscriber = as_dict(subscription.get("subscriber"))
        buyer = as_dict(data.get("buyer"))
        product = as_dict(data.get("product"))
        price = as_dict(purchase.get("price"))
        payment = as_dict(purchase.get("payment"))

        if purchase:
            external_id = self.require_id(purchase, "transaction", "order_id")
        else:
            external_id = as_id(subscriber.get("code")) or self.require_id(
                subscription, "subscriber_code", "id"
            )

        raw_status = purchase.get("status") or subscription.get("status") or data.get("status")
        status = mappings.EVENT_ORDER_STATUS.get(context.event) if context.event else None
        status = status or mappings.order_status(raw_status)
        payment_status = mappings.payment_status(raw_status)
        if status is OrderStatus.REFUNDED:
            payment_status = PaymentStatus.REFUNDED

        attributes = drop_none(
            {
                "payment_status": payment_status.value,
                "payment_method": payment.get("type") or payment.get("method"),
                "installments": to_int(payment.get("installments_number")),
                "total": to_amount(price.get("value")),
                "currency": price.get("currency_value") or price.get("currency_code"),
                "customer_id": as_id(buyer.get("ucode")) or buyer.get("email"),
                "customer_email": buyer.get("email"),
                "customer_name": buyer.get("name"),
                "product_id": as_id(product.get("id")),
                "product_name": product.get("name"),
                "offer_code": as_dict(purchase.get("offer")).get("code"),
                "subscription_code": as_id(subscriber.get("code")),
                "subscription_plan": as_dict(subscription.get("plan")).get("name"),
            }
        )
        return UnifiedEntity(
            platform=self.platform,
            entity_type=EntityType.ORDER,
            external_id=external_id,
            store_id=self._store_id(payload, context),
            name=product.get("name"),
            status=status.value,
            attributes=attributes,
            metadata=drop_none(
                {
                    "event_id": as_id(payload.get("id")),
                    "event_version": payload.get("version"),
                    "original_status": raw_status,
                    "is_subscription": bool(subscription),
                }
            ),
            created_at=parse_datetime(purchase.get("order_date")),
            updated_at=parse_datetime(
                purchase.get("approved_date") or payload.get("creation_date")
            ),
        )

    def _parse_product(self, payload: dict[str, Any], context: AdapterContext) -> UnifiedEntity:
        data = self.entity_data(payload)
        # Em payloads de venda o produto vem aninhado; no catálogo, na raiz.
        product = as_dict(data.get("product")) if "purchase" in data else data
        external_id = self.require_id(product, "id", "ucode")
        raw_status = product.get("status")
        raw_format = product.get("format")

        attributes = drop_none(
            {
                "product_type": mappings.product_type(raw_format).value,
                "price": to_amount(as_dict(product.get("price")).get("value")),
                "currency": as_dict(product.get("price")).get("currency_value"),
                "is_subscription": as_bool(product.get("is_subscription")),
                "warranty_days": to_int(product.get("warranty_period")),
            }
        )
        return UnifiedEntity(
            platform=self.platform,
            entity_type=EntityType.PRODUCT,
            external_id=external_id,
            store_id=self._store_id(payload, context),
            name=product.get("name"),
            status=mappings.product_status(raw_status).value,
            attributes=attributes,
            metadata=drop_none(
                {
                    "ucode": product.get("ucode"),
                    "format": raw_format,
                    "original_status": raw_status,
                }
            ),
            created_at=parse_datetime(product.get("created_at")),
            updated_at=parse_datetime(product.get("updated_at") or payload.get("creation_date")),
        )

    def _parse_customer(self, payload: dict[str, Any], context: AdapterContext) -> UnifiedEntity:
        data = self.entity_data(payload)
        buyer = as_dict(data.get("buyer")) or data
        external_id = self.require_id(buyer, "ucode", "email", "id")
        address = as_dict(buyer.get("address"))
        return UnifiedEntity(
            platform=self.platform,
            entity_type=EntityType.CUSTOMER,
            external_id=external_id,
            store_id=self._store_id(payload, context),
            name=buyer.get("name"),
            status=CustomerStatus.ACTIVE.value,
            attributes=drop_none(
                {
                    "email": buyer.get("email"),
                    "phone": buyer.get("checkout_phone") or buyer.get("phone"),
                    "document": buyer.get("document"),
                    "country": address.get("country_iso") or address.get("country"),
                }
            ),
            updated_at=parse_datetime(payload.get("creation_date")),
        )

    def _parse_coupon(self, payload: dict[str, Any], context: AdapterContext) -> UnifiedEntity:
        data = self.entity_data(payload)
        code = data.get("coupon_code") or data.get("code")
        external_id = self.require_id(data, "id", "coupon_code", "code")
        discount = to_amount(data.get("discount"))
        # Hotmart informa o desconto como fração (0.1 = 10%).
        percentage = round(discount * 100, 2) if discount is not None and discount <= 1 else discount
        return UnifiedEntity(
            platform=self.platform,
            entity_type=EntityType.COUPON,
            external_id=external_id,
            store_id=self._store_id(payload, context),
            name=code,
            status=mappings.coupon_status(data.get("status")).value,
            attributes=drop_none(
                {
                    "code": code,
                    "discount_type": DiscountType.PERCENTAGE.value,
                    "amount": percentage,
                    "product_id": as_id(data.get("product_id")),
                    "starts_at": _iso(parse_datetime(data.get("start_date"))),
                    "expires_at": _iso(parse_datetime(data.get("end_date"))),
                }
            ),
            updated_at=parse_datetime(payload.get("creation_date")),
        )

    # ──────────────────────────────────────────────────────────────
    # Regras de negócio
    # ──────────────────────────────────────────────────────────────

    def apply_business_rules(self, candidate: UnifiedEntity) -> UnifiedEntity:
        """Produtos digitais: sem estoque nem frete; loja e moeda default."""
        attributes = dict(candidate.attributes)
        if candidate.entity_type is EntityType.PRODUCT:
            attributes.setdefault("product_type", ProductType.DIGITAL.value)
            attributes["manage_stock"] = False
            attributes["shipping_required"] = (
                attributes["product_type"] == ProductType.PHYSICAL.value
            )
            attributes.setdefault("currency", DEFAULT_CURRENCY)
        elif candidate.entity_type is EntityType.ORDER:
            attributes["shipping_total"] = 0.0
            attributes["shipping_status"] = None
            attributes["fulfillment_status"] = None
            attributes.setdefault("currency", DEFAULT_CURRENCY)

        return candidate.model_copy(
            update={
                "store_id": candidate.store_id or DEFAULT_STORE_ID,
                "attributes": attributes,
            }
        )


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
