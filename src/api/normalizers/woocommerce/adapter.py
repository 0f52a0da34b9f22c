"""Adapter WooCommerce.

O corpo do webhook é o próprio recurso (`payload["data"]` quando vier
encapsulado) com `resource` e `event` identificando o tópico. A loja é
identificada pelo `store_id` do payload ou, na falta dele, pelo header
X-WC-Webhook-Source (URL do site).

Datas `*_gmt` chegam sem fuso e são tratadas como UTC.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from api.normalizers.base import (
    BasePlatformAdapter,
    as_bool,
    as_dict,
    as_id,
    as_list,
    drop_none,
    full_name,
    parse_datetime,
    to_amount,
    to_int,
)
from app.domain.entities import Category, EntityType, UnifiedEntity
from app.domain.platform import Platform
from app.domain.statuses import (
    CategoryStatus,
    CouponStatus,
    CustomerStatus,
    PaymentStatus,
    ProductType,
    StockStatus,
)

from . import mappings

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.domain.events import EventKind
    from app.protocols.platform_adapter import AdapterContext


# Campos que permitem classificar o tipo do produto.
_CLASSIFYING_KEYS = frozenset({"type", "virtual", "downloadable"})


def _modified(data: dict[str, Any]) -> Any:
    return data.get("date_modified_gmt") or data.get("date_modified")


def _created(data: dict[str, Any]) -> Any:
    return data.get("date_created_gmt") or data.get("date_created")


def _category_counters(data: dict[str, Any]) -> dict[str, int]:
    """Só os contadores presentes no payload entram no candidato."""
    counters: dict[str, int] = {}
    menu_order = to_int(data.get("menu_order"))
    if menu_order is not None:
        counters["menu_order"] = menu_order
    count = to_int(data.get("count"))
    if count is not None:
        counters["product_count"] = max(count, 0)
    return counters


class WooCommerceAdapter(BasePlatformAdapter):
    platform: ClassVar[Platform] = Platform.WOOCOMMERCE
    required_fields: ClassVar[tuple[str, ...]] = ("id", "resource", "event")
    store_id_header: ClassVar[str | None] = "x-wc-webhook-source"

    def detect_event(self, payload: dict[str, Any]) -> EventKind | None:
        topic = payload.get("topic")
        if not topic:
            topic = f"{payload.get('resource') or ''}.{payload.get('event') or ''}"
        return mappings.EVENTS.get(str(topic).lower())

    def extract_store_id(self, payload: dict[str, Any]) -> str | None:
        return as_id(payload.get("store_id")) or as_id(payload.get("webhook_source"))

    def _parsers(
        self,
    ) -> dict[EntityType, Callable[[dict[str, Any], AdapterContext], UnifiedEntity]]:
        return {
            EntityType.PRODUCT: self._parse_product,
            EntityType.ORDER: self._parse_order,
            EntityType.CUSTOMER: self._parse_customer,
            EntityType.CATEGORY: self._parse_category,
            EntityType.COUPON: self._parse_coupon,
        }

    def _store_id(self, payload: dict[str, Any], context: AdapterContext) -> str | None:
        return context.store_id or self.extract_store_id(payload)

    # ──────────────────────────────────────────────────────────────
    # Parsers
    # ──────────────────────────────────────────────────────────────

    def _parse_product(self, payload: dict[str, Any], context: AdapterContext) -> UnifiedEntity:
        data = self.entity_data(payload)
        wc_type = str(data.get("type") or "simple").lower()
        # Payload parcial sem tipo não reclassifica o produto armazenado.
        product_type: ProductType | None = None
        if wc_type == "grouped":
            product_type = ProductType.GROUPED
        elif data.get("virtual") or data.get("downloadable"):
            product_type = ProductType.DIGITAL
        elif _CLASSIFYING_KEYS & data.keys():
            product_type = ProductType.PHYSICAL
        stock_status = mappings.stock_status(data.get("stock_status"))

        attributes = drop_none(
            {
                "sku": data.get("sku") or None,
                "description": data.get("description") or None,
                "short_description": data.get("short_description") or None,
                "product_type": product_type.value if product_type else None,
                "price": to_amount(data.get("regular_price") or data.get("price")),
                "sale_price": to_amount(data.get("sale_price")),
                "manage_stock": as_bool(data.get("manage_stock")),
                "stock_quantity": to_int(data.get("stock_quantity")),
                "stock_status": stock_status.value if stock_status else None,
                "shipping_required": (
                    product_type is ProductType.PHYSICAL if product_type else None
                ),
                "weight": to_amount(data.get("weight")),
                "total_sales": to_int(data.get("total_sales")),
                "featured": data.get("featured"),
                "category_ids": [
                    as_id(as_dict(c).get("id")) for c in as_list(data.get("categories"))
                ],
                "tags": [as_dict(t).get("name") for t in as_list(data.get("tags"))],
                "images": [as_dict(i).get("src") for i in as_list(data.get("images"))],
            }
        )
        return UnifiedEntity(
            platform=self.platform,
            entity_type=EntityType.PRODUCT,
            external_id=self.require_id(data, "id"),
            store_id=self._store_id(payload, context),
            name=data.get("name"),
            status=mappings.product_status(data["status"]).value if "status" in data else None,
            attributes=attributes,
            metadata=drop_none(
                {
                    "slug": data.get("slug"),
                    "wc_type": data.get("type"),
                    "original_status": data.get("status"),
                    "catalog_visibility": data.get("catalog_visibility"),
                }
            ),
            created_at=parse_datetime(_created(data)),
            updated_at=parse_datetime(_modified(data)),
        )

    def _parse_order(self, payload: dict[str, Any], context: AdapterContext) -> UnifiedEntity:
        data = self.entity_data(payload)
        billing = as_dict(data.get("billing"))
        status = mappings.order_status(data.get("status"))
        if data.get("date_paid_gmt") or data.get("date_paid"):
            payment_status = mappings.PAYMENT_STATUS.get(status, PaymentStatus.PAID)
        else:
            payment_status = mappings.PAYMENT_STATUS.get(status, PaymentStatus.PENDING)

        attributes = drop_none(
            {
                "number": as_id(data.get("number")),
                "payment_status": payment_status.value,
                "payment_method": data.get("payment_method_title") or data.get("payment_method"),
                "currency": data.get("currency"),
                "total": to_amount(data.get("total")),
                "discount_total": to_amount(data.get("discount_total")),
                "shipping_total": to_amount(data.get("shipping_total")),
                "tax_total": to_amount(data.get("total_tax")),
                "customer_id": as_id(data.get("customer_id")) if data.get("customer_id") else None,
                "customer_email": billing.get("email"),
                "customer_name": full_name(billing.get("first_name"), billing.get("last_name")),
                "items": [
                    drop_none(
                        {
                            "product_id": as_id(item.get("product_id")),
                            "variant_id": as_id(item.get("variation_id") or None),
                            "name": item.get("name"),
                            "quantity": to_int(item.get("quantity")),
                            "price": to_amount(item.get("price")),
                            "sku": item.get("sku") or None,
                        }
                    )
                    for item in map(as_dict, as_list(data.get("line_items")))
                ],
            }
        )
        return UnifiedEntity(
            platform=self.platform,
            entity_type=EntityType.ORDER,
            external_id=self.require_id(data, "id"),
            store_id=self._store_id(payload, context),
            name=as_id(data.get("number")),
            status=status.value,
            attributes=attributes,
            metadata=drop_none(
                {
                    "original_status": data.get("status"),
                    "order_key": data.get("order_key"),
                    "created_via": data.get("created_via"),
                }
            ),
            created_at=parse_datetime(_created(data)),
            updated_at=parse_datetime(_modified(data)),
        )

    def _parse_customer(self, payload: dict[str, Any], context: AdapterContext) -> UnifiedEntity:
        data = self.entity_data(payload)
        billing = as_dict(data.get("billing"))
        return UnifiedEntity(
            platform=self.platform,
            entity_type=EntityType.CUSTOMER,
            external_id=self.require_id(data, "id"),
            store_id=self._store_id(payload, context),
            name=full_name(data.get("first_name"), data.get("last_name")) or data.get("username"),
            status=CustomerStatus.ACTIVE.value,
            attributes=drop_none(
                {
                    "email": data.get("email"),
                    "first_name": data.get("first_name") or None,
                    "last_name": data.get("last_name") or None,
                    "phone": billing.get("phone") or None,
                    "city": billing.get("city") or None,
                    "country": billing.get("country") or None,
                    "is_paying_customer": data.get("is_paying_customer"),
                }
            ),
            metadata=drop_none({"username": data.get("username"), "role": data.get("role")}),
            created_at=parse_datetime(_created(data)),
            updated_at=parse_datetime(_modified(data)),
        )

    def _parse_category(self, payload: dict[str, Any], context: AdapterContext) -> Category:
        data = self.entity_data(payload)
        parent = to_int(data.get("parent")) or 0
        return Category(
            platform=self.platform,
            external_id=self.require_id(data, "id"),
            store_id=self._store_id(payload, context),
            name=data.get("name"),
            status=CategoryStatus.ACTIVE.value,
            parent_id=str(parent) if parent > 0 else None,
            slug=data.get("slug"),
            description=data.get("description") or None,
            **_category_counters(data),
            attributes=drop_none(
                {
                    "display": data.get("display"),
                    "image": as_dict(data.get("image")).get("src"),
                }
            ),
        )

    def _parse_coupon(self, payload: dict[str, Any], context: AdapterContext) -> UnifiedEntity:
        data = self.entity_data(payload)
        usage_count = to_int(data.get("usage_count")) or 0
        usage_limit = to_int(data.get("usage_limit"))
        if usage_limit is not None and usage_count >= usage_limit:
            status = CouponStatus.USED
        elif data.get("status", "publish") == "publish":
            status = CouponStatus.ACTIVE
        else:
            status = CouponStatus.INACTIVE
        return UnifiedEntity(
            platform=self.platform,
            entity_type=EntityType.COUPON,
            external_id=self.require_id(data, "id"),
            store_id=self._store_id(payload, context),
            name=data.get("code"),
            status=status.value,
            attributes=drop_none(
                {
                    "code": data.get("code"),
                    "discount_type": mappings.discount_type(data.get("discount_type")).value,
                    "amount": to_amount(data.get("amount")),
                    "usage_count": usage_count,
                    "usage_limit": usage_limit,
                    "minimum_amount": to_amount(data.get("minimum_amount")),
                    "free_shipping": data.get("free_shipping"),
                    "expires_at": data.get("date_expires_gmt") or data.get("date_expires"),
                }
            ),
            metadata=drop_none({"original_discount_type": data.get("discount_type")}),
            created_at=parse_datetime(_created(data)),
            updated_at=parse_datetime(_modified(data)),
        )

    # ──────────────────────────────────────────────────────────────
    # Regras de negócio
    # ──────────────────────────────────────────────────────────────

    def apply_business_rules(self, candidate: UnifiedEntity) -> UnifiedEntity:
        """Estoque: sem status explícito, deriva da quantidade controlada."""
        if candidate.entity_type is not EntityType.PRODUCT:
            return candidate
        attributes = dict(candidate.attributes)
        if "stock_status" not in attributes and attributes.get("manage_stock"):
            quantity = attributes.get("stock_quantity") or 0
            attributes["stock_status"] = (
                StockStatus.IN_STOCK if quantity > 0 else StockStatus.OUT_OF_STOCK
            ).value
        if attributes.get("product_type") == ProductType.DIGITAL.value:
            attributes["shipping_required"] = False
        return candidate.model_copy(update={"attributes": attributes})
