"""Adapter Nuvemshop (Tiendanube).

Webhooks Nuvemshop trazem só `{store_id, event, id}`: o recurso completo
fica na API. Sem bloco de dados, o candidato é mínimo (identidade + status
implícito no evento) e não sobrescreve campos já conhecidos. Itens de sync
chegam completos.

Textos são multi-idioma (`{"pt": ..., "es": ..., "en": ...}`); o valor
escolhido segue o idioma do contexto, depois en > es > pt, e o mapa completo fica
em `metadata["localized"]`.
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
    localized,
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
    ProductStatus,
    ProductType,
    StockStatus,
)

from . import mappings

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.domain.events import EventKind
    from app.protocols.platform_adapter import AdapterContext

_WEBHOOK_KEYS = frozenset({"id", "event", "store_id"})
_LOCALIZED_FIELDS = ("name", "description", "handle", "seo_title", "seo_description")


class NuvemshopAdapter(BasePlatformAdapter):
    platform: ClassVar[Platform] = Platform.NUVEMSHOP
    required_fields: ClassVar[tuple[str, ...]] = ("id", "event", "store_id")

    def detect_event(self, payload: dict[str, Any]) -> EventKind | None:
        return mappings.EVENTS.get(str(payload.get("event") or "").lower())

    def extract_store_id(self, payload: dict[str, Any]) -> str | None:
        return as_id(payload.get("store_id"))

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

    def parse(self, payload: dict[str, Any], context: AdapterContext) -> UnifiedEntity:
        if "data" not in payload and set(payload) <= _WEBHOOK_KEYS:
            return self._minimal(payload, context)
        return super().parse(payload, context)

    def _minimal(self, payload: dict[str, Any], context: AdapterContext) -> UnifiedEntity:
        external_id = self.require_id(payload, "id")
        status = mappings.EVENT_ORDER_STATUS.get(context.event) if context.event else None
        model = Category if context.entity_type is EntityType.CATEGORY else UnifiedEntity
        return model(
            platform=self.platform,
            entity_type=context.entity_type,
            external_id=external_id,
            store_id=context.store_id or self.extract_store_id(payload),
            status=status.value if status else None,
        )

    def _store_id(self, data: dict[str, Any], context: AdapterContext) -> str | None:
        return context.store_id or as_id(data.get("store_id"))

    # ──────────────────────────────────────────────────────────────
    # Parsers
    # ──────────────────────────────────────────────────────────────

    def _parse_product(self, payload: dict[str, Any], context: AdapterContext) -> UnifiedEntity:
        data = self.entity_data(payload)
        lang = context.language
        variants = [as_dict(v) for v in as_list(data.get("variants"))]
        first = variants[0] if variants else {}
        manage_stock = (
            any(v.get("stock_management") is True for v in variants) if variants else None
        )
        requires_shipping = as_bool(data.get("requires_shipping"))
        published = as_bool(data.get("published"))
        stock = to_int(first.get("stock"))

        attributes = drop_none(
            {
                "sku": first.get("sku") or None,
                "description": localized(data.get("description"), lang),
                "product_type": (
                    None
                    if requires_shipping is None
                    else (ProductType.PHYSICAL if requires_shipping else ProductType.DIGITAL).value
                ),
                "price": to_amount(first.get("price")),
                "sale_price": to_amount(first.get("promotional_price")),
                "manage_stock": manage_stock,
                "stock_quantity": stock,
                "shipping_required": requires_shipping,
                "weight": to_amount(first.get("weight")),
                "brand": data.get("brand"),
                "category_ids": [
                    as_id(as_dict(c).get("id")) for c in as_list(data.get("categories"))
                ],
                "tags": [t.strip() for t in str(data.get("tags") or "").split(",") if t.strip()],
                "images": [as_dict(i).get("src") for i in as_list(data.get("images"))],
                "variant_count": len(variants) if "variants" in data else None,
                "seo_title": localized(data.get("seo_title"), lang),
                "seo_description": localized(data.get("seo_description"), lang),
            }
        )
        return UnifiedEntity(
            platform=self.platform,
            entity_type=EntityType.PRODUCT,
            external_id=self.require_id(data, "id"),
            store_id=self._store_id(data, context),
            name=localized(data.get("name"), lang),
            status=(
                None
                if published is None
                else (ProductStatus.ACTIVE if published else ProductStatus.DRAFT).value
            ),
            attributes=attributes,
            metadata=_localized_metadata(data),
            created_at=parse_datetime(data.get("created_at")),
            updated_at=parse_datetime(data.get("updated_at")),
        )

    def _parse_order(self, payload: dict[str, Any], context: AdapterContext) -> UnifiedEntity:
        data = self.entity_data(payload)
        customer = as_dict(data.get("customer"))
        status = mappings.EVENT_ORDER_STATUS.get(context.event) if context.event else None
        status = status or mappings.order_status(data.get("status"))

        attributes = drop_none(
            {
                "number": as_id(data.get("number")),
                "payment_status": mappings.payment_status(data.get("payment_status")).value,
                "shipping_status": data.get("shipping_status"),
                "currency": data.get("currency"),
                "total": to_amount(data.get("total")),
                "subtotal": to_amount(data.get("subtotal")),
                "discount_total": to_amount(data.get("discount")),
                "shipping_total": to_amount(
                    data.get("shipping_cost_customer") or data.get("shipping_cost_owner")
                ),
                "payment_method": data.get("gateway"),
                "customer_id": as_id(customer.get("id")),
                "customer_email": customer.get("email") or data.get("contact_email"),
                "customer_name": customer.get("name") or data.get("contact_name"),
                "items": [
                    drop_none(
                        {
                            "product_id": as_id(item.get("product_id")),
                            "variant_id": as_id(item.get("variant_id")),
                            "name": localized(item.get("name"), context.language),
                            "quantity": to_int(item.get("quantity")),
                            "price": to_amount(item.get("price")),
                        }
                    )
                    for item in map(as_dict, as_list(data.get("products")))
                ],
            }
        )
        return UnifiedEntity(
            platform=self.platform,
            entity_type=EntityType.ORDER,
            external_id=self.require_id(data, "id"),
            store_id=self._store_id(data, context),
            name=as_id(data.get("number")),
            status=status.value,
            attributes=attributes,
            metadata=drop_none(
                {
                    "original_status": data.get("status"),
                    "original_payment_status": data.get("payment_status"),
                    "cancel_reason": data.get("cancel_reason"),
                }
            ),
            created_at=parse_datetime(data.get("created_at")),
            updated_at=parse_datetime(data.get("updated_at")),
        )

    def _parse_customer(self, payload: dict[str, Any], context: AdapterContext) -> UnifiedEntity:
        data = self.entity_data(payload)
        address = as_dict(data.get("default_address"))
        return UnifiedEntity(
            platform=self.platform,
            entity_type=EntityType.CUSTOMER,
            external_id=self.require_id(data, "id"),
            store_id=self._store_id(data, context),
            name=data.get("name") or full_name(data.get("first_name"), data.get("last_name")),
            status=CustomerStatus.ACTIVE.value,
            attributes=drop_none(
                {
                    "email": data.get("email"),
                    "phone": data.get("phone"),
                    "document": data.get("identification"),
                    "total_spent": to_amount(data.get("total_spent")),
                    "orders_count": to_int(data.get("orders_count")),
                    "accepts_marketing": data.get("accepts_marketing"),
                    "city": address.get("city"),
                    "country": address.get("country"),
                }
            ),
            created_at=parse_datetime(data.get("created_at")),
            updated_at=parse_datetime(data.get("updated_at")),
        )

    def _parse_category(self, payload: dict[str, Any], context: AdapterContext) -> Category:
        data = self.entity_data(payload)
        lang = context.language
        parent = as_id(data.get("parent"))
        return Category(
            platform=self.platform,
            external_id=self.require_id(data, "id"),
            store_id=self._store_id(data, context),
            name=localized(data.get("name"), lang),
            status=CategoryStatus.ACTIVE.value,
            parent_id=parent if parent not in (None, "0") else None,
            slug=localized(data.get("handle"), lang),
            description=localized(data.get("description"), lang),
            attributes=drop_none(
                {
                    "seo_title": localized(data.get("seo_title"), lang),
                    "seo_description": localized(data.get("seo_description"), lang),
                    "subcategory_ids": [as_id(c) for c in as_list(data.get("subcategories"))],
                }
            ),
            metadata=_localized_metadata(data),
            created_at=parse_datetime(data.get("created_at")),
            updated_at=parse_datetime(data.get("updated_at")),
        )

    def _parse_coupon(self, payload: dict[str, Any], context: AdapterContext) -> UnifiedEntity:
        data = self.entity_data(payload)
        used = to_int(data.get("used")) or 0
        max_uses = to_int(data.get("max_uses"))
        if max_uses is not None and used >= max_uses:
            status = CouponStatus.USED
        elif data.get("valid", True):
            status = CouponStatus.ACTIVE
        else:
            status = CouponStatus.INACTIVE
        return UnifiedEntity(
            platform=self.platform,
            entity_type=EntityType.COUPON,
            external_id=self.require_id(data, "id", "code"),
            store_id=self._store_id(data, context),
            name=data.get("code"),
            status=status.value,
            attributes=drop_none(
                {
                    "code": data.get("code"),
                    "discount_type": mappings.coupon_type(data.get("type")).value,
                    "amount": to_amount(data.get("value")),
                    "usage_count": used,
                    "usage_limit": max_uses,
                    "minimum_amount": to_amount(data.get("min_price")),
                    "starts_at": data.get("start_date"),
                    "expires_at": data.get("end_date"),
                }
            ),
            metadata=drop_none({"original_type": data.get("type")}),
            created_at=parse_datetime(data.get("created_at")),
            updated_at=parse_datetime(data.get("updated_at")),
        )

    # ──────────────────────────────────────────────────────────────
    # Regras de negócio
    # ──────────────────────────────────────────────────────────────

    def apply_business_rules(self, candidate: UnifiedEntity) -> UnifiedEntity:
        """Status de estoque derivado da quantidade quando há controle."""
        if candidate.entity_type is not EntityType.PRODUCT:
            return candidate
        attributes = dict(candidate.attributes)
        quantity = attributes.get("stock_quantity")
        if attributes.get("manage_stock") and quantity is not None:
            attributes["stock_status"] = (
                StockStatus.IN_STOCK if quantity > 0 else StockStatus.OUT_OF_STOCK
            ).value
        elif "manage_stock" in attributes:
            attributes["stock_status"] = StockStatus.IN_STOCK.value
        return candidate.model_copy(update={"attributes": attributes})


def _localized_metadata(data: dict[str, Any]) -> dict[str, Any]:
    maps = {
        field: data[field] for field in _LOCALIZED_FIELDS if isinstance(data.get(field), dict)
    }
    return {"localized": maps} if maps else {}
