"""Testes do adapter Nuvemshop."""

from __future__ import annotations

import pytest

from api.normalizers.nuvemshop.adapter import NuvemshopAdapter
from app.domain.entities import Category, EntityType
from app.domain.events import EventKind
from app.protocols.platform_adapter import AdapterContext


def _context(
    entity_type: EntityType,
    *,
    event: EventKind | None = None,
    language: str = "en",
) -> AdapterContext:
    return AdapterContext(entity_type=entity_type, store_id="77", event=event, language=language)


class TestNuvemshopEvents:
    """Eventos `recurso/ação`."""

    @pytest.mark.parametrize(
        ("native", "expected"),
        [
            ("order/paid", EventKind.ORDER_PAID),
            ("Product/Deleted", EventKind.PRODUCT_DELETED),
            ("category/created", EventKind.CATEGORY_CREATED),
            ("app/uninstalled", EventKind.APP_UNINSTALLED),
            ("fulfillment/updated", None),
        ],
    )
    def test_detect_event(self, native: str, expected: EventKind | None) -> None:
        assert NuvemshopAdapter().detect_event({"event": native}) == expected

    def test_app_events_have_no_entity(self) -> None:
        assert EventKind.APP_UNINSTALLED.entity_type is None

    def test_validate_structure_requires_store(self) -> None:
        result = NuvemshopAdapter().validate_structure({"id": 1, "event": "order/paid"})

        assert result.errors == ["store_id is required"]

    def test_store_id_from_payload(self) -> None:
        assert NuvemshopAdapter().extract_store_id({"store_id": 77}) == "77"


class TestNuvemshopMinimalWebhook:
    """Webhook só com {id, event, store_id}."""

    def test_minimal_order_takes_status_from_event(self) -> None:
        """order/cancelled sem corpo => pedido cancelado."""
        payload = {"id": 1001, "event": "order/cancelled", "store_id": 77}

        order = NuvemshopAdapter().parse(
            payload, _context(EntityType.ORDER, event=EventKind.ORDER_CANCELLED)
        )

        assert order.external_id == "1001"
        assert order.store_id == "77"
        assert order.status == "cancelled"
        assert order.name is None
        assert order.attributes == {}

    def test_minimal_paid_order_has_no_status(self) -> None:
        payload = {"id": 1001, "event": "order/paid", "store_id": 77}

        order = NuvemshopAdapter().parse(
            payload, _context(EntityType.ORDER, event=EventKind.ORDER_PAID)
        )

        assert order.status is None

    def test_minimal_category_is_category(self) -> None:
        payload = {"id": 5, "event": "category/deleted", "store_id": 77}

        category = NuvemshopAdapter().parse(payload, _context(EntityType.CATEGORY))

        assert isinstance(category, Category)


class TestNuvemshopParse:
    """Objetos completos (sync ou payload enriquecido)."""

    def test_product_with_variants(self) -> None:
        """Primeira variante define preço, sku e estoque."""
        data = {
            "id": 300,
            "name": {"pt": "Camiseta", "es": "Camiseta ES", "en": "T-shirt"},
            "published": True,
            "requires_shipping": True,
            "tags": "verão, algodão ,",
            "variants": [
                {"sku": "CAM-P", "price": "59.90", "stock_management": True, "stock": 0},
                {"sku": "CAM-M", "price": "59.90", "stock_management": True, "stock": 4},
            ],
            "categories": [{"id": 12}],
            "updated_at": "2026-03-01T12:00:00+00:00",
        }
        adapter = NuvemshopAdapter()

        product = adapter.apply_business_rules(
            adapter.parse({"data": data}, _context(EntityType.PRODUCT))
        )

        assert product.name == "T-shirt"
        assert product.status == "active"
        assert product.attributes["sku"] == "CAM-P"
        assert product.attributes["price"] == 59.9
        assert product.attributes["stock_status"] == "out_of_stock"
        assert product.attributes["tags"] == ["verão", "algodão"]
        assert product.attributes["variant_count"] == 2
        assert product.metadata["localized"]["name"]["pt"] == "Camiseta"

    def test_context_language_is_preferred(self) -> None:
        data = {"id": 300, "name": {"pt": "Camiseta", "en": "T-shirt"}}

        product = NuvemshopAdapter().parse(
            {"data": data}, _context(EntityType.PRODUCT, language="pt")
        )

        assert product.name == "Camiseta"

    def test_digital_product_without_stock_control(self) -> None:
        data = {
            "id": 301,
            "name": {"pt": "E-book"},
            "published": False,
            "requires_shipping": False,
            "variants": [{}],
        }
        adapter = NuvemshopAdapter()

        product = adapter.apply_business_rules(
            adapter.parse({"data": data}, _context(EntityType.PRODUCT))
        )

        assert product.status == "draft"
        assert product.attributes["product_type"] == "digital"
        assert product.attributes["stock_status"] == "in_stock"

    def test_order_event_overrides_body_status(self) -> None:
        """order/shipped fixa o status mesmo com status 'open'."""
        payload = {
            "id": 1001,
            "event": "order/shipped",
            "store_id": 77,
            "data": {
                "id": 1001,
                "number": 15,
                "status": "open",
                "payment_status": "paid",
                "total": "120.50",
                "customer": {"id": 8, "email": "ana@example.com", "name": "Ana"},
                "products": [{"product_id": 300, "quantity": 1, "price": "120.50"}],
            },
        }

        order = NuvemshopAdapter().parse(
            payload, _context(EntityType.ORDER, event=EventKind.ORDER_SHIPPED)
        )

        assert order.status == "shipped"
        assert order.attributes["payment_status"] == "paid"
        assert order.attributes["total"] == 120.5
        assert order.attributes["customer_id"] == "8"
        assert order.metadata["original_status"] == "open"

    @pytest.mark.parametrize(("parent", "expected"), [(0, None), ("0", None), (None, None), (12, "12")])
    def test_category_parent(self, parent: object, expected: str | None) -> None:
        data = {"id": 13, "name": {"es": "Remeras"}, "handle": {"es": "remeras"}, "parent": parent}

        category = NuvemshopAdapter().parse({"data": data}, _context(EntityType.CATEGORY))

        assert category.parent_id == expected
        assert category.name == "Remeras"
        assert category.slug == "remeras"

    def test_coupon_used_when_max_uses_reached(self) -> None:
        data = {"id": 7, "code": "BEMVINDO", "type": "absolute", "value": "20", "used": 10, "max_uses": 10}

        coupon = NuvemshopAdapter().parse({"data": data}, _context(EntityType.COUPON))

        assert coupon.status == "used"
        assert coupon.attributes["discount_type"] == "fixed_cart"
        assert coupon.attributes["amount"] == 20.0

    def test_invalid_coupon_is_inactive(self) -> None:
        data = {"id": 8, "code": "OFF", "valid": False}

        coupon = NuvemshopAdapter().parse({"data": data}, _context(EntityType.COUPON))

        assert coupon.status == "inactive"
