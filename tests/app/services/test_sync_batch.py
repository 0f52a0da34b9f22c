"""Testes do IngestionPipeline.sync_batch."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from app.domain.conflicts import ConflictStrategy
from app.domain.entities import Category, EntityType, UnifiedEntity
from app.domain.platform import Platform
from app.infra.stores.memory_stores import (
    MemoryConflictReviewQueue,
    MemoryCounterStore,
    MemoryDeadLetterSink,
    MemoryEntityRepository,
)
from app.bootstrap.dependencies import assemble_container
from config.settings.ingestion import IngestionSettings
from config.settings.platforms import (
    DEFAULT_RATE_LIMITS,
    DEFAULT_RETRY,
    SIGNATURE_HEADERS,
    PlatformSettings,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _platform_settings(platform: Platform) -> PlatformSettings:
    return PlatformSettings(
        platform=platform,
        webhook_secret="secret",
        signature_header=SIGNATURE_HEADERS[platform],
        rate_limit=DEFAULT_RATE_LIMITS[platform],
        retry=DEFAULT_RETRY[platform],
    )


def _container(settings: IngestionSettings | None = None):  # noqa: ANN202
    return assemble_container(
        counter_store=MemoryCounterStore(),
        repository=MemoryEntityRepository(),
        dead_letters=MemoryDeadLetterSink(),
        review_queue=MemoryConflictReviewQueue(),
        ingestion_settings=settings or IngestionSettings(retry_jitter=False),
        platform_settings=_platform_settings,
    )


def _nuvemshop_category(category_id: int, parent: int | None = None, **extra: object) -> dict:
    item: dict = {
        "id": category_id,
        "name": {"pt": f"Categoria {category_id}", "es": f"Categoría {category_id}"},
        "handle": {"pt": f"categoria-{category_id}"},
        "parent": parent,
        "updated_at": "2026-03-01T12:00:00+00:00",
    }
    item.update(extra)
    return item


class TestSyncBatch:
    """Reconciliação em lote sob o lock de cada chave."""

    @pytest.mark.asyncio
    async def test_raw_items_are_parsed_and_counted(self) -> None:
        """Objetos nativos passam pelo adapter e são gravados."""
        container = _container()

        result = await container.pipeline.sync_batch(
            Platform.NUVEMSHOP,
            "77",
            [_nuvemshop_category(1), _nuvemshop_category(2, parent=1)],
            entity_type=EntityType.CATEGORY,
        )

        assert result.processed == 2
        assert result.created == 2
        assert result.errors == []
        categories = await container.repository.list_categories_by_scope(Platform.NUVEMSHOP, "77")
        assert {c.external_id for c in categories} == {"1", "2"}
        assert all(c.store_id == "77" for c in categories)

    @pytest.mark.asyncio
    async def test_second_sync_reports_skipped_and_updated(self) -> None:
        """Itens iguais são pulados; itens mais novos atualizam."""
        container = _container()
        await container.pipeline.sync_batch(
            Platform.NUVEMSHOP,
            "77",
            [_nuvemshop_category(1), _nuvemshop_category(2)],
            entity_type=EntityType.CATEGORY,
        )

        result = await container.pipeline.sync_batch(
            Platform.NUVEMSHOP,
            "77",
            [
                _nuvemshop_category(1),
                _nuvemshop_category(2, updated_at="2026-03-02T12:00:00+00:00", parent=1),
            ],
            entity_type=EntityType.CATEGORY,
        )

        assert result.processed == 2
        assert result.skipped == 1
        assert result.updated == 1
        assert result.success is True

    @pytest.mark.asyncio
    async def test_unified_entities_are_accepted(self) -> None:
        """Entidades já unificadas dispensam entity_type."""
        container = _container()
        entity = UnifiedEntity(
            platform=Platform.HOTMART,
            entity_type=EntityType.PRODUCT,
            external_id="P-1",
            name="Curso",
            updated_at=NOW,
        )

        result = await container.pipeline.sync_batch(Platform.HOTMART, "prod-1", [entity])

        stored = await container.repository.get_entity_by_key(
            Platform.HOTMART, "prod-1", "P-1", EntityType.PRODUCT
        )
        assert result.created == 1
        assert stored is not None
        assert stored.attributes["manage_stock"] is False

    @pytest.mark.asyncio
    async def test_item_failures_do_not_abort_the_batch(self) -> None:
        """Erro de um item entra em errors e o lote continua."""
        container = _container()
        foreign = Category(platform=Platform.WOOCOMMERCE, external_id="9", store_id="77")

        result = await container.pipeline.sync_batch(
            Platform.NUVEMSHOP,
            "77",
            [_nuvemshop_category(1), {"name": "sem id"}, foreign, "not-an-object"],  # type: ignore[list-item]
            entity_type=EntityType.CATEGORY,
        )

        assert result.processed == 1
        assert result.created == 1
        assert len(result.errors) == 3
        assert result.errors[1].external_id == "9"
        assert result.errors[1].error == "platform mismatch"
        assert result.success is False
        assert result.to_dict()["errors"][2]["external_id"] is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_value", [float("inf"), float("nan"), 10**400])
    async def test_out_of_range_number_fails_only_its_item(self, bad_value: object) -> None:
        """Número fora de faixa vira erro do item; o restante do lote é gravado."""
        container = _container()

        result = await container.pipeline.sync_batch(
            Platform.WOOCOMMERCE,
            "s",
            [{"id": 1}, {"id": 2, "stock_quantity": bad_value}, {"id": 3}],
            entity_type=EntityType.PRODUCT,
        )

        assert result.processed == 2
        assert result.created == 2
        assert [e.external_id for e in result.errors] == ["2"]
        assert await container.repository.get_entity_by_key(
            Platform.WOOCOMMERCE, "s", "3", EntityType.PRODUCT
        ) is not None

    @pytest.mark.asyncio
    async def test_raw_items_require_entity_type(self) -> None:
        """Sem entity_type, objetos nativos são rejeitados item a item."""
        container = _container()

        result = await container.pipeline.sync_batch(
            Platform.NUVEMSHOP, "77", [_nuvemshop_category(1)]
        )

        assert result.processed == 0
        assert result.errors[0].external_id == "1"
        assert "entity_type" in result.errors[0].error

    @pytest.mark.asyncio
    async def test_store_mismatch_is_rejected(self) -> None:
        """Entidade de outra loja não entra no escopo pedido."""
        container = _container()
        entity = UnifiedEntity(
            platform=Platform.WOOCOMMERCE,
            entity_type=EntityType.ORDER,
            external_id="5",
            store_id="shop-2",
        )

        result = await container.pipeline.sync_batch(Platform.WOOCOMMERCE, "shop-1", [entity])

        assert result.errors[0].error == "store_id mismatch"

    @pytest.mark.asyncio
    async def test_explicit_strategy_overrides_configuration(self) -> None:
        """Estratégia da chamada vale sobre a configurada."""
        container = _container()
        await container.pipeline.sync_batch(
            Platform.NUVEMSHOP, "77", [_nuvemshop_category(1)], entity_type=EntityType.CATEGORY
        )

        result = await container.pipeline.sync_batch(
            Platform.NUVEMSHOP,
            "77",
            [_nuvemshop_category(1, name={"pt": "Renomeada"})],
            entity_type=EntityType.CATEGORY,
            strategy=ConflictStrategy.MANUAL_REVIEW,
        )

        assert result.pending_review == 1
        assert len(await container.review_queue.list_pending()) == 1

    @pytest.mark.asyncio
    async def test_merge_strategy_keeps_existing_fields(self) -> None:
        """merge_fields não apaga campos ausentes no lote."""
        container = _container(
            IngestionSettings(default_strategy=ConflictStrategy.MERGE_FIELDS, retry_jitter=False)
        )
        first = UnifiedEntity(
            platform=Platform.WOOCOMMERCE,
            entity_type=EntityType.CUSTOMER,
            external_id="c-1",
            store_id="shop-1",
            name="Ana",
            attributes={"email": "ana@example.com", "phone": "+5511999990000"},
            updated_at=NOW,
        )
        partial = first.model_copy(
            update={"attributes": {"email": "ana@new.example.com"}, "updated_at": NOW + timedelta(1)}
        )
        await container.pipeline.sync_batch(Platform.WOOCOMMERCE, "shop-1", [first])

        result = await container.pipeline.sync_batch(Platform.WOOCOMMERCE, "shop-1", [partial])

        stored = await container.repository.get_entity_by_key(
            Platform.WOOCOMMERCE, "shop-1", "c-1", EntityType.CUSTOMER
        )
        assert result.updated == 1
        assert stored is not None
        assert stored.attributes == {"email": "ana@new.example.com", "phone": "+5511999990000"}

    @pytest.mark.asyncio
    async def test_unsupported_platform_raises(self) -> None:
        """Plataforma sem adapter é erro do chamador."""
        container = _container()

        with pytest.raises(ValueError, match="unsupported platform"):
            await container.pipeline.sync_batch("shopify", None, [])  # type: ignore[arg-type]
