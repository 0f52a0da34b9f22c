"""Testes do FirestoreEntityRepository com mock do cliente."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from app.domain.entities import Category, EntityType, ReconciliationKey, UnifiedEntity
from app.domain.platform import Platform
from app.infra.stores.firestore_entity_repository import (
    FirestoreEntityRepository,
    document_id,
)
from utils.errors import FirestoreUnavailableError


def _snapshot(data: dict | None) -> MagicMock:
    snapshot = MagicMock()
    snapshot.exists = data is not None
    snapshot.to_dict.return_value = data
    return snapshot


def _entity() -> UnifiedEntity:
    return UnifiedEntity(
        platform=Platform.WOOCOMMERCE,
        entity_type=EntityType.PRODUCT,
        external_id="42",
        store_id="https://loja.example",
        name="Camiseta",
    )


class TestDocumentId:
    """IDs de documento."""

    def test_document_id_is_stable_and_slash_free(self) -> None:
        """Hash da chave: determinístico e sem '/'."""
        key = _entity().reconciliation_key

        assert document_id(key) == document_id(key)
        assert "/" not in document_id(key)
        assert len(document_id(key)) == 64

    def test_different_keys_have_different_ids(self) -> None:
        key_a = ReconciliationKey(Platform.HOTMART, None, "1", EntityType.ORDER)
        key_b = ReconciliationKey(Platform.HOTMART, None, "1", EntityType.PRODUCT)

        assert document_id(key_a) != document_id(key_b)


class TestFirestoreEntityRepository:
    """Testes do FirestoreEntityRepository."""

    @pytest.mark.asyncio
    async def test_upsert_sets_document_with_index_fields(self) -> None:
        """set sem merge com key e scope."""
        db = MagicMock()
        repository = FirestoreEntityRepository(db, collection="entities")
        entity = _entity()

        await repository.upsert_entity(entity)

        db.collection.assert_called_with("entities")
        db.collection.return_value.document.assert_called_with(
            document_id(entity.reconciliation_key)
        )
        data = db.collection.return_value.document.return_value.set.call_args[0][0]
        assert data["key"] == "woocommerce:https://loja.example:product:42"
        assert data["scope"] == "woocommerce:https://loja.example"
        assert data["name"] == "Camiseta"

    @pytest.mark.asyncio
    async def test_get_rebuilds_entity_without_index_fields(self) -> None:
        """Documento lido volta como entidade."""
        db = MagicMock()
        stored = {**_entity().to_dict(), "key": "k", "scope": "s"}
        db.collection.return_value.document.return_value.get.return_value = _snapshot(stored)
        repository = FirestoreEntityRepository(db)

        loaded = await repository.get_entity_by_key(
            Platform.WOOCOMMERCE, "https://loja.example", "42", EntityType.PRODUCT
        )

        assert loaded == _entity()

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self) -> None:
        db = MagicMock()
        db.collection.return_value.document.return_value.get.return_value = _snapshot(None)
        repository = FirestoreEntityRepository(db)

        loaded = await repository.get_entity_by_key(
            Platform.WOOCOMMERCE, None, "1", EntityType.ORDER
        )

        assert loaded is None

    @pytest.mark.asyncio
    async def test_list_categories_filters_by_scope(self) -> None:
        """Consulta por scope e entity_type."""
        db = MagicMock()
        category = Category(platform=Platform.NUVEMSHOP, external_id="1", store_id="77")
        query = db.collection.return_value.where.return_value.where.return_value
        query.stream.return_value = [_snapshot({**category.to_dict(), "scope": "nuvemshop:77"})]
        repository = FirestoreEntityRepository(db)

        categories = await repository.list_categories_by_scope(Platform.NUVEMSHOP, "77")

        db.collection.return_value.where.assert_called_once_with("scope", "==", "nuvemshop:77")
        assert categories == [category]

    @pytest.mark.asyncio
    async def test_sdk_errors_become_unavailable(self) -> None:
        """Falha do SDK => FirestoreUnavailableError."""
        db = MagicMock()
        db.collection.side_effect = RuntimeError("deadline exceeded")
        repository = FirestoreEntityRepository(db)

        with pytest.raises(FirestoreUnavailableError):
            await repository.upsert_entity(_entity())
        with pytest.raises(FirestoreUnavailableError):
            await repository.get_entity_by_key(Platform.HOTMART, None, "1", EntityType.ORDER)
        with pytest.raises(FirestoreUnavailableError):
            await repository.list_categories_by_scope(Platform.HOTMART, None)
