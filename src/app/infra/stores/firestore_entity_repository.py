"""Firestore Entity Repository — entidades unificadas por chave de reconciliação.

Estrutura:
    unified_entities/{sha256(key)}
        key: "platform:store:entity_type:external_id"
        scope: "platform:store"
        ...campos da entidade

O ID do documento é um hash da chave: store_id do WooCommerce é a URL da
loja e "/" não é aceito em IDs de documento.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from typing import TYPE_CHECKING, Any

from app.domain.entities import Category, EntityType, ReconciliationKey, entity_from_dict
from app.protocols.entity_repository import EntityRepositoryProtocol
from utils.errors import FirestoreUnavailableError

if TYPE_CHECKING:
    from google.cloud.firestore import Client as FirestoreClient

    from app.domain.entities import UnifiedEntity
    from app.domain.platform import Platform

logger = logging.getLogger(__name__)

ENTITIES_COLLECTION = "unified_entities"


def document_id(key: ReconciliationKey) -> str:
    """ID de documento estável para a chave."""
    return hashlib.sha256(key.as_string().encode("utf-8")).hexdigest()


def scope_of(platform: Platform, store_id: str | None) -> str:
    return f"{platform.value}:{store_id or '-'}"


class FirestoreEntityRepository(EntityRepositoryProtocol):
    """Repositório de entidades usando Firestore.

    Operações síncronas do SDK rodam em thread via asyncio.to_thread.

    Args:
        firestore_client: Cliente Firestore
        collection: Nome da collection de entidades
    """

    def __init__(
        self,
        firestore_client: FirestoreClient,
        collection: str = ENTITIES_COLLECTION,
    ) -> None:
        self._db = firestore_client
        self._collection = collection

    async def get_entity_by_key(
        self,
        platform: Platform,
        store_id: str | None,
        external_id: str,
        entity_type: EntityType,
    ) -> UnifiedEntity | None:
        key = ReconciliationKey(platform, store_id, external_id, entity_type)
        return await asyncio.to_thread(self._get_sync, key)

    def _get_sync(self, key: ReconciliationKey) -> UnifiedEntity | None:
        try:
            doc = self._db.collection(self._collection).document(document_id(key)).get()
        except Exception as exc:
            logger.error(
                "entity_get_failed",
                extra={"key": key.as_string(), "error_type": type(exc).__name__},
            )
            raise FirestoreUnavailableError(f"Erro ao ler entidade: {exc}") from exc
        if not doc.exists:
            return None
        return entity_from_dict(self._strip(doc.to_dict() or {}))

    async def upsert_entity(self, entity: UnifiedEntity) -> UnifiedEntity:
        await asyncio.to_thread(self._upsert_sync, entity)
        return entity

    def _upsert_sync(self, entity: UnifiedEntity) -> None:
        key = entity.reconciliation_key
        data = entity.to_dict()
        data["key"] = key.as_string()
        data["scope"] = scope_of(entity.platform, entity.store_id)
        try:
            # set sem merge: o documento passa a ser exatamente a versão resolvida.
            self._db.collection(self._collection).document(document_id(key)).set(data)
        except Exception as exc:
            logger.error(
                "entity_upsert_failed",
                extra={"key": key.as_string(), "error_type": type(exc).__name__},
            )
            raise FirestoreUnavailableError(f"Erro ao persistir entidade: {exc}") from exc
        logger.debug("entity_upserted", extra={"key": key.as_string()})

    async def list_categories_by_scope(
        self,
        platform: Platform,
        store_id: str | None,
    ) -> list[Category]:
        return await asyncio.to_thread(self._list_categories_sync, scope_of(platform, store_id))

    def _list_categories_sync(self, scope: str) -> list[Category]:
        try:
            docs = (
                self._db.collection(self._collection)
                .where("scope", "==", scope)
                .where("entity_type", "==", EntityType.CATEGORY.value)
                .stream()
            )
            categories = [Category.model_validate(self._strip(doc.to_dict() or {})) for doc in docs]
        except Exception as exc:
            logger.error(
                "categories_list_failed",
                extra={"scope": scope, "error_type": type(exc).__name__},
            )
            raise FirestoreUnavailableError(f"Erro ao listar categorias: {exc}") from exc

        logger.debug("categories_listed", extra={"scope": scope, "count": len(categories)})
        return categories

    @staticmethod
    def _strip(data: dict[str, Any]) -> dict[str, Any]:
        """Remove campos de indexação antes de reconstruir a entidade."""
        data.pop("key", None)
        data.pop("scope", None)
        return data
