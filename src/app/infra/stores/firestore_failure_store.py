"""Firestore Failure Store — dead-letter e fila de revisão de conflitos.

Ambas as collections são append-only. Conflitos usam ID determinístico
(chave + candidato), então reentregas do mesmo webhook não duplicam a
pendência de revisão.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from app.protocols.failure_sink import ConflictReviewQueueProtocol, DeadLetterSinkProtocol
from utils.errors import FailureChannelError, FirestoreUnavailableError

if TYPE_CHECKING:
    from google.cloud.firestore import Client as FirestoreClient

    from app.domain.conflicts import ConflictRecord
    from app.domain.failures import DeadLetterItem

logger = logging.getLogger(__name__)

DEAD_LETTERS_COLLECTION = "dead_letters"
CONFLICTS_COLLECTION = "conflict_reviews"


class FirestoreDeadLetterSink(DeadLetterSinkProtocol):
    """Dead-letter persistido no Firestore.

    Args:
        firestore_client: Cliente Firestore
        collection: Nome da collection (default: dead_letters)
    """

    def __init__(
        self,
        firestore_client: FirestoreClient,
        collection: str = DEAD_LETTERS_COLLECTION,
    ) -> None:
        self._db = firestore_client
        self._collection = collection

    async def publish(self, item: DeadLetterItem) -> None:
        await asyncio.to_thread(self._publish_sync, item)

    def _publish_sync(self, item: DeadLetterItem) -> None:
        data = item.to_dict()
        doc_id = f"{item.failed_at.strftime('%Y%m%d%H%M%S')}_{uuid4().hex[:12]}"
        try:
            self._db.collection(self._collection).document(doc_id).set(data)
        except Exception as exc:
            raise FailureChannelError(f"Erro ao publicar dead-letter: {exc}") from exc
        logger.info(
            "dead_letter_persisted",
            extra={"doc_id": doc_id, "platform": item.platform, "reason": item.reason},
        )

    async def list_recent(self, limit: int = 50) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self._list_recent_sync, limit)

    def _list_recent_sync(self, limit: int) -> list[dict[str, Any]]:
        try:
            docs = (
                self._db.collection(self._collection)
                .order_by("failed_at", direction="DESCENDING")
                .limit(limit)
                .stream()
            )
            return [doc.to_dict() or {} for doc in docs]
        except Exception as exc:
            raise FirestoreUnavailableError(f"Erro ao listar dead-letters: {exc}") from exc


class FirestoreConflictReviewQueue(ConflictReviewQueueProtocol):
    """Fila de revisão manual persistida no Firestore.

    Args:
        firestore_client: Cliente Firestore
        collection: Nome da collection (default: conflict_reviews)
    """

    def __init__(
        self,
        firestore_client: FirestoreClient,
        collection: str = CONFLICTS_COLLECTION,
    ) -> None:
        self._db = firestore_client
        self._collection = collection

    async def enqueue(self, record: ConflictRecord) -> None:
        await asyncio.to_thread(self._enqueue_sync, record)

    def _enqueue_sync(self, record: ConflictRecord) -> None:
        data = record.to_dict()
        fingerprint = json.dumps([data["key"], data["incoming"]], sort_keys=True)
        doc_id = hashlib.sha256(fingerprint.encode("utf-8")).hexdigest()
        data["enqueued_at"] = datetime.now(UTC).isoformat()
        try:
            doc_ref = self._db.collection(self._collection).document(doc_id)
            # Reentrega do mesmo candidato é no-op.
            if doc_ref.get().exists:
                logger.debug("conflict_review_already_pending", extra={"key": data["key"]})
                return
            doc_ref.set(data)
        except Exception as exc:
            raise FailureChannelError(f"Erro ao enfileirar conflito: {exc}") from exc
        logger.info(
            "conflict_review_enqueued",
            extra={"key": data["key"], "strategy": data["strategy"]},
        )

    async def list_pending(self, limit: int = 50) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self._list_pending_sync, limit)

    def _list_pending_sync(self, limit: int) -> list[dict[str, Any]]:
        try:
            docs = (
                self._db.collection(self._collection)
                .order_by("enqueued_at")
                .limit(limit)
                .stream()
            )
            return [doc.to_dict() or {} for doc in docs]
        except Exception as exc:
            raise FirestoreUnavailableError(f"Erro ao listar conflitos: {exc}") from exc
