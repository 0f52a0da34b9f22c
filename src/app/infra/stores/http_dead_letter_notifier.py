"""Notificador HTTP de dead-letter.

Grava o item no sink de registro (memória ou Firestore) e em seguida faz
POST do item em FAILURE_WEBHOOK_URL. A listagem vem do sink de registro.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from app.infra.http_client import HttpError
from app.protocols.failure_sink import DeadLetterSinkProtocol
from utils.errors import FailureChannelError

if TYPE_CHECKING:
    from app.domain.failures import DeadLetterItem
    from app.protocols.http_client import OutboundPosterProtocol

logger = logging.getLogger(__name__)


class HttpDeadLetterNotifier(DeadLetterSinkProtocol):
    """Dead-letter com notificação por webhook de saída.

    Args:
        record_sink: Sink que guarda os itens para consulta
        http_client: Cliente HTTP de saída (HttpClient em produção)
        url: Endpoint notificado
    """

    def __init__(
        self,
        record_sink: DeadLetterSinkProtocol,
        http_client: OutboundPosterProtocol,
        url: str,
    ) -> None:
        self._record_sink = record_sink
        self._http = http_client
        self._url = url

    async def publish(self, item: DeadLetterItem) -> None:
        await self._record_sink.publish(item)
        payload = {"type": "dead_letter", "item": item.to_dict()}
        try:
            await self._http.post(self._url, json=payload)
        except HttpError as exc:
            logger.error(
                "dead_letter_notify_failed",
                extra={
                    "platform": item.platform,
                    "status_code": exc.status_code,
                    "error_type": type(exc).__name__,
                },
            )
            raise FailureChannelError("Falha ao notificar dead-letter") from exc
        logger.info(
            "dead_letter_notified",
            extra={"platform": item.platform, "reason": item.reason},
        )

    async def list_recent(self, limit: int = 50) -> list[dict[str, Any]]:
        return await self._record_sink.list_recent(limit)
