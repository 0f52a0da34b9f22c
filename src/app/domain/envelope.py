"""Envelope de webhook e resultados expostos ao transporte."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

    from app.domain.platform import Platform


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class WebhookEnvelope:
    """Requisição inbound como recebida pelo transporte.

    `raw_body` guarda os bytes exatos: assinaturas são calculadas sobre o
    corpo bruto, nunca sobre JSON re-serializado. Criado por requisição e
    descartado ao fim do pipeline; nunca persistido.

    Attributes:
        platform: Plataforma de origem (resolvida pela rota)
        raw_body: Corpo bruto da requisição
        headers: Headers com nomes em minúsculas
        source_identifier: Identidade para rate limit (IP de origem)
        received_at: Instante de recebimento (UTC)
    """

    platform: Platform
    raw_body: bytes
    headers: Mapping[str, str] = field(default_factory=dict)
    source_identifier: str = "unknown"
    received_at: datetime = field(default_factory=_utcnow)

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    @property
    def content_type(self) -> str:
        return (self.header("content-type") or "").lower()


@dataclass(frozen=True, slots=True)
class IngestResult:
    """Resposta do pipeline para o transporte HTTP."""

    accepted: bool
    http_status: int
    body: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class SyncError:
    external_id: str | None
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"external_id": self.external_id, "error": self.error}


@dataclass(slots=True)
class SyncResult:
    """Resultado agregado de um syncBatch."""

    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    pending_review: int = 0
    errors: list[SyncError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "processed": self.processed,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "pending_review": self.pending_review,
            "errors": [error.to_dict() for error in self.errors],
        }
