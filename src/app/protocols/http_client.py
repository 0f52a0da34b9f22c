"""Contrato do cliente HTTP de saída usado pelo canal de falhas."""

from __future__ import annotations

from typing import Any, Protocol


class OutboundPosterProtocol(Protocol):
    """POST JSON com retry próprio; falha definitiva levanta HttpError."""

    async def post(
        self,
        url: str,
        json: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> Any: ...
