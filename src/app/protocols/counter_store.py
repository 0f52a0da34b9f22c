"""Protocolo do store de contadores usado pelo rate limiter.

Interface explícita e injetável: nenhum contador global de processo.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


@dataclass(frozen=True, slots=True)
class CounterWindow:
    """Contador com limite e expiração.

    Attributes:
        key: Chave do contador (já inclui o índice da janela)
        limit: Valor máximo aceito após o incremento
        ttl_seconds: Expiração do contador
    """

    key: str
    limit: int
    ttl_seconds: int


@dataclass(frozen=True, slots=True)
class ConsumeResult:
    """Resultado de um consumo condicional.

    Attributes:
        admitted: True se todos os contadores foram incrementados
        counts: Valores por janela (após incremento se admitido)
    """

    admitted: bool
    counts: tuple[int, ...]


class CounterStoreProtocol(ABC):
    """Contrato de contadores com incremento condicional atômico."""

    @abstractmethod
    async def consume_if_below(self, windows: Sequence[CounterWindow]) -> ConsumeResult:
        """Incrementa todos os contadores se nenhum atingiu o limite.

        Operação atômica: ou todos incrementam ou nenhum incrementa, sem
        janela para contagem dupla sob concorrência.
        """

    @abstractmethod
    async def get_counts(self, keys: Sequence[str]) -> list[int]:
        """Valores atuais (0 para chaves inexistentes/expiradas)."""

    @abstractmethod
    async def reset(self, keys: Sequence[str]) -> None:
        """Remove os contadores informados."""

    @abstractmethod
    async def ping(self) -> bool:
        """Verifica disponibilidade do store."""
