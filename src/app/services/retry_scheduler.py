"""Política de retry com backoff exponencial.

Só falhas transitórias (timeouts, indisponibilidade de infraestrutura,
5xx) são reprocessadas. Falhas de validação/autenticação nunca entram no
caminho de retry. Esgotado `max_retries`, o item vai para dead-letter.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

from utils.errors import InfrastructureError

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.domain.platform import Platform
    from config.settings.platforms import RetryConfig

JITTER_RATIO = 0.25

# Fragmentos de mensagem que marcam erro permanente mesmo em exceções genéricas.
_NON_RETRYABLE_MARKERS = (
    "validation",
    "authentication",
    "authorization",
    "forbidden",
    "not found",
    "bad request",
    "invalid",
    "malformed",
)
_RETRYABLE_MARKERS = (
    "timeout",
    "timed out",
    "connection",
    "network",
    "unavailable",
    "503",
    "502",
    "504",
)


def schedule_retry(
    attempt: int,
    base_delay: float,
    multiplier: float,
    max_delay: float,
    *,
    jitter: bool = False,
    rng: Callable[[], float] = random.random,
) -> float:
    """Calcula o atraso até a próxima tentativa.

    Args:
        attempt: Tentativa que falhou (0 = primeira execução)
        base_delay: Atraso base em segundos
        multiplier: Fator geométrico
        max_delay: Teto do atraso
        jitter: Aplica variação de ±25% (limitada ao teto)
        rng: Fonte de aleatoriedade em [0, 1)

    Returns:
        Atraso em segundos: min(base_delay * multiplier**attempt, max_delay).
    """
    delay = min(base_delay * (multiplier ** max(attempt, 0)), max_delay)
    if jitter:
        delay *= 1 + JITTER_RATIO * (2 * rng() - 1)
        delay = min(max(delay, 0.0), max_delay)
    return delay


def is_transient(exc: BaseException) -> bool:
    """Classifica a falha como transitória (elegível a retry)."""
    if isinstance(exc, (InfrastructureError, TimeoutError, ConnectionError)):
        return True
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int):
        return status_code >= 500 or status_code == 429
    if isinstance(exc, (ValueError, TypeError, KeyError, PermissionError)):
        return False
    message = str(exc).lower()
    if any(marker in message for marker in _NON_RETRYABLE_MARKERS):
        return False
    return any(marker in message for marker in _RETRYABLE_MARKERS)


@dataclass(frozen=True, slots=True)
class RetryDecision:
    """Próximo passo após uma falha.

    Attributes:
        retry: Reagendar a tarefa
        delay_seconds: Atraso até a próxima tentativa (0 se não houver)
        dead_letter: Mover para dead-letter
        reason: transient | transient_exhausted | non_transient
    """

    retry: bool
    delay_seconds: float
    dead_letter: bool
    reason: str


class RetryScheduler:
    """Decide retry vs dead-letter a partir da política da plataforma.

    Args:
        policy_provider: Função que retorna RetryConfig por plataforma
        jitter: Aplica jitter nos atrasos
        rng: Fonte de aleatoriedade (injetável para testes)
    """

    def __init__(
        self,
        policy_provider: Callable[[Platform], RetryConfig],
        *,
        jitter: bool = True,
        rng: Callable[[], float] = random.random,
    ) -> None:
        self._policy = policy_provider
        self._jitter = jitter
        self._rng = rng

    def next_step(self, platform: Platform, attempt: int, exc: BaseException) -> RetryDecision:
        """Avalia a falha da tentativa `attempt` (0-based)."""
        if not is_transient(exc):
            return RetryDecision(False, 0.0, True, "non_transient")

        policy = self._policy(platform)
        if attempt >= policy.max_retries:
            return RetryDecision(False, 0.0, True, "transient_exhausted")

        delay = schedule_retry(
            attempt,
            policy.base_delay_seconds,
            policy.multiplier,
            policy.max_delay_seconds,
            jitter=self._jitter,
            rng=self._rng,
        )
        return RetryDecision(True, delay, False, "transient")
