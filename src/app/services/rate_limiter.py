"""Rate limiter por plataforma e identificador.

Janelas fixas de minuto e hora. A tolerância de burst permite exceder o
teto estável por minuto em até `burst` requisições, então o teto efetivo
do minuto é `per_minute + burst`; o teto por hora é estrito.

Contadores vivem num CounterStoreProtocol injetado (memória ou Redis),
nunca em estado global do processo. Falha do store => fail open com log.

Chaves:
    rate_limit:{platform}:{identifier}:minute:{floor(t/60)}
    rate_limit:{platform}:{identifier}:hour:{floor(t/3600)}
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.observability import record_rate_limit_decision
from app.protocols.counter_store import CounterWindow

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.domain.platform import Platform
    from app.protocols.counter_store import CounterStoreProtocol
    from config.settings.platforms import RateLimitConfig

logger = logging.getLogger(__name__)

MINUTE_SECONDS = 60
HOUR_SECONDS = 3600


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    """Decisão de admissão.

    Attributes:
        allowed: Requisição admitida
        limit: Teto estável por minuto (header X-RateLimit-Limit)
        remaining: Requisições estáveis restantes no minuto
        reset_at: Epoch (s) do fim da janela de minuto
        retry_after: Segundos até a janela excedida mais próxima reiniciar
        degraded: True se o store falhou e a decisão foi fail open
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after: int | None = None
    degraded: bool = False

    def headers(self) -> dict[str, str]:
        """Headers HTTP de rate limit."""
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
        }
        if self.retry_after is not None:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class RateLimiter:
    """Controle de admissão com janelas de minuto/hora e burst.

    Args:
        store: Store de contadores com incremento condicional atômico
        limits_provider: Função platform -> RateLimitConfig
        clock: Relógio em epoch seconds (injetável para testes)
    """

    def __init__(
        self,
        store: CounterStoreProtocol,
        limits_provider: Callable[[Platform], RateLimitConfig],
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._limits = limits_provider
        self._clock = clock

    @staticmethod
    def _keys(platform: Platform, identifier: str, now: float) -> tuple[str, str]:
        base = f"rate_limit:{platform.value}:{identifier}"
        minute_key = f"{base}:minute:{int(now // MINUTE_SECONDS)}"
        hour_key = f"{base}:hour:{int(now // HOUR_SECONDS)}"
        return minute_key, hour_key

    @staticmethod
    def _window_end(now: float, size: int) -> int:
        return (int(now // size) + 1) * size

    async def check_and_consume(self, platform: Platform, identifier: str) -> RateLimitDecision:
        """Verifica e consome uma unidade de todas as janelas.

        Args:
            platform: Plataforma de origem
            identifier: Identidade do remetente (IP, store_id...)

        Returns:
            RateLimitDecision (fail open se o store estiver indisponível).
        """
        config = self._limits(platform)
        now = self._clock()
        minute_key, hour_key = self._keys(platform, identifier, now)
        minute_reset = self._window_end(now, MINUTE_SECONDS)
        hour_reset = self._window_end(now, HOUR_SECONDS)

        windows = (
            CounterWindow(minute_key, config.per_minute + config.burst, MINUTE_SECONDS),
            CounterWindow(hour_key, config.per_hour, HOUR_SECONDS),
        )

        try:
            result = await self._store.consume_if_below(windows)
        except Exception as exc:
            logger.error(
                "rate_limiter_degraded",
                extra={
                    "platform": platform.value,
                    "error_type": type(exc).__name__,
                    "fail_open": True,
                },
            )
            record_rate_limit_decision(platform.value, allowed=True, degraded=True)
            return RateLimitDecision(
                allowed=True,
                limit=config.per_minute,
                remaining=0,
                reset_at=minute_reset,
                degraded=True,
            )

        minute_count, hour_count = result.counts
        remaining = max(0, config.per_minute - minute_count)

        if result.admitted:
            if minute_count > config.per_minute:
                logger.info(
                    "rate_limit_burst_used",
                    extra={
                        "platform": platform.value,
                        "burst_used": minute_count - config.per_minute,
                        "burst_limit": config.burst,
                    },
                )
            record_rate_limit_decision(platform.value, allowed=True)
            return RateLimitDecision(
                allowed=True,
                limit=config.per_minute,
                remaining=remaining,
                reset_at=minute_reset,
            )

        resets: list[int] = []
        if minute_count >= windows[0].limit:
            resets.append(minute_reset)
        if hour_count >= windows[1].limit:
            resets.append(hour_reset)
        nearest = min(resets) if resets else minute_reset
        retry_after = max(1, math.ceil(nearest - now))

        logger.warning(
            "rate_limit_exceeded",
            extra={
                "platform": platform.value,
                "minute_count": minute_count,
                "hour_count": hour_count,
                "retry_after": retry_after,
            },
        )
        record_rate_limit_decision(platform.value, allowed=False)
        return RateLimitDecision(
            allowed=False,
            limit=config.per_minute,
            remaining=remaining,
            reset_at=minute_reset,
            retry_after=retry_after,
        )

    async def get_status(self, platform: Platform, identifier: str) -> dict[str, Any]:
        """Contadores atuais, limites e instantes de reset."""
        config = self._limits(platform)
        now = self._clock()
        minute_key, hour_key = self._keys(platform, identifier, now)
        minute_count, hour_count = await self._store.get_counts([minute_key, hour_key])
        return {
            "platform": platform.value,
            "identifier": identifier,
            "minute_count": minute_count,
            "hour_count": hour_count,
            "burst_used": max(0, minute_count - config.per_minute),
            "limits": {
                "per_minute": config.per_minute,
                "per_hour": config.per_hour,
                "burst": config.burst,
                "retry_after_seconds": config.retry_after_seconds,
            },
            "reset_at": {
                "minute": _iso(self._window_end(now, MINUTE_SECONDS)),
                "hour": _iso(self._window_end(now, HOUR_SECONDS)),
            },
        }

    async def reset(self, platform: Platform, identifier: str) -> None:
        """Zera os contadores das janelas correntes do identificador."""
        minute_key, hour_key = self._keys(platform, identifier, self._clock())
        await self._store.reset([minute_key, hour_key])
        logger.info("rate_limit_reset", extra={"platform": platform.value})

    async def health_check(self) -> bool:
        try:
            return await self._store.ping()
        except Exception as exc:
            logger.warning("rate_limiter_health_failed", extra={"error_type": type(exc).__name__})
            return False


def _iso(epoch_seconds: int) -> str:
    return datetime.fromtimestamp(epoch_seconds, UTC).isoformat()
