"""Testes do RateLimiter com store em memória e relógio controlado."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.domain.platform import Platform
from app.infra.stores.memory_stores import MemoryCounterStore
from app.services.rate_limiter import RateLimiter
from config.settings.platforms import DEFAULT_RATE_LIMITS, RateLimitConfig
from utils.errors import RedisConnectionError

# Meio de uma janela de minuto: fim do minuto em T0 + 50s
T0 = 1_000_030.0


class FakeClock:
    def __init__(self, now: float = T0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _limiter(clock: FakeClock, limits: RateLimitConfig | None = None) -> RateLimiter:
    store = MemoryCounterStore(clock=clock)
    if limits is None:
        return RateLimiter(store, DEFAULT_RATE_LIMITS.__getitem__, clock=clock)
    return RateLimiter(store, lambda _platform: limits, clock=clock)


class TestBurstWindow:
    """Nuvemshop: 60/min + burst 15."""

    @pytest.mark.asyncio
    async def test_first_75_requests_are_admitted(self) -> None:
        """Teto efetivo do minuto é per_minute + burst."""
        limiter = _limiter(FakeClock())

        decisions = [
            await limiter.check_and_consume(Platform.NUVEMSHOP, "10.0.0.1") for _ in range(75)
        ]

        assert all(decision.allowed for decision in decisions)
        assert decisions[0].remaining == 59
        assert decisions[59].remaining == 0
        # Requisições 61-75 usam o burst
        assert all(decision.remaining == 0 for decision in decisions[60:])

    @pytest.mark.asyncio
    async def test_76th_request_is_rejected_with_retry_after(self) -> None:
        """A 76ª requisição no mesmo minuto é rejeitada."""
        limiter = _limiter(FakeClock())
        for _ in range(75):
            await limiter.check_and_consume(Platform.NUVEMSHOP, "10.0.0.1")

        decision = await limiter.check_and_consume(Platform.NUVEMSHOP, "10.0.0.1")

        assert decision.allowed is False
        assert decision.retry_after == 50
        assert decision.limit == 60
        headers = decision.headers()
        assert headers["Retry-After"] == "50"
        assert headers["X-RateLimit-Limit"] == "60"
        assert headers["X-RateLimit-Remaining"] == "0"

    @pytest.mark.asyncio
    async def test_rejection_does_not_consume(self) -> None:
        """Requisições rejeitadas não incrementam os contadores."""
        limiter = _limiter(FakeClock())
        for _ in range(80):
            await limiter.check_and_consume(Platform.NUVEMSHOP, "10.0.0.1")

        status = await limiter.get_status(Platform.NUVEMSHOP, "10.0.0.1")

        assert status["minute_count"] == 75
        assert status["hour_count"] == 75
        assert status["burst_used"] == 15

    @pytest.mark.asyncio
    async def test_new_minute_window_admits_again(self) -> None:
        """Após o fim da janela, o contador de minuto recomeça."""
        clock = FakeClock()
        limiter = _limiter(clock)
        for _ in range(76):
            await limiter.check_and_consume(Platform.NUVEMSHOP, "10.0.0.1")

        clock.advance(50)
        decision = await limiter.check_and_consume(Platform.NUVEMSHOP, "10.0.0.1")

        assert decision.allowed is True
        assert decision.remaining == 59

    @pytest.mark.asyncio
    async def test_identifiers_are_isolated(self) -> None:
        """Cada identificador tem seus próprios contadores."""
        limiter = _limiter(FakeClock())
        for _ in range(76):
            await limiter.check_and_consume(Platform.NUVEMSHOP, "10.0.0.1")

        decision = await limiter.check_and_consume(Platform.NUVEMSHOP, "10.0.0.2")

        assert decision.allowed is True

    @pytest.mark.asyncio
    async def test_platforms_are_isolated(self) -> None:
        """Mesmo identificador em outra plataforma não compartilha contador."""
        limiter = _limiter(FakeClock())
        for _ in range(76):
            await limiter.check_and_consume(Platform.NUVEMSHOP, "10.0.0.1")

        decision = await limiter.check_and_consume(Platform.WOOCOMMERCE, "10.0.0.1")

        assert decision.allowed is True


class TestHourWindow:
    """Teto por hora é estrito (sem burst)."""

    @pytest.mark.asyncio
    async def test_hour_limit_reports_time_to_hour_reset(self) -> None:
        """Rejeição pela janela de hora aponta para o fim da hora."""
        clock = FakeClock()
        limits = RateLimitConfig(per_minute=10, per_hour=12, burst=0, retry_after_seconds=60)
        limiter = _limiter(clock, limits)

        for _ in range(10):
            assert (await limiter.check_and_consume(Platform.HOTMART, "ip")).allowed
        minute_rejection = await limiter.check_and_consume(Platform.HOTMART, "ip")
        assert minute_rejection.allowed is False
        assert minute_rejection.retry_after == 50

        clock.advance(60)
        for _ in range(2):
            assert (await limiter.check_and_consume(Platform.HOTMART, "ip")).allowed

        hour_rejection = await limiter.check_and_consume(Platform.HOTMART, "ip")

        assert hour_rejection.allowed is False
        assert hour_rejection.retry_after == 710


class TestFailOpen:
    """Store indisponível não bloqueia tráfego."""

    @pytest.mark.asyncio
    async def test_store_failure_admits_with_degraded_flag(self) -> None:
        """Erro do store => allowed=True e degraded=True."""
        store = MagicMock()
        store.consume_if_below = AsyncMock(side_effect=RedisConnectionError("down"))
        limiter = RateLimiter(store, DEFAULT_RATE_LIMITS.__getitem__, clock=FakeClock())

        decision = await limiter.check_and_consume(Platform.WOOCOMMERCE, "10.0.0.1")

        assert decision.allowed is True
        assert decision.degraded is True
        assert decision.retry_after is None
        assert "Retry-After" not in decision.headers()

    @pytest.mark.asyncio
    async def test_health_check_false_when_ping_fails(self) -> None:
        """health_check não propaga exceção do store."""
        store = MagicMock()
        store.ping = AsyncMock(side_effect=RedisConnectionError("down"))
        limiter = RateLimiter(store, DEFAULT_RATE_LIMITS.__getitem__)

        assert await limiter.health_check() is False


class TestStatusAndReset:
    """Operações administrativas."""

    @pytest.mark.asyncio
    async def test_status_reports_limits_and_resets(self) -> None:
        """get_status expõe contadores, limites e instantes de reset."""
        limiter = _limiter(FakeClock())
        for _ in range(3):
            await limiter.check_and_consume(Platform.WOOCOMMERCE, "shop-1")

        status = await limiter.get_status(Platform.WOOCOMMERCE, "shop-1")

        assert status["minute_count"] == 3
        assert status["burst_used"] == 0
        assert status["limits"] == {
            "per_minute": 120,
            "per_hour": 2000,
            "burst": 25,
            "retry_after_seconds": 30,
        }
        assert set(status["reset_at"]) == {"minute", "hour"}

    @pytest.mark.asyncio
    async def test_reset_clears_current_windows(self) -> None:
        """reset zera minuto e hora do identificador."""
        limiter = _limiter(FakeClock())
        for _ in range(76):
            await limiter.check_and_consume(Platform.NUVEMSHOP, "10.0.0.1")

        await limiter.reset(Platform.NUVEMSHOP, "10.0.0.1")
        decision = await limiter.check_and_consume(Platform.NUVEMSHOP, "10.0.0.1")

        assert decision.allowed is True
        status = await limiter.get_status(Platform.NUVEMSHOP, "10.0.0.1")
        assert status["minute_count"] == 1
        assert status["hour_count"] == 1
