"""Testes da política de retry."""

from __future__ import annotations

import pytest

from app.domain.platform import Platform
from app.services.retry_scheduler import RetryScheduler, is_transient, schedule_retry
from config.settings.platforms import DEFAULT_RETRY, RetryConfig
from utils.errors import (
    AdapterParseError,
    FirestoreUnavailableError,
    PersistenceTimeoutError,
    RedisConnectionError,
)


class _StatusError(Exception):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"http {status_code}")
        self.status_code = status_code


class TestScheduleRetry:
    """Backoff exponencial com teto."""

    @pytest.mark.parametrize(
        ("attempt", "expected"),
        [(0, 1.0), (1, 2.0), (2, 4.0), (3, 8.0), (8, 256.0), (9, 300.0), (20, 300.0)],
    )
    def test_exponential_growth_capped(self, attempt: int, expected: float) -> None:
        """min(base * multiplier**attempt, max)."""
        assert schedule_retry(attempt, 1.0, 2.0, 300.0) == expected

    def test_jitter_stays_within_25_percent(self) -> None:
        """rng=0 => -25%; rng~1 => +25%."""
        low = schedule_retry(2, 1.0, 2.0, 300.0, jitter=True, rng=lambda: 0.0)
        high = schedule_retry(2, 1.0, 2.0, 300.0, jitter=True, rng=lambda: 0.999999)

        assert low == pytest.approx(3.0)
        assert high == pytest.approx(5.0, rel=1e-4)

    def test_jitter_never_exceeds_max_delay(self) -> None:
        """Jitter positivo no teto continua limitado ao teto."""
        delay = schedule_retry(20, 1.0, 2.0, 300.0, jitter=True, rng=lambda: 0.99)

        assert delay == 300.0


class TestIsTransient:
    """Classificação de falhas."""

    @pytest.mark.parametrize(
        "exc",
        [
            RedisConnectionError("down"),
            FirestoreUnavailableError("unavailable"),
            PersistenceTimeoutError("persistence_timeout"),
            TimeoutError(),
            ConnectionError("reset"),
            _StatusError(503),
            _StatusError(429),
            RuntimeError("upstream connection reset"),
        ],
    )
    def test_transient(self, exc: BaseException) -> None:
        assert is_transient(exc) is True

    @pytest.mark.parametrize(
        "exc",
        [
            AdapterParseError("nuvemshop", "malformed product payload"),
            ValueError("bad"),
            KeyError("id"),
            PermissionError("denied"),
            _StatusError(400),
            _StatusError(401),
            RuntimeError("validation failed"),
            RuntimeError("something odd"),
        ],
    )
    def test_non_transient(self, exc: BaseException) -> None:
        assert is_transient(exc) is False


class TestRetryScheduler:
    """Decisão retry vs dead-letter por plataforma."""

    def _scheduler(self) -> RetryScheduler:
        return RetryScheduler(DEFAULT_RETRY.__getitem__, jitter=False)

    def test_transient_failure_is_retried_with_backoff(self) -> None:
        """Nuvemshop: base 2s, multiplicador 2."""
        decision = self._scheduler().next_step(Platform.NUVEMSHOP, 1, TimeoutError())

        assert decision.retry is True
        assert decision.dead_letter is False
        assert decision.delay_seconds == 4.0
        assert decision.reason == "transient"

    def test_exhausted_retries_go_to_dead_letter(self) -> None:
        """attempt == max_retries => dead-letter."""
        decision = self._scheduler().next_step(
            Platform.NUVEMSHOP, 3, RedisConnectionError("down")
        )

        assert decision.retry is False
        assert decision.dead_letter is True
        assert decision.reason == "transient_exhausted"

    def test_last_allowed_attempt_still_retries(self) -> None:
        """Hotmart permite 5 retries: attempt 4 ainda reagenda."""
        decision = self._scheduler().next_step(Platform.HOTMART, 4, TimeoutError())

        assert decision.retry is True
        assert decision.delay_seconds == 16.0

    def test_non_transient_never_retries(self) -> None:
        """Falha permanente vai direto para dead-letter, mesmo no attempt 0."""
        decision = self._scheduler().next_step(
            Platform.WOOCOMMERCE, 0, AdapterParseError("woocommerce", "invalid")
        )

        assert decision.retry is False
        assert decision.dead_letter is True
        assert decision.delay_seconds == 0.0
        assert decision.reason == "non_transient"

    def test_zero_max_retries_dead_letters_first_failure(self) -> None:
        """max_retries=0 desabilita retry."""
        scheduler = RetryScheduler(
            lambda _platform: RetryConfig(0, 1.0, 10.0), jitter=False
        )

        decision = scheduler.next_step(Platform.HOTMART, 0, TimeoutError())

        assert decision.dead_letter is True
        assert decision.reason == "transient_exhausted"
