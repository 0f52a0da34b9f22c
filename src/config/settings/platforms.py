"""Settings por plataforma de e-commerce.

Cada plataforma tem secret de webhook, header de assinatura, limites de
rate limit e política de retry próprios. Os defaults abaixo são os valores
de produção; qualquer um pode ser sobrescrito por variável de ambiente
prefixada com o nome da plataforma (ex.: NUVEMSHOP_RATE_LIMIT_PER_MINUTE).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from app.domain.platform import Platform


@dataclass(frozen=True)
class RateLimitConfig:
    """Limites de admissão de uma plataforma.

    Attributes:
        per_minute: Teto estável por minuto
        per_hour: Teto por hora
        burst: Requisições extras permitidas acima do teto por minuto
        retry_after_seconds: Espera sugerida ao remetente após rejeição
    """

    per_minute: int
    per_hour: int
    burst: int
    retry_after_seconds: int


@dataclass(frozen=True)
class RetryConfig:
    """Política de backoff exponencial para falhas transitórias."""

    max_retries: int
    base_delay_seconds: float
    max_delay_seconds: float
    multiplier: float = 2.0


@dataclass(frozen=True)
class PlatformSettings:
    """Configurações de uma plataforma.

    Attributes:
        platform: Plataforma configurada
        webhook_secret: Secret/token pré-compartilhado (vazio = não configurado)
        signature_header: Header que transporta assinatura/token
        rate_limit: Limites de admissão
        retry: Política de retry
    """

    platform: Platform
    webhook_secret: str
    signature_header: str
    rate_limit: RateLimitConfig
    retry: RetryConfig

    @property
    def has_secret(self) -> bool:
        return bool(self.webhook_secret)

    def validate(self, require_secret: bool) -> list[str]:
        """Valida limites e presença de secret.

        Args:
            require_secret: Se True, secret ausente é erro (staging/production).

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []
        prefix = self.platform.env_prefix

        if require_secret and not self.webhook_secret:
            errors.append(f"{prefix}_WEBHOOK_SECRET não configurado")

        limits = self.rate_limit
        if limits.per_minute <= 0 or limits.per_hour <= 0:
            errors.append(f"{prefix}_RATE_LIMIT_PER_MINUTE/PER_HOUR devem ser > 0")
        if limits.burst < 0:
            errors.append(f"{prefix}_RATE_LIMIT_BURST deve ser >= 0")
        if limits.per_hour < limits.per_minute:
            errors.append(f"{prefix}_RATE_LIMIT_PER_HOUR menor que PER_MINUTE")

        retry = self.retry
        if retry.max_retries < 0:
            errors.append(f"{prefix}_RETRY_MAX deve ser >= 0")
        if retry.base_delay_seconds <= 0 or retry.max_delay_seconds < retry.base_delay_seconds:
            errors.append(f"{prefix}_RETRY_BASE_DELAY/MAX_DELAY inconsistentes")

        return errors


SIGNATURE_HEADERS: dict[Platform, str] = {
    Platform.HOTMART: "x-hotmart-hottok",
    Platform.NUVEMSHOP: "x-linkedstore-hmac-sha256",
    Platform.WOOCOMMERCE: "x-wc-webhook-signature",
}

DEFAULT_RATE_LIMITS: dict[Platform, RateLimitConfig] = {
    Platform.HOTMART: RateLimitConfig(per_minute=100, per_hour=1000, burst=20, retry_after_seconds=60),
    Platform.NUVEMSHOP: RateLimitConfig(per_minute=60, per_hour=1000, burst=15, retry_after_seconds=60),
    Platform.WOOCOMMERCE: RateLimitConfig(per_minute=120, per_hour=2000, burst=25, retry_after_seconds=30),
}

DEFAULT_RETRY: dict[Platform, RetryConfig] = {
    Platform.HOTMART: RetryConfig(max_retries=5, base_delay_seconds=1.0, max_delay_seconds=300.0),
    Platform.NUVEMSHOP: RetryConfig(max_retries=3, base_delay_seconds=2.0, max_delay_seconds=180.0),
    Platform.WOOCOMMERCE: RetryConfig(max_retries=4, base_delay_seconds=1.5, max_delay_seconds=240.0),
}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    return int(raw) if raw else default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    return float(raw) if raw else default


def _load_platform_from_env(platform: Platform) -> PlatformSettings:
    """Carrega PlatformSettings de variáveis de ambiente."""
    prefix = platform.env_prefix
    limits = DEFAULT_RATE_LIMITS[platform]
    retry = DEFAULT_RETRY[platform]
    return PlatformSettings(
        platform=platform,
        webhook_secret=os.getenv(f"{prefix}_WEBHOOK_SECRET", ""),
        signature_header=SIGNATURE_HEADERS[platform],
        rate_limit=RateLimitConfig(
            per_minute=_env_int(f"{prefix}_RATE_LIMIT_PER_MINUTE", limits.per_minute),
            per_hour=_env_int(f"{prefix}_RATE_LIMIT_PER_HOUR", limits.per_hour),
            burst=_env_int(f"{prefix}_RATE_LIMIT_BURST", limits.burst),
            retry_after_seconds=_env_int(
                f"{prefix}_RATE_LIMIT_RETRY_AFTER", limits.retry_after_seconds
            ),
        ),
        retry=RetryConfig(
            max_retries=_env_int(f"{prefix}_RETRY_MAX", retry.max_retries),
            base_delay_seconds=_env_float(f"{prefix}_RETRY_BASE_DELAY", retry.base_delay_seconds),
            max_delay_seconds=_env_float(f"{prefix}_RETRY_MAX_DELAY", retry.max_delay_seconds),
            multiplier=_env_float(f"{prefix}_RETRY_MULTIPLIER", retry.multiplier),
        ),
    )


@lru_cache(maxsize=8)
def get_platform_settings(platform: Platform) -> PlatformSettings:
    """Retorna instância cacheada de PlatformSettings da plataforma."""
    return _load_platform_from_env(platform)


def get_all_platform_settings() -> dict[Platform, PlatformSettings]:
    """Settings de todas as plataformas registradas."""
    return {platform: get_platform_settings(platform) for platform in Platform}
