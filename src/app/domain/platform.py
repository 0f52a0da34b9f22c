"""Plataformas de origem suportadas pela camada anti-corrupção."""

from __future__ import annotations

from enum import StrEnum


class Platform(StrEnum):
    """Sistema externo de e-commerce que originou a entidade.

    Imutável depois de atribuído a uma entidade. Novas plataformas entram
    aqui e no registro de adapters, sem tocar no pipeline.
    """

    HOTMART = "hotmart"
    NUVEMSHOP = "nuvemshop"
    WOOCOMMERCE = "woocommerce"

    @property
    def env_prefix(self) -> str:
        """Prefixo usado nas variáveis de ambiente (ex.: HOTMART_WEBHOOK_SECRET)."""
        return self.value.upper()


def parse_platform(value: str | None) -> Platform | None:
    """Converte string livre (path/header) em Platform, ou None se desconhecida."""
    if not value:
        return None
    try:
        return Platform(value.strip().lower())
    except ValueError:
        return None
