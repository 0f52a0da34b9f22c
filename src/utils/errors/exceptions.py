"""Exceções compartilhadas da camada anti-corrupção.

Separação usada em todo o pipeline:
- InfrastructureError e subclasses: falhas transitórias (retry permitido)
- AdapterParseError: payload estruturalmente válido mas impossível de mapear
"""

from __future__ import annotations


class InfrastructureError(RuntimeError):
    """Base para falhas de infraestrutura transitórias."""


class RedisConnectionError(InfrastructureError):
    """Falha de conexão/timeout ao acessar Redis."""


class FirestoreUnavailableError(InfrastructureError):
    """Falha de indisponibilidade ao acessar Firestore."""


class PersistenceTimeoutError(InfrastructureError):
    """Chamada ao repositório excedeu o timeout configurado."""


class FailureChannelError(InfrastructureError):
    """Falha ao publicar item no canal de falhas (dead-letter/revisão)."""


class AdapterParseError(ValueError):
    """Payload não pôde ser convertido para o modelo unificado."""

    def __init__(self, platform: str, message: str) -> None:
        super().__init__(message)
        self.platform = platform
