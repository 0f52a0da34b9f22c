"""Exceções e códigos de erro compartilhados."""

from .codes import ErrorCode
from .exceptions import (
    AdapterParseError,
    FailureChannelError,
    FirestoreUnavailableError,
    InfrastructureError,
    PersistenceTimeoutError,
    RedisConnectionError,
)

__all__ = [
    "AdapterParseError",
    "ErrorCode",
    "FailureChannelError",
    "FirestoreUnavailableError",
    "InfrastructureError",
    "PersistenceTimeoutError",
    "RedisConnectionError",
]
