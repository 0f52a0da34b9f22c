"""Agregador de settings da camada anti-corrupção.

Re-exporta todas as settings e funções de cada módulo.
Organização por domínio para isolamento de mudanças.
"""

from __future__ import annotations

# Base settings
from config.settings.base import (
    BaseSettings,
    CounterBackend,
    EntityStoreBackend,
    Environment,
    FailureSinkBackend,
    StoreSettings,
    get_base_settings,
    get_store_settings,
)

# Infrastructure settings
from config.settings.infra import (
    FirestoreSettings,
    get_firestore_settings,
)

# Pipeline settings
from config.settings.ingestion import (
    IngestionSettings,
    ProcessingMode,
    get_ingestion_settings,
)

# Platform settings
from config.settings.platforms import (
    DEFAULT_RATE_LIMITS,
    DEFAULT_RETRY,
    SIGNATURE_HEADERS,
    PlatformSettings,
    RateLimitConfig,
    RetryConfig,
    get_all_platform_settings,
    get_platform_settings,
)

__all__ = [
    # Constants
    "DEFAULT_RATE_LIMITS",
    "DEFAULT_RETRY",
    "SIGNATURE_HEADERS",
    # Base
    "BaseSettings",
    "CounterBackend",
    "EntityStoreBackend",
    "Environment",
    "FailureSinkBackend",
    # Infrastructure
    "FirestoreSettings",
    # Pipeline
    "IngestionSettings",
    # Platforms
    "PlatformSettings",
    "ProcessingMode",
    "RateLimitConfig",
    "RetryConfig",
    "StoreSettings",
    "get_all_platform_settings",
    "get_base_settings",
    "get_firestore_settings",
    "get_ingestion_settings",
    "get_platform_settings",
    "get_store_settings",
]
