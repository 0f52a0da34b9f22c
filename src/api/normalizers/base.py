"""Base comum dos adapters de plataforma.

Responsabilidades:
- Validação estrutural por campos obrigatórios
- Seleção do bloco de dados (`payload["data"]` ou o próprio payload)
- Dispatch do parse por tipo de entidade
- Helpers de conversão (datas, valores, textos multi-idioma)

Parse é determinístico: nenhum campo é preenchido com o relógio atual,
então reentregar o mesmo webhook produz o mesmo candidato.
"""

from __future__ import annotations

import logging
import math
import sys
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, ClassVar

from app.protocols.platform_adapter import ValidationResult
from utils.errors import AdapterParseError

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.domain.entities import EntityType, UnifiedEntity
    from app.domain.events import EventKind
    from app.domain.platform import Platform
    from app.protocols.platform_adapter import AdapterContext

logger = logging.getLogger(__name__)

# Ordem de fallback para campos multi-idioma.
LOCALE_FALLBACK = ("en", "es", "pt")


class BasePlatformAdapter(ABC):
    """Comportamento compartilhado; subclasses definem mapeamentos e parsers."""

    platform: ClassVar[Platform]
    required_fields: ClassVar[tuple[str, ...]] = ("id",)
    store_id_header: ClassVar[str | None] = None

    @abstractmethod
    def detect_event(self, payload: dict[str, Any]) -> EventKind | None: ...

    @abstractmethod
    def extract_store_id(self, payload: dict[str, Any]) -> str | None: ...

    @abstractmethod
    def _parsers(self) -> dict[EntityType, Callable[[dict[str, Any], AdapterContext], UnifiedEntity]]:
        """Parser por tipo de entidade suportado pela plataforma."""

    def validate_structure(self, payload: dict[str, Any]) -> ValidationResult:
        if not isinstance(payload, dict):
            return ValidationResult(is_valid=False, errors=["payload must be a JSON object"])
        errors = [
            f"{name} is required"
            for name in self.required_fields
            if payload.get(name) in (None, "")
        ]
        return ValidationResult(is_valid=not errors, errors=errors)

    def entity_data(self, payload: dict[str, Any]) -> dict[str, Any]:
        data = payload.get("data")
        return data if isinstance(data, dict) else payload

    def parse(self, payload: dict[str, Any], context: AdapterContext) -> UnifiedEntity:
        """Converte o payload no candidato do tipo pedido pelo contexto.

        Raises:
            AdapterParseError: Tipo não suportado ou payload malformado.
        """
        parser = self._parsers().get(context.entity_type)
        if parser is None:
            raise AdapterParseError(
                self.platform.value,
                f"entity type {context.entity_type.value} is not supported",
            )
        if has_out_of_range_number(payload):
            raise AdapterParseError(self.platform.value, "payload carries an out-of-range number")
        try:
            return parser(payload, context)
        except AdapterParseError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError, OverflowError) as exc:
            logger.info(
                "adapter_parse_failed",
                extra={
                    "platform": self.platform.value,
                    "entity_type": context.entity_type.value,
                    "error_type": type(exc).__name__,
                },
            )
            raise AdapterParseError(
                self.platform.value, f"malformed {context.entity_type.value} payload"
            ) from exc

    def apply_business_rules(self, candidate: UnifiedEntity) -> UnifiedEntity:
        return candidate

    def require_id(self, data: dict[str, Any], *keys: str) -> str:
        """Primeiro identificador não vazio entre `keys`."""
        for key in keys:
            value = as_id(data.get(key))
            if value:
                return value
        raise AdapterParseError(self.platform.value, f"missing identifier ({', '.join(keys)})")


# ──────────────────────────────────────────────────────────────
# Helpers de conversão
# ──────────────────────────────────────────────────────────────


def as_id(value: Any) -> str | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    return str(value)


def as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def as_bool(value: Any) -> bool | None:
    """None quando o campo não veio; o merge não deve ler ausência como False."""
    return None if value is None else bool(value)


def to_amount(value: Any) -> float | None:
    """Valor monetário com 2 casas (aceita número ou string)."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    return round(amount, 2) if math.isfinite(amount) else None


def to_int(value: Any) -> int | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


def parse_datetime(value: Any) -> datetime | None:
    """Aceita ISO 8601 (com ou sem fuso) e epoch em segundos ou milissegundos.

    Valores sem fuso são tratados como UTC.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, (int, float)):
        try:
            seconds = value / 1000 if value > 10_000_000_000 else value
            return datetime.fromtimestamp(seconds, UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            # isdigit aceita "²" e textos acima do limite de dígitos de int()
            try:
                return parse_datetime(int(text))
            except ValueError:
                return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return None


def has_out_of_range_number(value: Any) -> bool:
    """True se houver inf, NaN ou inteiro além do alcance de float em qualquer nível.

    json.loads aceita 1e400, NaN e inteiros gigantes; nenhum cabe no modelo.
    """
    if isinstance(value, float):
        return not math.isfinite(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return abs(value) > sys.float_info.max
    if isinstance(value, dict):
        return any(has_out_of_range_number(item) for item in value.values())
    if isinstance(value, list):
        return any(has_out_of_range_number(item) for item in value)
    return False


def localized(value: Any, language: str = "en") -> str | None:
    """Resolve texto possivelmente multi-idioma ({"pt": ..., "en": ...})."""
    if isinstance(value, str):
        return value or None
    if not isinstance(value, dict):
        return None
    for locale in (language, *LOCALE_FALLBACK):
        text = value.get(locale)
        if isinstance(text, str) and text:
            return text
    for text in value.values():
        if isinstance(text, str) and text:
            return text
    return None


def full_name(first: Any, last: Any) -> str | None:
    parts = [part.strip() for part in (first, last) if isinstance(part, str) and part.strip()]
    return " ".join(parts) or None


def drop_none(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}
