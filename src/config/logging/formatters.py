"""Formatters de logging estruturado.

Todo log sai como uma linha JSON com os campos obrigatórios abaixo mais
o `extra` do chamador (platform, event, entity_type, métricas...).
"""

from __future__ import annotations

from pythonjsonlogger.json import JsonFormatter

# Campos obrigatórios em todo log estruturado
REQUIRED_LOG_FIELDS = (
    "asctime",
    "levelname",
    "name",
    "message",
    "correlation_id",
    "service",
)

# Mapeamento de nomes de campos para formato padrão
FIELD_RENAME_MAP = {
    "levelname": "level",
    "name": "logger",
    "asctime": "timestamp",
}


def create_json_formatter() -> JsonFormatter:
    """Cria formatter JSON com campos padronizados.

    Exemplo de output:
        {
            "timestamp": "2026-02-02T10:30:00",
            "level": "INFO",
            "logger": "app.services.ingestion_pipeline",
            "message": "webhook_ingested",
            "correlation_id": "abc-123",
            "service": "commerce_acl",
            "platform": "nuvemshop"
        }
    """
    format_string = " ".join(f"%({field})s" for field in REQUIRED_LOG_FIELDS)

    return JsonFormatter(
        format_string,
        rename_fields=FIELD_RENAME_MAP,
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )
