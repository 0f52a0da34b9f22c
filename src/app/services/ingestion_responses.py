"""Construção das respostas do pipeline de ingestão.

Todas as respostas de erro compartilham o mesmo corpo:
    {"success": false, "error": {"code", "message", "errors"?}, "correlation_id"}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from app.domain.envelope import IngestResult

if TYPE_CHECKING:
    from utils.errors import ErrorCode


def error_result(
    http_status: int,
    code: ErrorCode,
    message: str,
    correlation_id: str,
    *,
    errors: list[str] | None = None,
    headers: dict[str, str] | None = None,
) -> IngestResult:
    error: dict[str, Any] = {"code": code.value, "message": message}
    if errors:
        error["errors"] = errors
    return IngestResult(
        accepted=False,
        http_status=http_status,
        body={"success": False, "error": error, "correlation_id": correlation_id},
        headers=dict(headers or {}),
    )


def accepted_result(
    http_status: int,
    status: str,
    correlation_id: str,
    *,
    headers: dict[str, str] | None = None,
    **fields: Any,
) -> IngestResult:
    body: dict[str, Any] = {"success": True, "status": status}
    body.update({key: value for key, value in fields.items() if value is not None})
    body["correlation_id"] = correlation_id
    return IngestResult(
        accepted=True,
        http_status=http_status,
        body=body,
        headers=dict(headers or {}),
    )


def outcome_name(result: IngestResult) -> str:
    """Nome curto do desfecho para métricas."""
    if result.accepted:
        return str(result.body.get("status", "accepted"))
    error = result.body.get("error") or {}
    return str(error.get("code", "rejected")).lower()
