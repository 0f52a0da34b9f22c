"""Taxonomia de códigos de erro expostos ao transporte."""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    """Códigos estáveis devolvidos no corpo das respostas de erro."""

    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    RATE_LIMITED = "RATE_LIMITED"
    CONFLICT_PENDING_REVIEW = "CONFLICT_PENDING_REVIEW"
    TRANSIENT_FAILURE = "TRANSIENT_FAILURE"
    MISSING_SECRET = "MISSING_SECRET"
    INVALID_CONTENT_TYPE = "INVALID_CONTENT_TYPE"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    INVALID_PLATFORM = "INVALID_PLATFORM"
    NOT_FOUND = "NOT_FOUND"
