"""Verificação de autenticidade de webhooks por plataforma.

Esquemas:
- hotmart: token pré-compartilhado (header X-Hotmart-Hottok), igualdade exata
- nuvemshop: HMAC-SHA256 do corpo bruto, digest base64 (hex minúsculo aceito)
- woocommerce: HMAC-SHA256 do corpo bruto, digest base64

Sempre sobre os bytes brutos; re-serializar JSON alteraria o conteúdo e
quebraria o digest. Todas as comparações são em tempo constante.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from app.domain.platform import Platform

if TYPE_CHECKING:
    from collections.abc import Callable


class VerificationReason(StrEnum):
    VERIFIED = "verified"
    MISSING_SECRET = "missing_secret"
    MISSING_SIGNATURE = "missing_signature"
    EMPTY_BODY = "empty_body"
    SIGNATURE_MISMATCH = "signature_mismatch"
    UNSUPPORTED_PLATFORM = "unsupported_platform"


@dataclass(frozen=True, slots=True)
class VerificationResult:
    """Resultado da verificação.

    `missing_secret` separa "não configurado" de "assinatura inválida":
    o chamador decide se aceita o modo relaxado, mas o resultado nunca
    é reportado como autêntico.
    """

    is_authentic: bool
    reason: VerificationReason

    @property
    def missing_secret(self) -> bool:
        return self.reason is VerificationReason.MISSING_SECRET


def _hmac_sha256(secret: str, raw_body: bytes) -> bytes:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()


def _verify_token(raw_body: bytes, signature: str, secret: str) -> bool:
    _ = raw_body  # token não depende do corpo
    return hmac.compare_digest(signature.encode("utf-8"), secret.encode("utf-8"))


def _verify_hmac_base64(raw_body: bytes, signature: str, secret: str) -> bool:
    expected = base64.b64encode(_hmac_sha256(secret, raw_body)).decode("ascii")
    return hmac.compare_digest(signature.encode("utf-8"), expected.encode("ascii"))


def _verify_hmac_base64_or_hex(raw_body: bytes, signature: str, secret: str) -> bool:
    digest = _hmac_sha256(secret, raw_body)
    as_base64 = base64.b64encode(digest).decode("ascii")
    as_hex = digest.hex()
    candidate = signature.encode("utf-8")
    # Avalia os dois formatos sempre, sem curto-circuito
    matches_base64 = hmac.compare_digest(candidate, as_base64.encode("ascii"))
    matches_hex = hmac.compare_digest(candidate, as_hex.encode("ascii"))
    return matches_base64 | matches_hex


_SCHEMES: dict[Platform, Callable[[bytes, str, str], bool]] = {
    Platform.HOTMART: _verify_token,
    Platform.NUVEMSHOP: _verify_hmac_base64_or_hex,
    Platform.WOOCOMMERCE: _verify_hmac_base64,
}


def compute_signature(platform: Platform, raw_body: bytes, secret: str) -> str:
    """Gera a assinatura esperada para o corpo (útil em testes e replays).

    Args:
        platform: Plataforma de origem
        raw_body: Corpo bruto
        secret: Secret da plataforma

    Returns:
        Valor que a plataforma enviaria no header de assinatura.
    """
    if platform is Platform.HOTMART:
        return secret
    return base64.b64encode(_hmac_sha256(secret, raw_body)).decode("ascii")


class SignatureVerifier:
    """Verificador sem estado; um esquema por plataforma."""

    def verify(
        self,
        platform: Platform,
        raw_body: bytes,
        signature_header: str | None,
        secret: str | None,
    ) -> VerificationResult:
        """Verifica autenticidade do payload.

        Args:
            platform: Plataforma de origem
            raw_body: Bytes exatos recebidos
            signature_header: Valor do header de assinatura/token
            secret: Secret provisionado para a plataforma

        Returns:
            VerificationResult com is_authentic e motivo.
        """
        if not secret:
            return VerificationResult(False, VerificationReason.MISSING_SECRET)

        signature = (signature_header or "").strip()
        if not signature:
            return VerificationResult(False, VerificationReason.MISSING_SIGNATURE)

        if not raw_body:
            return VerificationResult(False, VerificationReason.EMPTY_BODY)

        scheme = _SCHEMES.get(platform)
        if scheme is None:
            return VerificationResult(False, VerificationReason.UNSUPPORTED_PLATFORM)

        if scheme(raw_body, signature, secret):
            return VerificationResult(True, VerificationReason.VERIFIED)
        return VerificationResult(False, VerificationReason.SIGNATURE_MISMATCH)
