"""Pipeline de ingestão de webhooks e sincronização em lote.

Ordem das verificações (cada uma barra a seguinte):
1. Content-Type JSON                         -> 400 INVALID_CONTENT_TYPE
2. Tamanho do corpo                          -> 413 PAYLOAD_TOO_LARGE
3. Rate limit (por plataforma + origem)      -> 429 RATE_LIMITED
4. Assinatura sobre o corpo bruto            -> 401 / 500 MISSING_SECRET
5. JSON + estrutura                          -> 400 VALIDATION_FAILED
6. Evento desconhecido ou sem entidade       -> 200 ignored
7. Parse + regras de negócio                 -> 400 VALIDATION_FAILED
8. Reconciliação (inline aguarda, async 202)

O tamanho é checado antes da assinatura para limitar trabalho controlado
pelo remetente. Nenhum payload, secret ou assinatura vai para os logs.
"""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any

from app.domain.entities import UnifiedEntity
from app.domain.envelope import SyncError, SyncResult
from app.domain.statuses import DELETED_STATUS
from app.observability import (
    correlation_scope,
    get_correlation_id,
    record_ingest_outcome,
    record_latency,
)
from app.protocols.platform_adapter import AdapterContext
from app.services.ingestion_responses import accepted_result, error_result, outcome_name
from app.services.reconciliation_worker import ReconciliationStatus, ReconciliationTask
from utils.errors import AdapterParseError, ErrorCode

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from api.normalizers.registry import AdapterRegistry
    from app.domain.conflicts import ConflictStrategy
    from app.domain.entities import EntityType
    from app.domain.envelope import IngestResult, WebhookEnvelope
    from app.domain.platform import Platform
    from app.protocols.platform_adapter import PlatformAdapterProtocol
    from app.services.rate_limiter import RateLimiter
    from app.services.reconciliation_worker import ReconciliationWorkerPool
    from app.services.signature_verifier import SignatureVerifier
    from config.settings.ingestion import IngestionSettings
    from config.settings.platforms import PlatformSettings

logger = logging.getLogger(__name__)


def _is_json_content_type(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip()
    return media_type == "application/json" or media_type.endswith("+json")


class IngestionPipeline:
    """Orquestra verificação, normalização e reconciliação.

    Args:
        registry: Adapters por plataforma
        verifier: Verificador de assinatura
        rate_limiter: Controle de admissão
        pool: Pool de workers de reconciliação
        settings: Configuração de ingestão
        platform_settings: Função platform -> PlatformSettings
    """

    def __init__(
        self,
        *,
        registry: AdapterRegistry,
        verifier: SignatureVerifier,
        rate_limiter: RateLimiter,
        pool: ReconciliationWorkerPool,
        settings: IngestionSettings,
        platform_settings: Callable[[Platform], PlatformSettings],
    ) -> None:
        self._registry = registry
        self._verifier = verifier
        self._rate_limiter = rate_limiter
        self._pool = pool
        self._settings = settings
        self._platform_settings = platform_settings

    @property
    def settings(self) -> IngestionSettings:
        return self._settings

    # ──────────────────────────────────────────────────────────────
    # Webhooks
    # ──────────────────────────────────────────────────────────────

    async def ingest(self, envelope: WebhookEnvelope) -> IngestResult:
        """Processa um webhook e devolve a resposta para o transporte."""
        incoming_id = envelope.header("x-correlation-id") or get_correlation_id() or None
        with correlation_scope(incoming_id) as correlation_id:
            start = time.perf_counter()
            result = await self._ingest(envelope, correlation_id)
            record_ingest_outcome(
                envelope.platform.value,
                outcome_name(result),
                result.http_status,
                result.body.get("event"),
            )
            record_latency(
                "ingestion", "ingest", (time.perf_counter() - start) * 1000, correlation_id
            )
            return result

    async def _ingest(self, envelope: WebhookEnvelope, correlation_id: str) -> IngestResult:
        platform = envelope.platform

        if not _is_json_content_type(envelope.content_type):
            return error_result(
                400,
                ErrorCode.INVALID_CONTENT_TYPE,
                "Content-Type must be application/json",
                correlation_id,
            )

        if len(envelope.raw_body) > self._settings.max_body_bytes:
            logger.warning(
                "webhook_payload_too_large",
                extra={
                    "platform": platform.value,
                    "body_bytes": len(envelope.raw_body),
                    "max_body_bytes": self._settings.max_body_bytes,
                },
            )
            return error_result(
                413, ErrorCode.PAYLOAD_TOO_LARGE, "Payload too large", correlation_id
            )

        adapter = self._registry.get(platform)
        if adapter is None:
            return error_result(
                404, ErrorCode.INVALID_PLATFORM, "Unsupported platform", correlation_id
            )

        decision = await self._rate_limiter.check_and_consume(
            platform, envelope.source_identifier
        )
        headers = decision.headers()
        if not decision.allowed:
            return error_result(
                429,
                ErrorCode.RATE_LIMITED,
                "Rate limit exceeded",
                correlation_id,
                headers=headers,
            )

        rejected = self._check_signature(envelope, correlation_id, headers)
        if rejected is not None:
            return rejected

        try:
            payload: Any = json.loads(envelope.raw_body)
        except ValueError:
            # JSONDecodeError, UnicodeDecodeError e inteiros acima do limite de dígitos
            return error_result(
                400,
                ErrorCode.VALIDATION_FAILED,
                "Invalid webhook payload",
                correlation_id,
                errors=["body is not valid JSON"],
                headers=headers,
            )

        validation = adapter.validate_structure(payload)
        if not validation.is_valid:
            logger.info(
                "webhook_validation_failed",
                extra={"platform": platform.value, "errors_count": len(validation.errors)},
            )
            return error_result(
                400,
                ErrorCode.VALIDATION_FAILED,
                "Invalid webhook payload",
                correlation_id,
                errors=validation.errors,
                headers=headers,
            )

        event = adapter.detect_event(payload)
        if event is None or event.entity_type is None:
            logger.info(
                "webhook_event_ignored",
                extra={
                    "platform": platform.value,
                    "event": event.value if event else None,
                    "correlation_id": correlation_id,
                },
            )
            return accepted_result(
                200,
                "ignored",
                correlation_id,
                headers=headers,
                event=event.value if event else None,
            )

        store_id = adapter.extract_store_id(payload)
        if store_id is None and adapter.store_id_header:
            store_id = envelope.header(adapter.store_id_header)

        context = AdapterContext(entity_type=event.entity_type, store_id=store_id, event=event)
        try:
            candidate = adapter.apply_business_rules(adapter.parse(payload, context))
        except AdapterParseError as exc:
            return error_result(
                400,
                ErrorCode.VALIDATION_FAILED,
                "Invalid webhook payload",
                correlation_id,
                errors=[str(exc)],
                headers=headers,
            )

        if event.is_deletion:
            candidate = candidate.model_copy(update={"status": DELETED_STATUS})

        task = ReconciliationTask(
            candidate=candidate,
            strategy=self._settings.strategy_for(candidate.entity_type),
            correlation_id=correlation_id,
        )
        return await self._reconcile(task, event.value, headers)

    def _check_signature(
        self,
        envelope: WebhookEnvelope,
        correlation_id: str,
        headers: dict[str, str],
    ) -> IngestResult | None:
        platform = envelope.platform
        config = self._platform_settings(platform)
        result = self._verifier.verify(
            platform,
            envelope.raw_body,
            envelope.header(config.signature_header),
            config.webhook_secret,
        )
        if result.is_authentic:
            return None

        if result.missing_secret:
            if self._settings.allow_unsigned:
                logger.warning(
                    "webhook_signature_skipped",
                    extra={"platform": platform.value, "reason": result.reason.value},
                )
                return None
            logger.error(
                "webhook_secret_not_configured",
                extra={"platform": platform.value, "correlation_id": correlation_id},
            )
            return error_result(
                500,
                ErrorCode.MISSING_SECRET,
                "Webhook secret not configured",
                correlation_id,
                headers=headers,
            )

        logger.warning(
            "webhook_signature_rejected",
            extra={
                "platform": platform.value,
                "reason": result.reason.value,
                "correlation_id": correlation_id,
            },
        )
        return error_result(
            401,
            ErrorCode.AUTHENTICATION_FAILED,
            "Invalid webhook signature",
            correlation_id,
            headers=headers,
        )

    async def _reconcile(
        self,
        task: ReconciliationTask,
        event: str,
        headers: dict[str, str],
    ) -> IngestResult:
        correlation_id = task.correlation_id
        try:
            if self._settings.processing_mode == "async":
                await self._pool.submit(task)
                return accepted_result(
                    202, "queued", correlation_id, headers=headers, event=event, key=task.key
                )
            outcome = await self._pool.run(task)
        except RuntimeError as exc:
            logger.error(
                "reconciliation_unavailable",
                extra={"error_type": type(exc).__name__, "correlation_id": correlation_id},
            )
            return error_result(
                503,
                ErrorCode.TRANSIENT_FAILURE,
                "Reconciliation unavailable",
                correlation_id,
                headers=headers,
            )

        if outcome.status is ReconciliationStatus.DEAD_LETTER:
            return error_result(
                503,
                ErrorCode.TRANSIENT_FAILURE,
                "Webhook could not be applied",
                correlation_id,
                headers=headers,
            )
        if outcome.status is ReconciliationStatus.PENDING_REVIEW:
            return accepted_result(
                202,
                outcome.status.value,
                correlation_id,
                headers=headers,
                code=ErrorCode.CONFLICT_PENDING_REVIEW.value,
                event=event,
                key=outcome.key,
            )
        if outcome.status is ReconciliationStatus.RETRY_SCHEDULED:
            return accepted_result(
                202,
                outcome.status.value,
                correlation_id,
                headers=headers,
                event=event,
                key=outcome.key,
            )
        return accepted_result(
            200,
            outcome.status.value,
            correlation_id,
            headers=headers,
            event=event,
            key=outcome.key,
        )

    # ──────────────────────────────────────────────────────────────
    # Sincronização em lote
    # ──────────────────────────────────────────────────────────────

    async def sync_batch(
        self,
        platform: Platform,
        store_id: str | None,
        items: Sequence[UnifiedEntity | dict[str, Any]],
        *,
        entity_type: EntityType | None = None,
        strategy: ConflictStrategy | None = None,
    ) -> SyncResult:
        """Reconcilia um lote de entidades de uma loja.

        Itens podem ser entidades já unificadas ou objetos nativos da
        plataforma (exigem `entity_type`). Cada item é reconciliado sob o
        lock da sua chave; falha de um item não interrompe o lote.

        Args:
            platform: Plataforma de origem
            store_id: Escopo da loja
            items: Entidades ou objetos nativos
            entity_type: Tipo dos objetos nativos
            strategy: Estratégia explícita (sobrepõe a configuração)

        Returns:
            SyncResult com contadores e erros por item.
        """
        adapter = self._registry.get(platform)
        if adapter is None:
            raise ValueError(f"unsupported platform: {platform}")

        result = SyncResult()
        with correlation_scope(get_correlation_id() or None) as correlation_id:
            for item in items:
                try:
                    candidate = self._sync_candidate(adapter, platform, store_id, item, entity_type)
                except (AdapterParseError, ValueError, OverflowError) as exc:
                    result.errors.append(SyncError(_item_id(item), str(exc)))
                    continue

                task = ReconciliationTask(
                    candidate=candidate,
                    strategy=strategy or self._settings.strategy_for(candidate.entity_type),
                    correlation_id=correlation_id,
                )
                try:
                    outcome = await self._pool.apply(task)
                except Exception as exc:
                    logger.warning(
                        "sync_item_failed",
                        extra={
                            "platform": platform.value,
                            "error_type": type(exc).__name__,
                            "correlation_id": correlation_id,
                        },
                    )
                    result.errors.append(SyncError(candidate.external_id, type(exc).__name__))
                    continue

                result.processed += 1
                if outcome.status is ReconciliationStatus.CREATED:
                    result.created += 1
                elif outcome.status is ReconciliationStatus.UPDATED:
                    result.updated += 1
                elif outcome.status is ReconciliationStatus.PENDING_REVIEW:
                    result.pending_review += 1
                else:
                    result.skipped += 1

            logger.info(
                "sync_batch_completed",
                extra={
                    "platform": platform.value,
                    "processed": result.processed,
                    "created": result.created,
                    "updated": result.updated,
                    "skipped": result.skipped,
                    "pending_review": result.pending_review,
                    "errors": len(result.errors),
                    "correlation_id": correlation_id,
                },
            )
        return result

    @staticmethod
    def _sync_candidate(
        adapter: PlatformAdapterProtocol,
        platform: Platform,
        store_id: str | None,
        item: UnifiedEntity | dict[str, Any],
        entity_type: EntityType | None,
    ) -> UnifiedEntity:
        if isinstance(item, UnifiedEntity):
            candidate = item
        else:
            if entity_type is None:
                raise ValueError("entity_type is required for raw items")
            if not isinstance(item, dict):
                raise ValueError("item must be a JSON object")
            context = AdapterContext(entity_type=entity_type, store_id=store_id)
            candidate = adapter.parse(item, context)

        if candidate.platform is not platform:
            raise ValueError("platform mismatch")
        if store_id is not None and candidate.store_id not in (None, store_id):
            raise ValueError("store_id mismatch")
        if candidate.store_id is None and store_id is not None:
            candidate = candidate.model_copy(update={"store_id": store_id})
        return adapter.apply_business_rules(candidate)


def _item_id(item: Any) -> str | None:
    if isinstance(item, UnifiedEntity):
        return item.external_id
    if isinstance(item, dict) and item.get("id") is not None:
        return str(item["id"])
    return None
