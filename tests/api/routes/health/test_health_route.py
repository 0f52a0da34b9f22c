"""Testes dos endpoints de health e readiness."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.requests import Request

import api.routes.health.router as health_router
from api.routes.health.router import health_check, readiness_check
from config.settings import StoreSettings


def _build_request_with_state(state: SimpleNamespace) -> Request:
    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "path": "/ready",
        "raw_path": b"/ready",
        "query_string": b"",
        "headers": [],
        "app": SimpleNamespace(state=state),
    }

    async def _receive() -> dict[str, object]:
        return {"type": "http.request", "body": b"", "more_body": False}

    return Request(scope, _receive)


def _use_stores(monkeypatch: pytest.MonkeyPatch, stores: StoreSettings) -> None:
    monkeypatch.setattr(health_router, "get_store_settings", lambda: stores)


def _container(running: bool = True) -> SimpleNamespace:
    return SimpleNamespace(pool=SimpleNamespace(running=running, pending=0))


@pytest.mark.asyncio
async def test_health_reports_service_name() -> None:
    response = await health_check()

    assert response.status == "healthy"
    assert response.service


@pytest.mark.asyncio
async def test_readiness_with_memory_backends_skips_dependencies(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _use_stores(monkeypatch, StoreSettings())
    request = _build_request_with_state(SimpleNamespace(container=_container()))

    response = await readiness_check(request)
    payload = json.loads(response.body.decode("utf-8"))

    assert response.status_code == 200
    assert payload["status"] == "ready"
    assert payload["checks"]["redis"]["status"] == "skipped"
    assert payload["checks"]["firestore"]["status"] == "skipped"
    assert payload["checks"]["reconciliation_workers"]["status"] == "ok"


@pytest.mark.asyncio
async def test_readiness_returns_not_ready_without_dependencies(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _use_stores(
        monkeypatch,
        StoreSettings(counter_backend="redis", entity_backend="firestore"),
    )
    request = _build_request_with_state(
        SimpleNamespace(redis_client=None, firestore_client=None, container=_container())
    )

    response = await readiness_check(request)
    payload = json.loads(response.body.decode("utf-8"))

    assert response.status_code == 503
    assert payload["status"] == "not_ready"
    assert payload["checks"]["redis"]["error"] == "not_configured"
    assert payload["checks"]["firestore"]["status"] == "failed"


@pytest.mark.asyncio
async def test_readiness_returns_ready_when_dependencies_are_ok(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _use_stores(
        monkeypatch,
        StoreSettings(counter_backend="redis", entity_backend="firestore"),
    )
    redis_client = MagicMock()
    redis_client.ping = AsyncMock(return_value=True)

    firestore_doc = SimpleNamespace(exists=True)
    firestore_client = MagicMock()
    firestore_client.collection.return_value.document.return_value.get.return_value = firestore_doc

    request = _build_request_with_state(
        SimpleNamespace(
            redis_client=redis_client,
            firestore_client=firestore_client,
            container=_container(),
        )
    )

    response = await readiness_check(request)
    payload = json.loads(response.body.decode("utf-8"))

    assert response.status_code == 200
    assert payload["status"] == "ready"
    assert payload["checks"]["redis"]["status"] == "ok"
    assert payload["checks"]["firestore"]["status"] == "ok"


@pytest.mark.asyncio
async def test_readiness_fails_when_redis_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    _use_stores(monkeypatch, StoreSettings(counter_backend="redis"))
    redis_client = MagicMock()
    redis_client.ping = AsyncMock(side_effect=ConnectionError("refused"))
    request = _build_request_with_state(
        SimpleNamespace(redis_client=redis_client, container=_container())
    )

    response = await readiness_check(request)
    payload = json.loads(response.body.decode("utf-8"))

    assert response.status_code == 503
    assert payload["checks"]["redis"]["error"] == "ConnectionError"


@pytest.mark.asyncio
async def test_readiness_requires_running_workers(monkeypatch: pytest.MonkeyPatch) -> None:
    _use_stores(monkeypatch, StoreSettings())
    request = _build_request_with_state(SimpleNamespace(container=_container(running=False)))

    response = await readiness_check(request)
    payload = json.loads(response.body.decode("utf-8"))

    assert response.status_code == 503
    assert payload["checks"]["reconciliation_workers"]["status"] == "failed"


@pytest.mark.asyncio
async def test_readiness_without_container(monkeypatch: pytest.MonkeyPatch) -> None:
    _use_stores(monkeypatch, StoreSettings())

    response = await readiness_check(_build_request_with_state(SimpleNamespace()))
    payload = json.loads(response.body.decode("utf-8"))

    assert response.status_code == 503
    assert payload["checks"]["reconciliation_workers"]["pending"] is None
