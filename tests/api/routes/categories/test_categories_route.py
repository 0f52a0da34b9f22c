"""Testes dos endpoints /categories/{platform}/..."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.requests import Request

from api.routes.categories.router import category_path, category_statistics, category_tree
from app.domain.entities import Category
from app.domain.platform import Platform
from app.infra.stores.memory_stores import MemoryEntityRepository
from app.services.category_queries import CategoryQueryService
from utils.errors import FirestoreUnavailableError


def _build_request(state: SimpleNamespace) -> Request:
    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "path": "/categories",
        "raw_path": b"/categories",
        "query_string": b"",
        "headers": [],
        "app": SimpleNamespace(state=state),
    }

    async def _receive() -> dict[str, object]:
        return {"type": "http.request", "body": b"", "more_body": False}

    return Request(scope, _receive)


async def _state() -> SimpleNamespace:
    repository = MemoryEntityRepository()
    for external_id, parent_id in (("1", None), ("2", "1"), ("3", "2")):
        await repository.upsert_entity(
            Category(
                platform=Platform.NUVEMSHOP,
                external_id=external_id,
                store_id="77",
                name=f"Cat {external_id}",
                parent_id=parent_id,
                product_count=int(external_id),
            )
        )
    container = SimpleNamespace(category_queries=CategoryQueryService(repository))
    return SimpleNamespace(container=container)


@pytest.mark.asyncio
async def test_tree_returns_nested_nodes() -> None:
    request = _build_request(await _state())

    response = await category_tree("nuvemshop", request, store_id="77")
    payload = json.loads(response.body)

    assert response.status_code == 200
    assert payload["store_id"] == "77"
    assert payload["tree"][0]["children"][0]["children"][0]["level"] == 2


@pytest.mark.asyncio
async def test_statistics_include_flagged() -> None:
    request = _build_request(await _state())

    response = await category_statistics("nuvemshop", request, store_id="77")
    payload = json.loads(response.body)

    assert payload["total_categories"] == 3
    assert payload["max_depth"] == 2
    assert payload["flagged"] == {}


@pytest.mark.asyncio
async def test_path_returns_breadcrumb() -> None:
    request = _build_request(await _state())

    response = await category_path("nuvemshop", "3", request, store_id="77")
    payload = json.loads(response.body)

    assert [step["category_id"] for step in payload["path"]] == ["1", "2", "3"]


@pytest.mark.asyncio
async def test_path_unknown_category_returns_404() -> None:
    request = _build_request(await _state())

    response = await category_path("nuvemshop", "99", request, store_id="77")
    payload = json.loads(response.body)

    assert response.status_code == 404
    assert payload["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_other_scope_is_empty() -> None:
    request = _build_request(await _state())

    response = await category_tree("nuvemshop", request, store_id="88")

    assert json.loads(response.body)["tree"] == []


@pytest.mark.asyncio
async def test_store_failure_returns_503() -> None:
    queries = MagicMock()
    queries.tree = AsyncMock(side_effect=FirestoreUnavailableError("down"))
    request = _build_request(SimpleNamespace(container=SimpleNamespace(category_queries=queries)))

    response = await category_tree("nuvemshop", request, store_id="77")

    assert response.status_code == 503


@pytest.mark.asyncio
async def test_invalid_platform_returns_404() -> None:
    response = await category_tree("magento", _build_request(SimpleNamespace()))

    assert json.loads(response.body)["error"]["code"] == "INVALID_PLATFORM"
