"""Tests for the HTTP query executor."""

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from index_discovery.adapters.http_executor import (
    HttpQueryExecutor,
    build_query_params,
    index_error_message,
    is_index_error,
)
from index_discovery.config import Settings
from index_discovery.core.exceptions import IndexRequiredFailure, OtherExecutionFailure
from index_discovery.query_configs import get_collection_configs
from tests.conftest import ADMINS_LINK_DEFAULT
from tests.conftest import index_error_message as backend_index_message


def test_build_query_params():
    """Limit comes first, booleans are lowercase and None values are dropped."""
    rendered = build_query_params({"isActive": True, "minAmount": 100, "status": None}, 1)

    assert rendered == {"limit": "1", "isActive": "true", "minAmount": "100"}
    assert list(rendered) == ["limit", "isActive", "minAmount"]


@pytest.mark.parametrize(
    ("body", "expected"),
    [
        ({"error": "9 FAILED_PRECONDITION: The query requires an index."}, True),
        ({"error": "FirestoreIndexError: composite index missing"}, True),
        ({"error": "Invalid status"}, False),
        ({"error": None}, False),
        ({}, False),
    ],
)
def test_is_index_error(body, expected):
    assert is_index_error(body) is expected


def test_index_error_message_prefers_stack():
    """The console link travels in the first stack line."""
    body = {"error": "requires an index", "stack": ["full message with link", "at x"]}

    assert index_error_message(body) == "full message with link"
    assert index_error_message({"error": "requires an index"}) == "requires an index"
    assert index_error_message({"stack": []}) == "Unknown error"


class FakeBackend:
    """Minimal stand-in for the backend list endpoints."""

    def __init__(self):
        self.requests: list[web.Request] = []
        self.app = web.Application()
        self.app.router.add_get("/api/admin/orders", self.orders)
        self.app.router.add_get("/api/public/products", self.products)

    async def orders(self, request: web.Request) -> web.Response:
        self.requests.append(request)
        status = request.query.get("status")
        if status == "needs-index":
            message = backend_index_message(ADMINS_LINK_DEFAULT)
            return web.json_response(
                {"error": message, "stack": [message, "    at Query.get"]}, status=500
            )
        if status == "bogus":
            return web.json_response({"error": "Invalid status"}, status=400)
        if status == "crash":
            return web.Response(text="upstream exploded", status=502)
        return web.json_response({"data": [{"id": "o1"}], "nextCursor": None})

    async def products(self, request: web.Request) -> web.Response:
        self.requests.append(request)
        return web.json_response({"data": []})


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest_asyncio.fixture
async def executor(backend: FakeBackend):
    """Executor pointed at a running fake backend."""
    async with TestServer(backend.app) as server:
        settings = Settings(
            backend_base_url=str(server.make_url("/")),
            backend_auth_token="test-token",
            request_timeout=5,
        )
        async with HttpQueryExecutor(settings, list(get_collection_configs())) as executor:
            yield executor


@pytest.mark.asyncio
async def test_successful_query_returns_body(executor: HttpQueryExecutor, backend: FakeBackend):
    body = await executor.execute("orders", {"memberId": "m1", "isActive": False}, 1)

    assert body == {"data": [{"id": "o1"}], "nextCursor": None}
    request = backend.requests[0]
    assert request.query["limit"] == "1"
    assert request.query["memberId"] == "m1"
    assert request.query["isActive"] == "false"
    assert request.headers["Authorization"] == "Bearer test-token"


@pytest.mark.asyncio
async def test_public_collection_sends_no_token(executor: HttpQueryExecutor, backend: FakeBackend):
    await executor.execute("products", {}, 1)

    assert "Authorization" not in backend.requests[0].headers


@pytest.mark.asyncio
async def test_index_error_raises_index_required(executor: HttpQueryExecutor):
    with pytest.raises(IndexRequiredFailure) as exc_info:
        await executor.execute("orders", {"status": "needs-index"}, 1)

    assert exc_info.value.message == backend_index_message(ADMINS_LINK_DEFAULT)


@pytest.mark.asyncio
async def test_other_error_response(executor: HttpQueryExecutor):
    with pytest.raises(OtherExecutionFailure, match="HTTP 400: Invalid status"):
        await executor.execute("orders", {"status": "bogus"}, 1)


@pytest.mark.asyncio
async def test_non_json_error_response(executor: HttpQueryExecutor):
    with pytest.raises(OtherExecutionFailure, match="HTTP 502: upstream exploded"):
        await executor.execute("orders", {"status": "crash"}, 1)


@pytest.mark.asyncio
async def test_unknown_collection(executor: HttpQueryExecutor):
    with pytest.raises(OtherExecutionFailure, match="No endpoint configured"):
        await executor.execute("invoices", {}, 1)


@pytest.mark.asyncio
async def test_connection_error_is_other_failure(test_settings: Settings):
    settings = test_settings.model_copy(update={"backend_base_url": "http://127.0.0.1:1"})

    async with HttpQueryExecutor(settings, list(get_collection_configs())) as executor:
        with pytest.raises(OtherExecutionFailure, match="Request to"):
            await executor.execute("orders", {}, 1)
