import asyncio
import sys
from pathlib import Path

import httpx
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from workforce.core.errors import MutationError, PartialBatchFailure
from workforce.sync import CacheKey, QueryRegistry, WorkforceApiClient, register_queries
from workforce.sync.api import NETWORK_ERROR_MESSAGE

BASE_URL = "http://testserver"


class RecordingRegistry:
    def __init__(self) -> None:
        self.invalidated: list = []

    def invalidate(self, key) -> bool:
        self.invalidated.append(key)
        return True


def _client(handler, registry=None) -> WorkforceApiClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WorkforceApiClient(BASE_URL, "tok", registry=registry, http_client=http_client)


def test_clock_in_sends_bearer_and_invalidates_session_queries():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        seen["path"] = request.url.path
        return httpx.Response(200, json={"id": 4, "user_id": 2})

    registry = RecordingRegistry()

    async def scenario():
        api = _client(handler, registry)
        return await api.clock_in()

    result = asyncio.run(scenario())

    assert result["id"] == 4
    assert seen == {"auth": "Bearer tok", "path": "/api/work-sessions/clock-in"}
    assert set(registry.invalidated) == {
        CacheKey.ACTIVE_WORK_SESSION,
        CacheKey.COMPANY_WORK_SESSIONS,
        CacheKey.DASHBOARD_SUMMARY,
    }


def test_network_failure_becomes_a_friendly_mutation_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    registry = RecordingRegistry()

    async def scenario():
        api = _client(handler, registry)
        await api.send_message(3, "Hola")

    with pytest.raises(MutationError) as excinfo:
        asyncio.run(scenario())

    assert excinfo.value.description == NETWORK_ERROR_MESSAGE
    assert excinfo.value.status_code is None
    assert registry.invalidated == []


def test_server_rejection_carries_status_and_detail():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"detail": "El documento debe visualizarse antes de firmarlo"})

    async def scenario():
        api = _client(handler, RecordingRegistry())
        await api.sign(5, "Juan Pérez")

    with pytest.raises(MutationError) as excinfo:
        asyncio.run(scenario())

    assert excinfo.value.status_code == 409
    assert excinfo.value.title == "Error al firmar el documento"
    assert "visualizarse" in excinfo.value.description


def test_undo_batch_reports_partial_failure():
    deleted_paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "DELETE"
        deleted_paths.append(request.url.path)
        if request.url.path.endswith("/2"):
            return httpx.Response(404, json={"detail": "Document not found"})
        return httpx.Response(200, json={"deleted": True})

    registry = RecordingRegistry()

    async def scenario():
        api = _client(handler, registry)
        return await api.undo_batch([1, 2, 3])

    report = asyncio.run(scenario())

    assert deleted_paths == ["/api/documents/1", "/api/documents/2", "/api/documents/3"]
    assert report.deleted == [1, 3]
    assert report.failed == {2: "Document not found"}
    assert report.total == 3
    assert CacheKey.DOCUMENTS in registry.invalidated
    with pytest.raises(PartialBatchFailure, match="Se han eliminado 2 de 3 documentos"):
        report.raise_for_failures()


def test_ambiguous_upload_reason_is_surfaced():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            422,
            json={"detail": {"file_name": "nomina.pdf", "reason": "no employee name found in filename"}},
        )

    async def scenario():
        api = _client(handler)
        await api.upload_document("nomina.pdf", b"%PDF-1.4")

    with pytest.raises(MutationError) as excinfo:
        asyncio.run(scenario())

    assert excinfo.value.status_code == 422
    assert excinfo.value.description == "no employee name found in filename"


def test_create_view_url_is_absolute():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"url": "/api/documents/8/download?sig=abc", "expires_in": 300})

    async def scenario():
        api = _client(handler)
        return await api.create_view_url(8)

    assert asyncio.run(scenario()) == "http://testserver/api/documents/8/download?sig=abc"


def test_failed_fetch_is_kept_on_the_cache_entry():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/messages/unread-count":
            return httpx.Response(500, json={"detail": "boom"})
        return httpx.Response(200, json={"items": [{"id": 1, "content": "Hola"}]})

    async def scenario():
        registry = QueryRegistry()
        api = _client(handler, registry)
        register_queries(registry, api, privileged=False)
        messages = await registry.refresh(CacheKey.MESSAGES)
        unread = await registry.refresh(CacheKey.UNREAD_MESSAGE_COUNT)
        await registry.aclose()
        return registry, messages, unread

    registry, messages, unread = asyncio.run(scenario())

    assert messages.data == [{"id": 1, "content": "Hola"}]
    assert isinstance(unread.error, httpx.HTTPStatusError)
    assert unread.data is None
    assert not registry.is_registered(CacheKey.DASHBOARD_SUMMARY)


def test_privileged_sessions_register_company_queries():
    registry = QueryRegistry()
    api = WorkforceApiClient(BASE_URL, "tok", http_client=httpx.AsyncClient())
    register_queries(registry, api, privileged=True)

    for key in (CacheKey.DASHBOARD_SUMMARY, CacheKey.COMPANY_WORK_SESSIONS, CacheKey.WORK_REPORTS):
        assert registry.is_registered(key)
    assert registry.read(CacheKey.COMPANY_WORK_SESSIONS).is_loading is False
