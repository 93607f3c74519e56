"""Tests for EventsApiClient against a mocked transport."""

import httpx
import pytest

from watchcast.schemas import EventStatus
from watchcast.services.events_api import EventsApiClient
from watchcast.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

BASE_URL = "https://events.test/api/"


def _client(handler) -> EventsApiClient:
    return EventsApiClient(BASE_URL, timeout=2.0, transport=httpx.MockTransport(handler))


class TestFetchEvent:
    @pytest.mark.asyncio
    async def test_fetches_bare_record(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"title": "Gala", "status": "live", "streamState": "active"})

        snapshot = await _client(handler).fetch_event("gala-2026")

        assert snapshot.title == "Gala"
        assert snapshot.status == EventStatus.LIVE
        assert len(seen) == 1
        assert str(seen[0].url) == "https://events.test/api/events/gala-2026"
        assert seen[0].method == "GET"

    @pytest.mark.asyncio
    async def test_unwraps_envelope(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": True, "results": {"title": "Wrapped", "status": "ended"}})

        snapshot = await _client(handler).fetch_event("wrapped")

        assert snapshot.title == "Wrapped"
        assert snapshot.status == EventStatus.ENDED

    @pytest.mark.asyncio
    async def test_not_found(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"detail": "nope"})

        with pytest.raises(AppError) as exc_info:
            await _client(handler).fetch_event("missing")

        assert exc_info.value.errcode == AppErrorCode.E_EVENT_NOT_FOUND.value
        assert exc_info.value.status_code == HttpStatusCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_server_error_is_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="maintenance")

        with pytest.raises(AppError) as exc_info:
            await _client(handler).fetch_event("gala")

        assert exc_info.value.errcode == AppErrorCode.E_EVENTS_API_UNAVAILABLE.value
        assert exc_info.value.status_code == HttpStatusCode.BAD_GATEWAY

    @pytest.mark.asyncio
    async def test_transport_error_is_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(AppError) as exc_info:
            await _client(handler).fetch_event("gala")

        assert exc_info.value.errcode == AppErrorCode.E_EVENTS_API_UNAVAILABLE.value

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        with pytest.raises(AppError) as exc_info:
            await _client(handler).fetch_event("gala")

        assert exc_info.value.errcode == AppErrorCode.E_EVENTS_API_UNAVAILABLE.value

    @pytest.mark.asyncio
    async def test_malformed_payload(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"title": "Bad", "scheduledAt": "not a date"})

        with pytest.raises(AppError) as exc_info:
            await _client(handler).fetch_event("gala")

        assert exc_info.value.errcode == AppErrorCode.E_EVENTS_API_UNAVAILABLE.value
