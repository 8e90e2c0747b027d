"""Tests for ApiClient using httpx's mock transport."""

import json

import httpx
import pytest
from core.api_client import ApiClient
from core.exceptions import ApiError


def make_client(handler):
    return ApiClient("http://service.test/api", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_reads_hit_expected_paths():
    """Test that each read calls its service endpoint."""
    seen = []

    def handler(request):
        seen.append((request.method, request.url.path))
        return httpx.Response(200, json={"ok": True})

    client = make_client(handler)
    await client.get_status()
    await client.get_dates()
    await client.get_completed_reservations()
    await client.get_config()
    await client.aclose()

    assert seen == [
        ("GET", "/api/status"),
        ("GET", "/api/dates"),
        ("GET", "/api/completed-reservations"),
        ("GET", "/api/config"),
    ]


@pytest.mark.asyncio
async def test_update_date_sends_only_given_fields():
    """Test that a partial date update sends only the supplied fields."""
    bodies = []

    def handler(request):
        bodies.append((request.method, request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"success": True})

    client = make_client(handler)
    await client.update_date("2026-11-02", time_slots=["10:00"])
    await client.update_date("2026-11-02", enabled=False)
    await client.aclose()

    assert bodies == [
        ("PUT", "/api/dates/2026-11-02", {"timeSlots": ["10:00"]}),
        ("PUT", "/api/dates/2026-11-02", {"enabled": False}),
    ]


@pytest.mark.asyncio
async def test_update_date_requires_a_field():
    """Test that an update with no fields is rejected before any request."""
    client = make_client(lambda request: httpx.Response(200, json={}))
    with pytest.raises(ValueError):
        await client.update_date("2026-11-02")
    await client.aclose()


@pytest.mark.asyncio
async def test_other_writes():
    """Test the method, path and body of the remaining write calls."""
    seen = []

    def handler(request):
        body = json.loads(request.content) if request.content else None
        seen.append((request.method, request.url.path, body))
        return httpx.Response(200, json={"success": True})

    client = make_client(handler)
    await client.add_date("2026-11-02")
    await client.remove_date("2026-11-02")
    await client.start_monitoring()
    await client.stop_monitoring()
    await client.set_monitoring_time_restriction(False)
    await client.manual_reserve("2026-11-02", "https://booking.example/slot")
    await client.aclose()

    assert seen == [
        ("POST", "/api/dates", {"date": "2026-11-02"}),
        ("DELETE", "/api/dates/2026-11-02", None),
        ("POST", "/api/monitoring/start", {}),
        ("POST", "/api/monitoring/stop", {}),
        ("PUT", "/api/config/monitoring-time-restriction", {"enabled": False}),
        ("POST", "/api/manual-reserve", {"date": "2026-11-02", "url": "https://booking.example/slot"}),
    ]


@pytest.mark.asyncio
async def test_error_status_raises_api_error():
    """Test that a non-2xx response raises ApiError with its details."""
    client = make_client(lambda request: httpx.Response(500, text="Unknown endpoint: /nope"))
    with pytest.raises(ApiError) as excinfo:
        await client.get_status()
    await client.aclose()

    assert excinfo.value.status_code == 500
    assert "Unknown endpoint" in excinfo.value.body
    assert excinfo.value.path == "/status"
