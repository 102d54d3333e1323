"""Tests for profile lookup and default resolution."""

import asyncio

import httpx

from workout_monitor.config import Settings
from workout_monitor.models import BodyMetrics
from workout_monitor.profiles import (
    HttpProfileDirectory,
    InMemoryProfileDirectory,
    LookupFailed,
    create_profile_directory,
    lookup_body_metrics,
    resolve_body_metrics,
)


def _directory(handler) -> HttpProfileDirectory:
    return HttpProfileDirectory("http://profiles.test/api", transport=httpx.MockTransport(handler))


class TestLookup:
    async def test_found(self, profiles):
        result = await lookup_body_metrics(profiles, "U001")
        assert result == BodyMetrics(height_cm=175.0, weight_kg=70.0)

    async def test_not_found(self, profiles):
        result = await lookup_body_metrics(profiles, "ghost")
        assert isinstance(result, LookupFailed)
        assert result.reason == "not_found"

    def test_resolve_defaults(self):
        metrics = resolve_body_metrics(LookupFailed(user_id="ghost", reason="not_found"))
        assert (metrics.height_cm, metrics.weight_kg) == (175.0, 70.0)

    def test_resolve_passthrough(self):
        metrics = BodyMetrics(height_cm=160.0, weight_kg=50.0)
        assert resolve_body_metrics(metrics) is metrics


class TestHttpProfileDirectory:
    async def test_fetch_user(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/user/U001"
            return httpx.Response(200, json={"success": True, "user": {"height": 182, "weight": "80"}})

        result = await lookup_body_metrics(_directory(handler), "U001")
        assert result == BodyMetrics(height_cm=182.0, weight_kg=80.0)

    async def test_missing_fields_use_defaults(self):
        directory = _directory(lambda r: httpx.Response(200, json={"success": True, "user": {"height": 0}}))
        assert await directory.get_body_metrics("U001") == BodyMetrics()

    async def test_unknown_user(self):
        directory = _directory(lambda r: httpx.Response(200, json={"success": False, "message": "User not found"}))
        assert isinstance(await lookup_body_metrics(directory, "U001"), LookupFailed)

    async def test_404(self):
        directory = _directory(lambda r: httpx.Response(404))
        assert await directory.get_body_metrics("U001") is None

    async def test_server_error_becomes_lookup_failure(self):
        directory = _directory(lambda r: httpx.Response(503))
        result = await lookup_body_metrics(directory, "U001")
        assert isinstance(result, LookupFailed)
        assert result.user_id == "U001"


def test_factory_selects_directory():
    assert isinstance(create_profile_directory(Settings(profile_service_url="")), InMemoryProfileDirectory)
    assert isinstance(
        create_profile_directory(Settings(profile_service_url="http://profiles.test")),
        HttpProfileDirectory,
    )


async def test_http_directory_aclose_closes_client():
    directory = _directory(lambda r: httpx.Response(404))
    await directory.aclose()
    assert directory._client.is_closed


async def test_slow_directory_does_not_block_event_loop():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.5)
        return httpx.Response(200, json={"success": True, "user": {"height": 180, "weight": 75}})

    directory = _directory(handler)
    ticks = 0

    async def ticker() -> None:
        nonlocal ticks
        while True:
            await asyncio.sleep(0.05)
            ticks += 1

    task = asyncio.create_task(ticker())
    result = await lookup_body_metrics(directory, "U001")
    task.cancel()
    await directory.aclose()

    assert result == BodyMetrics(height_cm=180.0, weight_kg=75.0)
    assert ticks >= 5
