import asyncio

import httpx
import pytest

from domain.enums import EndpointClass, Region, RequestType
from domain.errors import UpstreamAuthError, UpstreamRateLimited, UpstreamUnavailable
from infrastructure.api import RiotAPIClient


class RecordingLimiter:
    def __init__(self) -> None:
        self.waits = []
        self.rate_limited = []

    async def wait_for_rate_limit(self, region, endpoint_class, timeout_budget_ms, request_type=RequestType.BATCH):
        self.waits.append((region, endpoint_class, timeout_budget_ms, request_type))

    def note_rate_limited(self, region, endpoint_class, retry_after):
        self.rate_limited.append((region, endpoint_class, retry_after))


def _call(handler, fn):
    limiter = RecordingLimiter()

    async def run():
        async with RiotAPIClient("test-key", rate_limiter=limiter, transport=httpx.MockTransport(handler)) as client:
            return await fn(client)

    return asyncio.run(run()), limiter


def test_match_ids_request_shape_and_headers():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["token"] = request.headers.get("X-Riot-Token")
        return httpx.Response(200, json=["EUW1_1", "EUW1_2"])

    ids, limiter = _call(
        handler,
        lambda c: c.get_match_ids_by_puuid(Region.EUROPE, "abc", start_time=1700000000, count=20, queue=450, budget_ms=900),
    )
    assert ids == ["EUW1_1", "EUW1_2"]
    assert seen["token"] == "test-key"
    assert seen["url"].startswith("https://europe.api.riotgames.com/lol/match/v5/matches/by-puuid/abc/ids")
    assert "queue=450" in seen["url"] and "startTime=1700000000" in seen["url"]
    assert limiter.waits == [(Region.EUROPE, EndpointClass.MATCH_IDS, 900, RequestType.BATCH)]


def test_404_means_absent():
    handler = lambda request: httpx.Response(404, json={"status": {"status_code": 404}})
    match, _ = _call(handler, lambda c: c.get_match(Region.ASIA, "KR_1"))
    assert match is None
    ids, _ = _call(handler, lambda c: c.get_match_ids_by_puuid(Region.ASIA, "x"))
    assert ids == []


def test_429_raises_and_blocks_limiter():
    handler = lambda request: httpx.Response(429, headers={"Retry-After": "7"})
    with pytest.raises(UpstreamRateLimited) as info:
        _call(handler, lambda c: c.get_timeline(Region.EUROPE, "EUW1_1"))
    assert info.value.retry_after == 7.0
    assert info.value.retryable


def test_429_notifies_limiter():
    limiter = RecordingLimiter()
    handler = lambda request: httpx.Response(429, headers={"Retry-After": "2"})

    async def run():
        async with RiotAPIClient("k", rate_limiter=limiter, transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(UpstreamRateLimited):
                await client.get_match(Region.EUROPE, "EUW1_1")

    asyncio.run(run())
    assert limiter.rate_limited == [(Region.EUROPE, EndpointClass.MATCH, 2.0)]


@pytest.mark.parametrize("status", [500, 502, 503])
def test_5xx_is_unavailable(status):
    handler = lambda request: httpx.Response(status)
    with pytest.raises(UpstreamUnavailable):
        _call(handler, lambda c: c.get_match(Region.EUROPE, "EUW1_1"))


def test_network_error_is_unavailable():
    def handler(request):
        raise httpx.ConnectError("boom", request=request)

    with pytest.raises(UpstreamUnavailable):
        _call(handler, lambda c: c.get_match(Region.EUROPE, "EUW1_1"))


@pytest.mark.parametrize("status", [401, 403])
def test_auth_errors(status):
    handler = lambda request: httpx.Response(status)
    with pytest.raises(UpstreamAuthError):
        _call(handler, lambda c: c.get_match(Region.EUROPE, "EUW1_1"))


def test_client_never_retries():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503)

    with pytest.raises(UpstreamUnavailable):
        _call(handler, lambda c: c.get_timeline(Region.EUROPE, "EUW1_1"))
    assert len(calls) == 1
