import asyncio

import pytest

from domain.enums import EndpointClass, Region, RequestType
from domain.errors import RateLimitTimeout
from infrastructure.api import RateLimiter, RegionRateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _limiter(clock, app=(3, 100), method=(3, 100), reserve=(0, 0)):
    return RegionRateLimiter(
        app_limits=app,
        method_limits={ec: method for ec in EndpointClass},
        batch_reserve=reserve,
        min_granularity_ms=50,
        clock=clock,
        sleep=clock.sleep,
    )


def test_window_wait_frees_after_oldest_leaves():
    bucket = RateLimiter(2, 100)
    bucket.record(0.0)
    bucket.record(0.5)
    assert bucket.wait_time(0.6) == pytest.approx(0.41, abs=0.01)
    assert bucket.wait_time(1.1) == 0.0


def test_budget_below_granularity_raises_immediately():
    clock = FakeClock()
    limiter = _limiter(clock)
    with pytest.raises(RateLimitTimeout) as info:
        asyncio.run(limiter.wait_for_rate_limit(Region.EUROPE, EndpointClass.MATCH, 10))
    assert info.value.code == "TIMEOUT_EXCEEDED"
    assert clock.sleeps == []


def test_wait_longer_than_budget_fails_fast_without_sleeping():
    clock = FakeClock()
    limiter = _limiter(clock)

    async def run():
        for _ in range(3):
            await limiter.wait_for_rate_limit(Region.EUROPE, EndpointClass.MATCH, 1000)
        await limiter.wait_for_rate_limit(Region.EUROPE, EndpointClass.MATCH, 200)

    with pytest.raises(RateLimitTimeout):
        asyncio.run(run())
    assert clock.sleeps == []


def test_waits_when_budget_allows():
    clock = FakeClock()
    limiter = _limiter(clock)

    async def run():
        for _ in range(4):
            await limiter.wait_for_rate_limit(Region.EUROPE, EndpointClass.MATCH, 5000)

    asyncio.run(run())
    assert len(clock.sleeps) == 1
    assert clock.sleeps[0] == pytest.approx(1.01, abs=0.01)


def test_regions_have_independent_buckets():
    clock = FakeClock()
    limiter = _limiter(clock)

    async def run():
        for _ in range(3):
            await limiter.wait_for_rate_limit(Region.EUROPE, EndpointClass.MATCH, 1000)
        await limiter.wait_for_rate_limit(Region.ASIA, EndpointClass.MATCH, 100)

    asyncio.run(run())
    assert clock.sleeps == []


def test_method_limit_applies_per_endpoint_class():
    clock = FakeClock()
    limiter = RegionRateLimiter(
        app_limits=(20, 100),
        method_limits={EndpointClass.TIMELINE: (1, 100), EndpointClass.MATCH: (20, 100), EndpointClass.MATCH_IDS: (20, 100)},
        batch_reserve=(0, 0),
        clock=clock,
        sleep=clock.sleep,
    )

    async def run():
        await limiter.wait_for_rate_limit(Region.EUROPE, EndpointClass.TIMELINE, 1000)
        await limiter.wait_for_rate_limit(Region.EUROPE, EndpointClass.MATCH, 100)
        await limiter.wait_for_rate_limit(Region.EUROPE, EndpointClass.TIMELINE, 100)

    with pytest.raises(RateLimitTimeout):
        asyncio.run(run())


def test_batch_requests_leave_headroom_for_overhead():
    clock = FakeClock()
    limiter = _limiter(clock, app=(5, 100), method=(5, 100), reserve=(2, 10))

    async def run():
        for _ in range(3):
            await limiter.wait_for_rate_limit(Region.EUROPE, EndpointClass.MATCH, 1000, RequestType.BATCH)
        with pytest.raises(RateLimitTimeout):
            await limiter.wait_for_rate_limit(Region.EUROPE, EndpointClass.MATCH, 100, RequestType.BATCH)
        await limiter.wait_for_rate_limit(Region.EUROPE, EndpointClass.MATCH, 100, RequestType.OVERHEAD)
        await limiter.wait_for_rate_limit(Region.EUROPE, EndpointClass.MATCH, 100, RequestType.OVERHEAD)

    asyncio.run(run())
    assert clock.sleeps == []


def test_429_blocks_the_method_bucket():
    clock = FakeClock()
    limiter = _limiter(clock)
    limiter.note_rate_limited(Region.EUROPE, EndpointClass.MATCH, 3.0)

    with pytest.raises(RateLimitTimeout):
        asyncio.run(limiter.wait_for_rate_limit(Region.EUROPE, EndpointClass.MATCH, 1000))
    asyncio.run(limiter.wait_for_rate_limit(Region.EUROPE, EndpointClass.TIMELINE, 1000))


def test_status_reports_window_usage():
    clock = FakeClock()
    limiter = _limiter(clock)
    asyncio.run(limiter.wait_for_rate_limit(Region.SEA, EndpointClass.MATCH_IDS, 1000))
    status = limiter.get_status(Region.SEA)
    assert status["app"] == (1, 3, 1, 100)
    assert status["match-ids"][0] == 1
