"""Rate limiting matched to Riot's per-region, per-method quotas."""
import asyncio
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Dict, Optional, Tuple

from config import settings
from core.logging import get_logger
from domain.enums import EndpointClass, Region, RequestType
from domain.errors import RateLimitTimeout
from domain.interfaces import IRateLimiter

logger = get_logger(__name__, service="rate-limiter")

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]

_SHORT_WINDOW = 1.0
_LONG_WINDOW = 120.0
_EPSILON = 0.01


class RateLimiter:
    """
    Sliding-window bookkeeping for one quota bucket:
      - Short : N requests per 1 second
      - Long  : N requests per 120 seconds

    Holds no lock and never sleeps; RegionRateLimiter decides when to wait.
    """

    def __init__(
        self,
        requests_per_1_sec: int = 20,
        requests_per_2_min: int = 100,
    ):
        self.requests_per_1_sec = requests_per_1_sec
        self.requests_per_2_min = requests_per_2_min

        self._times_1s:   Deque[float] = deque()
        self._times_2min: Deque[float] = deque()
        self._blocked_until: float = 0.0

    def _prune(self, now: float) -> None:
        while self._times_1s and now - self._times_1s[0] >= _SHORT_WINDOW:
            self._times_1s.popleft()
        while self._times_2min and now - self._times_2min[0] >= _LONG_WINDOW:
            self._times_2min.popleft()

    @staticmethod
    def _window_wait(times: Deque[float], limit: int, window: float, now: float) -> float:
        if len(times) < limit:
            return 0.0
        # the slot frees when the (len - limit)th oldest entry leaves the window
        oldest_blocking = times[len(times) - limit]
        return max(0.0, oldest_blocking + window - now + _EPSILON)

    def wait_time(self, now: float, reserve_1s: int = 0, reserve_2min: int = 0) -> float:
        """Seconds until one more request fits, leaving ``reserve_*`` slots unused."""
        self._prune(now)
        limit_1s = max(1, self.requests_per_1_sec - reserve_1s)
        limit_2min = max(1, self.requests_per_2_min - reserve_2min)
        return max(
            self._window_wait(self._times_1s, limit_1s, _SHORT_WINDOW, now),
            self._window_wait(self._times_2min, limit_2min, _LONG_WINDOW, now),
            self._blocked_until - now,
            0.0,
        )

    def record(self, now: float) -> None:
        self._times_1s.append(now)
        self._times_2min.append(now)

    def block_for(self, now: float, seconds: float) -> None:
        self._blocked_until = max(self._blocked_until, now + seconds)

    def get_status(self, now: float) -> Tuple[int, int, int, int]:
        self._prune(now)
        return len(self._times_1s), self.requests_per_1_sec, len(self._times_2min), self.requests_per_2_min

    def reset(self) -> None:
        self._times_1s.clear()
        self._times_2min.clear()
        self._blocked_until = 0.0


class RegionRateLimiter(IRateLimiter):
    """Application-wide limits per region plus method limits per (region, endpoint class).

    A call is admitted only when both the region bucket and its method
    bucket have room. BATCH calls stop short of the limits by the batch
    reserve so OVERHEAD calls keep some quota for themselves.
    """

    def __init__(
        self,
        *,
        app_limits: Optional[Tuple[int, int]] = None,
        method_limits: Optional[Dict[EndpointClass, Tuple[int, int]]] = None,
        batch_reserve: Optional[Tuple[int, int]] = None,
        min_granularity_ms: Optional[float] = None,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ):
        self._app_limits = app_limits or (settings.APP_RATE_LIMIT_PER_1_SEC, settings.APP_RATE_LIMIT_PER_2_MIN)
        self._method_limits = method_limits or {
            EndpointClass.MATCH_IDS: (settings.MATCH_IDS_RATE_LIMIT_PER_1_SEC, settings.MATCH_IDS_RATE_LIMIT_PER_2_MIN),
            EndpointClass.MATCH: (settings.MATCH_RATE_LIMIT_PER_1_SEC, settings.MATCH_RATE_LIMIT_PER_2_MIN),
            EndpointClass.TIMELINE: (settings.TIMELINE_RATE_LIMIT_PER_1_SEC, settings.TIMELINE_RATE_LIMIT_PER_2_MIN),
        }
        self._batch_reserve = batch_reserve or (settings.BATCH_RESERVE_1_SEC, settings.BATCH_RESERVE_2_MIN)
        self.min_granularity_ms = (
            settings.RATE_LIMIT_MIN_GRANULARITY_MS if min_granularity_ms is None else min_granularity_ms
        )
        self._clock = clock
        self._sleep = sleep

        self._app: Dict[Region, RateLimiter] = {}
        self._methods: Dict[Tuple[Region, EndpointClass], RateLimiter] = {}
        self._locks: Dict[Region, asyncio.Lock] = {}

    def _app_bucket(self, region: Region) -> RateLimiter:
        bucket = self._app.get(region)
        if bucket is None:
            bucket = self._app[region] = RateLimiter(*self._app_limits)
        return bucket

    def _method_bucket(self, region: Region, endpoint_class: EndpointClass) -> RateLimiter:
        key = (region, endpoint_class)
        bucket = self._methods.get(key)
        if bucket is None:
            limits = self._method_limits.get(endpoint_class, self._app_limits)
            bucket = self._methods[key] = RateLimiter(*limits)
        return bucket

    def _lock(self, region: Region) -> asyncio.Lock:
        lock = self._locks.get(region)
        if lock is None:
            lock = self._locks[region] = asyncio.Lock()
        return lock

    async def wait_for_rate_limit(
        self,
        region: Region,
        endpoint_class: EndpointClass,
        timeout_budget_ms: float,
        request_type: RequestType = RequestType.BATCH,
    ) -> None:
        if timeout_budget_ms < self.min_granularity_ms:
            raise RateLimitTimeout(region.value, endpoint_class.value, self.min_granularity_ms, timeout_budget_ms)

        reserve = self._batch_reserve if request_type is RequestType.BATCH else (0, 0)
        deadline = self._clock() + timeout_budget_ms / 1000.0
        app = self._app_bucket(region)
        method = self._method_bucket(region, endpoint_class)

        while True:
            async with self._lock(region):
                now = self._clock()
                wait = max(app.wait_time(now, *reserve), method.wait_time(now, *reserve))
                if wait <= 0:
                    app.record(now)
                    method.record(now)
                    return

            remaining = deadline - self._clock()
            if wait > remaining:
                logger.debug(
                    lambda: f"rate-limit-timeout {region.value}/{endpoint_class.value} "
                            f"wait={wait:.2f}s remaining={remaining:.2f}s"
                )
                raise RateLimitTimeout(region.value, endpoint_class.value, wait * 1000, max(remaining, 0) * 1000)

            logger.trace(lambda: f"rate-limit-wait {region.value}/{endpoint_class.value} {wait:.2f}s")
            await self._sleep(wait)

    def note_rate_limited(
        self, region: Region, endpoint_class: EndpointClass, retry_after: Optional[float]
    ) -> None:
        """Upstream answered 429: block the method bucket for Retry-After seconds."""
        seconds = retry_after if retry_after and retry_after > 0 else 1.0
        self._method_bucket(region, endpoint_class).block_for(self._clock(), seconds)
        logger.warning(lambda: f"rate-limit-429 {region.value}/{endpoint_class.value} retry_after={seconds}s")

    def get_status(self, region: Region) -> Dict[str, Tuple[int, int, int, int]]:
        now = self._clock()
        status = {"app": self._app_bucket(region).get_status(now)}
        for (r, endpoint_class), bucket in self._methods.items():
            if r is region:
                status[endpoint_class.value] = bucket.get_status(now)
        return status

    def reset(self) -> None:
        for bucket in list(self._app.values()) + list(self._methods.values()):
            bucket.reset()
