"""One scheduled scrape invocation across all enabled regions."""
from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Dict, List, Optional

from config import settings
from core.logging import get_logger
from domain.entities import RegionScrapeResult
from domain.enums import Region, ScanState
from application.services.scrape_scheduler import ScrapeContext, ScrapeScheduler
from application.services.stats_aggregator import StatsAggregator

logger = get_logger(__name__, service="scrape-invocation")


class RunScrapeInvocation:
    """
    Runs every enabled region concurrently against one deadline.

    Regions share nothing except the rate limiter and the store; a region
    that raises is reported with its error and does not disturb the others.
    The aggregator is flushed at the end regardless.
    """

    def __init__(
        self,
        scheduler_factory: Callable[[ScrapeContext], ScrapeScheduler],
        aggregator: Optional[StatsAggregator] = None,
        *,
        max_duration_s: Optional[float] = None,
        disabled_regions: Optional[set] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.scheduler_factory = scheduler_factory
        self.aggregator = aggregator
        self.max_duration_s = max_duration_s or settings.MAX_DURATION_SECONDS
        self.disabled_regions = settings.DISABLED_REGIONS if disabled_regions is None else disabled_regions
        self._clock = clock

    def enabled_regions(self) -> List[Region]:
        return [r for r in Region.all_regions() if r.value not in self.disabled_regions]

    async def execute(self, regions: Optional[List[Region]] = None) -> Dict[str, Any]:
        started = self._clock()
        deadline = started + self.max_duration_s
        regions = regions or self.enabled_regions()
        scheduler = self.scheduler_factory(ScrapeContext())

        outcomes = await asyncio.gather(
            *(scheduler.process_region(region, deadline) for region in regions),
            return_exceptions=True,
        )

        summary_regions: Dict[str, Dict[str, Any]] = {}
        total_stored = 0
        for region, outcome in zip(regions, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(
                    lambda: f"region-failed {region.value}",
                    fields={"error": repr(outcome)},
                )
                outcome = RegionScrapeResult(region=region, state=ScanState.IDLE, error=str(outcome))
            total_stored += outcome.stored
            summary_regions[region.value] = outcome.to_dict()

        flush: Dict[str, Any] = {"success": True, "count": 0}
        if self.aggregator is not None:
            result = await self.aggregator.flush()
            flush = {"success": result.success, "count": result.count}
            if result.error:
                flush["error"] = result.error

        duration_ms = int((self._clock() - started) * 1000)
        logger.success(lambda: f"invocation-done stored={total_stored} duration_ms={duration_ms}")
        return {
            "regions": summary_regions,
            "total_stored": total_stored,
            "duration_ms": duration_ms,
            "flush": flush,
        }
