"""Wires the pipeline together for one process lifetime."""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from config import settings
from core.logging import get_logger
from domain.interfaces import IUpstreamClient
from infrastructure import (
    AggregateRepository,
    Database,
    ItemCatalog,
    MatchStore,
    RegionRateLimiter,
    RiotAPIClient,
    ScrapeStateRepository,
)
from .services.cleanup_service import AggregateCleanupService
from .services.enrichment_queue import EnrichmentQueue
from .services.enrichment_service import EnrichmentService
from .services.scrape_scheduler import ScrapeContext, ScrapeScheduler
from .services.stats_aggregator import StatsAggregator
from .use_cases import AutoEnrichRecent, RunScrapeInvocation

logger = get_logger(__name__, service="pipeline")


class PipelineContext:
    """Owns the long-lived objects: store, limiter, client, aggregator, queue.

    Use as an async context manager so the upstream session is opened and
    the enrichment workers run for the lifetime of the block. On exit the
    workers stop and whatever the aggregator still buffers is flushed.
    """

    def __init__(
        self,
        *,
        db_path: Union[Path, str, None] = None,
        client: Optional[IUpstreamClient] = None,
        catalog: Optional[ItemCatalog] = None,
        rate_limiter: Optional[RegionRateLimiter] = None,
        workers: Optional[int] = None,
    ) -> None:
        self.db = Database(db_path or settings.DB_PATH)
        self.store = MatchStore(self.db)
        self.state_repository = ScrapeStateRepository(self.db)
        self.aggregates = AggregateRepository(self.db)
        self.rate_limiter = rate_limiter or RegionRateLimiter()
        self._owns_client = client is None
        self.client: IUpstreamClient = client or RiotAPIClient(rate_limiter=self.rate_limiter)
        self.catalog = catalog or ItemCatalog.from_file(settings.ITEM_CATALOG_PATH)
        self.aggregator = StatsAggregator(self.aggregates)
        self.enrichment = EnrichmentService(
            self.store, self.client, self.aggregator, self.aggregates, catalog=self.catalog
        )
        self.queue = EnrichmentQueue(self.enrichment, workers=workers)
        self.auto_enrich = AutoEnrichRecent(self.store, self.queue)
        self.cleanup = AggregateCleanupService(self.aggregates)

    def scheduler(self, scrape_context: ScrapeContext) -> ScrapeScheduler:
        return ScrapeScheduler(self.store, self.state_repository, self.client, scrape_context)

    def scrape_invocation(self) -> RunScrapeInvocation:
        return RunScrapeInvocation(self.scheduler, self.aggregator)

    async def __aenter__(self) -> "PipelineContext":
        if self._owns_client:
            await self.client.__aenter__()
        self.queue.start()
        logger.debug(lambda: f"pipeline-open db={self.db.path}")
        return self

    async def __aexit__(self, *exc) -> None:
        try:
            await self.queue.stop()
            result = await self.aggregator.flush()
            if not result.success:
                logger.error(lambda: f"pipeline-close-flush-failed pending={self.aggregator.pending_count()}")
        finally:
            if self._owns_client:
                await self.client.__aexit__(*exc)
