"""Queue enrichment for a player's freshly fetched matches."""
from __future__ import annotations

from typing import Iterable, List, Optional

from config import settings
from core.logging import get_logger
from domain.enums import Region
from infrastructure.repositories import MatchStore
from application.services.enrichment_queue import EnrichmentJob, EnrichmentQueue

logger = get_logger(__name__, service="auto-enrich")

DAY_MS = 86_400_000


class AutoEnrichRecent:
    """Picks stored, timeline-less matches younger than the age cap and queues them."""

    def __init__(
        self,
        store: MatchStore,
        queue: EnrichmentQueue,
        *,
        max_age_days: Optional[int] = None,
        limit: Optional[int] = None,
    ):
        self.store = store
        self.queue = queue
        self.max_age_days = max_age_days or settings.AUTO_ENRICH_MAX_AGE_DAYS
        self.limit = limit or settings.MAX_ENRICHMENTS_PER_FETCH

    def execute(self, match_ids: Iterable[str], region: Region) -> List[EnrichmentJob]:
        picked = self.store.recent_matches_without_timeline(
            match_ids, self.max_age_days * DAY_MS, self.limit
        )
        jobs = [self.queue.submit(match_id, region) for match_id in picked]
        logger.info(lambda: f"auto-enrich-queued {len(jobs)}", fields={"match_ids": picked})
        return jobs
