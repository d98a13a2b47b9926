"""Application services root exports."""
from .stats_aggregator import FlushResult, StatsAggregator
from .enrichment_service import EnrichmentService
from .enrichment_queue import EnrichmentJob, EnrichmentQueue
from .retry_policy import RetryPolicy
from .scrape_scheduler import ScrapeContext, ScrapeScheduler
from .cleanup_service import AggregateCleanupService
from .scoring import ScoreBreakdown, ScoreInput, compute_score

__all__ = [
    "FlushResult",
    "StatsAggregator",
    "EnrichmentService",
    "EnrichmentJob",
    "EnrichmentQueue",
    "RetryPolicy",
    "ScrapeContext",
    "ScrapeScheduler",
    "AggregateCleanupService",
    "ScoreBreakdown",
    "ScoreInput",
    "compute_score",
]
