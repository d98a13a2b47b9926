"""Application layer - Services and use cases."""
from .context import PipelineContext
from .use_cases import AutoEnrichRecent, RunScrapeInvocation

__all__ = [
    'PipelineContext',
    'AutoEnrichRecent',
    'RunScrapeInvocation',
]
