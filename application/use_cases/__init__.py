"""Application use cases."""
from .run_scrape_invocation import RunScrapeInvocation
from .auto_enrich import AutoEnrichRecent

__all__ = ['RunScrapeInvocation', 'AutoEnrichRecent']
