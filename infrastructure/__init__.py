"""Infrastructure layer - API clients, repositories and static data."""
from .api import RiotAPIClient, RateLimiter, RegionRateLimiter
from .repositories import AggregateRepository, Database, MatchStore, ScrapeStateRepository
from .static_data import ItemCatalog, fetch_item_catalog

__all__ = [
    'RiotAPIClient',
    'RateLimiter',
    'RegionRateLimiter',
    'AggregateRepository',
    'Database',
    'MatchStore',
    'ScrapeStateRepository',
    'ItemCatalog',
    'fetch_item_catalog',
]
