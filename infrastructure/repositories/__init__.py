"""Infrastructure repositories module."""
from .database import Database
from .match_store import MatchStore
from .scrape_state_repository import ScrapeStateRepository
from .aggregate_repository import AggregateRepository

__all__ = [
    'Database',
    'MatchStore',
    'ScrapeStateRepository',
    'AggregateRepository',
]
