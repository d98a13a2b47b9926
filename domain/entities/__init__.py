"""Domain entities."""
from .participant import ParticipantRecord
from .match import MatchRecord, patch_from_version, patch_sort_key
from .scrape_state import RegionScrapeState, RegionScrapeResult
from .contribution import StatsContribution
from .enrichment import EnrichmentResult
from .aggregate import ChampionTally, MetricBaseline, core_combo_key

__all__ = [
    'ParticipantRecord',
    'MatchRecord',
    'patch_from_version',
    'patch_sort_key',
    'RegionScrapeState',
    'RegionScrapeResult',
    'StatsContribution',
    'EnrichmentResult',
    'ChampionTally',
    'MetricBaseline',
    'core_combo_key',
]
