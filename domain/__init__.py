"""Domain layer - entities, enums, errors and ports."""
from .entities import (
    MatchRecord,
    ParticipantRecord,
    RegionScrapeState,
    RegionScrapeResult,
    StatsContribution,
    EnrichmentResult,
)
from .enums import Region, Platform, EndpointClass, RequestType, ScanState, ReasonTag, JobStatus
from .interfaces import IRateLimiter, IUpstreamClient, IMatchStore

__all__ = [
    # Entities
    'MatchRecord',
    'ParticipantRecord',
    'RegionScrapeState',
    'RegionScrapeResult',
    'StatsContribution',
    'EnrichmentResult',
    # Enums
    'Region',
    'Platform',
    'EndpointClass',
    'RequestType',
    'ScanState',
    'ReasonTag',
    'JobStatus',
    # Interfaces
    'IRateLimiter',
    'IUpstreamClient',
    'IMatchStore',
]
