"""Upstream endpoint classes and request priorities."""
from enum import Enum


class EndpointClass(Enum):
    """Match-v5 method groups; upstream tracks a separate quota for each."""

    MATCH_IDS = "match-ids"
    MATCH = "match"
    TIMELINE = "timeline"


class RequestType(Enum):
    """BATCH is crawler traffic and must leave headroom for OVERHEAD calls."""

    BATCH = "batch"
    OVERHEAD = "overhead"
