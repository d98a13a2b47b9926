"""Routing enumerations for the upstream API."""
from enum import Enum
from typing import Optional


class Region(Enum):
    """Regional routing clusters.

    Match-v5 traffic is routed per cluster and quotas are tracked per
    cluster, so Region is the sharding key for scraping and rate limiting.
    """

    EUROPE = "europe"
    AMERICAS = "americas"
    ASIA = "asia"
    SEA = "sea"

    @property
    def host(self) -> str:
        """Base URL for match endpoints in this cluster."""
        return f"https://{self.value}.api.riotgames.com"

    @classmethod
    def all_regions(cls) -> list['Region']:
        return list(cls)

    @classmethod
    def parse(cls, value: str) -> 'Region':
        """Accept a cluster name or a platform code (``euw1`` -> EUROPE)."""
        key = (value or "").strip().lower()
        for region in cls:
            if region.value == key:
                return region
        platform = Platform.parse(key)
        if platform is not None:
            return platform.region
        raise ValueError(f"unknown region '{value}'")


class Platform(Enum):
    """Platform (shard) codes players are registered on."""

    # Europe
    EUW1 = "euw1"
    EUN1 = "eun1"
    TR1 = "tr1"
    RU = "ru"
    ME1 = "me1"

    # Americas
    NA1 = "na1"
    BR1 = "br1"
    LA1 = "la1"
    LA2 = "la2"

    # Asia
    KR = "kr"
    JP1 = "jp1"

    # Oceania routes through AMERICAS for match data
    OC1 = "oc1"

    # SEA
    SG2 = "sg2"
    TW2 = "tw2"
    VN2 = "vn2"

    @property
    def region(self) -> Region:
        return _PLATFORM_TO_REGION[self.value]

    @classmethod
    def parse(cls, value: str) -> Optional['Platform']:
        key = (value or "").strip().lower()
        for platform in cls:
            if platform.value == key:
                return platform
        return None


_PLATFORM_TO_REGION = {
    "euw1": Region.EUROPE,
    "eun1": Region.EUROPE,
    "tr1": Region.EUROPE,
    "ru": Region.EUROPE,
    # ME1 match data is served from the SEA cluster
    "me1": Region.SEA,
    "na1": Region.AMERICAS,
    "br1": Region.AMERICAS,
    "la1": Region.AMERICAS,
    "la2": Region.AMERICAS,
    "kr": Region.ASIA,
    "jp1": Region.ASIA,
    "oc1": Region.AMERICAS,
    "sg2": Region.SEA,
    "tw2": Region.SEA,
    "vn2": Region.SEA,
}
