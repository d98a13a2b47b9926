"""Ports the application layer depends on."""
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from ..entities import MatchRecord
from ..enums import EndpointClass, Region, RequestType


class IRateLimiter(ABC):
    """Admission control for outbound upstream calls."""

    @abstractmethod
    async def wait_for_rate_limit(
        self,
        region: Region,
        endpoint_class: EndpointClass,
        timeout_budget_ms: float,
        request_type: RequestType = RequestType.BATCH,
    ) -> None:
        """Return once a call is admissible; raise RateLimitTimeout otherwise."""
        pass


class IUpstreamClient(ABC):
    """Match-v5 data source."""

    @abstractmethod
    async def get_match_ids_by_puuid(
        self,
        region: Region,
        puuid: str,
        *,
        start_time: Optional[int] = None,
        count: int = 20,
        start: int = 0,
        queue: Optional[int] = None,
        budget_ms: Optional[float] = None,
        request_type: RequestType = RequestType.BATCH,
    ) -> list[str]:
        pass

    @abstractmethod
    async def get_match(
        self,
        region: Region,
        match_id: str,
        *,
        budget_ms: Optional[float] = None,
        request_type: RequestType = RequestType.BATCH,
    ) -> Optional[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_timeline(
        self,
        region: Region,
        match_id: str,
        *,
        budget_ms: Optional[float] = None,
        request_type: RequestType = RequestType.BATCH,
    ) -> Optional[dict[str, Any]]:
        pass


class IMatchStore(ABC):
    """Deduplicating match persistence."""

    @abstractmethod
    def match_exists(self, match_ids: Iterable[str]) -> set[str]:
        pass

    @abstractmethod
    def store_match(
        self, payload: dict[str, Any], region: Region, timeline: Optional[dict[str, Any]] = None
    ) -> bool:
        pass

    @abstractmethod
    def get_match(self, match_id: str) -> Optional[MatchRecord]:
        pass

    @abstractmethod
    def update_participant_derived_fields(
        self, match_id: str, puuid: str, fields: dict[str, Any]
    ) -> bool:
        pass
