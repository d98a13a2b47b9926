"""Riot Games match-v5 API client."""
import time
from typing import Any, Dict, List, Optional, Union

import httpx

from config import settings
from core.logging import get_logger
from domain.enums import EndpointClass, Region, RequestType
from domain.errors import UpstreamAuthError, UpstreamError, UpstreamRateLimited, UpstreamUnavailable
from domain.interfaces import IRateLimiter, IUpstreamClient
from .rate_limiter import RegionRateLimiter

logger = get_logger(__name__, service="riot-client")

JSON = Union[Dict[str, Any], List[Any]]


class RiotAPIClient(IUpstreamClient):
    """Asynchronous match-v5 client gated by a RegionRateLimiter.

    Pure I/O: 404 maps to "absent", 429 and 5xx raise distinct errors,
    and nothing is retried here. Callers own the retry policy.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        rate_limiter: Optional[IRateLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
        default_budget_ms: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.RIOT_API_KEY
        self.rate_limiter = rate_limiter or RegionRateLimiter()
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self.default_budget_ms = default_budget_ms or settings.DEFAULT_WAIT_BUDGET_MS
        self.session: Optional[httpx.AsyncClient] = None
        self.last_status_code: Optional[int] = None
        self._transport = transport

    async def __aenter__(self):
        self.session = httpx.AsyncClient(
            timeout=self.timeout,
            headers={"X-Riot-Token": self.api_key},
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *_):
        if self.session:
            await self.session.aclose()
            self.session = None

    async def _make_request(
        self,
        region: Region,
        endpoint_class: EndpointClass,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        budget_ms: Optional[float] = None,
        request_type: RequestType = RequestType.BATCH,
    ) -> Optional[JSON]:
        if self.session is None:
            raise RuntimeError("RiotAPIClient must be used as an async context manager")

        await self.rate_limiter.wait_for_rate_limit(
            region,
            endpoint_class,
            budget_ms if budget_ms is not None else self.default_budget_ms,
            request_type,
        )

        url = f"{region.host}{path}"
        started = time.perf_counter()
        try:
            response = await self.session.get(url, params=params)
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailable(f"timeout: {url}", url=url) from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"network error: {exc}", url=url) from exc

        status = response.status_code
        self.last_status_code = status
        logger.trace(
            lambda: f"riot-request {endpoint_class.value} {status}",
            extra={"execution_time_ms": round((time.perf_counter() - started) * 1000, 1)},
        )

        if status == 200:
            return response.json()

        if status == 404:
            return None

        if status == 429:
            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            note = getattr(self.rate_limiter, "note_rate_limited", None)
            if note is not None:
                note(region, endpoint_class, retry_after)
            raise UpstreamRateLimited(url, retry_after=retry_after)

        if status in (401, 403):
            logger.error(f"{status} from upstream, check RIOT_API_KEY")
            raise UpstreamAuthError(f"{status} unauthorized", status_code=status, url=url)

        if status >= 500:
            raise UpstreamUnavailable(f"HTTP {status}", status_code=status, url=url)

        raise UpstreamError(f"HTTP {status}", status_code=status, url=url)

    # ── Match API ──────────────────────────────────────────────────────

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
    ) -> List[str]:
        params: Dict[str, Any] = {"start": start, "count": min(count, 100)}
        if queue is not None:
            params["queue"] = queue
        if start_time:
            params["startTime"] = start_time
        result = await self._make_request(
            region,
            EndpointClass.MATCH_IDS,
            f"/lol/match/v5/matches/by-puuid/{puuid}/ids",
            params,
            budget_ms,
            request_type,
        )
        return result if isinstance(result, list) else []

    async def get_match(
        self,
        region: Region,
        match_id: str,
        *,
        budget_ms: Optional[float] = None,
        request_type: RequestType = RequestType.BATCH,
    ) -> Optional[Dict[str, Any]]:
        result = await self._make_request(
            region, EndpointClass.MATCH, f"/lol/match/v5/matches/{match_id}", None, budget_ms, request_type
        )
        return result if isinstance(result, dict) else None

    async def get_timeline(
        self,
        region: Region,
        match_id: str,
        *,
        budget_ms: Optional[float] = None,
        request_type: RequestType = RequestType.BATCH,
    ) -> Optional[Dict[str, Any]]:
        result = await self._make_request(
            region, EndpointClass.TIMELINE, f"/lol/match/v5/matches/{match_id}/timeline", None, budget_ms, request_type
        )
        return result if isinstance(result, dict) else None


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None
