"""Per-region discovery and scraping under a shared deadline."""
from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional

from config import settings
from core.logging import context, get_logger
from domain.entities import RegionScrapeResult, patch_from_version, patch_sort_key
from domain.enums import Platform, Region, RequestType, ScanState
from domain.errors import RateLimitTimeout, UpstreamError
from domain.interfaces import IUpstreamClient
from infrastructure.repositories import MatchStore, ScrapeStateRepository

logger = get_logger(__name__, service="scheduler")


class ScrapeContext:
    """Discovery and processed sets for one invocation, keyed by region."""

    def __init__(self) -> None:
        self._discovered: Dict[Region, Dict[str, None]] = {}
        self._processed: Dict[Region, set[str]] = {}

    def discovered(self, region: Region) -> List[str]:
        return list(self._discovered.get(region, {}))

    def discover(self, region: Region, puuid: str) -> bool:
        bucket = self._discovered.setdefault(region, {})
        if puuid in bucket or self.is_processed(region, puuid):
            return False
        bucket[puuid] = None
        return True

    def is_processed(self, region: Region, puuid: str) -> bool:
        return puuid in self._processed.get(region, ())

    def mark_processed(self, region: Region, puuid: str) -> None:
        self._processed.setdefault(region, set()).add(puuid)

    def processed_count(self, region: Region) -> int:
        return len(self._processed.get(region, ()))


class _UnitStats:
    __slots__ = ("stored", "errors")

    def __init__(self) -> None:
        self.stored = 0
        self.errors = 0


class ScrapeScheduler:
    def __init__(
        self,
        store: MatchStore,
        state_repository: ScrapeStateRepository,
        client: IUpstreamClient,
        scrape_context: ScrapeContext,
        *,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
        safety_buffer_s: Optional[float] = None,
        queue_id: Optional[int] = None,
        window_days: Optional[int] = None,
        ids_per_puuid: Optional[int] = None,
        max_new_matches: Optional[int] = None,
        max_consecutive_timeouts: Optional[int] = None,
        directory_limit: Optional[int] = None,
        participant_limit: Optional[int] = None,
    ) -> None:
        self.store = store
        self.state_repository = state_repository
        self.client = client
        self.ctx = scrape_context
        self._clock = clock
        self._wall_clock = wall_clock
        self.safety_buffer_s = settings.SAFETY_BUFFER_SECONDS if safety_buffer_s is None else safety_buffer_s
        self.queue_id = queue_id or settings.SCRAPE_QUEUE_ID
        self.window_days = window_days or settings.MATCH_WINDOW_DAYS
        self.ids_per_puuid = ids_per_puuid or settings.IDS_PER_PUUID
        self.max_new_matches = max_new_matches or settings.MAX_NEW_MATCHES_PER_PUUID
        self.max_consecutive_timeouts = max_consecutive_timeouts or settings.MAX_CONSECUTIVE_TIMEOUTS
        self.directory_limit = directory_limit or settings.DIRECTORY_CANDIDATE_LIMIT
        self.participant_limit = participant_limit or settings.PARTICIPANT_CANDIDATE_LIMIT

    # ── candidates ───────────────────────────────────────────────────────

    def candidates(self, region: Region) -> List[str]:
        """Directory players, else recent participants, then this invocation's discoveries."""
        base = self.store.recent_players(region, self.directory_limit)
        if not base:
            base = self.store.recent_participant_puuids(region, self.participant_limit)
        merged = dict.fromkeys(base)
        merged.update(dict.fromkeys(self.ctx.discovered(region)))
        return list(merged)

    def _remaining_s(self, deadline: float) -> float:
        return deadline - self._clock()

    def _budget_ms(self, deadline: float) -> float:
        return max(0.0, (self._remaining_s(deadline) - self.safety_buffer_s) * 1000)

    # ── main loop ────────────────────────────────────────────────────────

    async def process_region(self, region: Region, deadline: float) -> RegionScrapeResult:
        with context(region=region.value):
            return await self._process_region(region, deadline)

    async def _process_region(self, region: Region, deadline: float) -> RegionScrapeResult:
        started = self._clock()
        result = RegionScrapeResult(region=region, state=ScanState.SCANNING)
        cursor = self.state_repository.load(region).current_puuid_index
        next_index = 0
        discovered_before = len(self.ctx.discovered(region))
        try:
            candidates = self.candidates(region)
            if not candidates:
                result.state = ScanState.EXHAUSTED
                logger.info(lambda: "region-empty no candidates")
                return result

            current_patch = self.store.current_patch()
            index = cursor % len(candidates)
            next_index = index
            pass_stored = 0
            consecutive_timeouts = 0

            while True:
                if self._remaining_s(deadline) < self.safety_buffer_s:
                    result.state = ScanState.TIME_EXPIRED
                    break

                if index >= len(candidates):
                    # TODO: a zero-store pass also ends the region when the next pass holds fresh discoveries
                    if pass_stored == 0:
                        result.state = ScanState.EXHAUSTED
                        break
                    candidates = self.candidates(region)
                    index = pass_stored = 0
                    next_index = 0
                    if all(self.ctx.is_processed(region, p) for p in candidates):
                        result.state = ScanState.EXHAUSTED
                        break
                    logger.debug(lambda: f"region-wrapped candidates={len(candidates)}")
                    continue

                puuid = candidates[index]
                index += 1
                next_index = index % len(candidates)
                if self.ctx.is_processed(region, puuid):
                    continue
                self.ctx.mark_processed(region, puuid)

                unit = _UnitStats()
                try:
                    current_patch = await self._process_candidate(region, puuid, deadline, current_patch, unit)
                except RateLimitTimeout as e:
                    result.timeouts += 1
                    consecutive_timeouts += 1
                    logger.debug(lambda: f"unit-timeout {consecutive_timeouts}", fields={"error": str(e)})
                    if consecutive_timeouts >= self.max_consecutive_timeouts:
                        result.state = ScanState.SATURATED
                        break
                except Exception as e:
                    unit.errors += 1
                    consecutive_timeouts = 0
                    logger.exception(lambda: "unit-failed", fields={"puuid": puuid, "error": str(e)})
                else:
                    consecutive_timeouts = 0
                finally:
                    result.processed += 1
                    result.stored += unit.stored
                    result.errors += unit.errors
                    pass_stored += unit.stored
        finally:
            result.next_index = next_index
            result.discovered = len(self.ctx.discovered(region)) - discovered_before
            result.elapsed_ms = int((self._clock() - started) * 1000)
            self.state_repository.save(region, next_index, result.stored, int(self._wall_clock() * 1000))

        logger.info(
            lambda: f"region-done state={result.state.value} stored={result.stored} "
                    f"processed={result.processed} errors={result.errors}",
        )
        return result

    async def _process_candidate(
        self,
        region: Region,
        puuid: str,
        deadline: float,
        current_patch: Optional[str],
        unit: _UnitStats,
    ) -> Optional[str]:
        """One unit of work: list, dedupe, fetch and store a player's recent matches."""
        start_time = int(self._wall_clock()) - self.window_days * 86_400
        try:
            ids = await self.client.get_match_ids_by_puuid(
                region,
                puuid,
                start_time=start_time,
                count=self.ids_per_puuid,
                queue=self.queue_id,
                budget_ms=self._budget_ms(deadline),
                request_type=RequestType.BATCH,
            )
        except UpstreamError as e:
            unit.errors += 1
            logger.warning(lambda: "match-ids-failed", fields={"puuid": puuid, "error": str(e)})
            return current_patch

        known = self.store.match_exists(ids)
        new_ids = [m for m in ids if m not in known][: self.max_new_matches]

        for match_id in new_ids:
            if self._remaining_s(deadline) < self.safety_buffer_s:
                break
            try:
                payload = await self.client.get_match(
                    region, match_id, budget_ms=self._budget_ms(deadline), request_type=RequestType.BATCH
                )
            except RateLimitTimeout:
                raise
            except UpstreamError as e:
                unit.errors += 1
                logger.warning(lambda: f"match-fetch-failed {match_id}", fields={"error": str(e)})
                continue
            if payload is None:
                continue

            try:
                current_patch = self._store(region, payload, current_patch, unit)
            except Exception as e:
                unit.errors += 1
                logger.exception(lambda: f"match-store-failed {match_id}", fields={"error": str(e)})
        return current_patch

    def _store(
        self, region: Region, payload: Dict[str, Any], current_patch: Optional[str], unit: _UnitStats
    ) -> Optional[str]:
        info = payload.get("info") or {}
        patch = patch_from_version(info.get("gameVersion", ""))
        if current_patch and patch_sort_key(patch) < patch_sort_key(current_patch):
            logger.trace(lambda: f"match-old-patch {patch}")
            return current_patch

        if self.store.store_match(payload, region):
            unit.stored += 1
            if not current_patch or patch_sort_key(patch) > patch_sort_key(current_patch):
                current_patch = patch

        platform = _platform_of(payload)
        for p in info.get("participants") or []:
            puuid = p.get("puuid")
            if not puuid:
                continue
            if self.ctx.discover(region, puuid) and platform is not None:
                self.store.upsert_player(puuid, platform)
        return current_patch


def _platform_of(payload: Dict[str, Any]) -> Optional[Platform]:
    platform_id = (payload.get("info") or {}).get("platformId") or ""
    if not platform_id:
        match_id = (payload.get("metadata") or {}).get("matchId") or ""
        platform_id = match_id.split("_", 1)[0]
    return Platform.parse(platform_id)
