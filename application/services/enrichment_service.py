"""Per-match enrichment: derived participant fields, scores and aggregation."""
from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Dict, List, Optional

from config import settings
from core.logging import context, get_logger
from domain.entities import EnrichmentResult, MatchRecord, MetricBaseline, ParticipantRecord, StatsContribution
from domain.enums import ReasonTag, Region, RequestType
from domain.errors import RateLimitTimeout, StoreError, UpstreamRateLimited, UpstreamUnavailable
from domain.interfaces import IUpstreamClient
from infrastructure.repositories import AggregateRepository, MatchStore
from infrastructure.static_data import ItemCatalog
from .scoring import ScoreInput, compute_score
from .stats_aggregator import StatsAggregator
from .timeline import (
    completed_items,
    extract_ability_order,
    extract_build_order,
    extract_first_buy,
    extract_item_purchases,
    extract_kill_events,
    final_items,
    format_build_order,
    format_first_buy,
    kill_death_summary,
    parse_item_list,
    skill_order_abbreviation,
    team_totals,
)

logger = get_logger(__name__, service="enrichment")

DAY_MS = 86_400_000


class _FetchFailed(Exception):
    def __init__(self, reason: ReasonTag, message: str) -> None:
        super().__init__(message)
        self.reason = reason


class EnrichmentService:
    """Enriches each match at most once at a time.

    Concurrent ``enrich`` calls for the same match id share one task; the
    in-flight entry is dropped when that task finishes, however it ends.
    """

    def __init__(
        self,
        store: MatchStore,
        client: IUpstreamClient,
        aggregator: StatsAggregator,
        aggregates: AggregateRepository,
        *,
        catalog: Optional[ItemCatalog] = None,
        retention_days: Optional[int] = None,
        accepted_patch_count: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.client = client
        self.aggregator = aggregator
        self.aggregates = aggregates
        self.catalog = catalog or ItemCatalog()
        self.retention_days = retention_days or settings.TIMELINE_RETENTION_DAYS
        self.accepted_patch_count = accepted_patch_count or settings.ACCEPTED_PATCH_COUNT
        self._clock = clock
        self._in_flight: Dict[str, asyncio.Task] = {}

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def in_flight(self) -> List[str]:
        return list(self._in_flight)

    async def enrich(
        self,
        match_id: str,
        region: Region,
        *,
        request_type: RequestType = RequestType.OVERHEAD,
        budget_ms: Optional[float] = None,
    ) -> EnrichmentResult:
        task = self._in_flight.get(match_id)
        if task is None:
            task = asyncio.create_task(self._guarded(match_id, region, request_type, budget_ms))
            self._in_flight[match_id] = task
        else:
            logger.debug(lambda: f"enrich-joined {match_id}")
        # a cancelled caller must not cancel the shared unit of work
        return await asyncio.shield(task)

    async def _guarded(
        self, match_id: str, region: Region, request_type: RequestType, budget_ms: Optional[float]
    ) -> EnrichmentResult:
        try:
            with context(match_id=match_id, region=region.value):
                return await self._enrich(match_id, region, request_type, budget_ms)
        finally:
            self._in_flight.pop(match_id, None)

    async def _enrich(
        self, match_id: str, region: Region, request_type: RequestType, budget_ms: Optional[float]
    ) -> EnrichmentResult:
        match = self.store.get_match(match_id)
        if match is None:
            return EnrichmentResult.failed(match_id, ReasonTag.NOT_FOUND, "match not found")
        if not match.participants:
            return EnrichmentResult.failed(match_id, ReasonTag.NOT_FOUND, "participants not found")

        if all(p.is_enriched for p in match.participants):
            logger.debug(lambda: "enrich-cached")
            return EnrichmentResult(
                match_id=match_id,
                success=True,
                scores={p.puuid: p.score for p in match.participants},
                cached=True,
            )

        if not match.has_timeline and match.age_ms(self._now_ms()) > self.retention_days * DAY_MS:
            logger.info(lambda: f"enrich-too-old age_days={match.age_ms(self._now_ms()) // DAY_MS}")
            return EnrichmentResult.failed(match_id, ReasonTag.TOO_OLD, "timeline no longer available upstream")

        try:
            timeline = match.timeline
            fetched_timeline = timeline is None
            if fetched_timeline:
                timeline = await self._fetch(self.client.get_timeline, region, match_id, request_type, budget_ms)
            detail = await self._fetch(self.client.get_match, region, match_id, request_type, budget_ms)
        except _FetchFailed as e:
            logger.warning(lambda: f"enrich-fetch-failed {e.reason.value}", fields={"error": str(e)})
            return EnrichmentResult.failed(match_id, e.reason, str(e))

        if fetched_timeline:
            self.store.store_timeline(match_id, timeline)

        first_enrichment = not any(p.enriched_at for p in match.participants)
        scores = self._enrich_participants(match, timeline, detail)

        aggregated = False
        flush = None
        if first_enrichment:
            aggregated = self._submit_contributions(match, detail)
        if aggregated:
            # enriched_at is already persisted, so the contributions must reach storage now
            result = await self.aggregator.flush()
            flush = {"success": result.success, "count": result.count, "error": result.error}

        logger.info(
            lambda: f"enrich-done participants={len(scores)} aggregated={aggregated}",
        )
        return EnrichmentResult(
            match_id=match_id, success=True, scores=scores, aggregated=aggregated, flush=flush
        )

    async def _fetch(
        self, fn, region: Region, match_id: str, request_type: RequestType, budget_ms: Optional[float]
    ) -> Dict[str, Any]:
        try:
            result = await fn(region, match_id, budget_ms=budget_ms, request_type=request_type)
        except (UpstreamRateLimited, RateLimitTimeout) as e:
            raise _FetchFailed(ReasonTag.RATE_LIMITED, str(e)) from e
        except UpstreamUnavailable as e:
            raise _FetchFailed(ReasonTag.UNAVAILABLE, str(e)) from e
        if result is None:
            raise _FetchFailed(ReasonTag.NOT_FOUND, f"{fn.__name__} found nothing upstream for {match_id}")
        return result

    # ── participants ─────────────────────────────────────────────────────

    def _enrich_participants(
        self, match: MatchRecord, timeline: Dict[str, Any], detail: Dict[str, Any]
    ) -> Dict[str, Optional[float]]:
        detail_participants = (detail.get("info") or {}).get("participants") or []
        by_puuid = {p.get("puuid"): p for p in detail_participants if p.get("puuid")}
        teams = team_totals(detail_participants or [p.stats for p in match.participants])
        kills = extract_kill_events(timeline)
        baselines: Dict[str, Dict[str, MetricBaseline]] = {}

        scores: Dict[str, Optional[float]] = {}
        for participant in match.participants:
            stats = by_puuid.get(participant.puuid) or participant.stats
            try:
                fields = self._derive(participant, stats, match, timeline, kills, teams, baselines)
            except Exception as e:
                logger.exception(
                    lambda: f"enrich-participant-failed {participant.participant_id}",
                    fields={"puuid": participant.puuid, "error": str(e)},
                )
                fields = {"score": participant.score, "enriched_at": self._now_ms()}
            try:
                self.store.update_participant_derived_fields(match.match_id, participant.puuid, fields)
            except StoreError as e:
                logger.error(
                    lambda: f"enrich-persist-failed {participant.participant_id}",
                    fields={"puuid": participant.puuid, "error": str(e)},
                )
            participant.derived.update(fields)
            scores[participant.puuid] = fields.get("score")
        return scores

    def _derive(
        self,
        participant: ParticipantRecord,
        stats: Dict[str, Any],
        match: MatchRecord,
        timeline: Dict[str, Any],
        kills,
        teams: Dict[int, Dict[str, int]],
        baselines: Dict[str, Dict[str, MetricBaseline]],
    ) -> Dict[str, Any]:
        pid = participant.participant_id
        ability_order = extract_ability_order(timeline, pid)
        build_order = extract_build_order(timeline, pid)
        first_buy = extract_first_buy(timeline, pid, self.catalog)
        kill_death = kill_death_summary(timeline, pid, participant.team_id, kills)

        fields: Dict[str, Any] = {
            "ability_order": ability_order,
            "skill_order": skill_order_abbreviation(ability_order),
            "build_order": format_build_order(build_order),
            "first_buy": format_first_buy(first_buy),
            "item_purchases": extract_item_purchases(timeline, pid),
            "kill_death_summary": kill_death,
            "enriched_at": self._now_ms(),
        }

        if participant.is_remake:
            fields["score"] = None
            return fields
        if participant.score is not None:
            fields["score"] = participant.score
            return fields

        champion = participant.champion_name
        if champion not in baselines:
            baselines[champion] = self.aggregates.champion_baseline(champion, match.patch)
        inp = ScoreInput.from_stats(
            stats,
            game_duration=match.game_duration,
            team=teams.get(participant.team_id, {}),
            kill_death=kill_death,
        )
        breakdown = compute_score(inp, baselines[champion])
        fields["score"] = breakdown.score if breakdown else None
        fields["score_breakdown"] = breakdown.to_dict() if breakdown else None
        return fields

    # ── aggregation ──────────────────────────────────────────────────────

    def _submit_contributions(self, match: MatchRecord, detail: Dict[str, Any]) -> bool:
        if any(p.is_remake for p in match.participants):
            return False
        if match.patch not in self.store.accepted_patches(self.accepted_patch_count):
            logger.debug(lambda: f"enrich-skip-aggregate patch={match.patch}")
            return False

        by_puuid = {
            p.get("puuid"): p for p in (detail.get("info") or {}).get("participants") or [] if p.get("puuid")
        }
        for participant in match.participants:
            stats = by_puuid.get(participant.puuid) or participant.stats
            build = parse_item_list(participant.derived.get("build_order"))
            self.aggregator.add(StatsContribution.from_participant(
                stats,
                champion_name=participant.champion_name,
                patch=match.patch,
                game_duration=match.game_duration,
                items=completed_items(build, final_items(stats), self.catalog),
                first_buy=participant.derived.get("first_buy"),
                skill_order=participant.derived.get("skill_order"),
            ))
        return True
