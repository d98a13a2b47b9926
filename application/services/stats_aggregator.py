"""Buffered, additive champion aggregation."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from core.logging import get_logger
from domain.entities import ChampionTally, StatsContribution
from infrastructure.repositories import AggregateRepository

logger = get_logger(__name__, service="aggregator")


@dataclass(frozen=True)
class FlushResult:
    success: bool
    count: int = 0
    error: Optional[str] = None


class StatsAggregator:
    """Folds contributions in memory and merges them into storage on ``flush``.

    ``add`` never suspends. ``flush`` swaps the buffer out before its first
    await, so contributions added while a merge is running land in the next
    flush. A failed merge puts its snapshot back.
    """

    def __init__(self, repository: AggregateRepository) -> None:
        self.repository = repository
        self._buffer: Dict[Tuple[str, str], ChampionTally] = {}
        self._pending = 0

    def add(self, contribution: StatsContribution) -> None:
        key = (contribution.champion_name, contribution.patch)
        tally = self._buffer.get(key)
        if tally is None:
            tally = self._buffer[key] = ChampionTally(*key)
        tally.add(contribution)
        self._pending += 1

    def pending_count(self) -> int:
        return self._pending

    def _restore(self, snapshot: Dict[Tuple[str, str], ChampionTally], pending: int) -> None:
        for key, tally in snapshot.items():
            live = self._buffer.get(key)
            if live is None:
                self._buffer[key] = tally
            else:
                live.merge(tally)
        self._pending += pending

    async def flush(self) -> FlushResult:
        snapshot, pending = self._buffer, self._pending
        self._buffer, self._pending = {}, 0
        if not snapshot:
            return FlushResult(success=True, count=0)
        try:
            await asyncio.to_thread(self.repository.merge_tallies, list(snapshot.values()))
        except Exception as e:
            self._restore(snapshot, pending)
            logger.error(
                lambda: f"flush-failed contributions={pending}",
                fields={"error": str(e)},
            )
            return FlushResult(success=False, count=0, error=str(e))
        logger.info(lambda: f"flush-done contributions={pending} champions={len(snapshot)}")
        return FlushResult(success=True, count=pending)
