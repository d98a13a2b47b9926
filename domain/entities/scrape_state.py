"""Scheduler state that crosses invocation boundaries, and pass results."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..enums import Region, ScanState


@dataclass
class RegionScrapeState:
    region: Region
    current_puuid_index: int = 0
    matches_scraped: int = 0
    last_run: Optional[int] = None  # Unix timestamp milliseconds


@dataclass
class RegionScrapeResult:
    region: Region
    stored: int = 0
    next_index: int = 0
    discovered: int = 0
    processed: int = 0
    errors: int = 0
    timeouts: int = 0
    state: ScanState = ScanState.IDLE
    elapsed_ms: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        out = {
            'stored': self.stored,
            'next_index': self.next_index,
            'discovered': self.discovered,
            'processed': self.processed,
            'errors': self.errors,
            'timeouts': self.timeouts,
            'state': self.state.value,
            'elapsed_ms': self.elapsed_ms,
        }
        if self.error:
            out['error'] = self.error
        return out
