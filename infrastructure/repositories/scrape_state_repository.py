"""Per-region scheduler cursor persistence."""
from __future__ import annotations

import time
from typing import Optional

from domain.entities import RegionScrapeState
from domain.enums import Region
from .database import Database


class ScrapeStateRepository:
    def __init__(self, db: Database) -> None:
        self.db = db

    def load(self, region: Region) -> RegionScrapeState:
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT current_puuid_index, matches_scraped, last_run FROM scraper_state WHERE region = ?",
                (region.value,),
            ).fetchone()
        if row is None:
            return RegionScrapeState(region=region)
        return RegionScrapeState(
            region=region,
            current_puuid_index=max(0, row["current_puuid_index"] or 0),
            matches_scraped=row["matches_scraped"] or 0,
            last_run=row["last_run"],
        )

    def save(self, region: Region, next_index: int, stored: int, last_run: Optional[int] = None) -> None:
        """Write the cursor and add ``stored`` to the cumulative counter."""
        last_run = int(time.time() * 1000) if last_run is None else last_run
        with self.db.connect() as conn:
            conn.execute(
                "INSERT INTO scraper_state (region, current_puuid_index, matches_scraped, last_run) "
                "VALUES (?, ?, ?, ?) ON CONFLICT(region) DO UPDATE SET "
                "current_puuid_index = excluded.current_puuid_index, "
                "matches_scraped = scraper_state.matches_scraped + excluded.matches_scraped, "
                "last_run = excluded.last_run",
                (region.value, max(0, next_index), max(0, stored), last_run),
            )
