"""Additive champion aggregate storage and its read surface."""
from __future__ import annotations

import time
from typing import Any, Dict, Iterable, List, Optional

from domain.entities import ChampionTally, MetricBaseline, patch_sort_key
from domain.entities.aggregate import PER_MINUTE_COLUMNS, PER_MINUTE_METRICS, SUM_COLUMNS
from .database import Database

_COUNTER_COLUMNS = ("games", "wins", *SUM_COLUMNS, "timed_games", *PER_MINUTE_COLUMNS)

_STATS_UPSERT = (
    f"INSERT INTO champion_stats (champion_name, patch, {', '.join(_COUNTER_COLUMNS)}, updated_at) "
    f"VALUES (?, ?, {', '.join('?' for _ in _COUNTER_COLUMNS)}, ?) "
    "ON CONFLICT(champion_name, patch) DO UPDATE SET "
    + ", ".join(f"{c} = champion_stats.{c} + excluded.{c}" for c in _COUNTER_COLUMNS)
    + ", updated_at = excluded.updated_at"
)

_FACET_UPSERT = (
    "INSERT INTO champion_facets (champion_name, patch, core_key, facet, facet_key, games, wins) "
    "VALUES (?, ?, ?, ?, ?, ?, ?) "
    "ON CONFLICT(champion_name, patch, core_key, facet, facet_key) DO UPDATE SET "
    "games = champion_facets.games + excluded.games, "
    "wins = champion_facets.wins + excluded.wins"
)


class AggregateRepository:
    """Rows here only ever grow: every write is ``x = x + excluded.x``."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def merge_tallies(self, tallies: Iterable[ChampionTally]) -> int:
        """Apply all tallies in one transaction. Returns the number of champion rows touched."""
        now = int(time.time() * 1000)
        stat_rows: List[tuple] = []
        facet_rows: List[tuple] = []
        for t in tallies:
            counters = [t.games, t.wins, *(t.sums[c] for c in SUM_COLUMNS), t.timed_games,
                        *(t.per_minute[c] for c in PER_MINUTE_COLUMNS)]
            stat_rows.append((t.champion_name, t.patch, *counters, now))
            for (core_key, facet, facet_key), (games, wins) in t.facets.items():
                facet_rows.append((t.champion_name, t.patch, core_key, facet, facet_key, games, wins))
        if not stat_rows:
            return 0
        with self.db.transaction() as conn:
            conn.executemany(_STATS_UPSERT, stat_rows)
            conn.executemany(_FACET_UPSERT, facet_rows)
        return len(stat_rows)

    # ── reads ────────────────────────────────────────────────────────────

    def patches(self) -> List[str]:
        with self.db.connect() as conn:
            rows = conn.execute("SELECT DISTINCT patch FROM champion_stats").fetchall()
        return sorted((r[0] for r in rows), key=patch_sort_key, reverse=True)

    def list_champions(self, patch: Optional[str] = None) -> List[Dict[str, Any]]:
        patch = patch or next(iter(self.patches()), None)
        if patch is None:
            return []
        with self.db.connect() as conn:
            rows = conn.execute(
                "SELECT champion_name, patch, games, wins FROM champion_stats WHERE patch = ? "
                "ORDER BY games DESC, champion_name",
                (patch,),
            ).fetchall()
        return [
            {
                "champion": r["champion_name"],
                "patch": r["patch"],
                "games": r["games"],
                "wins": r["wins"],
                "win_rate": round(r["wins"] / r["games"], 4) if r["games"] else 0.0,
            }
            for r in rows
        ]

    def get_champion(self, champion_name: str, patch: Optional[str] = None) -> Optional[Dict[str, Any]]:
        with self.db.connect() as conn:
            if patch is None:
                rows = conn.execute(
                    "SELECT patch FROM champion_stats WHERE champion_name = ?", (champion_name,)
                ).fetchall()
                if not rows:
                    return None
                patch = max((r[0] for r in rows), key=patch_sort_key)
            row = conn.execute(
                "SELECT * FROM champion_stats WHERE champion_name = ? AND patch = ?", (champion_name, patch)
            ).fetchone()
            if row is None:
                return None
            facet_rows = conn.execute(
                "SELECT core_key, facet, facet_key, games, wins FROM champion_facets "
                "WHERE champion_name = ? AND patch = ? ORDER BY games DESC",
                (champion_name, patch),
            ).fetchall()

        games = row["games"]
        averages = {
            c.replace("sum_", "avg_"): (row[c] / games if games else 0.0) for c in SUM_COLUMNS
        }
        per_minute = {}
        for metric in PER_MINUTE_METRICS:
            baseline = MetricBaseline.from_sums(row["timed_games"], row[f"sum_{metric}"], row[f"sumsq_{metric}"])
            if baseline is not None:
                per_minute[metric] = {"mean": round(baseline.mean, 3), "std": round(baseline.std, 3)}

        facets: Dict[str, Dict[str, Any]] = {}
        cores: Dict[str, Dict[str, Any]] = {}
        for f in facet_rows:
            entry = {"games": f["games"], "wins": f["wins"]}
            if f["core_key"]:
                core = cores.setdefault(f["core_key"], {"games": 0, "wins": 0, "facets": {}})
                if f["facet"] == "core":
                    core.update(entry)
                else:
                    core["facets"].setdefault(f["facet"], {})[f["facet_key"]] = entry
            else:
                facets.setdefault(f["facet"], {})[f["facet_key"]] = entry

        return {
            "champion": champion_name,
            "patch": patch,
            "games": games,
            "wins": row["wins"],
            "win_rate": round(row["wins"] / games, 4) if games else 0.0,
            "averages": averages,
            "per_minute": per_minute,
            "facets": facets,
            "core": cores,
        }

    def champion_baseline(self, champion_name: str, patch: str) -> Dict[str, MetricBaseline]:
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM champion_stats WHERE champion_name = ? AND patch = ?", (champion_name, patch)
            ).fetchone()
        if row is None:
            return {}
        out: Dict[str, MetricBaseline] = {}
        for metric in PER_MINUTE_METRICS:
            baseline = MetricBaseline.from_sums(row["timed_games"], row[f"sum_{metric}"], row[f"sumsq_{metric}"])
            if baseline is not None:
                out[metric] = baseline
        return out

    # ── administrative cleanup ───────────────────────────────────────────

    def delete_patches_except(self, keep: Iterable[str]) -> Dict[str, int]:
        keep = list(keep)
        placeholders = ",".join("?" for _ in keep) or "''"
        with self.db.transaction() as conn:
            stats = conn.execute(
                f"DELETE FROM champion_stats WHERE patch NOT IN ({placeholders})", keep
            ).rowcount
            facets = conn.execute(
                f"DELETE FROM champion_facets WHERE patch NOT IN ({placeholders})", keep
            ).rowcount
        return {"champion_stats": stats, "champion_facets": facets}
