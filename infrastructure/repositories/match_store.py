"""Deduplicating persistence for matches, participants and known players."""
from __future__ import annotations

import json
import time
from typing import Any, Dict, Iterable, List, Optional

from core.logging import get_logger
from domain.entities import MatchRecord, ParticipantRecord, patch_from_version, patch_sort_key
from domain.enums import Platform, Region
from domain.interfaces import IMatchStore
from .database import Database

logger = get_logger(__name__, service="match-store")

_IN_CHUNK = 500


def _now_ms() -> int:
    return int(time.time() * 1000)


def _duration_seconds(info: Dict[str, Any]) -> int:
    duration = int(info.get("gameDuration") or 0)
    # before patch 11.20 gameDuration was reported in milliseconds
    if "gameEndTimestamp" not in info and duration > 10_000:
        return duration // 1000
    return duration


class MatchStore(IMatchStore):
    """Matches and participants keyed by match id and (match id, puuid)."""

    def __init__(self, db: Database) -> None:
        self.db = db

    # ── membership / insert ──────────────────────────────────────────────

    def match_exists(self, match_ids: Iterable[str]) -> set[str]:
        ids = [m for m in dict.fromkeys(match_ids) if m]
        found: set[str] = set()
        if not ids:
            return found
        with self.db.connect() as conn:
            for i in range(0, len(ids), _IN_CHUNK):
                chunk = ids[i:i + _IN_CHUNK]
                placeholders = ",".join("?" for _ in chunk)
                rows = conn.execute(
                    f"SELECT match_id FROM matches WHERE match_id IN ({placeholders})", chunk
                ).fetchall()
                found.update(r[0] for r in rows)
        return found

    def store_match(
        self,
        payload: Dict[str, Any],
        region: Region,
        timeline: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Insert a match-v5 document. Returns False when it was already stored."""
        metadata = payload.get("metadata") or {}
        info = payload.get("info") or {}
        match_id = metadata.get("matchId")
        if not match_id:
            raise ValueError("match payload has no metadata.matchId")

        game_version = info.get("gameVersion", "")
        participant_rows = []
        for p in info.get("participants") or []:
            if not p.get("puuid"):
                continue
            participant_rows.append((
                match_id,
                p["puuid"],
                p.get("participantId"),
                p.get("teamId"),
                p.get("championName"),
                1 if p.get("win") else 0,
                1 if p.get("gameEndedInEarlySurrender") else 0,
                json.dumps(p, separators=(",", ":")),
            ))

        with self.db.transaction() as conn:
            cur = conn.execute(
                "INSERT INTO matches (match_id, region, game_creation, game_duration, game_version, patch, "
                "queue_id, timeline_data, stored_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(match_id) DO NOTHING",
                (
                    match_id,
                    region.value,
                    int(info.get("gameCreation") or 0),
                    _duration_seconds(info),
                    game_version,
                    patch_from_version(game_version),
                    info.get("queueId"),
                    json.dumps(timeline, separators=(",", ":")) if timeline is not None else None,
                    _now_ms(),
                ),
            )
            if cur.rowcount == 0:
                return False
            conn.executemany(
                "INSERT OR IGNORE INTO participants (match_id, puuid, participant_id, team_id, champion_name, "
                "win, is_remake, stats) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                participant_rows,
            )
        logger.debug(lambda: f"match-stored {match_id} participants={len(participant_rows)}")
        return True

    def store_timeline(self, match_id: str, timeline: Dict[str, Any]) -> bool:
        with self.db.connect() as conn:
            cur = conn.execute(
                "UPDATE matches SET timeline_data = ? WHERE match_id = ?",
                (json.dumps(timeline, separators=(",", ":")), match_id),
            )
        return cur.rowcount > 0

    # ── reads ────────────────────────────────────────────────────────────

    def get_match(self, match_id: str) -> Optional[MatchRecord]:
        with self.db.connect() as conn:
            row = conn.execute("SELECT * FROM matches WHERE match_id = ?", (match_id,)).fetchone()
            if row is None:
                return None
            prows = conn.execute(
                "SELECT * FROM participants WHERE match_id = ? ORDER BY participant_id", (match_id,)
            ).fetchall()
        return MatchRecord(
            match_id=row["match_id"],
            region=Region(row["region"]),
            game_creation=row["game_creation"],
            game_duration=row["game_duration"],
            game_version=row["game_version"] or "",
            queue_id=row["queue_id"] or 0,
            timeline=json.loads(row["timeline_data"]) if row["timeline_data"] else None,
            participants=[self._participant(r) for r in prows],
        )

    @staticmethod
    def _participant(row) -> ParticipantRecord:
        return ParticipantRecord(
            match_id=row["match_id"],
            puuid=row["puuid"],
            participant_id=row["participant_id"] or 0,
            team_id=row["team_id"] or 0,
            champion_name=row["champion_name"] or "",
            win=bool(row["win"]),
            is_remake=bool(row["is_remake"]),
            stats=json.loads(row["stats"]) if row["stats"] else {},
            derived=json.loads(row["derived"]) if row["derived"] else {},
        )

    # ── derived fields ───────────────────────────────────────────────────

    def update_participant_derived_fields(self, match_id: str, puuid: str, fields: Dict[str, Any]) -> bool:
        """Merge ``fields`` into the participant's derived bag.

        Keys not named in ``fields`` keep their stored values. Returns False
        when the participant row does not exist.
        """
        with self.db.transaction() as conn:
            row = conn.execute(
                "SELECT derived FROM participants WHERE match_id = ? AND puuid = ?", (match_id, puuid)
            ).fetchone()
            if row is None:
                return False
            derived = json.loads(row["derived"]) if row["derived"] else {}
            derived.update(fields)
            conn.execute(
                "UPDATE participants SET derived = ? WHERE match_id = ? AND puuid = ?",
                (json.dumps(derived, separators=(",", ":")), match_id, puuid),
            )
        return True

    # ── scheduler / enrichment helpers ───────────────────────────────────

    def recent_players(self, region: Region, limit: int) -> List[str]:
        """The ``limit`` most recently added players, oldest first.

        Insertion order is stable across upserts, so a persisted cursor keeps
        pointing at the same player while new players append at the end.
        """
        with self.db.connect() as conn:
            rows = conn.execute(
                "SELECT puuid FROM (SELECT rowid AS rid, puuid FROM summoners WHERE region = ? "
                "ORDER BY rowid DESC LIMIT ?) ORDER BY rid",
                (region.value, limit),
            ).fetchall()
        return [r[0] for r in rows]

    def recent_participant_puuids(self, region: Region, limit: int) -> List[str]:
        with self.db.connect() as conn:
            rows = conn.execute(
                "SELECT p.puuid FROM participants p JOIN matches m ON m.match_id = p.match_id "
                "WHERE m.region = ? GROUP BY p.puuid ORDER BY MAX(m.game_creation) DESC LIMIT ?",
                (region.value, limit),
            ).fetchall()
        return [r[0] for r in rows]

    def upsert_player(self, puuid: str, platform: Platform) -> None:
        with self.db.connect() as conn:
            conn.execute(
                "INSERT INTO summoners (puuid, region, platform, last_updated) VALUES (?, ?, ?, ?) "
                "ON CONFLICT(puuid) DO UPDATE SET region = excluded.region, platform = excluded.platform, "
                "last_updated = excluded.last_updated",
                (puuid, platform.region.value, platform.value, _now_ms()),
            )

    def current_patch(self) -> Optional[str]:
        """Patch of the most recently played stored match."""
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT patch FROM matches WHERE patch IS NOT NULL AND patch != '' "
                "ORDER BY game_creation DESC LIMIT 1"
            ).fetchone()
        return row[0] if row else None

    def accepted_patches(self, count: int) -> List[str]:
        """The ``count`` newest patches present in storage, newest first."""
        with self.db.connect() as conn:
            rows = conn.execute(
                "SELECT DISTINCT patch FROM matches WHERE patch IS NOT NULL AND patch != ''"
            ).fetchall()
        patches = sorted((r[0] for r in rows), key=patch_sort_key, reverse=True)
        return patches[:count]

    def recent_matches_without_timeline(
        self, match_ids: Iterable[str], max_age_ms: int, limit: int
    ) -> List[str]:
        ids = [m for m in dict.fromkeys(match_ids) if m][:_IN_CHUNK]
        if not ids:
            return []
        placeholders = ",".join("?" for _ in ids)
        with self.db.connect() as conn:
            rows = conn.execute(
                f"SELECT match_id FROM matches WHERE match_id IN ({placeholders}) "
                "AND timeline_data IS NULL AND game_creation >= ? "
                "ORDER BY game_creation DESC LIMIT ?",
                (*ids, _now_ms() - max_age_ms, limit),
            ).fetchall()
        return [r[0] for r in rows]
