"""SQLite connection management and schema."""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Union

from domain.entities.aggregate import PER_MINUTE_COLUMNS, SUM_COLUMNS
from domain.errors import StoreError

_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS matches (
        match_id TEXT PRIMARY KEY,
        region TEXT NOT NULL,
        game_creation INTEGER NOT NULL,
        game_duration INTEGER NOT NULL,
        game_version TEXT,
        patch TEXT,
        queue_id INTEGER,
        timeline_data TEXT,
        stored_at INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS participants (
        match_id TEXT NOT NULL,
        puuid TEXT NOT NULL,
        participant_id INTEGER,
        team_id INTEGER,
        champion_name TEXT,
        win INTEGER,
        is_remake INTEGER DEFAULT 0,
        stats TEXT,
        derived TEXT NOT NULL DEFAULT '{}',
        PRIMARY KEY(match_id, puuid),
        FOREIGN KEY(match_id) REFERENCES matches(match_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS summoners (
        puuid TEXT PRIMARY KEY,
        region TEXT NOT NULL,
        platform TEXT,
        last_updated INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS scraper_state (
        region TEXT PRIMARY KEY,
        current_puuid_index INTEGER NOT NULL DEFAULT 0,
        matches_scraped INTEGER NOT NULL DEFAULT 0,
        last_run INTEGER
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS champion_stats (
        champion_name TEXT NOT NULL,
        patch TEXT NOT NULL,
        games INTEGER NOT NULL DEFAULT 0,
        wins INTEGER NOT NULL DEFAULT 0,
        {", ".join(f"{c} REAL NOT NULL DEFAULT 0" for c in SUM_COLUMNS)},
        timed_games INTEGER NOT NULL DEFAULT 0,
        {", ".join(f"{c} REAL NOT NULL DEFAULT 0" for c in PER_MINUTE_COLUMNS)},
        updated_at INTEGER,
        PRIMARY KEY(champion_name, patch)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS champion_facets (
        champion_name TEXT NOT NULL,
        patch TEXT NOT NULL,
        core_key TEXT NOT NULL DEFAULT '',
        facet TEXT NOT NULL,
        facet_key TEXT NOT NULL,
        games INTEGER NOT NULL DEFAULT 0,
        wins INTEGER NOT NULL DEFAULT 0,
        PRIMARY KEY(champion_name, patch, core_key, facet, facet_key)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_matches_region_creation ON matches(region, game_creation)",
    "CREATE INDEX IF NOT EXISTS idx_participants_puuid ON participants(puuid)",
    "CREATE INDEX IF NOT EXISTS idx_summoners_region ON summoners(region, last_updated)",
    "CREATE INDEX IF NOT EXISTS idx_facets_patch ON champion_facets(patch)",
]


class Database:
    """Opens one short-lived connection per unit of work.

    Connections are autocommit; multi-statement writes go through
    ``transaction()`` which takes the write lock up front (BEGIN IMMEDIATE).
    """

    def __init__(self, path: Union[Path, str], *, busy_timeout_s: float = 5.0) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._busy_timeout_s = busy_timeout_s
        self._create_tables()

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self.path),
            timeout=self._busy_timeout_s,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    def _create_tables(self) -> None:
        with self.connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            for statement in _SCHEMA:
                conn.execute(statement)

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._open()
        except sqlite3.Error as e:
            raise StoreError(f"SQLite error while opening {self.path}: {e}") from e
        try:
            yield conn
        except sqlite3.Error as e:
            raise StoreError(f"SQLite error: {e}") from e
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        with self.connect() as conn:
            try:
                conn.execute("BEGIN IMMEDIATE")
                yield conn
            except sqlite3.Error as e:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise StoreError(f"SQLite error: {e}") from e
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            else:
                conn.execute("COMMIT")

    def list_tables(self) -> List[str]:
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
            ).fetchall()
        return [r[0] for r in rows]
