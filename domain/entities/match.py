"""Stored match entity."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .participant import ParticipantRecord
from ..enums import Region


def patch_from_version(game_version: str) -> str:
    """'14.23.612.3456' -> '14.23'."""
    parts = (game_version or "").split('.')
    if len(parts) >= 2:
        return f"{parts[0]}.{parts[1]}"
    return game_version or ""


def patch_sort_key(patch: str) -> tuple:
    """Numeric ordering so '14.10' sorts after '14.9'."""
    parts = []
    for piece in (patch or "").split('.'):
        try:
            parts.append(int(piece))
        except ValueError:
            parts.append(0)
    return tuple(parts)


@dataclass
class MatchRecord:
    """A match as persisted by the Match Store."""

    match_id: str
    region: Region
    game_creation: int  # Unix timestamp milliseconds
    game_duration: int  # Seconds
    game_version: str
    queue_id: int
    timeline: Optional[dict[str, Any]] = None
    participants: list[ParticipantRecord] = field(default_factory=list)

    @property
    def patch(self) -> str:
        return patch_from_version(self.game_version)

    @property
    def has_timeline(self) -> bool:
        return self.timeline is not None

    @property
    def game_date(self) -> datetime:
        return datetime.fromtimestamp(self.game_creation / 1000, tz=timezone.utc)

    def age_ms(self, now_ms: Optional[int] = None) -> int:
        now_ms = int(time.time() * 1000) if now_ms is None else now_ms
        return now_ms - self.game_creation

    def participant(self, puuid: str) -> Optional[ParticipantRecord]:
        for p in self.participants:
            if p.puuid == puuid:
                return p
        return None

    def to_dict(self) -> dict:
        return {
            'match_id': self.match_id,
            'region': self.region.value,
            'game_creation': self.game_creation,
            'game_date': self.game_date.isoformat(),
            'game_duration': self.game_duration,
            'game_version': self.game_version,
            'patch': self.patch,
            'queue_id': self.queue_id,
            'has_timeline': self.has_timeline,
            'participants': [p.to_dict() for p in self.participants],
        }
