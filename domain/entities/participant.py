"""Participant entity: one player's row within a stored match."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class ParticipantRecord:
    match_id: str
    puuid: str
    participant_id: int
    team_id: int
    champion_name: str
    win: bool = False
    # gameEndedInEarlySurrender; remakes are never scored
    is_remake: bool = False
    stats: dict[str, Any] = field(default_factory=dict)
    derived: dict[str, Any] = field(default_factory=dict)

    @property
    def score(self) -> Optional[float]:
        return self.derived.get('score')

    @property
    def enriched_at(self) -> Optional[int]:
        return self.derived.get('enriched_at')

    @property
    def is_enriched(self) -> bool:
        """Derived fields were written; a null score after that is final."""
        return bool(self.enriched_at)

    def to_dict(self) -> dict:
        return {
            'puuid': self.puuid,
            'participant_id': self.participant_id,
            'team_id': self.team_id,
            'champion_name': self.champion_name,
            'win': self.win,
            'is_remake': self.is_remake,
            'derived': dict(self.derived),
        }
