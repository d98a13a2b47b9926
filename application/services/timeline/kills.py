"""Kill and death quality analysis on the Howling Abyss."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .items import iter_events

TEAMFIGHT_WINDOW_MS = 5000
TEAMFIGHT_DISTANCE = 2000
HIGH_GOLD_THRESHOLD = 2500

BLUE_BASE = (2500.0, 2500.0)
RED_BASE = (12500.0, 12500.0)


def _distance(a: tuple[float, float], b: tuple[float, float]) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def position_score(position: tuple[float, float], team_id: int) -> float:
    """0 at the player's own base, 1 at the enemy base."""
    to_blue = _distance(position, BLUE_BASE)
    to_red = _distance(position, RED_BASE)
    total = to_blue + to_red
    ratio = to_blue / total if total else 0.5
    return ratio if team_id == 100 else 1 - ratio


@dataclass
class KillEvent:
    timestamp: int
    killer_id: int
    victim_id: int
    assists: List[int]
    position: tuple[float, float]
    victim_gold: int
    nearby_deaths: int = 0

    @property
    def is_teamfight(self) -> bool:
        return self.nearby_deaths >= 2


def extract_kill_events(timeline: Optional[Dict[str, Any]]) -> List[KillEvent]:
    kills: List[KillEvent] = []
    if not timeline:
        return kills
    for frame in (timeline.get("info") or {}).get("frames") or []:
        frames = frame.get("participantFrames") or {}
        for event in frame.get("events") or []:
            if event.get("type") != "CHAMPION_KILL":
                continue
            killer, victim = event.get("killerId"), event.get("victimId")
            if not killer or not victim:
                continue
            pos = event.get("position") or {}
            victim_frame = frames.get(str(victim)) or {}
            kills.append(KillEvent(
                timestamp=event.get("timestamp", 0),
                killer_id=killer,
                victim_id=victim,
                assists=list(event.get("assistingParticipantIds") or []),
                position=(float(pos.get("x", 0)), float(pos.get("y", 0))),
                victim_gold=int(victim_frame.get("currentGold") or 0),
            ))

    for kill in kills:
        kill.nearby_deaths = sum(
            1 for other in kills
            if other.victim_id != kill.victim_id
            and abs(other.timestamp - kill.timestamp) <= TEAMFIGHT_WINDOW_MS
            and _distance(other.position, kill.position) <= TEAMFIGHT_DISTANCE
        )
    return kills


def _max_gold(timeline: Dict[str, Any]) -> int:
    best = HIGH_GOLD_THRESHOLD
    for frame in (timeline.get("info") or {}).get("frames") or []:
        for pf in (frame.get("participantFrames") or {}).values():
            best = max(best, int(pf.get("currentGold") or 0))
    return best


def kill_death_summary(
    timeline: Optional[Dict[str, Any]],
    participant_id: int,
    team_id: int,
    kills: Optional[List[KillEvent]] = None,
) -> Dict[str, Any]:
    """Per-event entries plus ``deathScore`` and ``killScore`` (0-100).

    Deaths cost less in teamfights and deep in enemy territory and more
    when the player died holding gold. Kills are worth more against
    gold-heavy victims and on the player's own side of the map.
    """
    if kills is None:
        kills = extract_kill_events(timeline)
    max_gold = _max_gold(timeline) if timeline else HIGH_GOLD_THRESHOLD

    kill_entries: List[Dict[str, Any]] = []
    death_entries: List[Dict[str, Any]] = []
    death_penalty = 0.0
    kill_value = 0.0

    for k in kills:
        pos = position_score(k.position, team_id)
        gold_ratio = min(k.victim_gold / max_gold, 1.0)
        if k.victim_id == participant_id:
            tf_bonus = min(k.nearby_deaths / 4, 1.0) if k.is_teamfight else 0.0
            death_penalty += max(8 + gold_ratio * 8 - tf_bonus * 6 - pos * 5, 2)
            value = 50 + (10 if k.is_teamfight else -gold_ratio * 20) + (pos - 0.5) * 30
            death_entries.append({
                "t": k.timestamp // 1000,
                "gold": k.victim_gold,
                "tf": k.is_teamfight,
                "pos": round(pos * 100),
                "value": round(max(20.0, min(75.0, value))),
            })
        if k.killer_id == participant_id:
            kill_value += 4 + gold_ratio * 4 + pos * 2
            value = 50 + (0 if k.is_teamfight else gold_ratio * 10) + pos * 5
            kill_entries.append({
                "t": k.timestamp // 1000,
                "gold": k.victim_gold,
                "tf": k.is_teamfight,
                "pos": round(pos * 100),
                "value": round(min(70.0, value)),
            })

    death_score = max(0.0, 100 - death_penalty) if death_entries else 100.0
    kill_score = min(100.0, 50 + kill_value) if kill_entries else 50.0
    return {
        "kills": kill_entries,
        "deaths": death_entries,
        "deathScore": round(death_score),
        "killScore": round(kill_score),
    }


def team_totals(participants: List[Dict[str, Any]]) -> Dict[int, Dict[str, int]]:
    """Kills and champion damage summed per team id."""
    totals: Dict[int, Dict[str, int]] = {}
    for p in participants:
        team = totals.setdefault(int(p.get("teamId") or 0), {"kills": 0, "damage": 0})
        team["kills"] += int(p.get("kills") or 0)
        team["damage"] += int(p.get("totalDamageDealtToChampions") or 0)
    return totals
