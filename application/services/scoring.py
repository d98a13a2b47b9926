"""Composite per-participant performance score.

Pure functions only: everything the score needs arrives in ``ScoreInput``
and the champion baseline, so the same inputs always give the same score.
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Mapping, Optional

from domain.entities import MetricBaseline

# per-minute metric -> weight inside the performance component
PERFORMANCE_WEIGHTS = {
    "damage_pm": 0.35,
    "total_damage_pm": 0.2,
    "heal_shield_pm": 0.25,
    "cc_pm": 0.2,
}

PERFORMANCE_SHARE = 0.6
TIMELINE_SHARE = 0.25
KDA_SHARE = 0.15


@dataclass(frozen=True)
class ScoreInput:
    champion_name: str
    game_duration: int  # seconds
    kills: int
    deaths: int
    assists: int
    damage_to_champions: int
    total_damage: int
    healing: int
    shielding: int
    cc_time: int
    team_kills: int
    team_damage: int
    death_quality: Optional[float] = None
    kill_quality: Optional[float] = None

    @classmethod
    def from_stats(
        cls,
        stats: Mapping[str, Any],
        *,
        game_duration: int,
        team: Mapping[str, int],
        kill_death: Optional[Mapping[str, Any]] = None,
    ) -> "ScoreInput":
        kill_death = kill_death or {}
        return cls(
            champion_name=stats.get("championName", ""),
            game_duration=game_duration,
            kills=int(stats.get("kills") or 0),
            deaths=int(stats.get("deaths") or 0),
            assists=int(stats.get("assists") or 0),
            damage_to_champions=int(stats.get("totalDamageDealtToChampions") or 0),
            total_damage=int(stats.get("totalDamageDealt") or 0),
            healing=int(stats.get("totalHealsOnTeammates") or 0),
            shielding=int(stats.get("totalDamageShieldedOnTeammates") or 0),
            cc_time=int(stats.get("timeCCingOthers") or 0),
            team_kills=int(team.get("kills") or 0),
            team_damage=int(team.get("damage") or 0),
            death_quality=kill_death.get("deathScore"),
            kill_quality=kill_death.get("killScore"),
        )

    def per_minute(self) -> Dict[str, float]:
        minutes = self.game_duration / 60.0
        if minutes <= 0:
            return {}
        return {
            "damage_pm": self.damage_to_champions / minutes,
            "total_damage_pm": self.total_damage / minutes,
            "heal_shield_pm": (self.healing + self.shielding) / minutes,
            "cc_pm": self.cc_time / minutes,
            "deaths_pm": self.deaths / minutes,
        }


@dataclass
class ScoreBreakdown:
    score: int
    performance: float
    timeline: float
    kda: float
    kill_participation: Optional[float] = None
    damage_share: Optional[float] = None
    metrics: Dict[str, Dict[str, float]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        for key in ("performance", "timeline", "kda"):
            out[key] = round(out[key])
        return out


def _z_to_score(z: float) -> float:
    """Map a z-score onto 0-100 through the normal CDF; 0 sigma is 50."""
    z = max(-4.0, min(4.0, z))
    return 50.0 * (1.0 + math.erf(z / math.sqrt(2.0)))


def _kill_participation_score(kp: float) -> float:
    # ARAM fights are constant; 60%+ participation is par
    return max(0.0, min(100.0, kp / 0.6 * 70.0))


def _deaths_score(deaths_pm: float, baseline: Optional[MetricBaseline]) -> float:
    if baseline is not None and baseline.std > 0:
        return _z_to_score(-baseline.z_score(deaths_pm))
    return max(0.0, min(100.0, 100.0 - deaths_pm * 60.0))


def compute_score(inp: ScoreInput, baseline: Optional[Mapping[str, MetricBaseline]] = None) -> Optional[ScoreBreakdown]:
    """Return None when the game has no duration to normalise by."""
    per_minute = inp.per_minute()
    if not per_minute:
        return None
    baseline = baseline or {}

    metrics: Dict[str, Dict[str, float]] = {}
    weighted = 0.0
    total_weight = 0.0
    for metric, weight in PERFORMANCE_WEIGHTS.items():
        base = baseline.get(metric)
        if base is None or base.std <= 0:
            continue
        z = base.z_score(per_minute[metric])
        value = _z_to_score(z)
        metrics[metric] = {"value": round(per_minute[metric], 2), "avg": round(base.mean, 2), "z": round(z, 3), "score": round(value, 1)}
        weighted += value * weight
        total_weight += weight
    performance = weighted / total_weight if total_weight else 50.0

    damage_share = None
    if inp.team_damage > 0:
        damage_share = inp.damage_to_champions / inp.team_damage
        # a fifth of team damage is an even share
        performance = performance * 0.85 + min(100.0, damage_share / 0.2 * 50.0) * 0.15

    timeline = float(inp.death_quality) if inp.death_quality is not None else 50.0
    if inp.kill_quality is not None:
        timeline = timeline * 0.8 + float(inp.kill_quality) * 0.2

    kda = 50.0
    kill_participation = None
    if inp.team_kills > 0:
        kill_participation = (inp.kills + inp.assists) / inp.team_kills
        kda = (
            _kill_participation_score(kill_participation) * 0.6
            + _deaths_score(per_minute["deaths_pm"], baseline.get("deaths_pm")) * 0.4
        )

    final = performance * PERFORMANCE_SHARE + timeline * TIMELINE_SHARE + kda * KDA_SHARE
    return ScoreBreakdown(
        score=int(round(max(0.0, min(100.0, final)))),
        performance=performance,
        timeline=timeline,
        kda=kda,
        kill_participation=round(kill_participation, 3) if kill_participation is not None else None,
        damage_share=round(damage_share, 3) if damage_share is not None else None,
        metrics=metrics,
    )
