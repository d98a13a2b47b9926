"""In-memory champion tallies folded from StatsContributions."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional

from .contribution import StatsContribution

TIER1_BOOT_ID = 1001
TIER2_BOOT_IDS = frozenset({3006, 3009, 3020, 3047, 3111, 3117, 3158})
NORMALIZED_BOOT_ID = 99999

PER_MINUTE_METRICS = ("damage_pm", "total_damage_pm", "heal_shield_pm", "cc_pm", "deaths_pm")

SUM_COLUMNS = (
    "sum_damage_to_champions",
    "sum_total_damage",
    "sum_healing",
    "sum_shielding",
    "sum_cc_time",
    "sum_game_duration",
    "sum_deaths",
)

# per-minute values are kept as sum and sum of squares so mean and
# variance stay derivable while every column merges by addition
PER_MINUTE_COLUMNS = tuple(
    col for metric in PER_MINUTE_METRICS for col in (f"sum_{metric}", f"sumsq_{metric}")
)

FacetKey = tuple[str, str, str]  # (core_key, facet, facet_key)


def is_core_item(item_id: int) -> bool:
    if item_id == TIER1_BOOT_ID:
        return False
    if item_id in TIER2_BOOT_IDS:
        return True
    return item_id >= 3000


def core_combo_key(items: list[int]) -> Optional[str]:
    """First three completed items, boots collapsed to one id, sorted and joined by '_'."""
    core: list[int] = []
    for item_id in items:
        if len(core) >= 3:
            break
        if item_id <= 0 or not is_core_item(item_id):
            continue
        normalized = NORMALIZED_BOOT_ID if item_id in TIER2_BOOT_IDS else item_id
        if normalized not in core:
            core.append(normalized)
    if len(core) != 3:
        return None
    return "_".join(str(i) for i in sorted(core))


def spell_key(spell1: int, spell2: int) -> str:
    return f"{min(spell1, spell2)}_{max(spell1, spell2)}"


@dataclass
class ChampionTally:
    champion_name: str
    patch: str
    games: int = 0
    wins: int = 0
    timed_games: int = 0
    sums: dict[str, float] = field(default_factory=lambda: dict.fromkeys(SUM_COLUMNS, 0.0))
    per_minute: dict[str, float] = field(default_factory=lambda: dict.fromkeys(PER_MINUTE_COLUMNS, 0.0))
    facets: dict[FacetKey, list[int]] = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str]:
        return (self.champion_name, self.patch)

    def _bump(self, core_key: str, facet: str, facet_key: object, win: int) -> None:
        slot = self.facets.setdefault((core_key, facet, str(facet_key)), [0, 0])
        slot[0] += 1
        slot[1] += win

    def add(self, c: StatsContribution) -> None:
        win = 1 if c.win else 0
        self.games += 1
        self.wins += win

        self.sums["sum_damage_to_champions"] += c.damage_to_champions
        self.sums["sum_total_damage"] += c.total_damage
        self.sums["sum_healing"] += c.healing
        self.sums["sum_shielding"] += c.shielding
        self.sums["sum_cc_time"] += c.cc_time
        self.sums["sum_game_duration"] += c.game_duration
        self.sums["sum_deaths"] += c.deaths

        minutes = c.game_duration / 60.0
        if minutes > 0:
            self.timed_games += 1
            values = {
                "damage_pm": c.damage_to_champions / minutes,
                "total_damage_pm": c.total_damage / minutes,
                "heal_shield_pm": (c.healing + c.shielding) / minutes,
                "cc_pm": c.cc_time / minutes,
                "deaths_pm": c.deaths / minutes,
            }
            for metric, value in values.items():
                self.per_minute[f"sum_{metric}"] += value
                self.per_minute[f"sumsq_{metric}"] += value * value

        primary = [r for r in [c.keystone_id, *c.primary_runes] if r > 0]
        secondary = [r for r in c.secondary_runes if r > 0]
        offense, flex, defense = c.stat_perks
        spells = spell_key(c.spell1_id, c.spell2_id)
        combo = core_combo_key(c.items)

        for scope in ("", combo) if combo else ("",):
            if scope:
                self._bump(scope, "core", scope, win)
            for pos, item_id in enumerate(c.items[:6], start=1):
                if item_id > 0:
                    self._bump(scope, f"item{pos}", item_id, win)
            for rune in primary:
                self._bump(scope, "rune_primary", rune, win)
            for rune in secondary:
                self._bump(scope, "rune_secondary", rune, win)
            if offense > 0:
                self._bump(scope, "stat_offense", offense, win)
            if flex > 0:
                self._bump(scope, "stat_flex", flex, win)
            if defense > 0:
                self._bump(scope, "stat_defense", defense, win)
            self._bump(scope, "spells", spells, win)
            if c.first_buy:
                self._bump(scope, "starting", c.first_buy, win)

        # champion-wide only
        if c.keystone_id > 0:
            self._bump("", "keystone", c.keystone_id, win)
        if c.rune_tree_primary > 0:
            self._bump("", "tree_primary", c.rune_tree_primary, win)
        if c.rune_tree_secondary > 0:
            self._bump("", "tree_secondary", c.rune_tree_secondary, win)
        if c.skill_order:
            self._bump("", "skills", c.skill_order, win)

    def merge(self, other: "ChampionTally") -> None:
        self.games += other.games
        self.wins += other.wins
        self.timed_games += other.timed_games
        for k, v in other.sums.items():
            self.sums[k] = self.sums.get(k, 0.0) + v
        for k, v in other.per_minute.items():
            self.per_minute[k] = self.per_minute.get(k, 0.0) + v
        for key, (games, wins) in other.facets.items():
            slot = self.facets.setdefault(key, [0, 0])
            slot[0] += games
            slot[1] += wins


@dataclass(frozen=True)
class MetricBaseline:
    mean: float
    std: float

    def z_score(self, value: float) -> float:
        if self.std <= 0:
            return 0.0
        return (value - self.mean) / self.std

    @classmethod
    def from_sums(cls, n: int, total: float, total_sq: float) -> Optional["MetricBaseline"]:
        if n < 2:
            return None
        mean = total / n
        variance = max(0.0, (total_sq - n * mean * mean) / (n - 1))
        return cls(mean=mean, std=math.sqrt(variance))
