"""One participant's contribution to the champion aggregates."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(slots=True)
class StatsContribution:
    champion_name: str
    patch: str
    win: bool
    # finished items in purchase order, up to six
    items: list[int] = field(default_factory=list)
    first_buy: str = ""
    skill_order: str = ""
    keystone_id: int = 0
    primary_runes: list[int] = field(default_factory=list)  # three minor runes after the keystone
    secondary_runes: list[int] = field(default_factory=list)
    rune_tree_primary: int = 0
    rune_tree_secondary: int = 0
    stat_perks: tuple[int, int, int] = (0, 0, 0)  # offense, flex, defense
    spell1_id: int = 0
    spell2_id: int = 0
    damage_to_champions: int = 0
    total_damage: int = 0
    healing: int = 0
    shielding: int = 0
    cc_time: int = 0
    game_duration: int = 0
    deaths: int = 0

    @classmethod
    def from_participant(
        cls,
        stats: dict[str, Any],
        *,
        champion_name: str,
        patch: str,
        game_duration: int,
        items: list[int],
        first_buy: Optional[str] = None,
        skill_order: Optional[str] = None,
    ) -> "StatsContribution":
        """Build from a match-v5 participant document."""
        perks = stats.get('perks') or {}
        styles = perks.get('styles') or []
        primary = styles[0] if len(styles) > 0 else {}
        secondary = styles[1] if len(styles) > 1 else {}
        primary_perks = [s.get('perk', 0) for s in primary.get('selections') or []]
        secondary_perks = [s.get('perk', 0) for s in secondary.get('selections') or []]
        stat_perks = perks.get('statPerks') or {}
        return cls(
            champion_name=champion_name,
            patch=patch,
            win=bool(stats.get('win')),
            items=list(items[:6]),
            first_buy=first_buy or "",
            skill_order=skill_order or "",
            keystone_id=primary_perks[0] if primary_perks else 0,
            primary_runes=primary_perks[1:4],
            secondary_runes=secondary_perks[:2],
            rune_tree_primary=primary.get('style', 0) or 0,
            rune_tree_secondary=secondary.get('style', 0) or 0,
            stat_perks=(
                stat_perks.get('offense', 0) or 0,
                stat_perks.get('flex', 0) or 0,
                stat_perks.get('defense', 0) or 0,
            ),
            spell1_id=stats.get('summoner1Id', 0) or 0,
            spell2_id=stats.get('summoner2Id', 0) or 0,
            damage_to_champions=stats.get('totalDamageDealtToChampions', 0) or 0,
            total_damage=stats.get('totalDamageDealt', 0) or 0,
            healing=stats.get('totalHealsOnTeammates', 0) or 0,
            shielding=stats.get('totalDamageShieldedOnTeammates', 0) or 0,
            cc_time=stats.get('timeCCingOthers', 0) or 0,
            game_duration=game_duration,
            deaths=stats.get('deaths', 0) or 0,
        )
