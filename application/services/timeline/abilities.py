"""Ability level-up order."""
from __future__ import annotations

from typing import Any, Dict, Optional

from .items import iter_events

_SLOTS = {1: "Q", 2: "W", 3: "E", 4: "R"}


def extract_ability_order(timeline: Optional[Dict[str, Any]], participant_id: int) -> Optional[str]:
    """Space separated slot letters, e.g. ``"Q E W Q Q R"``."""
    ups = [
        e for e in iter_events(timeline)
        if e.get("type") == "SKILL_LEVEL_UP"
        and e.get("participantId") == participant_id
        and e.get("levelUpType", "NORMAL") == "NORMAL"
    ]
    if not ups:
        return None
    ups.sort(key=lambda e: e.get("timestamp", 0))
    return " ".join(_SLOTS.get(e.get("skillSlot"), "?") for e in ups)


def skill_order_abbreviation(ability_order: Optional[str]) -> Optional[str]:
    """Order in which the basic abilities reach rank 5, e.g. ``"qew"``.

    With only two maxed the third is implied. Fewer than two gives None.
    """
    if not ability_order:
        return None
    counts = {"Q": 0, "W": 0, "E": 0, "R": 0}
    maxed = []
    for ability in ability_order.split(" "):
        if ability not in counts:
            continue
        counts[ability] += 1
        if ability != "R" and counts[ability] == 5:
            maxed.append(ability.lower())
    if len(maxed) < 2:
        return None
    if len(maxed) == 2:
        missing = next((a for a in "qwe" if a not in maxed), "")
        maxed.append(missing)
    return "".join(maxed)
