from .abilities import extract_ability_order, skill_order_abbreviation
from .items import (
    completed_items,
    extract_build_order,
    extract_first_buy,
    extract_item_purchases,
    final_items,
    format_build_order,
    format_first_buy,
    parse_item_list,
)
from .kills import extract_kill_events, kill_death_summary, position_score, team_totals

__all__ = [
    "extract_ability_order",
    "skill_order_abbreviation",
    "completed_items",
    "extract_build_order",
    "extract_first_buy",
    "extract_item_purchases",
    "final_items",
    "format_build_order",
    "format_first_buy",
    "parse_item_list",
    "extract_kill_events",
    "kill_death_summary",
    "position_score",
    "team_totals",
]
