from application.services.timeline import (
    completed_items,
    extract_ability_order,
    extract_build_order,
    extract_first_buy,
    extract_item_purchases,
    extract_kill_events,
    format_build_order,
    format_first_buy,
    kill_death_summary,
    position_score,
    skill_order_abbreviation,
    team_totals,
)
from infrastructure.static_data import ItemCatalog
from tests.conftest import make_timeline


def _timeline(events, frames_gold=500):
    return {"info": {"frames": [{"events": events, "participantFrames": {str(i): {"currentGold": frames_gold} for i in range(1, 11)}}]}}


def _buy(item, ts, pid=1):
    return {"type": "ITEM_PURCHASED", "participantId": pid, "itemId": item, "timestamp": ts}


CATALOG = ItemCatalog.from_payload({
    "data": {
        "1055": {"name": "Doran's Blade", "gold": {"total": 450}, "into": ["3153"]},
        "2003": {"name": "Health Potion", "gold": {"total": 50}, "tags": ["Consumable"]},
        "1001": {"name": "Boots", "gold": {"total": 300}, "into": ["3006"], "tags": ["Boots"]},
        "1038": {"name": "B. F. Sword", "gold": {"total": 1300}, "into": ["3031"]},
        "3031": {"name": "Infinity Edge", "gold": {"total": 3400}},
        "3006": {"name": "Berserker's Greaves", "gold": {"total": 1100}, "tags": ["Boots"]},
    }
})


def test_undo_removes_the_undone_purchase():
    events = [
        _buy(1055, 1000),
        _buy(2003, 1200),
        {"type": "ITEM_UNDO", "participantId": 1, "beforeId": 2003, "afterId": 0, "timestamp": 1300},
        _buy(1001, 1400),
    ]
    assert extract_build_order(_timeline(events), 1) == [1055, 1001]


def test_undo_with_zero_target_is_ignored():
    events = [_buy(1055, 1000), {"type": "ITEM_UNDO", "participantId": 1, "beforeId": 0, "afterId": 0, "timestamp": 1100}]
    assert extract_build_order(_timeline(events), 1) == [1055]


def test_undo_of_a_sell_restores_the_purchase():
    events = [
        _buy(1038, 1000),
        {"type": "ITEM_SOLD", "participantId": 1, "itemId": 1038, "timestamp": 2000},
        {"type": "ITEM_UNDO", "participantId": 1, "beforeId": 1038, "afterId": 0, "timestamp": 2100},
    ]
    assert extract_build_order(_timeline(events), 1) == [1038]


def test_sold_item_cancels_latest_matching_purchase():
    events = [
        _buy(1055, 1000),
        _buy(1055, 2000),
        {"type": "ITEM_SOLD", "participantId": 1, "itemId": 1055, "timestamp": 3000},
    ]
    purchases = extract_item_purchases(_timeline(events), 1)
    assert purchases == [{"itemId": 1055, "timestamp": 1000}]


def test_other_participants_events_are_ignored():
    events = [_buy(1055, 1000, pid=2), _buy(2003, 1100, pid=1)]
    assert extract_build_order(_timeline(events), 1) == [2003]


def test_first_buy_stops_at_starting_gold():
    events = [_buy(1055, 1000), _buy(1038, 2000), _buy(2003, 3000)]
    # 450 + 1300 exceeds 1400, so the walk stops at the sword
    assert extract_first_buy(_timeline(events), 1, CATALOG) == [1055]


def test_first_buy_stops_after_the_first_minute():
    events = [_buy(2003, 59_000), _buy(2003, 61_000)]
    assert extract_first_buy(_timeline(events), 1, CATALOG) == [2003]


def test_format_first_buy_is_order_independent():
    assert format_first_buy([2003, 1055]) == format_first_buy([1055, 2003]) == "1055,2003"
    assert format_first_buy([]) is None


def test_format_build_order():
    assert format_build_order([3031, 3006]) == "3031,3006"
    assert format_build_order([]) is None


def test_ability_order_and_skill_order():
    order = extract_ability_order(make_timeline(), 1)
    assert order.split(" ")[:4] == ["Q", "E", "W", "Q"]
    assert skill_order_abbreviation(order) == "qew"


def test_ability_order_ignores_evolve_level_ups():
    events = [
        {"type": "SKILL_LEVEL_UP", "participantId": 1, "skillSlot": 2, "levelUpType": "EVOLVE", "timestamp": 10},
        {"type": "SKILL_LEVEL_UP", "participantId": 1, "skillSlot": 1, "levelUpType": "NORMAL", "timestamp": 20},
    ]
    assert extract_ability_order(_timeline(events), 1) == "Q"
    assert extract_ability_order(_timeline([]), 1) is None


def test_skill_order_infers_third_and_rejects_single():
    assert skill_order_abbreviation(" ".join(["W"] * 5 + ["Q"] * 5)) == "wqe"
    assert skill_order_abbreviation(" ".join(["E"] * 5 + ["Q"] * 2)) is None
    assert skill_order_abbreviation(None) is None


def test_completed_items_falls_back_to_final_inventory():
    assert completed_items([1055, 3031, 3006], [], CATALOG) == [3031, 3006]
    assert completed_items([1055, 2003], [3031, 1038, 0], CATALOG) == [3031]


def test_catalog_heuristics_without_data():
    empty = ItemCatalog()
    assert empty.is_completed(3089)
    assert not empty.is_completed(1001)
    assert empty.is_completed(3020)
    assert empty.cost(3089) == 0


def test_teamfight_detection():
    kills = extract_kill_events(make_timeline())
    assert len(kills) == 3
    assert all(k.is_teamfight for k in kills)

    lone = extract_kill_events(_timeline([
        {"type": "CHAMPION_KILL", "killerId": 1, "victimId": 6, "position": {"x": 7000, "y": 7000}, "timestamp": 1000},
        {"type": "CHAMPION_KILL", "killerId": 2, "victimId": 7, "position": {"x": 2000, "y": 2000}, "timestamp": 1500},
    ]))
    assert not any(k.is_teamfight for k in lone)


def test_position_score_is_mirrored_between_teams():
    blue_side = (3000.0, 3000.0)
    assert position_score(blue_side, 100) < 0.5
    assert position_score(blue_side, 200) > 0.5


def test_kill_death_summary_scores():
    summary = kill_death_summary(make_timeline(), 1, 100)
    assert len(summary["kills"]) == 1
    assert summary["deaths"] == []
    assert summary["deathScore"] == 100
    assert summary["killScore"] > 50

    victim = kill_death_summary(make_timeline(), 3, 100)
    assert len(victim["deaths"]) == 1
    assert victim["deaths"][0]["tf"] is True
    assert 20 <= victim["deaths"][0]["value"] <= 75
    assert victim["deathScore"] < 100


def test_team_totals():
    totals = team_totals([
        {"teamId": 100, "kills": 3, "totalDamageDealtToChampions": 100},
        {"teamId": 100, "kills": 2, "totalDamageDealtToChampions": 50},
        {"teamId": 200, "kills": 7, "totalDamageDealtToChampions": 10},
    ])
    assert totals[100] == {"kills": 5, "damage": 150}
    assert totals[200] == {"kills": 7, "damage": 10}
