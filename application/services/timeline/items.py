"""Item purchase history, build order and first buy from match timelines."""
from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional

from infrastructure.static_data import ItemCatalog

ARAM_STARTING_GOLD = 1400
STARTER_TIME_WINDOW_MS = 60_000
MAX_STARTER_TIME_MS = 60_000

_STACKED = ("ITEM_PURCHASED", "ITEM_SOLD", "ITEM_DESTROYED")


def iter_events(timeline: Optional[Dict[str, Any]]) -> Iterator[Dict[str, Any]]:
    if not timeline:
        return
    for frame in (timeline.get("info") or {}).get("frames") or []:
        for event in frame.get("events") or []:
            yield event


def extract_item_purchases(timeline: Optional[Dict[str, Any]], participant_id: int) -> List[Dict[str, int]]:
    """Purchases that survived undos and sells, in purchase order.

    An ITEM_UNDO pops events off the stack until the undone item id
    (``beforeId`` or ``afterId``) comes off. A sell cancels the latest
    still-standing purchase of the same item.
    """
    stack: List[Dict[str, Any]] = []
    for event in iter_events(timeline):
        if event.get("participantId") != participant_id:
            continue
        kind = event.get("type")
        if kind in _STACKED and event.get("itemId"):
            stack.append({"type": kind, "itemId": event["itemId"], "timestamp": event.get("timestamp", 0)})
        elif kind == "ITEM_UNDO":
            target = event.get("beforeId") or event.get("afterId")
            if not target:
                continue
            while stack:
                if stack.pop()["itemId"] == target:
                    break

    purchases: List[Dict[str, int]] = []
    sold: set[int] = set()
    for event in stack:
        if event["type"] == "ITEM_PURCHASED":
            purchases.append({"itemId": event["itemId"], "timestamp": event["timestamp"]})
        elif event["type"] == "ITEM_SOLD":
            for idx in range(len(purchases) - 1, -1, -1):
                if purchases[idx]["itemId"] == event["itemId"] and idx not in sold:
                    sold.add(idx)
                    break
    return [p for idx, p in enumerate(purchases) if idx not in sold]


def extract_build_order(timeline: Optional[Dict[str, Any]], participant_id: int) -> List[int]:
    return [p["itemId"] for p in extract_item_purchases(timeline, participant_id)]


def format_build_order(build_order: List[int]) -> Optional[str]:
    if not build_order:
        return None
    return ",".join(str(i) for i in build_order)


def parse_item_list(value: Optional[str]) -> List[int]:
    if not value:
        return []
    out = []
    for piece in value.split(","):
        piece = piece.strip()
        if piece.isdigit():
            out.append(int(piece))
    return out


def extract_first_buy(
    timeline: Optional[Dict[str, Any]],
    participant_id: int,
    catalog: ItemCatalog,
) -> List[int]:
    """Starter items: bought within a minute of the first purchase, within starting gold."""
    purchases = extract_item_purchases(timeline, participant_id)
    if not purchases:
        return []
    cutoff = min(purchases[0]["timestamp"] + STARTER_TIME_WINDOW_MS, MAX_STARTER_TIME_MS)
    items: List[int] = []
    total = 0
    for p in purchases:
        if p["timestamp"] > cutoff:
            break
        cost = catalog.cost(p["itemId"])
        if total + cost > ARAM_STARTING_GOLD:
            break
        items.append(p["itemId"])
        total += cost
    return items


def format_first_buy(first_buy: List[int]) -> Optional[str]:
    # sorted so the same starter set always produces the same key
    if not first_buy:
        return None
    return ",".join(str(i) for i in sorted(first_buy))


def completed_items(build_order: List[int], final_items: List[int], catalog: ItemCatalog) -> List[int]:
    """Up to six finished items in purchase order, else from the final inventory."""
    finished = [i for i in build_order if catalog.is_completed(i)]
    if finished:
        return finished[:6]
    return [i for i in final_items if catalog.is_completed(i)][:6]


def final_items(stats: Dict[str, Any]) -> List[int]:
    return [int(stats.get(f"item{slot}") or 0) for slot in range(6)]
