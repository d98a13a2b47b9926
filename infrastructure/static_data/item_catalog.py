"""Item cost and completion lookups backed by a Data Dragon ``item.json``."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

import httpx

from core.logging import get_logger
from domain.entities.aggregate import TIER1_BOOT_ID, TIER2_BOOT_IDS

logger = get_logger(__name__, service="static-data")

DDRAGON_ITEM_URL = "https://ddragon.leagueoflegends.com/cdn/{version}/data/en_US/item.json"


class ItemCatalog:
    """Item metadata keyed by item id.

    An empty catalog still answers every question with heuristics: anything
    numbered 3000 and above counts as completed, boots come from a fixed set,
    and unknown items cost nothing.
    """

    def __init__(self, items: Optional[Dict[int, Dict[str, Any]]] = None) -> None:
        self._items: Dict[int, Dict[str, Any]] = items or {}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: int) -> bool:
        return item_id in self._items

    def cost(self, item_id: int) -> int:
        item = self._items.get(item_id)
        if item is None:
            return 0
        gold = item.get("gold") or {}
        return int(gold.get("total", item.get("totalCost", 0)) or 0)

    def is_boots(self, item_id: int) -> bool:
        if item_id in TIER2_BOOT_IDS or item_id == TIER1_BOOT_ID:
            return True
        item = self._items.get(item_id)
        return bool(item) and "Boots" in (item.get("tags") or [])

    def is_completed(self, item_id: int) -> bool:
        if item_id <= 0 or item_id == TIER1_BOOT_ID:
            return False
        if item_id in TIER2_BOOT_IDS:
            return True
        item = self._items.get(item_id)
        if item is None:
            return item_id >= 3000
        # completed items build into nothing; tier-2 boots are handled above
        if item.get("into"):
            return False
        if "Consumable" in (item.get("tags") or []):
            return False
        return self.cost(item_id) >= 1000 or item_id >= 3000

    def name(self, item_id: int) -> str:
        item = self._items.get(item_id)
        return (item or {}).get("name") or f"Item {item_id}"

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ItemCatalog":
        data = payload.get("data", payload)
        items: Dict[int, Dict[str, Any]] = {}
        for key, value in data.items():
            try:
                items[int(key)] = value
            except (TypeError, ValueError):
                continue
        return cls(items)

    @classmethod
    def from_file(cls, path: Union[Path, str, None]) -> "ItemCatalog":
        """Load a cached ``item.json``; a missing path yields the heuristic catalog."""
        if not path:
            return cls()
        p = Path(path)
        if not p.exists():
            logger.warning(lambda: f"item-catalog-missing {p}")
            return cls()
        with p.open("r", encoding="utf-8") as fh:
            catalog = cls.from_payload(json.load(fh))
        logger.info(lambda: f"item-catalog-loaded items={len(catalog)}")
        return catalog


async def fetch_item_catalog(
    version: str,
    *,
    save_to: Union[Path, str, None] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: float = 10.0,
) -> ItemCatalog:
    """Download ``item.json`` for a game version (e.g. ``14.23.1``)."""
    url = DDRAGON_ITEM_URL.format(version=version)
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        response = await client.get(url)
        response.raise_for_status()
        payload = response.json()
    if save_to:
        target = Path(save_to)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(payload), encoding="utf-8")
    catalog = ItemCatalog.from_payload(payload)
    logger.info(lambda: f"item-catalog-fetched version={version} items={len(catalog)}")
    return catalog
