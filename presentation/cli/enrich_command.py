from __future__ import annotations

import json
from typing import Optional

from application import PipelineContext
from config import settings
from core.logging.logger import get_logger
from domain.enums import Region


class EnrichCommand:
    def __init__(self) -> None:
        self._log = get_logger(__name__, service="enrich-cli")

    async def run(self, match_id: Optional[str] = None, region: Optional[str] = None) -> int:
        settings.validate()
        if not match_id:
            match_id = input("Match id (e.g. EUW1_7000000000): ").strip()
        if not region:
            region = input("Region or platform (europe, euw1, ...): ").strip()
        try:
            parsed = Region.parse(region)
        except ValueError as e:
            print(f"Error: {e}")
            return 2

        async with PipelineContext() as ctx:
            result = await ctx.enrichment.enrich(match_id, parsed)
        print(json.dumps(result.to_dict(), indent=2))
        if not result.success:
            self._log.warning(lambda: f"enrich-cli-failed {match_id} {result.reason.value}")
            return 1
        return 0
