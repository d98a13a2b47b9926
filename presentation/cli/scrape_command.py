from __future__ import annotations

import json
from typing import Any, Dict

from application import PipelineContext
from config import settings
from core.logging.logger import get_logger


class ScrapeCommand:
    """Runs one scrape invocation and prints the per-region summary."""

    def __init__(self) -> None:
        self._log = get_logger(__name__, service="scrape-cli")

    def _print_summary(self, summary: Dict[str, Any]) -> None:
        print("\n" + "=" * 57)
        print("INVOCATION SUMMARY")
        print("=" * 57)
        for region, r in summary["regions"].items():
            line = (
                f"{region:<9} state={r['state']:<12} stored={r['stored']:<4} "
                f"next={r['next_index']:<4} discovered={r['discovered']:<4} errors={r['errors']}"
            )
            if r.get("error"):
                line += f"  ({r['error']})"
            print(line)
        print("-" * 57)
        print(f"Total stored: {summary['total_stored']}  in {summary['duration_ms']} ms")
        print(f"Aggregator flush: {summary['flush']}")
        print("=" * 57)

    async def run(self, *, as_json: bool = False) -> int:
        settings.validate()
        settings.create_directories()
        async with PipelineContext() as ctx:
            summary = await ctx.scrape_invocation().execute()
        if as_json:
            print(json.dumps(summary, indent=2))
        else:
            self._print_summary(summary)
        self._log.success(lambda: f"scrape-cli-done stored={summary['total_stored']}")
        return 0
