"""Presentation CLI exports."""
from .scrape_command import ScrapeCommand
from .enrich_command import EnrichCommand
from .cleanup_command import CleanupCommand
from .serve_command import ServeCommand

__all__ = [
    "ScrapeCommand",
    "EnrichCommand",
    "CleanupCommand",
    "ServeCommand",
]
