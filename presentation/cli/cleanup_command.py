from __future__ import annotations

from typing import Optional

from application.services.cleanup_service import AggregateCleanupService
from config import settings
from core.logging.logger import get_logger
from domain.errors import DeletionNotConfirmedError, StoreError
from infrastructure.repositories import AggregateRepository, Database


class CleanupCommand:
    """Interactive removal of aggregate rows for patches outside the newest N."""

    def __init__(self, db_path=None) -> None:
        self.log = get_logger(__name__, service="cleanup-cli")
        self.db_path = db_path or settings.DB_PATH
        self.service = AggregateCleanupService(AggregateRepository(Database(self.db_path)))

    def run(self, keep: Optional[int] = None, *, assume_yes: bool = False) -> int:
        keep = keep or settings.ACCEPTED_PATCH_COUNT
        print("\n=== Aggregate cleanup ===")
        print(f"Database: {self.db_path}")
        try:
            stale = self.service.stale_patches(keep)
        except StoreError as e:
            print(f"Error: {e}")
            return 1
        if not stale:
            print(f"Nothing to delete; at most {keep} patches stored.")
            return 0
        print(f"Patches to delete: {', '.join(stale)}")
        confirmed = assume_yes or input("Type 'YES' to confirm: ").strip() == "YES"
        try:
            deleted = self.service.cleanup(keep, confirm=confirmed)
        except DeletionNotConfirmedError:
            print("Not confirmed.")
            return 1
        except StoreError as e:
            self.log.error(lambda: f"cleanup-failed {e}")
            print(f"Error: {e}")
            return 1
        print(f"Deleted {deleted['champion_stats']} champion rows, {deleted['champion_facets']} facet rows.")
        return 0
