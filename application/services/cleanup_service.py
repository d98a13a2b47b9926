from __future__ import annotations

from typing import Dict, List, Optional

from config import settings
from core.logging import get_logger
from domain.errors import DeletionNotConfirmedError
from infrastructure.repositories import AggregateRepository

logger = get_logger(__name__, service="cleanup")


class AggregateCleanupService:
    """The only path that deletes aggregate rows."""

    def __init__(self, repository: AggregateRepository) -> None:
        self.repository = repository

    def stale_patches(self, keep_patches: Optional[int] = None) -> List[str]:
        keep = keep_patches or settings.ACCEPTED_PATCH_COUNT
        return self.repository.patches()[keep:]

    def cleanup(self, keep_patches: Optional[int] = None, *, confirm: bool) -> Dict[str, int]:
        if not confirm:
            raise DeletionNotConfirmedError("Deletion not confirmed.")
        keep = keep_patches or settings.ACCEPTED_PATCH_COUNT
        kept = self.repository.patches()[:keep]
        if not kept:
            logger.info(lambda: "cleanup-nothing no aggregate rows")
            return {"champion_stats": 0, "champion_facets": 0}
        deleted = self.repository.delete_patches_except(kept)
        logger.warning(lambda: f"cleanup-done kept={','.join(kept)}", fields=deleted)
        return deleted
