"""Enrichment outcome returned to callers and API consumers."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..enums import ReasonTag


@dataclass
class EnrichmentResult:
    match_id: str
    success: bool
    scores: dict[str, Optional[float]] = field(default_factory=dict)
    reason: Optional[ReasonTag] = None
    message: str = ""
    cached: bool = False
    aggregated: bool = False
    # outcome of the aggregate flush that followed a first enrichment
    flush: Optional[dict] = None

    @classmethod
    def failed(cls, match_id: str, reason: ReasonTag, message: str) -> "EnrichmentResult":
        return cls(match_id=match_id, success=False, reason=reason, message=message)

    @property
    def http_status(self) -> int:
        if self.success or self.reason is None:
            return 200
        return self.reason.http_status

    @property
    def retryable(self) -> bool:
        return self.reason is not None and self.reason.retryable

    def to_dict(self) -> dict:
        out: dict = {
            'matchId': self.match_id,
            'success': self.success,
            'results': self.scores,
            'cached': self.cached,
        }
        if self.flush is not None:
            out['flush'] = dict(self.flush)
        if self.reason is not None:
            out['reason'] = self.reason.value
            out[self.reason.value] = True
            out['error'] = self.message
        return out
