"""Pipeline state and outcome enumerations."""
from enum import Enum


class ScanState(Enum):
    """Per-region scheduler state within one invocation."""

    IDLE = "idle"
    SCANNING = "scanning"
    TIME_EXPIRED = "time_expired"
    EXHAUSTED = "exhausted"
    # consecutive rate-limiter timeouts; resume next invocation
    SATURATED = "saturated"


class ReasonTag(Enum):
    """Machine-readable failure reasons surfaced to API consumers."""

    TOO_OLD = "tooOld"
    RATE_LIMITED = "rateLimited"
    UNAVAILABLE = "unavailable"
    NOT_FOUND = "notFound"

    @property
    def http_status(self) -> int:
        return {
            ReasonTag.TOO_OLD: 410,
            ReasonTag.RATE_LIMITED: 503,
            ReasonTag.UNAVAILABLE: 503,
            ReasonTag.NOT_FOUND: 404,
        }[self]

    @property
    def retryable(self) -> bool:
        return self in (ReasonTag.RATE_LIMITED, ReasonTag.UNAVAILABLE)


class JobStatus(Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
