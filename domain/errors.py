"""Pipeline exception hierarchy."""
from __future__ import annotations

from typing import Optional


class PipelineError(Exception):
    pass


class RateLimitTimeout(PipelineError):
    """No quota slot became free inside the caller's budget.

    Expected and non-fatal: callers skip the unit of work.
    """

    code = "TIMEOUT_EXCEEDED"

    def __init__(self, region: str, endpoint: str, wait_ms: float, budget_ms: float) -> None:
        super().__init__(
            f"{self.code}: {region}/{endpoint} needs {wait_ms:.0f}ms, budget {budget_ms:.0f}ms"
        )
        self.region = region
        self.endpoint = endpoint
        self.wait_ms = wait_ms
        self.budget_ms = budget_ms


class UpstreamError(PipelineError):
    retryable = False

    def __init__(self, message: str, status_code: Optional[int] = None, url: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class UpstreamRateLimited(UpstreamError):
    """429 from upstream: quota was exhausted outside our own accounting."""

    retryable = True

    def __init__(self, url: str, retry_after: Optional[float] = None) -> None:
        super().__init__(f"429 rate limited: {url}", status_code=429, url=url)
        self.retry_after = retry_after


class UpstreamUnavailable(UpstreamError):
    """5xx, timeout or network failure. Safe to retry later."""

    retryable = True


class UpstreamAuthError(UpstreamError):
    pass


class StoreError(PipelineError):
    pass


class DeletionNotConfirmedError(PipelineError):
    pass
