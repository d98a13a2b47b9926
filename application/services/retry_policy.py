from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from config import settings
from core.logging.logger import StructuredLogger


TransientPredicate = Callable[[Optional[BaseException], Any], bool]
Supplier = Callable[[], Awaitable[Any]]


@dataclass(slots=True)
class RetryPolicy:
    max_attempts: int
    backoff_base_ms: int
    backoff_factor: float = 2.0
    jitter_ms: int = 0

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_attempts=settings.ENRICH_RETRY_ATTEMPTS,
            backoff_base_ms=settings.ENRICH_RETRY_BACKOFF_MS,
        )

    def backoff_ms(self, attempt: int) -> int:
        return int(self.backoff_base_ms * math.pow(self.backoff_factor, attempt - 1)) + self.jitter_ms

    async def run(
        self,
        supplier: Supplier,
        *,
        is_transient: TransientPredicate,
        logger: StructuredLogger,
        context: dict[str, Any] | None = None,
    ) -> Any:
        """Call ``supplier`` until it returns a non-transient result or attempts run out.

        ``is_transient`` sees either the raised exception or the returned
        value. The last transient result is returned as-is; the last
        transient exception is re-raised.
        """
        result: Any = None
        for attempt in range(1, self.max_attempts + 1):
            error: Optional[BaseException] = None
            try:
                result = await supplier()
            except Exception as e:
                error = e
            transient = is_transient(error, result if error is None else None)
            if not transient:
                if error is not None:
                    raise error
                return result
            logger.warning(
                lambda: f"retry-attempt {attempt}/{self.max_attempts}",
                fields={**(context or {}), "error": str(error) if error else None},
            )
            if attempt >= self.max_attempts:
                if error is not None:
                    raise error
                return result
            await asyncio.sleep(self.backoff_ms(attempt) / 1000.0)
        return result
