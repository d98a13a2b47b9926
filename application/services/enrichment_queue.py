"""Background enrichment jobs with observable completion."""
from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config import settings
from core.logging import get_logger
from domain.entities import EnrichmentResult
from domain.enums import JobStatus, Region, RequestType
from .enrichment_service import EnrichmentService
from .retry_policy import RetryPolicy

logger = get_logger(__name__, service="enrich-queue")


@dataclass
class EnrichmentJob:
    match_id: str
    region: Region
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: JobStatus = JobStatus.QUEUED
    result: Optional[EnrichmentResult] = None
    error: Optional[str] = None
    attempts: int = 0
    created_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None
    _done: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    @property
    def is_open(self) -> bool:
        return self.status in (JobStatus.QUEUED, JobStatus.RUNNING)

    async def wait(self, timeout: Optional[float] = None) -> "EnrichmentJob":
        if timeout is None:
            await self._done.wait()
        else:
            await asyncio.wait_for(self._done.wait(), timeout)
        return self

    def _finish(self, status: JobStatus) -> None:
        self.status = status
        self.finished_at = time.time()
        self._done.set()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jobId": self.job_id,
            "matchId": self.match_id,
            "region": self.region.value,
            "status": self.status.value,
            "attempts": self.attempts,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
        }


class EnrichmentQueue:
    """Worker pool over an ``asyncio.Queue`` of enrichment jobs.

    Transient failures (rate limited, upstream unavailable) are retried
    through ``RetryPolicy``; everything else finishes the job.
    """

    def __init__(
        self,
        service: EnrichmentService,
        *,
        workers: Optional[int] = None,
        retry_policy: Optional[RetryPolicy] = None,
        request_type: RequestType = RequestType.OVERHEAD,
    ) -> None:
        self.service = service
        self.workers = workers or settings.ENRICH_WORKERS
        self.retry_policy = retry_policy or RetryPolicy.from_settings()
        self.request_type = request_type
        self._queue: Optional[asyncio.Queue] = None
        self._tasks: List[asyncio.Task] = []
        self._jobs: Dict[str, EnrichmentJob] = {}
        self._open_by_match: Dict[str, EnrichmentJob] = {}

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def start(self) -> None:
        if self._tasks:
            return
        if self._queue is None:
            self._queue = asyncio.Queue()
        self._tasks = [
            asyncio.create_task(self._worker(i), name=f"enrich-worker-{i}") for i in range(self.workers)
        ]
        logger.info(lambda: f"queue-started workers={self.workers}")

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info(lambda: f"queue-stopped pending={self.pending_count()}")

    async def join(self) -> None:
        if self._queue is not None:
            await self._queue.join()

    def submit(self, match_id: str, region: Region) -> EnrichmentJob:
        """Queue a match; a match with an unfinished job gets that job back."""
        existing = self._open_by_match.get(match_id)
        if existing is not None and existing.is_open:
            return existing
        if self._queue is None:
            self._queue = asyncio.Queue()
        job = EnrichmentJob(match_id=match_id, region=region)
        self._jobs[job.job_id] = job
        self._open_by_match[match_id] = job
        self._queue.put_nowait(job)
        logger.debug(lambda: f"job-queued {job.job_id} {match_id}")
        return job

    def get(self, job_id: str) -> Optional[EnrichmentJob]:
        return self._jobs.get(job_id)

    def pending_count(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    async def _worker(self, index: int) -> None:
        queue = self._queue
        while True:
            job = await queue.get()
            try:
                await self._run(job)
            finally:
                queue.task_done()

    async def _run(self, job: EnrichmentJob) -> None:
        job.status = JobStatus.RUNNING

        async def attempt() -> EnrichmentResult:
            job.attempts += 1
            return await self.service.enrich(job.match_id, job.region, request_type=self.request_type)

        try:
            result = await self.retry_policy.run(
                attempt,
                is_transient=lambda exc, res: exc is None and res is not None and res.retryable,
                logger=logger,
                context={"job_id": job.job_id, "match_id": job.match_id},
            )
        except Exception as e:
            job.error = str(e)
            logger.exception(lambda: f"job-failed {job.job_id}", fields={"match_id": job.match_id})
            job._finish(JobStatus.FAILED)
        else:
            job.result = result
            if not result.success:
                job.error = result.message
            job._finish(JobStatus.SUCCEEDED if result.success else JobStatus.FAILED)
            logger.debug(lambda: f"job-done {job.job_id} status={job.status.value}")
        finally:
            if self._open_by_match.get(job.match_id) is job:
                del self._open_by_match[job.match_id]
