import asyncio

from application.services import EnrichmentQueue, RetryPolicy
from application.use_cases import AutoEnrichRecent
from domain.entities import EnrichmentResult
from domain.enums import JobStatus, ReasonTag, Region
from tests.conftest import DAY_MS, make_match, now_ms


class ScriptedService:
    """Returns (or raises) the scripted outcomes in order, then succeeds."""

    def __init__(self, *outcomes, delay=0.0):
        self.outcomes = list(outcomes)
        self.delay = delay
        self.calls = []

    async def enrich(self, match_id, region, *, request_type=None, budget_ms=None):
        self.calls.append(match_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.outcomes.pop(0) if self.outcomes else None
        if isinstance(outcome, BaseException):
            raise outcome
        if outcome is None:
            return EnrichmentResult(match_id=match_id, success=True, scores={"p": 50})
        return outcome


def make_queue(service, attempts=3):
    return EnrichmentQueue(service, workers=1, retry_policy=RetryPolicy(max_attempts=attempts, backoff_base_ms=0))


def test_submit_returns_open_job_for_same_match():
    service = ScriptedService(delay=0.01)

    async def scenario():
        queue = make_queue(service)
        first = queue.submit("EUW1_1", Region.EUROPE)
        again = queue.submit("EUW1_1", Region.EUROPE)
        other = queue.submit("EUW1_2", Region.EUROPE)
        queue.start()
        await asyncio.gather(first.wait(2), other.wait(2))
        later = queue.submit("EUW1_1", Region.EUROPE)
        await later.wait(2)
        await queue.stop()
        return queue, first, again, other, later

    queue, first, again, other, later = asyncio.run(scenario())
    assert first is again
    assert other is not first
    assert later is not first
    assert first.status is JobStatus.SUCCEEDED
    assert queue.get(first.job_id) is first
    assert queue.get("missing") is None
    assert service.calls == ["EUW1_1", "EUW1_2", "EUW1_1"]
    assert first.to_dict()["result"]["results"] == {"p": 50}


def test_transient_failures_are_retried():
    service = ScriptedService(
        EnrichmentResult.failed("EUW1_1", ReasonTag.RATE_LIMITED, "429"),
        EnrichmentResult.failed("EUW1_1", ReasonTag.UNAVAILABLE, "502"),
    )

    async def scenario():
        queue = make_queue(service)
        queue.start()
        job = await queue.submit("EUW1_1", Region.EUROPE).wait(2)
        await queue.stop()
        return job

    job = asyncio.run(scenario())
    assert job.status is JobStatus.SUCCEEDED
    assert job.attempts == 3
    assert job.error is None


def test_retries_give_up_with_last_result():
    service = ScriptedService(*[EnrichmentResult.failed("EUW1_1", ReasonTag.RATE_LIMITED, "429")] * 5)

    async def scenario():
        queue = make_queue(service, attempts=2)
        queue.start()
        job = await queue.submit("EUW1_1", Region.EUROPE).wait(2)
        await queue.stop()
        return job

    job = asyncio.run(scenario())
    assert job.status is JobStatus.FAILED
    assert job.attempts == 2
    assert job.result.reason is ReasonTag.RATE_LIMITED


def test_permanent_failures_and_exceptions_finish_the_job():
    service = ScriptedService(
        EnrichmentResult.failed("EUW1_1", ReasonTag.NOT_FOUND, "match not found"),
        ValueError("boom"),
    )

    async def scenario():
        queue = make_queue(service)
        queue.start()
        missing = await queue.submit("EUW1_1", Region.EUROPE).wait(2)
        broken = await queue.submit("EUW1_2", Region.EUROPE).wait(2)
        await queue.stop()
        return missing, broken

    missing, broken = asyncio.run(scenario())
    assert missing.status is JobStatus.FAILED and missing.attempts == 1
    assert missing.error == "match not found"
    assert broken.status is JobStatus.FAILED
    assert broken.error == "boom"
    assert broken.to_dict()["status"] == "failed"


def test_auto_enrich_queues_recent_matches_without_timeline(store):
    store.store_match(make_match("EUW1_1"), Region.EUROPE)
    store.store_match(make_match("EUW1_2", game_creation=now_ms() - 2 * 3_600_000), Region.EUROPE)
    store.store_match(make_match("EUW1_3", game_creation=now_ms() - 60 * DAY_MS), Region.EUROPE)
    service = ScriptedService()

    async def scenario():
        queue = make_queue(service)
        jobs = AutoEnrichRecent(store, queue, max_age_days=30, limit=5).execute(
            ["EUW1_1", "EUW1_2", "EUW1_3", "EUW1_9"], Region.EUROPE
        )
        return jobs, queue.pending_count()

    jobs, pending = asyncio.run(scenario())
    assert [j.match_id for j in jobs] == ["EUW1_1", "EUW1_2"]
    assert pending == 2
