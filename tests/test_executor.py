"""
Tests for the wave-based batch executor.
"""

import asyncio

import pytest

from conftest import FakeScoringClient, make_jobs
from matcher.executor import BatchExecutor
from matcher.planner import plan_batches
from shared.errors import ConfigurationError, MalformedResponseError

SUMMARY = {"cohort": "2026届", "education": "本科", "major": "计算机"}


@pytest.mark.parametrize("concurrency", [1, 3, 8])
async def test_in_flight_calls_never_exceed_concurrency(concurrency):
    client = FakeScoringClient()
    batches = plan_batches(make_jobs(200), 10)

    results = await BatchExecutor(client, concurrency).run(SUMMARY, batches)

    assert client.max_in_flight <= concurrency
    assert client.max_in_flight == min(concurrency, len(batches))
    assert len(results) == len(batches)


async def test_every_batch_attempted_exactly_once():
    client = FakeScoringClient()
    batches = plan_batches(make_jobs(95), 10)

    await BatchExecutor(client, 4).run(SUMMARY, batches)

    assert sorted(client.calls) == sorted(tuple(job.id for job in b.jobs) for b in batches)
    assert len(client.calls) == len(batches)


async def test_waves_hold_at_most_concurrency_batches():
    client = FakeScoringClient()
    batches = plan_batches(make_jobs(50), 5)

    waves = [wave async for wave in BatchExecutor(client, 4).iter_waves(SUMMARY, batches)]

    assert [len(wave) for wave in waves] == [4, 4, 2]
    assert [r.batch.index for wave in waves for r in wave] == list(range(10))


async def test_failed_batch_is_contained():
    client = FakeScoringClient(fail_when=lambda jobs: jobs[0].id == "job-30")
    batches = plan_batches(make_jobs(65), 30)

    results = await BatchExecutor(client, 8).run(SUMMARY, batches)

    by_index = {r.batch.index: r for r in results}
    assert by_index[1].failed
    assert by_index[1].scored == []
    assert "upstream unavailable" in by_index[1].error
    assert not by_index[0].failed and len(by_index[0].scored) == 30
    assert not by_index[2].failed and len(by_index[2].scored) == 5


async def test_malformed_response_is_contained():
    class MalformedClient(FakeScoringClient):
        async def score_batch(self, candidate, jobs):
            raise MalformedResponseError("not json")

    results = await BatchExecutor(MalformedClient(), 2).run(
        SUMMARY, plan_batches(make_jobs(4), 2)
    )

    assert all(r.failed for r in results)


async def test_configuration_error_is_fatal():
    class MisconfiguredClient(FakeScoringClient):
        async def score_batch(self, candidate, jobs):
            raise ConfigurationError("no key")

    with pytest.raises(ConfigurationError):
        await BatchExecutor(MisconfiguredClient(), 2).run(
            SUMMARY, plan_batches(make_jobs(4), 2)
        )


def test_non_positive_concurrency_rejected():
    with pytest.raises(ValueError):
        BatchExecutor(FakeScoringClient(), 0)


async def test_abandoned_run_lets_in_flight_calls_finish():
    client = FakeScoringClient(delay=0.2)
    batches = plan_batches(make_jobs(40), 10)
    task = asyncio.create_task(BatchExecutor(client, 2).run(SUMMARY, batches))

    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    await asyncio.sleep(0.3)

    # the first wave ran to completion and the second was never admitted
    assert len(client.calls) == 2
    assert client.completed == 2
    assert client.in_flight == 0
