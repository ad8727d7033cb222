"""
Concurrency-limited execution of scoring batches.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional, Sequence

from loguru import logger

from shared.errors import MalformedResponseError, TransientCallError

from .planner import Batch
from .scoring_client import ScoredJob, ScoringClient

DEFAULT_CONCURRENCY = 8


@dataclass
class BatchResult:
    """Outcome slot owned by a single batch."""

    batch: Batch
    scored: list[ScoredJob] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class BatchExecutor:
    """
    Runs batches through a ScoringClient in waves of at most `concurrency`.

    A wave is admitted only once every batch of the previous wave has
    finished, so no more than `concurrency` remote calls are ever in
    flight. A batch that fails terminally yields an empty, failed
    BatchResult instead of aborting its siblings. Cancelling the caller
    drops the results of the current wave but does not cancel its calls.
    """

    def __init__(self, client: ScoringClient, concurrency: int = DEFAULT_CONCURRENCY):
        if concurrency <= 0:
            raise ValueError(f"concurrency must be positive, got {concurrency}")
        self.client = client
        self.concurrency = concurrency

    async def _run_batch(self, candidate: dict[str, Any], batch: Batch) -> BatchResult:
        try:
            scored = await self.client.score_batch(candidate, batch.jobs)
        except (TransientCallError, MalformedResponseError) as e:
            logger.error(f"Batch {batch.index} ({len(batch)} jobs) failed: {e}")
            return BatchResult(batch=batch, error=str(e))

        logger.debug(f"Batch {batch.index}: {len(scored)} scored of {len(batch)}")
        return BatchResult(batch=batch, scored=scored)

    async def iter_waves(
        self,
        candidate: dict[str, Any],
        batches: Sequence[Batch],
    ) -> AsyncIterator[list[BatchResult]]:
        """Yield the results of each wave once all of its batches are done."""
        total_waves = -(-len(batches) // self.concurrency)
        for wave_no, start in enumerate(range(0, len(batches), self.concurrency), 1):
            wave = batches[start : start + self.concurrency]
            logger.debug(f"Wave {wave_no}/{total_waves}: {len(wave)} batches")
            pending = asyncio.gather(
                *(self._run_batch(candidate, batch) for batch in wave)
            )
            # An abandoned run stops admitting waves; calls already in flight finish
            results = await asyncio.shield(pending)
            yield list(results)

    async def run(
        self,
        candidate: dict[str, Any],
        batches: Sequence[Batch],
    ) -> list[BatchResult]:
        """Run every batch and return all results once the last wave is done."""
        results: list[BatchResult] = []
        async for wave in self.iter_waves(candidate, batches):
            results.extend(wave)
        return results
