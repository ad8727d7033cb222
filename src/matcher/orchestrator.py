"""
Top-level matching of one candidate against a job catalog.
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

from loguru import logger

from shared.config import Settings, get_settings
from shared.errors import EmptyCatalogError, EmptyResumeError
from shared.models import CandidateProfile, JobPosting, MatchOutcome

from .aggregator import aggregate
from .executor import BatchExecutor, BatchResult
from .planner import plan_batches
from .scoring_client import LLMScoringClient, ScoringClient

ProgressCallback = Callable[[list[MatchOutcome]], Union[None, Awaitable[None]]]


@dataclass
class MatchReport:
    """Final result of a matching run."""

    outcomes: list[MatchOutcome] = field(default_factory=list)
    batch_count: int = 0
    failed_batches: list[int] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        """False when at least one batch contributed nothing because it failed."""
        return not self.failed_batches


async def _notify(on_progress: Optional[ProgressCallback], outcomes: list[MatchOutcome]) -> None:
    if on_progress is None:
        return
    result: Any = on_progress(outcomes)
    if inspect.isawaitable(result):
        await result


class MatchingOrchestrator:
    """
    Matches a candidate profile against a job catalog.

    The catalog is split into batches, batches are scored in waves of at
    most `concurrency` remote calls, and the results are ranked. Failed
    batches contribute nothing; the run still completes.
    """

    def __init__(
        self,
        client: Optional[ScoringClient] = None,
        settings: Optional[Settings] = None,
        batch_size: Optional[int] = None,
        concurrency: Optional[int] = None,
    ):
        self.settings = settings or get_settings()
        self.client = client or LLMScoringClient(self.settings)
        if batch_size is None:
            batch_size = self.settings.match_batch_size
        if concurrency is None:
            concurrency = self.settings.match_concurrency
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.batch_size = batch_size
        self.executor = BatchExecutor(self.client, concurrency)

    @staticmethod
    def validate(candidate: Optional[CandidateProfile], jobs: Sequence[JobPosting]) -> None:
        """Reject unusable input before any remote call is made."""
        if not jobs:
            raise EmptyCatalogError("Job catalog is empty; import postings before matching")
        if candidate is None or candidate.is_empty():
            raise EmptyResumeError("Candidate profile has no education, skills or experience")

    async def run(
        self,
        candidate: CandidateProfile,
        jobs: Sequence[JobPosting],
        on_progress: Optional[ProgressCallback] = None,
    ) -> MatchReport:
        """
        Match a candidate against every job and report failed batches.

        `on_progress` receives the cumulative ranked list after each wave
        that leaves batches outstanding, then once more with the final list.
        """
        self.validate(candidate, jobs)

        batches = plan_batches(jobs, self.batch_size)
        logger.info(
            f"Matching {len(jobs)} jobs in {len(batches)} batches "
            f"(batch size {self.batch_size}, concurrency {self.executor.concurrency})"
        )

        summary = candidate.to_summary()
        completed: list[BatchResult] = []
        async for wave in self.executor.iter_waves(summary, batches):
            completed.extend(wave)
            if len(completed) < len(batches):
                await _notify(on_progress, aggregate(completed))

        outcomes = aggregate(completed)
        failed = sorted(result.batch.index for result in completed if result.failed)
        await _notify(on_progress, outcomes)

        if failed:
            logger.warning(
                f"Matching finished with {len(failed)}/{len(batches)} failed batches: {failed}"
            )
        logger.info(f"Matching complete: {len(outcomes)} outcomes from {len(jobs)} jobs")
        return MatchReport(outcomes=outcomes, batch_count=len(batches), failed_batches=failed)

    async def match(
        self,
        candidate: CandidateProfile,
        jobs: Sequence[JobPosting],
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[MatchOutcome]:
        """Match a candidate against every job and return the ranked outcomes."""
        report = await self.run(candidate, jobs, on_progress)
        return report.outcomes
