"""
Partitioning of the job catalog into fixed-size batches.
"""

from dataclasses import dataclass
from typing import Sequence

from shared.models import JobPosting

DEFAULT_BATCH_SIZE = 30


@dataclass(frozen=True)
class Batch:
    """Contiguous slice of the catalog scored by one remote call."""

    index: int
    jobs: tuple[JobPosting, ...]

    def __len__(self) -> int:
        return len(self.jobs)

    @property
    def job_ids(self) -> frozenset[str]:
        return frozenset(job.id for job in self.jobs)


def plan_batches(
    jobs: Sequence[JobPosting],
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> list[Batch]:
    """
    Split jobs into ordered batches of at most `batch_size`.

    Every job lands in exactly one batch and input order is kept within
    and across batches; the last batch holds the remainder.
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    return [
        Batch(index=index, jobs=tuple(jobs[start : start + batch_size]))
        for index, start in enumerate(range(0, len(jobs), batch_size))
    ]
