"""
Shared fixtures: settings, sample data and a fake remote scorer.
"""

import asyncio
from typing import Any, Callable, Optional, Sequence

import pytest

from matcher.scoring_client import ScoredJob
from shared.config import Settings
from shared.errors import TransientCallError
from shared.models import CandidateProfile, JobPosting


class FakeScoringClient:
    """
    In-memory ScoringClient.

    Scores every job with `score_fn`, fails batches selected by `fail_when`
    and records how many calls were in flight at once and how many ran to
    completion.
    """

    def __init__(
        self,
        score_fn: Optional[Callable[[JobPosting], int]] = None,
        fail_when: Optional[Callable[[Sequence[JobPosting]], bool]] = None,
        delay: float = 0.01,
        extra: Optional[Callable[[Sequence[JobPosting]], list[ScoredJob]]] = None,
    ):
        self.score_fn = score_fn or (lambda job: 50)
        self.fail_when = fail_when or (lambda jobs: False)
        self.delay = delay
        self.extra = extra
        self.calls: list[tuple[str, ...]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.completed = 0

    async def score_batch(self, candidate: dict[str, Any], jobs: Sequence[JobPosting]) -> list[ScoredJob]:
        self.calls.append(tuple(job.id for job in jobs))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            self.completed += 1
            if self.fail_when(jobs):
                raise TransientCallError("upstream unavailable")
            scored = [
                ScoredJob(id=job.id, s=self.score_fn(job), r=["skills"], k=[], t="apply")
                for job in jobs
            ]
            if self.extra:
                scored.extend(self.extra(jobs))
            return scored
        finally:
            self.in_flight -= 1

    async def close(self) -> None:
        pass


def make_jobs(count: int, prefix: str = "job") -> list[JobPosting]:
    return [
        JobPosting(
            id=f"{prefix}-{i}",
            company=f"Company {i}",
            title="后端开发工程师",
            location="上海" if i % 2 else "北京|上海",
            type="校招",
            requirement="2026届本科及以上",
            update_time="2026-09-01",
        )
        for i in range(count)
    ]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        openai_api_key="sk-test",
        llm_retry_delay=0,
        log_format="text",
    )


@pytest.fixture
def candidate() -> CandidateProfile:
    return CandidateProfile(
        name="张三",
        education="本科",
        university="复旦大学",
        major="计算机科学与技术",
        graduation_year="2026届",
        is_fresh_grad=True,
        expected_cities=["上海"],
        skills=["Python", "Go", "MySQL"],
        experience="某互联网公司后端实习 6 个月",
        job_preference="后端开发",
    )


@pytest.fixture
def jobs() -> list[JobPosting]:
    return make_jobs(65)
