"""
Merging and ranking of per-batch scoring results.
"""

import re
from typing import Iterable

from loguru import logger

from shared.models import NATIONWIDE, JobPosting, MatchOutcome, RecommendationTier

from .executor import BatchResult
from .scoring_client import ScoredJob

_CITY_SEPARATORS = re.compile(r"[|丨\s/-]")


def build_outcome(scored: ScoredJob, job: JobPosting) -> MatchOutcome:
    return MatchOutcome(
        job_id=job.id,
        score=scored.s,
        match_reasons=scored.r,
        mismatch_reasons=scored.k,
        recommendation=RecommendationTier.from_score(scored.s),
        tips=scored.t,
        job=job,
    )


def to_outcomes(result: BatchResult) -> list[MatchOutcome]:
    """
    Resolve one batch's scored entries against the jobs of that batch.

    Entries naming a job outside the batch are dropped. Outcomes come back
    in catalog order; a job scored twice keeps its first entry.
    """
    job_ids = result.batch.job_ids
    scored_by_id: dict[str, ScoredJob] = {}
    for scored in result.scored:
        if scored.id not in job_ids:
            logger.warning(
                f"Batch {result.batch.index}: dropping score for unknown job {scored.id!r}"
            )
            continue
        scored_by_id.setdefault(scored.id, scored)

    return [
        build_outcome(scored_by_id[job.id], job)
        for job in result.batch.jobs
        if job.id in scored_by_id
    ]


def aggregate(results: Iterable[BatchResult]) -> list[MatchOutcome]:
    """
    Merge batch results into one list ranked by score, highest first.

    Ties keep catalog order (batch index, then position in the batch),
    whatever order the batches completed or the scorer answered in.
    """
    merged: list[MatchOutcome] = []
    for result in sorted(results, key=lambda r: r.batch.index):
        merged.extend(to_outcomes(result))
    # sorted() is stable
    return sorted(merged, key=lambda outcome: -outcome.score)


def city_of(location: str) -> str:
    """Leading city token of a location such as '北京|上海' or '深圳-南山'."""
    return _CITY_SEPARATORS.split(location.strip(), maxsplit=1)[0]


def cities(outcomes: Iterable[MatchOutcome]) -> list[str]:
    """Distinct cities among the outcomes, in first-seen order."""
    seen: dict[str, None] = {}
    for outcome in outcomes:
        location = outcome.job.location
        if location and location != NATIONWIDE:
            city = city_of(location)
            if city:
                seen.setdefault(city)
    return list(seen)


def filter_by_city(outcomes: Iterable[MatchOutcome], city: str) -> list[MatchOutcome]:
    return [outcome for outcome in outcomes if city in outcome.job.location]
