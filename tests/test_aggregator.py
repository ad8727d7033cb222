"""
Tests for result merging, ranking and recommendation tiers.
"""

import pytest

from conftest import make_jobs
from matcher.aggregator import aggregate, cities, city_of, filter_by_city, to_outcomes
from matcher.executor import BatchResult
from matcher.planner import plan_batches
from matcher.scoring_client import ScoredJob
from shared.models import RecommendationTier


def scored(job_id, score):
    return ScoredJob(id=job_id, s=score, r=["match"], k=["risk"], t="tip")


@pytest.mark.parametrize(
    "score,tier",
    [
        (100, RecommendationTier.TOP),
        (85, RecommendationTier.TOP),
        (84, RecommendationTier.SECOND),
        (70, RecommendationTier.SECOND),
        (69, RecommendationTier.BASELINE),
        (0, RecommendationTier.BASELINE),
    ],
)
def test_recommendation_tier_boundaries(score, tier):
    assert RecommendationTier.from_score(score) is tier


def test_outcome_carries_job_and_derived_tier():
    batch = plan_batches(make_jobs(2), 2)[0]
    result = BatchResult(batch=batch, scored=[scored("job-1", 88)])

    [outcome] = to_outcomes(result)

    assert outcome.job_id == "job-1"
    assert outcome.job == batch.jobs[1]
    assert outcome.recommendation is RecommendationTier.TOP
    assert outcome.match_reasons == ["match"]
    assert outcome.mismatch_reasons == ["risk"]
    assert outcome.tips == "tip"


def test_unknown_job_ids_are_dropped():
    first, second = plan_batches(make_jobs(4), 2)
    # job-2 exists in the catalog but not in the first batch
    results = [
        BatchResult(batch=first, scored=[scored("job-0", 90), scored("job-2", 95), scored("ghost", 99)]),
        BatchResult(batch=second, scored=[scored("job-3", 60)]),
    ]

    ranked = aggregate(results)

    assert [o.job_id for o in ranked] == ["job-0", "job-3"]


def test_ranked_by_score_descending():
    first, second = plan_batches(make_jobs(6), 3)
    results = [
        BatchResult(batch=second, scored=[scored("job-3", 40), scored("job-4", 95), scored("job-5", 70)]),
        BatchResult(batch=first, scored=[scored("job-0", 85), scored("job-1", 10), scored("job-2", 72)]),
    ]

    ranked = aggregate(results)

    assert [o.score for o in ranked] == [95, 85, 72, 70, 40, 10]


def test_ties_keep_catalog_order_regardless_of_arrival():
    first, second = plan_batches(make_jobs(6), 3)
    in_order = [
        BatchResult(batch=first, scored=[scored("job-2", 80), scored("job-0", 80)]),
        BatchResult(batch=second, scored=[scored("job-5", 80), scored("job-3", 80)]),
    ]
    reversed_arrival = list(reversed(in_order))

    expected = ["job-0", "job-2", "job-3", "job-5"]
    assert [o.job_id for o in aggregate(in_order)] == expected
    assert [o.job_id for o in aggregate(reversed_arrival)] == expected


def test_duplicate_scores_for_same_job_keep_first():
    batch = plan_batches(make_jobs(2), 2)[0]
    result = BatchResult(batch=batch, scored=[scored("job-0", 60), scored("job-0", 99)])

    ranked = aggregate([result])

    assert [(o.job_id, o.score) for o in ranked] == [("job-0", 60)]


def test_failed_batches_contribute_nothing():
    first, second = plan_batches(make_jobs(4), 2)
    results = [
        BatchResult(batch=first, error="timeout"),
        BatchResult(batch=second, scored=[scored("job-2", 75)]),
    ]

    assert [o.job_id for o in aggregate(results)] == ["job-2"]


def test_city_helpers():
    batch = plan_batches(make_jobs(4), 4)[0]
    outcomes = aggregate([BatchResult(batch=batch, scored=[scored(j.id, 80) for j in batch.jobs])])

    assert city_of("深圳-南山") == "深圳"
    assert city_of("北京|上海") == "北京"
    assert cities(outcomes) == ["北京", "上海"]
    assert {o.job_id for o in filter_by_city(outcomes, "北京")} == {"job-0", "job-2"}
    assert len(filter_by_city(outcomes, "上海")) == 4
