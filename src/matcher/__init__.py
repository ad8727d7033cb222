"""
Matcher Service - batched LLM scoring of a candidate against a job catalog.

The catalog is split into batches, each batch is scored by one LLM call
under a concurrency cap, and the per-batch results are ranked by score.
"""

from .aggregator import aggregate, cities, filter_by_city
from .executor import BatchExecutor, BatchResult
from .history import SessionHistory
from .orchestrator import MatchingOrchestrator, MatchReport
from .planner import Batch, plan_batches
from .scoring_client import LLMScoringClient, ScoredJob, ScoringClient

__all__ = [
    "Batch",
    "BatchExecutor",
    "BatchResult",
    "LLMScoringClient",
    "MatchReport",
    "MatchingOrchestrator",
    "ScoredJob",
    "ScoringClient",
    "SessionHistory",
    "aggregate",
    "cities",
    "filter_by_city",
    "plan_batches",
]
