# Shared module for common utilities, models, and configuration
from .config import Settings, get_settings
from .database import Database
from .errors import (
    ConfigurationError,
    EmptyCatalogError,
    EmptyResumeError,
    MalformedResponseError,
    MatchingError,
    TransientCallError,
)
from .models import (
    CandidateProfile,
    JobPosting,
    MatchOutcome,
    MatchSession,
    RecommendationTier,
)

__all__ = [
    "Settings",
    "get_settings",
    "Database",
    "MatchingError",
    "ConfigurationError",
    "TransientCallError",
    "MalformedResponseError",
    "EmptyCatalogError",
    "EmptyResumeError",
    "CandidateProfile",
    "JobPosting",
    "MatchOutcome",
    "MatchSession",
    "RecommendationTier",
]
