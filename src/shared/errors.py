"""
Error taxonomy for the matching service.
"""


class MatchingError(Exception):
    """Base class for all matching service errors."""


class ConfigurationError(MatchingError):
    """Missing or invalid configuration (e.g. no API key). Never retried."""


class TransientCallError(MatchingError):
    """Remote call kept failing after the retry budget was spent."""


class MalformedResponseError(MatchingError):
    """Remote call answered, but not with the expected JSON schema."""


class EmptyCatalogError(MatchingError):
    """The job catalog handed to a run has no postings."""


class EmptyResumeError(MatchingError):
    """The candidate resume or profile has no usable content."""
