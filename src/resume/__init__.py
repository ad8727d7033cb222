"""
Resume Service - LLM extraction of candidate profiles from resume text.
"""

from .extractor import ProfileExtractor, load_profile

__all__ = ["ProfileExtractor", "load_profile"]
