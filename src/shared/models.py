"""
Pydantic models for job postings, candidate profiles and match outcomes.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Location marker meaning "anywhere in the country"
NATIONWIDE = "全国"


def _as_text(value: Any) -> Any:
    """Coerce loosely typed LLM output into a string."""
    if value is None:
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    return value


def _as_list(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    return value


def _as_number(value: Any) -> Any:
    if value in (None, ""):
        return 0
    return value


Text = Annotated[str, BeforeValidator(_as_text)]
TextList = Annotated[list[str], BeforeValidator(_as_list)]


class RecommendationTier(str, Enum):
    """Three-level recommendation derived from the match score."""

    TOP = "top"  # score >= 85
    SECOND = "second"  # score >= 70
    BASELINE = "baseline"

    @classmethod
    def from_score(cls, score: int) -> "RecommendationTier":
        if score >= 85:
            return cls.TOP
        if score >= 70:
            return cls.SECOND
        return cls.BASELINE


class JobPosting(BaseModel):
    """A job posting from the catalog. Read-only to the matcher."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    id: Text = Field(..., description="Unique catalog identifier")
    company: Text = Field(default="", description="Company name")
    location: Text = Field(default="", description="Work location")
    type: Text = Field(default="", description="Posting type / category")
    requirement: Text = Field(default="", description="Eligibility requirement text")
    title: Text = Field(default="", description="Job title")
    update_time: Text = Field(default="", description="Last update date (YYYY-MM-DD)")
    link: Optional[str] = Field(default=None, description="Application link")

    def to_compact(self) -> dict[str, str]:
        """Minimal comparable fields sent to the remote scorer."""
        compact = {
            "id": self.id,
            "c": self.company,
            "t": self.title,
            "l": self.location,
            "y": self.type,
            "q": self.requirement,
        }
        return {key: value for key, value in compact.items() if value}


class AtsDimensions(BaseModel):
    """Sub-dimension scores of the resume, each 0-100."""

    education: int = Field(default=60, ge=0, le=100)
    skills: int = Field(default=60, ge=0, le=100)
    project: int = Field(default=60, ge=0, le=100)
    internship: int = Field(default=60, ge=0, le=100)
    quality: int = Field(default=60, ge=0, le=100)


class CandidateTags(BaseModel):
    degree: list[str] = Field(default_factory=list)
    exp: list[str] = Field(default_factory=list)
    skill: list[str] = Field(default_factory=list)
    intent: list[str] = Field(default_factory=list)


class CandidateProfile(BaseModel):
    """Structured extraction of a resume."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Identity
    name: Optional[str] = None
    phone: Text = ""
    email: Text = ""

    # Education
    education: Text = Field(default="", description="Education tier, e.g. 本科/硕士")
    university: Text = ""
    major: Text = ""
    graduation_year: Text = Field(default="", description="Graduation cohort, e.g. 2026届")
    graduation_date: Text = ""
    is_fresh_grad: bool = False
    work_years: Annotated[float, BeforeValidator(_as_number)] = 0

    # Preferences and experience
    expected_cities: TextList = Field(default_factory=list)
    skills: TextList = Field(default_factory=list)
    experience: Text = ""
    job_preference: Text = ""

    # Portrait
    core_domain: Text = "行业精英"
    seniority_level: Text = "待评估"
    core_tags: TextList = Field(default_factory=list)
    tags: CandidateTags = Field(default_factory=CandidateTags)
    ats_score: int = Field(default=70, ge=0, le=100)
    ats_dimensions: AtsDimensions = Field(default_factory=AtsDimensions)
    ats_analysis: Text = ""

    def is_empty(self) -> bool:
        """True when nothing comparable was extracted from the resume."""
        return not any(
            [
                self.education.strip(),
                self.major.strip(),
                self.graduation_year.strip(),
                self.skills,
                self.experience.strip(),
            ]
        )

    def to_summary(self) -> dict[str, Any]:
        """Candidate fields the remote scorer compares jobs against."""
        return {
            "cohort": self.graduation_year,
            "education": self.education,
            "university": self.university,
            "major": self.major,
            "fresh_grad": self.is_fresh_grad,
            "work_years": self.work_years,
            "cities": self.expected_cities,
            "skills": self.skills,
            "experience": self.experience,
            "preference": self.job_preference,
            "domain": self.core_domain,
            "seniority": self.seniority_level,
            "ats_score": self.ats_score,
        }


class MatchOutcome(BaseModel):
    """Result of scoring one job against one candidate."""

    job_id: str
    score: int = Field(..., ge=0, le=100)
    match_reasons: list[str] = Field(default_factory=list)
    mismatch_reasons: list[str] = Field(default_factory=list)
    recommendation: RecommendationTier
    tips: str = ""
    job: JobPosting


class MatchSession(BaseModel):
    """Snapshot of a finished matching run, kept in session history."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    candidate_name: str
    resume_text: str = ""
    parsed_resume: CandidateProfile
    results: list[MatchOutcome] = Field(default_factory=list)

    @classmethod
    def from_run(
        cls,
        candidate: CandidateProfile,
        results: list[MatchOutcome],
        resume_text: str = "",
    ) -> "MatchSession":
        return cls(
            candidate_name=candidate.name or "候选人",
            resume_text=resume_text,
            parsed_resume=candidate,
            results=results,
        )
