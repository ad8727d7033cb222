"""
Candidate profile extraction from resume text using an LLM.
"""

import json
from pathlib import Path
from typing import Any, Optional

import yaml
from loguru import logger
from pydantic import ValidationError

from shared.config import Settings, get_settings
from shared.errors import EmptyResumeError, MalformedResponseError
from shared.llm import LLMClient
from shared.models import AtsDimensions, CandidateProfile

# Characters of resume text sent to the model
MAX_RESUME_CHARS = 8000

SYSTEM_PROMPT = """你是一位顶级 HR 专家。请从简历文本中提取 JSON 画像。
必须严格包含字段：coreDomain, seniorityLevel, coreTags, atsDimensions, atsAnalysis, atsScore,
name, phone, email, education, university, major, graduationYear, graduationDate,
isFreshGrad, workYears, expectedCities, skills, experience, jobPreference。

- graduationYear 使用届别格式，例如 "2026届"
- atsDimensions 为对象：{"education", "skills", "project", "internship", "quality"}，每项 0-100 的整数
- atsScore 为 0-100 的整数综合分
- skills、expectedCities、coreTags 为字符串数组

只返回 JSON 对象，不要输出其他文字。"""

_DEFAULTS = {
    "coreDomain": "行业精英",
    "seniorityLevel": "待评估",
    "atsScore": 70,
}


def _percent(value: Any, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return max(0, min(100, round(value)))


def _normalise(data: dict[str, Any]) -> dict[str, Any]:
    """Fill the portrait fields the model left blank."""
    data = dict(data)
    for key, default in _DEFAULTS.items():
        if not data.get(key):
            data[key] = default
    data["atsScore"] = _percent(data["atsScore"], _DEFAULTS["atsScore"])

    dimensions = data.get("atsDimensions")
    if not isinstance(dimensions, dict):
        dimensions = {}
    data["atsDimensions"] = {
        name: _percent(dimensions.get(name), default)
        for name, default in AtsDimensions().model_dump().items()
    }
    for key in ("coreTags", "skills", "expectedCities"):
        if data.get(key) is None:
            data[key] = []
    if not isinstance(data.get("tags"), dict):
        data.pop("tags", None)
    return data


def parse_profile(data: Any) -> CandidateProfile:
    """Validate an extracted JSON body into a CandidateProfile."""
    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Expected JSON object for profile, got {type(data).__name__}"
        )
    try:
        return CandidateProfile.model_validate(_normalise(data))
    except ValidationError as e:
        raise MalformedResponseError(f"Unexpected profile schema: {e}") from e


class ProfileExtractor:
    """Turns raw resume text into a CandidateProfile."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        llm: Optional[LLMClient] = None,
    ):
        self.settings = settings or get_settings()
        self.llm = llm or LLMClient(self.settings, model=self.settings.openai_model)

    async def extract(self, resume_text: str) -> CandidateProfile:
        """
        Extract a structured profile from resume text.

        Raises:
            EmptyResumeError: blank text, or nothing comparable extracted
            TransientCallError / MalformedResponseError: after retries
        """
        text = (resume_text or "").strip()
        if not text:
            raise EmptyResumeError("Resume text is empty")

        if len(text) > MAX_RESUME_CHARS:
            logger.debug(f"Truncating resume from {len(text)} to {MAX_RESUME_CHARS} chars")

        profile = await self.llm.complete_json(
            system=SYSTEM_PROMPT,
            prompt=f"简历内容：\n{text[:MAX_RESUME_CHARS]}",
            temperature=0.1,
            parse=parse_profile,
        )
        if profile.is_empty():
            raise EmptyResumeError("No education, skills or experience found in resume")

        logger.info(f"Extracted profile for: {profile.name or 'unknown candidate'}")
        return profile

    async def close(self) -> None:
        await self.llm.close()


def load_profile(path: Path) -> CandidateProfile:
    """Load a previously extracted profile from a YAML or JSON file."""
    if not path.exists():
        raise FileNotFoundError(f"Profile file not found: {path}")

    with open(path, encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    try:
        profile = CandidateProfile.model_validate(data or {})
    except ValidationError as e:
        raise EmptyResumeError(f"Invalid profile file {path}: {e}") from e

    logger.info(f"Loaded profile for: {profile.name or path.stem}")
    return profile
