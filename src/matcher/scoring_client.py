"""
Remote scoring of one batch of jobs against a candidate using an LLM.
"""

import json
from typing import Any, Optional, Protocol, Sequence

from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator

from shared.config import Settings, get_settings
from shared.errors import MalformedResponseError
from shared.llm import LLMClient
from shared.models import JobPosting

# Candidate summary keys every scoring request must carry
REQUIRED_SUMMARY_KEYS = ("cohort", "education", "major")


SYSTEM_PROMPT = """你是一位资深职业教练，负责评估候选人与一批岗位的匹配程度。

每个岗位字段含义：id=岗位编号, c=公司, t=岗位名称, l=工作地点, y=岗位类型, q=招聘要求。

评分标准（s，0-100 的整数）：
- 85-100：高度契合，届别/学历/专业/城市均符合，强烈建议投递
- 70-84：基本契合，存在少量可弥补的差距
- 0-69：匹配度较低，存在明显硬性不符

对每个你能评估的岗位给出：
- r：匹配原因列表
- k：风险或不匹配点列表
- t：一句给求职者的投递建议

只返回 JSON，格式严格如下，不要输出其他文字：
{"matches": [{"id": "岗位编号", "s": 分数, "r": ["原因"], "k": ["风险"], "t": "建议"}]}"""


class ScoredJob(BaseModel):
    """One entry of the remote scorer's `matches` array."""

    id: str
    s: int = Field(..., description="Match score 0-100")
    r: list[str] = Field(default_factory=list, description="Supporting reasons")
    k: list[str] = Field(default_factory=list, description="Risks / mismatches")
    t: str = Field(default="", description="Improvement tip")

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("s", mode="before")
    @classmethod
    def _round_score(cls, value: Any) -> Any:
        if isinstance(value, float):
            return round(value)
        return value

    @field_validator("s")
    @classmethod
    def _clamp_score(cls, value: int) -> int:
        if not 0 <= value <= 100:
            logger.warning(f"Invalid score {value}, clamping to range 0-100")
            value = max(0, min(100, value))
        return value

    @field_validator("r", "k", mode="before")
    @classmethod
    def _as_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("t", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> Any:
        return "" if value is None else value


class ScoringClient(Protocol):
    """Anything that can score one batch of jobs for a candidate."""

    async def score_batch(
        self,
        candidate: dict[str, Any],
        jobs: Sequence[JobPosting],
    ) -> list[ScoredJob]: ...

    async def close(self) -> None: ...


def build_prompt(candidate: dict[str, Any], jobs: Sequence[JobPosting]) -> str:
    """Render the user prompt for one batch."""
    candidate_json = json.dumps(candidate, ensure_ascii=False)
    jobs_json = json.dumps([job.to_compact() for job in jobs], ensure_ascii=False)
    return f"候选人画像：{candidate_json}\n待匹配岗位：{jobs_json}"


def parse_scoring_response(data: Any) -> list[ScoredJob]:
    """
    Validate a decoded JSON body against the `{matches: [...]}` schema.

    Only a body that is not an object/list, or whose `matches` is not a list,
    is malformed. Individual entries that fail validation are skipped.
    """
    if isinstance(data, list):
        data = {"matches": data}
    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Expected JSON object, got {type(data).__name__}"
        )
    entries = data.get("matches")
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise MalformedResponseError(
            f"Expected matches array, got {type(entries).__name__}"
        )

    matches: list[ScoredJob] = []
    for entry in entries:
        try:
            matches.append(ScoredJob.model_validate(entry))
        except ValidationError as e:
            logger.warning(
                f"Skipping invalid match entry {entry!r}: {e.error_count()} errors"
            )
    return matches


class LLMScoringClient:
    """Scores job batches through an OpenAI chat model."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        llm: Optional[LLMClient] = None,
    ):
        self.settings = settings or get_settings()
        # Fail at construction rather than inside a batch
        self.settings.require_openai_key()
        self.llm = llm or LLMClient(self.settings, model=self.settings.openai_model_mini)

    async def score_batch(
        self,
        candidate: dict[str, Any],
        jobs: Sequence[JobPosting],
    ) -> list[ScoredJob]:
        """
        Score a batch of jobs.

        Returns:
            Zero or more scored entries; jobs the model could not evaluate
            are simply absent.

        Raises:
            ValueError: empty batch or incomplete candidate summary
            ConfigurationError: missing API key
            TransientCallError / MalformedResponseError: after retries
        """
        if not jobs:
            raise ValueError("Cannot score an empty batch")
        missing = [key for key in REQUIRED_SUMMARY_KEYS if key not in candidate]
        if missing:
            raise ValueError(f"Candidate summary missing fields: {', '.join(missing)}")

        matches = await self.llm.complete_json(
            system=SYSTEM_PROMPT,
            prompt=build_prompt(candidate, jobs),
            temperature=self.settings.match_temperature,
            parse=parse_scoring_response,
        )
        logger.debug(f"Scored {len(matches)}/{len(jobs)} jobs in batch")
        return matches

    async def close(self) -> None:
        await self.llm.close()
