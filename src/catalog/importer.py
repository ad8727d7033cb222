"""
LLM-based extraction of job postings from pasted recruitment text.
"""

import time
from datetime import date
from typing import Any, Callable, Optional

from loguru import logger

from shared.config import Settings, get_settings
from shared.errors import MalformedResponseError, TransientCallError
from shared.llm import LLMClient
from shared.models import NATIONWIDE, JobPosting

ImportProgress = Callable[[int, int], None]

SYSTEM_PROMPT = """你是一个精准的招聘数据提取机器人。
输入文本格式：行业 | 公司 | 岗位列表 | 地点 | 链接 | 补充信息。
任务：
1. 识别每一行招聘信息。
2. 强制逻辑：第3列的"岗位列表"若包含多个职位（逗号、顿号、空格分隔），必须拆分为多个独立的 JSON 对象。
3. 必须输出包含 "jobs" 数组的 JSON 对象。
结构：{"jobs": [{"company": "公司", "title": "单一岗位名", "location": "地点", "link": "链接"}]}

示例：
输入："游戏 | 4399 | 产品类，技术类 | 广州 | https://link"
输出：{"jobs": [{"company": "4399", "title": "产品类", "location": "广州", "link": "https://link"}, {"company": "4399", "title": "技术类", "location": "广州", "link": "https://link"}]}

忽略任何无法解析的杂质行。"""


def split_text(text: str, chunk_size: int) -> list[str]:
    """
    Pack whole lines into chunks of at most `chunk_size` characters.

    A single line longer than `chunk_size` becomes its own chunk.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    chunks: list[str] = []
    current: list[str] = []
    length = 0
    for line in text.splitlines():
        if not line.strip():
            continue
        if current and length + len(line) + 1 > chunk_size:
            chunks.append("\n".join(current))
            current, length = [], 0
        current.append(line)
        length += len(line) + 1
    if current:
        chunks.append("\n".join(current))
    return chunks


def parse_jobs_payload(data: Any) -> list[dict[str, Any]]:
    """Accept `{"jobs": [...]}` or a bare list; keep dict entries only."""
    jobs = data.get("jobs", []) if isinstance(data, dict) else data
    if not isinstance(jobs, list):
        raise MalformedResponseError(f"Expected a jobs array, got {type(jobs).__name__}")
    return [job for job in jobs if isinstance(job, dict)]


def to_postings(raw_jobs: list[dict[str, Any]], today: Optional[date] = None) -> list[JobPosting]:
    """Normalise extracted rows into JobPostings with generated ids."""
    stamp = int(time.time() * 1000)
    updated = (today or date.today()).isoformat()
    return [
        JobPosting(
            id=f"job-{stamp}-{index}",
            company=str(raw.get("company") or "未知公司").strip(),
            title=str(raw.get("title") or "待定岗位").strip(),
            location=str(raw.get("location") or NATIONWIDE).strip(),
            link=str(raw.get("link") or "").strip() or None,
            update_time=updated,
        )
        for index, raw in enumerate(raw_jobs)
    ]


class CatalogImporter:
    """Extracts job postings from free-form recruitment text."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        llm: Optional[LLMClient] = None,
    ):
        self.settings = settings or get_settings()
        self.llm = llm or LLMClient(self.settings, model=self.settings.openai_model_mini)

    async def parse(
        self,
        raw_text: str,
        on_progress: Optional[ImportProgress] = None,
    ) -> list[dict[str, Any]]:
        """
        Extract raw job rows chunk by chunk.

        A chunk that still fails after retries is skipped with a warning.
        """
        chunks = split_text(raw_text, self.settings.catalog_chunk_size)
        rows: list[dict[str, Any]] = []

        for number, chunk in enumerate(chunks, 1):
            if on_progress:
                on_progress(number, len(chunks))
            try:
                found = await self.llm.complete_json(
                    system=SYSTEM_PROMPT,
                    prompt=f"请提取并拆分以下招聘文本中的岗位：\n{chunk}",
                    temperature=0.1,
                    parse=parse_jobs_payload,
                )
            except (TransientCallError, MalformedResponseError) as e:
                logger.warning(f"Chunk {number}/{len(chunks)} skipped: {e}")
                continue
            logger.debug(f"Chunk {number}/{len(chunks)}: {len(found)} jobs")
            rows.extend(found)

        logger.info(f"Extracted {len(rows)} jobs from {len(chunks)} chunks")
        return rows

    async def import_text(
        self,
        raw_text: str,
        on_progress: Optional[ImportProgress] = None,
    ) -> list[JobPosting]:
        return to_postings(await self.parse(raw_text, on_progress))

    async def close(self) -> None:
        await self.llm.close()
