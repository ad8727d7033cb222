"""
Job catalog persistence on MongoDB, plus file-based catalogs for offline runs.
"""

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional, Sequence

import yaml
from dateutil import parser as date_parser
from loguru import logger

from shared.database import Database
from shared.models import NATIONWIDE, JobPosting


def normalise_date(value: Any) -> str:
    """Render a date-ish value as YYYY-MM-DD, leaving unparseable text as-is."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not value:
        return ""
    try:
        return date_parser.parse(str(value)).date().isoformat()
    except (ValueError, OverflowError):
        return str(value)


def posting_from_record(record: dict[str, Any], fallback_id: Optional[str] = None) -> JobPosting:
    """Build a JobPosting from a stored document or a file entry."""
    job_id = record.get("job_id") or record.get("id") or record.get("_id") or fallback_id
    if job_id is None:
        raise ValueError(f"Job record has no id: {record}")

    return JobPosting(
        id=str(job_id),
        company=record.get("company") or "未知公司",
        title=record.get("title") or "招聘岗位",
        location=record.get("location") or NATIONWIDE,
        type=record.get("type") or "",
        requirement=record.get("requirement") or "",
        link=record.get("link") or record.get("url") or None,
        update_time=normalise_date(
            record.get("update_time") or record.get("updateTime") or record.get("created_at")
        ),
    )


def posting_to_record(job: JobPosting) -> dict[str, Any]:
    record = job.model_dump(exclude={"id"})
    record["job_id"] = job.id
    return record


class JobCatalog:
    """Read and replace the job catalog stored in MongoDB."""

    def __init__(self, db: Database):
        self.db = db

    async def fetch_all(self) -> list[JobPosting]:
        """Snapshot of the whole catalog, newest first."""
        docs = await self.db.fetch_jobs()
        jobs = [posting_from_record(doc) for doc in docs]
        logger.info(f"Loaded {len(jobs)} jobs from catalog")
        return jobs

    async def bulk_insert(self, jobs: Sequence[JobPosting]) -> int:
        inserted = await self.db.insert_jobs([posting_to_record(job) for job in jobs])
        logger.info(f"Inserted {inserted} jobs into catalog")
        return inserted

    async def clear_all(self) -> int:
        deleted = await self.db.delete_jobs()
        logger.info(f"Removed {deleted} jobs from catalog")
        return deleted


def load_jobs_file(path: Path) -> list[JobPosting]:
    """Load a catalog from a YAML or JSON list (or a mapping with a `jobs` key)."""
    if not path.exists():
        raise FileNotFoundError(f"Jobs file not found: {path}")

    with open(path, encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if isinstance(data, dict):
        data = data.get("jobs", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of jobs in {path}")

    jobs = [
        posting_from_record(record, fallback_id=f"{path.stem}-{index}")
        for index, record in enumerate(data)
    ]
    logger.info(f"Loaded {len(jobs)} jobs from {path}")
    return jobs
