"""
MongoDB database connection and operations using Motor (async driver).
"""

from datetime import datetime, timezone
from typing import Any, Optional

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, IndexModel

from .config import Settings, get_settings


class Database:
    """Async MongoDB database wrapper."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._client: Optional[AsyncIOMotorClient] = None
        self._db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self) -> None:
        """Establish database connection."""
        if self._client is not None:
            return

        logger.info(f"Connecting to MongoDB: {self.settings.mongodb_database}")
        self._client = AsyncIOMotorClient(self.settings.mongodb_uri)
        self._db = self._client[self.settings.mongodb_database]

        await self._client.admin.command("ping")
        logger.info("MongoDB connection established")

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._db = None
            logger.info("MongoDB connection closed")

    @property
    def db(self) -> AsyncIOMotorDatabase:
        """Get database instance."""
        if self._db is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._db

    # -------------------------------------------------------------------------
    # Jobs Collection
    # -------------------------------------------------------------------------

    async def insert_jobs(self, jobs: list[dict[str, Any]]) -> int:
        """Bulk insert job postings, returns number inserted."""
        if not jobs:
            return 0
        now = datetime.now(timezone.utc)
        docs = [{**job, "created_at": now, "updated_at": now} for job in jobs]
        result = await self.db.jobs.insert_many(docs, ordered=True)
        return len(result.inserted_ids)

    async def fetch_jobs(self) -> list[dict[str, Any]]:
        """All job postings, newest first."""
        cursor = self.db.jobs.find({}).sort(
            [("created_at", DESCENDING), ("_id", DESCENDING)]
        )
        return await cursor.to_list(length=None)

    async def delete_jobs(self) -> int:
        """Remove every job posting, returns number deleted."""
        result = await self.db.jobs.delete_many({})
        return result.deleted_count

    # -------------------------------------------------------------------------
    # Sessions Collection
    # -------------------------------------------------------------------------

    async def save_session(self, session: dict[str, Any], limit: int) -> None:
        """Insert a session and keep only the newest `limit` sessions."""
        await self.db.sessions.insert_one(session)

        stale = (
            self.db.sessions.find({}, {"_id": 1})
            .sort("timestamp", DESCENDING)
            .skip(limit)
        )
        stale_ids = [doc["_id"] async for doc in stale]
        if stale_ids:
            await self.db.sessions.delete_many({"_id": {"$in": stale_ids}})
            logger.debug(f"Pruned {len(stale_ids)} old sessions")

    async def list_sessions(self, limit: int = 20) -> list[dict[str, Any]]:
        """Get sessions, newest first."""
        cursor = self.db.sessions.find({}).sort("timestamp", DESCENDING).limit(limit)
        return await cursor.to_list(length=limit)

    async def clear_sessions(self) -> int:
        result = await self.db.sessions.delete_many({})
        return result.deleted_count

    # -------------------------------------------------------------------------
    # Index Setup
    # -------------------------------------------------------------------------

    async def ensure_indexes(self) -> None:
        """Create database indexes."""
        job_indexes = [
            IndexModel([("job_id", ASCENDING)], unique=True),
            IndexModel([("created_at", DESCENDING)]),
            IndexModel([("company", ASCENDING)]),
        ]
        await self.db.jobs.create_indexes(job_indexes)

        session_indexes = [
            IndexModel([("id", ASCENDING)], unique=True),
            IndexModel([("timestamp", DESCENDING)]),
        ]
        await self.db.sessions.create_indexes(session_indexes)

        logger.info("Database indexes created")
