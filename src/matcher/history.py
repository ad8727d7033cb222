"""
Session history of finished matching runs.
"""

from typing import Optional

from loguru import logger

from shared.config import Settings, get_settings
from shared.database import Database
from shared.models import MatchSession


class SessionHistory:
    """Keeps the most recent matching sessions in MongoDB."""

    def __init__(self, db: Database, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    async def save(self, session: MatchSession) -> None:
        await self.db.save_session(
            session.model_dump(mode="json"),
            limit=self.settings.session_history_limit,
        )
        logger.info(
            f"Saved session {session.id} for {session.candidate_name} "
            f"({len(session.results)} results)"
        )

    async def recent(self) -> list[MatchSession]:
        """Stored sessions, newest first."""
        docs = await self.db.list_sessions(self.settings.session_history_limit)
        return [MatchSession.model_validate(doc) for doc in docs]

    async def clear(self) -> int:
        return await self.db.clear_sessions()
