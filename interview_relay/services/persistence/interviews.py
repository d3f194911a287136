"""Interview persistence service."""
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from interview_relay.core.exceptions import PersistenceError
from interview_relay.db.models import Interview, InterviewTurn
from interview_relay.services.call_session.models import Turn

logger = logging.getLogger(__name__)


class InterviewPersistenceService:
    """Service for persisting interview sessions and their transcripts.

    Every operation runs in its own short-lived ``AsyncSession`` from the
    shared session factory, so one instance can serve all channels.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def create_interview(
        self,
        interview_id: str,
        phone_number: str,
        topic: str,
        started_at: Optional[datetime] = None,
    ) -> Interview:
        """Create a new interview record in ``starting`` status."""
        try:
            async with self.session_factory() as db:
                interview = Interview(
                    id=interview_id,
                    phone_number=phone_number,
                    topic=topic,
                    status="starting",
                    started_at=started_at or datetime.utcnow(),
                )
                db.add(interview)
                await db.commit()
                await db.refresh(interview)
                return interview
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to create interview {interview_id}: {e}") from e

    async def get_interview(self, interview_id: str) -> Optional[Interview]:
        """Get interview by ID with its ordered turns."""
        try:
            async with self.session_factory() as db:
                return await self._load(db, interview_id)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load interview {interview_id}: {e}") from e

    async def list_interviews(self, limit: int = 100) -> List[Interview]:
        """List interviews, most recent first."""
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(Interview)
                    .options(selectinload(Interview.turns))
                    .order_by(Interview.started_at.desc())
                    .limit(limit)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to list interviews: {e}") from e

    async def update_status(
        self, interview_id: str, status: str, ended_at: Optional[datetime] = None
    ) -> Optional[Interview]:
        """Update interview status. ``ended_at`` is only written once."""
        try:
            async with self.session_factory() as db:
                interview = await self._load(db, interview_id)
                if interview:
                    interview.status = str(status)
                    if ended_at and interview.ended_at is None:
                        interview.ended_at = ended_at
                    await db.commit()
                return interview
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to update interview {interview_id}: {e}") from e

    async def set_call_sid(self, interview_id: str, call_sid: str) -> Optional[Interview]:
        """Record the telephony call SID for an interview."""
        try:
            async with self.session_factory() as db:
                interview = await self._load(db, interview_id)
                if interview:
                    interview.call_sid = call_sid
                    await db.commit()
                return interview
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to set call SID on {interview_id}: {e}") from e

    async def append_turns(
        self, interview_id: str, turns: Sequence[Turn]
    ) -> List[InterviewTurn]:
        """Append turns after the last stored position, in one transaction."""
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(func.max(InterviewTurn.position)).where(
                        InterviewTurn.interview_id == interview_id
                    )
                )
                last_position = result.scalar()
                next_position = 0 if last_position is None else last_position + 1

                rows = []
                for offset, turn in enumerate(turns):
                    row = InterviewTurn(
                        interview_id=interview_id,
                        position=next_position + offset,
                        role=str(turn.role),
                        content=turn.content,
                        timestamp=turn.timestamp,
                    )
                    rows.append(row)
                    db.add(row)

                await db.commit()
                for row in rows:
                    await db.refresh(row)
                return rows
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to append turns to {interview_id}: {e}") from e

    async def _load(self, db: AsyncSession, interview_id: str) -> Optional[Interview]:
        result = await db.execute(
            select(Interview)
            .where(Interview.id == interview_id)
            .options(selectinload(Interview.turns))
        )
        return result.scalar_one_or_none()
