"""Unit tests for the interview persistence service."""
import pytest
from datetime import datetime, timedelta
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from interview_relay.core.exceptions import PersistenceError
from interview_relay.db.database import to_async_url
from interview_relay.services.call_session.models import Turn, TurnRole
from interview_relay.services.persistence.interviews import InterviewPersistenceService


class TestInterviewPersistence:
    """Test interview persistence service."""

    @pytest.mark.asyncio
    async def test_create_interview(self, interview_store):
        """Test creating a new interview record."""
        interview = await interview_store.create_interview(
            "iv1", "+15551234567", "system design"
        )

        assert interview.id == "iv1"
        assert interview.phone_number == "+15551234567"
        assert interview.topic == "system design"
        assert interview.status == "starting"
        assert interview.started_at is not None
        assert interview.ended_at is None
        assert interview.call_sid is None

    @pytest.mark.asyncio
    async def test_get_interview_with_empty_transcript(self, interview_store):
        """Test retrieving an interview loads its (empty) transcript."""
        await interview_store.create_interview("iv2", "+15551234567", "databases")

        interview = await interview_store.get_interview("iv2")

        assert interview is not None
        assert interview.topic == "databases"
        assert interview.turns == []

    @pytest.mark.asyncio
    async def test_get_unknown_interview(self, interview_store):
        """Test that an unknown ID returns None."""
        assert await interview_store.get_interview("missing") is None

    @pytest.mark.asyncio
    async def test_append_turns_keeps_insertion_order(self, interview_store):
        """Test that turns are stored and reloaded in the order appended."""
        await interview_store.create_interview("iv3", "+15551234567", "caching")

        await interview_store.append_turns(
            "iv3",
            [
                Turn(role=TurnRole.USER, content="first answer"),
                Turn(role=TurnRole.ASSISTANT, content="first question"),
            ],
        )
        rows = await interview_store.append_turns(
            "iv3",
            [
                Turn(role=TurnRole.USER, content="second answer"),
                Turn(role=TurnRole.ASSISTANT, content="second question"),
            ],
        )

        assert [row.position for row in rows] == [2, 3]

        interview = await interview_store.get_interview("iv3")
        assert [(t.role, t.content) for t in interview.turns] == [
            ("user", "first answer"),
            ("assistant", "first question"),
            ("user", "second answer"),
            ("assistant", "second question"),
        ]

    @pytest.mark.asyncio
    async def test_update_status_sets_ended_at_once(self, interview_store):
        """Test that ended_at is written on the first terminal update only."""
        await interview_store.create_interview("iv4", "+15551234567", "queues")

        first_end = datetime.utcnow()
        updated = await interview_store.update_status("iv4", "completed", ended_at=first_end)
        assert updated.status == "completed"
        assert updated.ended_at == first_end

        later = first_end + timedelta(minutes=5)
        updated = await interview_store.update_status("iv4", "completed", ended_at=later)
        assert updated.ended_at == first_end

    @pytest.mark.asyncio
    async def test_update_status_unknown_interview(self, interview_store):
        """Test updating a missing interview returns None."""
        assert await interview_store.update_status("missing", "failed") is None

    @pytest.mark.asyncio
    async def test_set_call_sid(self, interview_store):
        """Test recording the Twilio call SID."""
        await interview_store.create_interview("iv5", "+15551234567", "networking")

        await interview_store.set_call_sid("iv5", "CA999")

        interview = await interview_store.get_interview("iv5")
        assert interview.call_sid == "CA999"

    @pytest.mark.asyncio
    async def test_list_interviews_most_recent_first(self, interview_store):
        """Test listing interviews orders by start time descending."""
        now = datetime.utcnow()
        await interview_store.create_interview(
            "old", "+15551234567", "a", started_at=now - timedelta(hours=1)
        )
        await interview_store.create_interview("new", "+15551234567", "b", started_at=now)

        interviews = await interview_store.list_interviews()

        assert [i.id for i in interviews] == ["new", "old"]

    @pytest.mark.asyncio
    async def test_store_errors_raise_persistence_error(self):
        """Test that database failures surface as PersistenceError."""
        # No tables created on this engine
        engine = create_async_engine(
            "sqlite+aiosqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        store = InterviewPersistenceService(async_sessionmaker(engine, expire_on_commit=False))

        try:
            with pytest.raises(PersistenceError):
                await store.create_interview("iv6", "+15551234567", "anything")
            with pytest.raises(PersistenceError):
                await store.get_interview("iv6")
        finally:
            await engine.dispose()


class TestDatabaseUrl:
    """Test driver selection shared by the app engine and migrations."""

    def test_plain_urls_use_async_drivers(self):
        assert to_async_url("postgresql://u:p@db/relay") == "postgresql+asyncpg://u:p@db/relay"
        assert to_async_url("sqlite:///relay.db") == "sqlite+aiosqlite:///relay.db"

    def test_async_urls_are_unchanged(self):
        url = "postgresql+asyncpg://u:p@db/relay"
        assert to_async_url(url) == url
