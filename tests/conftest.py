"""Shared test fixtures and configuration."""
import pytest
import os
from datetime import datetime
from types import SimpleNamespace
from unittest.mock import Mock, AsyncMock
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("TWILIO_ACCOUNT_SID", "test-sid")
os.environ.setdefault("TWILIO_AUTH_TOKEN", "test-token")
os.environ.setdefault("TWILIO_PHONE_NUMBER", "+15550000000")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BASE_URL", "https://relay.test")

from interview_relay.main import app
from interview_relay.db.models import Base
from interview_relay.core.dependencies import get_coordinator, get_interview_store
from interview_relay.services.call_session.connection import ChannelConnection
from interview_relay.services.call_session.manager import InterviewCoordinator
from interview_relay.services.persistence.interviews import InterviewPersistenceService
from interview_relay.services.telephony.gateway import PlacedCall


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_BASE_URL = "https://relay.test"


class InMemoryInterviewStore:
    """Interview store double for tests that run the app in TestClient's loop."""

    def __init__(self):
        self.records = {}

    async def create_interview(self, interview_id, phone_number, topic, started_at=None):
        record = SimpleNamespace(
            id=interview_id,
            phone_number=phone_number,
            topic=topic,
            status="starting",
            call_sid=None,
            started_at=started_at or datetime.utcnow(),
            ended_at=None,
            turns=[],
        )
        self.records[interview_id] = record
        return record

    async def get_interview(self, interview_id):
        return self.records.get(interview_id)

    async def list_interviews(self, limit=100):
        records = sorted(self.records.values(), key=lambda r: r.started_at, reverse=True)
        return records[:limit]

    async def update_status(self, interview_id, status, ended_at=None):
        record = self.records.get(interview_id)
        if record:
            record.status = str(status)
            if ended_at and record.ended_at is None:
                record.ended_at = ended_at
        return record

    async def set_call_sid(self, interview_id, call_sid):
        record = self.records.get(interview_id)
        if record:
            record.call_sid = call_sid
        return record

    async def append_turns(self, interview_id, turns):
        record = self.records[interview_id]
        rows = []
        for turn in turns:
            row = SimpleNamespace(
                position=len(record.turns),
                role=str(turn.role),
                content=turn.content,
                timestamp=turn.timestamp,
            )
            record.turns.append(row)
            rows.append(row)
        return rows


@pytest.fixture
def sent_events():
    """Return a helper listing the JSON events sent on a test connection, in order."""
    def _sent_events(connection: ChannelConnection) -> list:
        return [call.args[0] for call in connection.websocket.send_json.call_args_list]
    return _sent_events


@pytest.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def test_session_factory(test_db_engine):
    """Session factory bound to the test database."""
    return async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
def interview_store(test_session_factory):
    """Interview persistence service on the test database."""
    return InterviewPersistenceService(test_session_factory)


@pytest.fixture
def mock_gateway():
    """Mock telephony gateway that accepts every call."""
    gateway = Mock()
    gateway.place_call = AsyncMock(return_value=PlacedCall(call_sid="CA123", status="queued"))
    return gateway


@pytest.fixture
def mock_engine():
    """Mock conversation engine with a healthy transcribe/respond/synthesize chain."""
    engine = Mock()
    engine.transcribe = AsyncMock(return_value="I have five years of backend experience.")
    engine.respond = AsyncMock(return_value="Great. How would you design a URL shortener?")
    engine.synthesize = AsyncMock(return_value=b"ID3-fake-mp3-bytes")
    return engine


@pytest.fixture
def connection():
    """Channel connection over a mock WebSocket."""
    return ChannelConnection(AsyncMock(), channel="/ws")


@pytest.fixture
def coordinator(interview_store, mock_gateway, mock_engine):
    """Coordinator wired to the test database and mock collaborators."""
    return InterviewCoordinator(
        store=interview_store,
        gateway=mock_gateway,
        engine=mock_engine,
        base_url=TEST_BASE_URL,
        call_timeout=1.0,
    )


@pytest.fixture
def memory_store():
    return InMemoryInterviewStore()


@pytest.fixture
def app_coordinator(memory_store, mock_gateway, mock_engine):
    """Coordinator used by the app under TestClient."""
    return InterviewCoordinator(
        store=memory_store,
        gateway=mock_gateway,
        engine=mock_engine,
        base_url=TEST_BASE_URL,
        call_timeout=1.0,
    )


@pytest.fixture
def test_client(app_coordinator, memory_store):
    """Create FastAPI test client with overrides."""
    app.dependency_overrides[get_coordinator] = lambda: app_coordinator
    app.dependency_overrides[get_interview_store] = lambda: memory_store

    client = TestClient(app)

    yield client

    # Clear overrides
    app.dependency_overrides.clear()
