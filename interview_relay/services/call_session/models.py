"""Interview session models."""
import asyncio
import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from interview_relay.core.exceptions import SessionStateError
from interview_relay.services.call_session.status import InterviewStatus, can_transition


class TurnRole(str, Enum):
    """Speaker of a transcript turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Turn(BaseModel):
    """One utterance in an interview. Immutable once created."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    role: TurnRole
    content: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)


def new_interview_id() -> str:
    """Generate an opaque interview identifier."""
    return uuid.uuid4().hex


class InterviewSession:
    """In-memory view of an active interview."""

    def __init__(
        self,
        interview_id: str,
        phone_number: str,
        topic: str,
        status: InterviewStatus = InterviewStatus.STARTING,
        started_at: Optional[datetime] = None,
        ended_at: Optional[datetime] = None,
        call_sid: Optional[str] = None,
        turns: Optional[List[Turn]] = None,
    ):
        self.interview_id = interview_id
        self.phone_number = phone_number
        self.topic = topic
        self.status = InterviewStatus(status)
        self.started_at = started_at or datetime.utcnow()
        self.ended_at = ended_at
        self.call_sid = call_sid
        self._turns: List[Turn] = list(turns or [])
        # Serializes voice round-trips so stored turn positions stay ordered
        self.lock = asyncio.Lock()

    @classmethod
    def from_record(cls, record) -> "InterviewSession":
        """Build a session from an ``Interview`` row with its turns loaded."""
        return cls(
            interview_id=record.id,
            phone_number=record.phone_number,
            topic=record.topic,
            status=InterviewStatus(record.status),
            started_at=record.started_at,
            ended_at=record.ended_at,
            call_sid=record.call_sid,
            turns=[
                Turn(role=turn.role, content=turn.content, timestamp=turn.timestamp)
                for turn in record.turns
            ],
        )

    @property
    def turns(self) -> List[Turn]:
        """Transcript in insertion order (a copy; append via ``append_turns``)."""
        return list(self._turns)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def append_turns(self, *turns: Turn) -> None:
        """Append turns to the transcript."""
        self._turns.extend(turns)

    def transition(self, target: InterviewStatus) -> None:
        """
        Move to ``target``.

        Raises:
            SessionStateError: if the edge is not part of the lifecycle.
        """
        target = InterviewStatus(target)
        if not can_transition(self.status, target):
            raise SessionStateError(
                f"Interview {self.interview_id}: illegal transition "
                f"{self.status.value} -> {target.value}"
            )
        self.status = target
        if target.is_terminal and self.ended_at is None:
            self.ended_at = datetime.utcnow()

    def __repr__(self) -> str:
        return (
            f"InterviewSession(id={self.interview_id!r}, status={self.status.value!r}, "
            f"turns={len(self._turns)})"
        )
