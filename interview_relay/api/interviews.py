"""Interview history API endpoints."""
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from interview_relay.core.dependencies import get_interview_store
from interview_relay.core.exceptions import PersistenceError
from interview_relay.db.models import Interview
from interview_relay.services.persistence.interviews import InterviewPersistenceService


router = APIRouter()
logger = logging.getLogger(__name__)


class TurnResponse(BaseModel):
    """Transcript turn response model."""
    role: str
    content: str
    timestamp: str


class InterviewResponse(BaseModel):
    """Interview response model."""
    id: str
    phone_number: str
    topic: str
    status: str
    call_sid: str | None = None
    started_at: str
    ended_at: str | None = None
    transcript: List[TurnResponse] = []


def to_response(interview: Interview) -> InterviewResponse:
    """Convert an interview row (turns loaded) to its response model."""
    return InterviewResponse(
        id=interview.id,
        phone_number=interview.phone_number,
        topic=interview.topic,
        status=interview.status,
        call_sid=interview.call_sid,
        started_at=interview.started_at.isoformat() if interview.started_at else "",
        ended_at=interview.ended_at.isoformat() if interview.ended_at else None,
        transcript=[
            TurnResponse(
                role=turn.role,
                content=turn.content,
                timestamp=turn.timestamp.isoformat() if turn.timestamp else "",
            )
            for turn in interview.turns
        ],
    )


@router.get("/api/interviews", response_model=List[InterviewResponse])
async def list_interviews(
    limit: int = 100,
    store: InterviewPersistenceService = Depends(get_interview_store),
):
    """Get recent interviews with their transcripts."""
    logger.info(f"[INTERVIEWS] List requested - limit: {limit}")
    try:
        interviews = await store.list_interviews(limit=limit)
    except PersistenceError as e:
        logger.error(f"[INTERVIEWS] Error listing interviews - Error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=503, detail="Interview store unavailable")
    return [to_response(interview) for interview in interviews]


@router.get("/api/interviews/{interview_id}", response_model=InterviewResponse)
async def get_interview(
    interview_id: str,
    store: InterviewPersistenceService = Depends(get_interview_store),
):
    """Get one interview with its ordered transcript."""
    try:
        interview = await store.get_interview(interview_id)
    except PersistenceError as e:
        logger.error(
            f"[INTERVIEWS] Error loading interview {interview_id} - Error: {str(e)}",
            exc_info=True,
        )
        raise HTTPException(status_code=503, detail="Interview store unavailable")
    if interview is None:
        raise HTTPException(status_code=404, detail="Interview not found")
    return to_response(interview)
