"""Health check endpoint."""
import logging
from fastapi import APIRouter, Depends, Request

from interview_relay.core.dependencies import get_coordinator
from interview_relay.services.call_session.manager import InterviewCoordinator

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(
    request: Request,
    coordinator: InterviewCoordinator = Depends(get_coordinator),
):
    """Health check endpoint."""
    logger.debug(
        f"[HEALTH] Health check requested - Client: {request.client.host if request.client else 'unknown'}"
    )
    return {"status": "healthy", "active_interviews": len(coordinator.active_sessions)}
