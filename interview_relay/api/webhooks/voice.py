"""Twilio voice webhook endpoints."""
import logging
from typing import Optional
from fastapi import APIRouter, Request, Form, Depends, Query
from fastapi.responses import Response

from interview_relay.core.dependencies import get_coordinator
from interview_relay.services.call_session.manager import InterviewCoordinator
from interview_relay.services.telephony.gateway import TelephonyGateway

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/twiml")
async def handle_call_connected(
    request: Request,
    interview_id: Optional[str] = Query(None, alias="interviewId"),
    coordinator: InterviewCoordinator = Depends(get_coordinator),
):
    """
    Bridge a connected call to the media stream.

    Twilio fetches this when the outbound call is answered.
    """
    host = request.headers.get("host") or request.url.netloc
    logger.info(
        f"[TWIML] Call connected - Interview: {interview_id or 'unknown'}, Host: {host}"
    )

    if interview_id:
        session = await coordinator.mark_in_progress(interview_id)
        if session is None:
            logger.warning(f"[TWIML] No live interview {interview_id}, hanging up")
            return Response(content=TelephonyGateway.hangup_twiml(), media_type="text/xml")

    twiml = TelephonyGateway.stream_twiml(host, interview_id)
    return Response(content=twiml, media_type="text/xml")


@router.post("/webhooks/voice/status")
async def handle_call_status(
    request: Request,
    CallStatus: str = Form(...),
    CallSid: Optional[str] = Form(None),
    interview_id: Optional[str] = Query(None, alias="interviewId"),
    coordinator: InterviewCoordinator = Depends(get_coordinator),
):
    """
    Handle call status updates from Twilio.

    This endpoint is called when call status changes (answered, completed, failed, etc.).
    """
    logger.info(
        f"[CALL STATUS] Received status update - CallSid: {CallSid}, "
        f"CallStatus: {CallStatus}, Interview: {interview_id or 'unknown'}"
    )

    if interview_id:
        try:
            await coordinator.handle_call_status(interview_id, CallStatus)
        except Exception as e:
            logger.error(
                f"[CALL STATUS] Error handling call status update - CallSid: {CallSid}, "
                f"CallStatus: {CallStatus}, Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )

    # Always return OK to Twilio to avoid retries
    return Response(content="OK", media_type="text/plain")
