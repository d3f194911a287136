"""Interview session coordinator."""
import asyncio
import logging
from typing import Awaitable, Dict, Optional, Type, TypeVar

from interview_relay.core.exceptions import (
    EngineError,
    GatewayError,
    PersistenceError,
    RelayError,
    SessionStateError,
)
from interview_relay.services.agent.engine import ConversationEngine
from interview_relay.services.call_session.connection import ChannelConnection
from interview_relay.services.call_session.models import (
    InterviewSession,
    Turn,
    TurnRole,
    new_interview_id,
)
from interview_relay.services.call_session.protocol import (
    CallInitiatedEvent,
    ErrorEvent,
    StartInterviewMessage,
    StreamStartMessage,
    VoiceDataMessage,
)
from interview_relay.services.call_session.status import InterviewStatus
from interview_relay.services.persistence.interviews import InterviewPersistenceService
from interview_relay.services.telephony.gateway import TelephonyGateway

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Twilio CallStatus values that end a call
FAILED_CALL_STATUSES = frozenset({"failed", "busy", "no-answer", "canceled"})
CONNECTED_CALL_STATUSES = frozenset({"in-progress", "answered"})


class InterviewCoordinator:
    """Drives interview sessions and sequences the external collaborators.

    Holds the in-memory copy of every active session. The store is the
    source of truth for sessions this process no longer holds.
    """

    def __init__(
        self,
        store: InterviewPersistenceService,
        gateway: TelephonyGateway,
        engine: ConversationEngine,
        base_url: Optional[str] = None,
        call_timeout: Optional[float] = None,
    ):
        self.store = store
        self.gateway = gateway
        self.engine = engine
        self.base_url = base_url.rstrip("/") if base_url else None
        self.call_timeout = call_timeout
        self._sessions: Dict[str, InterviewSession] = {}

    def get_active_session(self, interview_id: str) -> Optional[InterviewSession]:
        """Get an in-memory session, if this process holds it."""
        return self._sessions.get(interview_id)

    @property
    def active_sessions(self) -> Dict[str, InterviewSession]:
        return dict(self._sessions)

    async def handle_start(
        self, connection: ChannelConnection, request: StartInterviewMessage
    ) -> Optional[InterviewSession]:
        """
        Create an interview and dial the candidate.

        Emits ``call_initiated`` on success and ``error`` on any failure. A
        failure after the record was written marks the interview failed.
        """
        session = InterviewSession(
            interview_id=new_interview_id(),
            phone_number=request.phone_number,
            topic=request.topic,
        )
        logger.info(
            f"[COORDINATOR] Starting interview - Interview: {session.interview_id}, "
            f"To: {session.phone_number}, Topic: '{session.topic}'"
        )

        try:
            await self._bounded(
                self.store.create_interview(
                    session.interview_id,
                    session.phone_number,
                    session.topic,
                    started_at=session.started_at,
                ),
                PersistenceError,
                "store write",
            )
        except Exception as e:
            logger.error(
                f"[COORDINATOR] Could not persist interview {session.interview_id} - "
                f"Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )
            await connection.send_event(ErrorEvent(message=self._start_error_message(e)))
            return None

        self._sessions[session.interview_id] = session

        try:
            base_url = self.base_url or connection.base_url
            placed = await self._bounded(
                self.gateway.place_call(
                    session.phone_number,
                    f"{base_url}/twiml?interviewId={session.interview_id}",
                    status_callback_url=(
                        f"{base_url}/webhooks/voice/status?interviewId={session.interview_id}"
                    ),
                ),
                GatewayError,
                "call placement",
            )
            session.call_sid = placed.call_sid
            await self._bounded(
                self.store.set_call_sid(session.interview_id, placed.call_sid),
                PersistenceError,
                "store write",
            )
        except Exception as e:
            logger.error(
                f"[COORDINATOR] Failed to start interview {session.interview_id} - "
                f"Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )
            await self._finish(session, InterviewStatus.FAILED)
            await connection.send_event(ErrorEvent(message=self._start_error_message(e)))
            return None

        connection.bind(session.interview_id)
        await connection.send_event(
            CallInitiatedEvent(interview_id=session.interview_id, call_sid=placed.call_sid)
        )
        logger.info(
            f"[COORDINATOR] Call initiated - Interview: {session.interview_id}, "
            f"CallSid: {placed.call_sid}"
        )
        return session

    async def handle_voice_frame(
        self,
        connection: ChannelConnection,
        frame: VoiceDataMessage,
        binary: bool = False,
    ) -> Optional[str]:
        """
        Run one transcribe -> respond -> synthesize round-trip.

        Both turns are stored only after every step succeeded; any failure
        drops the frame without a reply and leaves the transcript unchanged.

        Returns:
            The assistant reply, or None if the frame was dropped
        """
        interview_id = frame.interview_id or connection.interview_id
        if not interview_id:
            logger.warning(
                f"[COORDINATOR] Dropping voice frame on {connection.channel}: "
                f"channel is not bound to an interview"
            )
            return None

        try:
            session = await self._resolve(interview_id)
        except RelayError as e:
            logger.error(
                f"[COORDINATOR] Dropping voice frame - Interview: {interview_id}, "
                f"Error: {type(e).__name__}: {str(e)}"
            )
            return None
        if session is None:
            logger.warning(
                f"[COORDINATOR] Dropping voice frame for unknown or ended interview {interview_id}"
            )
            return None

        topic = frame.topic or session.topic

        async with session.lock:
            if session.is_terminal:
                logger.warning(
                    f"[COORDINATOR] Dropping voice frame for ended interview {interview_id}"
                )
                return None
            try:
                text = await self._bounded(
                    self.engine.transcribe(frame.audio), EngineError, "transcription"
                )
                user_turn = Turn(role=TurnRole.USER, content=text)

                reply = await self._bounded(
                    self.engine.respond(topic, session.turns + [user_turn]),
                    EngineError,
                    "completion",
                )
                assistant_turn = Turn(role=TurnRole.ASSISTANT, content=reply)

                audio = await self._bounded(
                    self.engine.synthesize(reply), EngineError, "speech synthesis"
                )

                # The call may have ended while the engine was working
                if session.is_terminal:
                    logger.warning(
                        f"[COORDINATOR] Interview {interview_id} ended mid round-trip, "
                        f"dropping reply"
                    )
                    return None

                await self._bounded(
                    self.store.append_turns(interview_id, [user_turn, assistant_turn]),
                    PersistenceError,
                    "store write",
                )
            except Exception as e:
                logger.error(
                    f"[COORDINATOR] Error processing voice data - Interview: {interview_id}, "
                    f"Error: {type(e).__name__}: {str(e)}",
                    exc_info=not isinstance(e, RelayError),
                )
                return None

            session.append_turns(user_turn, assistant_turn)

        logger.info(
            f"[COORDINATOR] Voice round-trip complete - Interview: {interview_id}, "
            f"Heard: '{text[:100]}', Replied: '{reply[:100]}', Audio: {len(audio)} bytes"
        )
        await connection.send_ai_response(reply, audio, binary=binary)
        return reply

    async def handle_stream_start(
        self, connection: ChannelConnection, message: StreamStartMessage
    ) -> Optional[InterviewSession]:
        """Bind a gateway media stream to its interview and confirm the call."""
        interview_id = message.interview_id
        if not interview_id:
            logger.warning(
                f"[COORDINATOR] Media stream started without interviewId - "
                f"CallSid: {message.start.call_sid}"
            )
            return None
        connection.bind(interview_id)
        return await self.mark_in_progress(interview_id)

    async def handle_stream_stop(self, connection: ChannelConnection) -> None:
        """Gateway closed its media stream: the call is over."""
        if connection.interview_id:
            await self.handle_call_status(connection.interview_id, "completed")

    async def mark_in_progress(self, interview_id: str) -> Optional[InterviewSession]:
        """Gateway confirmed the call connected: ``starting -> in_progress``."""
        try:
            session = await self._resolve(interview_id)
        except RelayError as e:
            logger.error(
                f"[COORDINATOR] Could not load interview {interview_id} - "
                f"Error: {type(e).__name__}: {str(e)}"
            )
            return None
        if session is None:
            logger.warning(f"[COORDINATOR] Call connected for unknown or ended interview {interview_id}")
            return None
        if session.status != InterviewStatus.STARTING:
            return session

        session.transition(InterviewStatus.IN_PROGRESS)
        await self._persist_status(session)
        logger.info(f"[COORDINATOR] Interview in progress - Interview: {interview_id}")
        return session

    async def handle_call_status(self, interview_id: str, call_status: str) -> Optional[InterviewSession]:
        """
        Apply a gateway call status update.

        Args:
            interview_id: Interview the call belongs to
            call_status: Twilio CallStatus (queued, ringing, in-progress, completed, ...)
        """
        call_status = (call_status or "").lower()
        if call_status in CONNECTED_CALL_STATUSES:
            return await self.mark_in_progress(interview_id)
        if call_status != "completed" and call_status not in FAILED_CALL_STATUSES:
            logger.debug(f"[COORDINATOR] Ignoring call status '{call_status}' for {interview_id}")
            return None

        try:
            session = await self._resolve(interview_id)
        except RelayError as e:
            logger.error(
                f"[COORDINATOR] Could not load interview {interview_id} - "
                f"Error: {type(e).__name__}: {str(e)}"
            )
            return None
        if session is None:
            return None

        # A call that completes without ever connecting never became an interview
        if call_status == "completed" and session.status == InterviewStatus.IN_PROGRESS:
            target = InterviewStatus.COMPLETED
        else:
            target = InterviewStatus.FAILED

        logger.info(
            f"[COORDINATOR] Ending interview - Interview: {interview_id}, "
            f"CallStatus: {call_status}, Final status: {target.value}"
        )
        await self._finish(session, target)
        return session

    async def handle_disconnect(self, connection: ChannelConnection, normal: bool = True) -> None:
        """A channel closed. A normal close completes its in-progress interview."""
        interview_id = connection.interview_id
        logger.info(
            f"[COORDINATOR] Channel closed - Channel: {connection.channel}, "
            f"Interview: {interview_id or 'none'}, Normal: {normal}"
        )
        if not interview_id or not normal:
            return
        session = self._sessions.get(interview_id)
        if session and session.status == InterviewStatus.IN_PROGRESS:
            await self._finish(session, InterviewStatus.COMPLETED)

    async def _resolve(self, interview_id: str) -> Optional[InterviewSession]:
        """Get the active session, rehydrating it from the store if needed."""
        session = self._sessions.get(interview_id)
        if session is not None:
            return session

        record = await self._bounded(
            self.store.get_interview(interview_id), PersistenceError, "store read"
        )
        if record is None or InterviewStatus(record.status).is_terminal:
            return None

        session = InterviewSession.from_record(record)
        # Another flow may have loaded it while we were waiting on the store
        return self._sessions.setdefault(interview_id, session)

    async def _finish(self, session: InterviewSession, status: InterviewStatus) -> None:
        """Move a session into a terminal state, persist it and forget it."""
        try:
            session.transition(status)
        except SessionStateError as e:
            logger.warning(f"[COORDINATOR] {str(e)}")
            return
        try:
            await self._persist_status(session)
        finally:
            self._sessions.pop(session.interview_id, None)

    async def _persist_status(self, session: InterviewSession) -> None:
        try:
            await self._bounded(
                self.store.update_status(
                    session.interview_id, session.status.value, ended_at=session.ended_at
                ),
                PersistenceError,
                "store write",
            )
        except PersistenceError as e:
            logger.error(
                f"[COORDINATOR] Could not persist status '{session.status.value}' for "
                f"{session.interview_id} - Error: {str(e)}"
            )

    async def _bounded(self, awaitable: Awaitable[T], error_cls: Type[RelayError], what: str) -> T:
        """Await an external call under the configured deadline."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.call_timeout)
        except asyncio.TimeoutError as e:
            raise error_cls(f"{what} timed out after {self.call_timeout}s") from e

    @staticmethod
    def _start_error_message(error: Exception) -> str:
        """Client-facing reason; the underlying error text stays in the log."""
        if isinstance(error.__cause__, asyncio.TimeoutError):
            return "Failed to start interview: timed out"
        if isinstance(error, PersistenceError):
            return "Failed to start interview: interview store unavailable"
        if isinstance(error, GatewayError):
            return "Failed to start interview: call placement rejected"
        return "Failed to start interview"
