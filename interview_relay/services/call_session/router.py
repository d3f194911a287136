"""Protocol message router."""
import logging
from typing import Union

from interview_relay.core.exceptions import ValidationError
from interview_relay.services.call_session.connection import ChannelConnection
from interview_relay.services.call_session.manager import InterviewCoordinator
from interview_relay.services.call_session.protocol import (
    START_INTERVIEW,
    ErrorEvent,
    StartInterviewMessage,
    StreamStartMessage,
    StreamStopMessage,
    VoiceDataMessage,
    parse_message,
)

logger = logging.getLogger(__name__)


class MessageRouter:
    """Demultiplexes inbound channel frames to coordinator operations.

    A failing message never closes the channel. Unknown events are ignored.
    """

    def __init__(self, coordinator: InterviewCoordinator):
        self.coordinator = coordinator

    async def dispatch(self, connection: ChannelConnection, raw: Union[str, bytes]) -> None:
        """Handle one inbound text frame."""
        try:
            message = parse_message(raw)
        except ValidationError as e:
            logger.warning(
                f"[ROUTER] Rejected message on {connection.channel} - "
                f"Interview: {connection.interview_id or 'none'}, Error: {str(e)}"
            )
            # Only the control path reports bad input back to the client
            if e.event is None or e.event == START_INTERVIEW:
                await connection.send_event(ErrorEvent(message=str(e)))
            return

        if message is None:
            return

        try:
            if isinstance(message, StartInterviewMessage):
                await self.coordinator.handle_start(connection, message)
            elif isinstance(message, VoiceDataMessage):
                await self.coordinator.handle_voice_frame(connection, message)
            elif isinstance(message, StreamStartMessage):
                await self.coordinator.handle_stream_start(connection, message)
            elif isinstance(message, StreamStopMessage):
                await self.coordinator.handle_stream_stop(connection)
        except Exception as e:
            logger.error(
                f"[ROUTER] Unhandled error for '{message.event}' on {connection.channel} - "
                f"Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )

    async def dispatch_binary(self, connection: ChannelConnection, data: bytes) -> None:
        """Handle one inbound binary frame as caller audio for the bound interview."""
        if not data:
            return
        try:
            frame = VoiceDataMessage(audio=data)
            await self.coordinator.handle_voice_frame(connection, frame, binary=True)
        except Exception as e:
            logger.error(
                f"[ROUTER] Unhandled error for binary frame on {connection.channel} - "
                f"Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )
