"""Duplex channel wrapper."""
import base64
import logging
from typing import Optional

from fastapi import WebSocket, WebSocketDisconnect

from interview_relay.services.call_session.protocol import AiResponseEvent, OutboundEvent

logger = logging.getLogger(__name__)


class ChannelConnection:
    """One WebSocket channel and the interview it is bound to."""

    def __init__(self, websocket: WebSocket, channel: str = "ws"):
        self.websocket = websocket
        self.channel = channel
        self.interview_id: Optional[str] = None

    def bind(self, interview_id: str) -> None:
        """Associate this channel with an interview."""
        if self.interview_id and self.interview_id != interview_id:
            logger.info(
                f"[CHANNEL] Rebinding {self.channel} - "
                f"From: {self.interview_id}, To: {interview_id}"
            )
        self.interview_id = interview_id

    @property
    def base_url(self) -> str:
        """HTTP(S) base URL of this service as seen by the client."""
        url = str(self.websocket.base_url).rstrip("/")
        if url.startswith("wss://"):
            return "https://" + url[len("wss://"):]
        if url.startswith("ws://"):
            return "http://" + url[len("ws://"):]
        return url

    async def send_event(self, event: OutboundEvent) -> bool:
        """Send a JSON event. Returns False if the peer is gone."""
        try:
            await self.websocket.send_json(event.to_wire())
            return True
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.warning(
                f"[CHANNEL] Could not send '{event.event}' on {self.channel} - "
                f"Interview: {self.interview_id}, Error: {type(e).__name__}: {str(e)}"
            )
            return False

    async def send_bytes(self, data: bytes) -> bool:
        """Send a binary frame. Returns False if the peer is gone."""
        try:
            await self.websocket.send_bytes(data)
            return True
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.warning(
                f"[CHANNEL] Could not send {len(data)} audio bytes on {self.channel} - "
                f"Error: {type(e).__name__}: {str(e)}"
            )
            return False

    async def send_ai_response(self, text: str, audio: bytes, binary: bool = False) -> bool:
        """
        Send a synthesized reply.

        Binary framing sends the JSON header followed by the raw audio frame;
        otherwise the audio travels base64-encoded inside the JSON event.
        """
        if binary:
            header = AiResponseEvent(text=text, audio_bytes=len(audio))
            return await self.send_event(header) and await self.send_bytes(audio)

        event = AiResponseEvent(text=text, audio=base64.b64encode(audio).decode("ascii"))
        return await self.send_event(event)
