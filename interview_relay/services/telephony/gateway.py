"""Twilio telephony gateway."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from twilio.base.exceptions import TwilioException
from twilio.rest import Client
from twilio.twiml.voice_response import Connect, VoiceResponse

from interview_relay.core.config import settings
from interview_relay.core.exceptions import GatewayError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacedCall:
    """Result of a successful call placement."""

    call_sid: str
    status: Optional[str] = None


class TelephonyGateway:
    """Places outbound calls and renders call-control documents."""

    def __init__(
        self,
        client: Optional[Client] = None,
        from_number: Optional[str] = None,
    ):
        self.client = client or Client(
            settings.twilio_account_sid, settings.twilio_auth_token
        )
        self.from_number = from_number or settings.twilio_phone_number

    async def place_call(
        self,
        to_number: str,
        callback_url: str,
        status_callback_url: Optional[str] = None,
    ) -> PlacedCall:
        """
        Place an outbound call.

        Args:
            to_number: Destination phone number (E.164)
            callback_url: URL Twilio fetches the TwiML from once the call connects
            status_callback_url: Optional URL for call status updates

        Returns:
            The placed call's SID

        Raises:
            GatewayError: if Twilio rejects the request
        """
        kwargs = {
            "to": to_number,
            "from_": self.from_number,
            "url": callback_url,
        }
        if status_callback_url:
            kwargs["status_callback"] = status_callback_url
            kwargs["status_callback_event"] = ["initiated", "answered", "completed"]

        try:
            # The Twilio REST client is blocking
            call = await asyncio.to_thread(self.client.calls.create, **kwargs)
        except TwilioException as e:
            raise GatewayError(f"Call placement rejected: {e}") from e

        if not call.sid:
            raise GatewayError("Call placement returned no call SID")

        logger.info(f"[GATEWAY] Call placed - To: {to_number}, CallSid: {call.sid}")
        return PlacedCall(call_sid=call.sid, status=getattr(call, "status", None))

    @staticmethod
    def stream_twiml(host: str, interview_id: Optional[str] = None) -> str:
        """
        Generate TwiML that bridges the live call audio to our media stream.

        Args:
            host: Public host (from the request) serving the ``/voice`` socket
            interview_id: Passed to the stream as a custom parameter

        Returns:
            TwiML XML string
        """
        response = VoiceResponse()
        connect = Connect()
        stream = connect.stream(url=f"wss://{host}/voice")
        if interview_id:
            stream.parameter(name="interviewId", value=interview_id)
        response.append(connect)
        return str(response)

    @staticmethod
    def hangup_twiml() -> str:
        """TwiML that ends a call with no live interview behind it."""
        response = VoiceResponse()
        response.hangup()
        return str(response)
