"""Channel message protocol.

Inbound text frames are JSON objects discriminated by their ``event`` field.
Outbound events are serialized with the camelCase wire names clients expect.
"""
import base64
import binascii
import json
from typing import Any, Dict, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from interview_relay.core.exceptions import ValidationError

START_INTERVIEW = "start_interview"
VOICE_DATA = "voice_data"
STREAM_START = "start"
STREAM_STOP = "stop"

CALL_INITIATED = "call_initiated"
ERROR = "error"
AI_RESPONSE = "ai_response"


class InboundMessage(BaseModel):
    """Base for messages received on a channel."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class StartInterviewMessage(InboundMessage):
    """Client request to create an interview and dial the candidate."""

    event: Literal["start_interview"] = START_INTERVIEW
    phone_number: str = Field(alias="phoneNumber", min_length=1)
    topic: str = Field(min_length=1)


class VoiceDataMessage(InboundMessage):
    """One utterance of caller audio."""

    event: Literal["voice_data"] = VOICE_DATA
    audio: bytes
    topic: Optional[str] = None
    interview_id: Optional[str] = Field(default=None, alias="interviewId")

    @field_validator("audio", mode="before")
    @classmethod
    def decode_audio(cls, value: Any) -> bytes:
        """Accept raw bytes, a list of byte values, or a base64 string."""
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        if isinstance(value, list):
            try:
                return bytes(value)
            except (TypeError, ValueError) as e:
                raise ValueError("audio list must contain byte values 0-255") from e
        if isinstance(value, str):
            try:
                return base64.b64decode(value, validate=True)
            except (binascii.Error, ValueError) as e:
                raise ValueError("audio string must be base64") from e
        raise ValueError("audio must be bytes, a list of byte values, or base64")

    @field_validator("audio")
    @classmethod
    def require_audio(cls, value: bytes) -> bytes:
        if not value:
            raise ValueError("audio must not be empty")
        return value


class StreamStartDetails(InboundMessage):
    call_sid: Optional[str] = Field(default=None, alias="callSid")
    stream_sid: Optional[str] = Field(default=None, alias="streamSid")
    custom_parameters: Dict[str, str] = Field(default_factory=dict, alias="customParameters")


class StreamStartMessage(InboundMessage):
    """Media stream opened by the telephony gateway for a connected call."""

    event: Literal["start"] = STREAM_START
    start: StreamStartDetails = Field(default_factory=StreamStartDetails)

    @property
    def interview_id(self) -> Optional[str]:
        return self.start.custom_parameters.get("interviewId")


class StreamStopMessage(InboundMessage):
    """Media stream closed by the telephony gateway."""

    event: Literal["stop"] = STREAM_STOP


ChannelMessage = Union[
    StartInterviewMessage, VoiceDataMessage, StreamStartMessage, StreamStopMessage
]

_MESSAGE_TYPES: Dict[str, Type[InboundMessage]] = {
    START_INTERVIEW: StartInterviewMessage,
    VOICE_DATA: VoiceDataMessage,
    STREAM_START: StreamStartMessage,
    STREAM_STOP: StreamStopMessage,
}


def parse_message(raw: Union[str, bytes]) -> Optional[ChannelMessage]:
    """
    Parse one inbound text frame.

    Returns:
        The typed message, or None when the ``event`` is not one we handle

    Raises:
        ValidationError: if the payload is not a JSON object with a string
            ``event``, or a known event is missing required fields
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Malformed message: {e}") from e

    if not isinstance(data, dict):
        raise ValidationError("Malformed message: expected a JSON object")

    event = data.get("event")
    if not isinstance(event, str):
        raise ValidationError("Malformed message: missing 'event' field")

    message_type = _MESSAGE_TYPES.get(event)
    if message_type is None:
        return None

    try:
        return message_type.model_validate(data)
    except PydanticValidationError as e:
        fields = ", ".join(
            ".".join(str(part) for part in error["loc"]) or event for error in e.errors()
        )
        raise ValidationError(f"Invalid '{event}' message: {fields}", event=event) from e


class OutboundEvent(BaseModel):
    """Base for events sent on a channel."""

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class CallInitiatedEvent(OutboundEvent):
    event: Literal["call_initiated"] = CALL_INITIATED
    interview_id: str = Field(alias="interviewId")
    call_sid: str = Field(alias="callSid")


class ErrorEvent(OutboundEvent):
    event: Literal["error"] = ERROR
    message: str


class AiResponseEvent(OutboundEvent):
    """Synthesized reply.

    ``audio`` carries base64 audio for JSON clients; binary clients receive
    ``audio_bytes`` here and the raw audio in the next binary frame.
    """

    event: Literal["ai_response"] = AI_RESPONSE
    text: str
    audio: Optional[str] = None
    audio_bytes: Optional[int] = Field(default=None, alias="audioBytes")
