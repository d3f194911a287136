"""Conversation engine: transcription, response generation and speech synthesis."""
from typing import Optional, Sequence

from interview_relay.services.agent.agent import InterviewerAgent
from interview_relay.services.call_session.models import Turn
from interview_relay.services.speech.stt import SpeechToTextService
from interview_relay.services.speech.tts import TextToSpeechService


class ConversationEngine:
    """Facade over the three OpenAI-backed conversation steps."""

    def __init__(
        self,
        stt_service: Optional[SpeechToTextService] = None,
        agent: Optional[InterviewerAgent] = None,
        tts_service: Optional[TextToSpeechService] = None,
    ):
        self.stt_service = stt_service or SpeechToTextService()
        self.agent = agent or InterviewerAgent()
        self.tts_service = tts_service or TextToSpeechService()

    async def transcribe(self, audio: bytes) -> str:
        return await self.stt_service.transcribe_audio(audio)

    async def respond(self, topic: str, turns: Sequence[Turn]) -> str:
        return await self.agent.respond(topic, turns)

    async def synthesize(self, text: str) -> bytes:
        return await self.tts_service.synthesize_speech(text)
