"""Text-to-speech service."""
from typing import Optional
from openai import AsyncOpenAI, OpenAIError

from interview_relay.core.config import settings
from interview_relay.core.exceptions import EngineError


class TextToSpeechService:
    """Service for converting text to speech."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
        voice: Optional[str] = None,
    ):
        self.client = client or AsyncOpenAI(api_key=settings.openai_api_key)
        self.model = model or settings.tts_model
        self.voice = voice or settings.tts_voice

    async def synthesize_speech(self, text: str) -> bytes:
        """
        Synthesize speech from text using OpenAI TTS.

        Args:
            text: Text to convert to speech

        Returns:
            Audio bytes (MP3 format)
        """
        try:
            response = await self.client.audio.speech.create(
                model=self.model,
                voice=self.voice,
                input=text,
            )
        except OpenAIError as e:
            raise EngineError(f"TTS synthesis failed: {str(e)}") from e
        return response.content
