"""Speech-to-text service."""
from typing import Optional
from openai import AsyncOpenAI, OpenAIError

from interview_relay.core.config import settings
from interview_relay.core.exceptions import EngineError


class SpeechToTextService:
    """Service for converting speech to text."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None):
        self.client = client or AsyncOpenAI(api_key=settings.openai_api_key)
        self.model = model or settings.transcription_model

    async def transcribe_audio(
        self, audio_data: bytes, format: str = "wav"
    ) -> str:
        """
        Transcribe audio to text using OpenAI Whisper.

        Args:
            audio_data: Raw audio bytes
            format: Audio container format (wav, webm, mp3, etc.)

        Returns:
            Transcribed text
        """
        if not audio_data:
            raise EngineError("Transcription failed: empty audio frame")
        try:
            # Whisper expects a named file-like upload
            transcript = await self.client.audio.transcriptions.create(
                model=self.model,
                file=(f"audio.{format}", audio_data, f"audio/{format}"),
            )
        except OpenAIError as e:
            raise EngineError(f"Transcription failed: {str(e)}") from e

        text = (transcript.text or "").strip()
        if not text:
            raise EngineError("Transcription failed: no speech recognized")
        return text
