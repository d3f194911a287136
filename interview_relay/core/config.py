"""Application configuration."""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI
    openai_api_key: str
    transcription_model: str = "whisper-1"
    chat_model: str = "gpt-4"
    tts_model: str = "tts-1"
    tts_voice: str = "alloy"

    # Twilio
    twilio_account_sid: str
    twilio_auth_token: str
    twilio_phone_number: str

    # Database
    database_url: str

    # Public URL Twilio uses to reach the callbacks (e.g. an ngrok tunnel)
    base_url: Optional[str] = None

    # Deadline in seconds for every call to the store, Twilio or OpenAI
    external_call_timeout: float = 30.0

    # Server
    host: str = "0.0.0.0"
    port: int = 5000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
