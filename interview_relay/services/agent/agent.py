"""LLM interviewer service."""
import logging
from typing import Optional, Sequence
from openai import AsyncOpenAI, OpenAIError

from interview_relay.core.config import settings
from interview_relay.core.exceptions import EngineError
from interview_relay.services.agent.prompt import build_messages
from interview_relay.services.call_session.models import Turn

logger = logging.getLogger(__name__)


class InterviewerAgent:
    """Generates the interviewer's next utterance."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None):
        self.client = client or AsyncOpenAI(api_key=settings.openai_api_key)
        self.model = model or settings.chat_model

    async def respond(self, topic: str, turns: Sequence[Turn]) -> str:
        """
        Produce a reply conditioned on the topic and the whole transcript.

        Args:
            topic: Interview topic used for the system instruction
            turns: Transcript so far, ending with the caller's latest turn

        Returns:
            Assistant reply text
        """
        messages = build_messages(topic, turns)
        logger.debug(f"[AGENT] Requesting completion - Model: {self.model}, Messages: {len(messages)}")

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
            )
        except OpenAIError as e:
            raise EngineError(f"Completion failed: {str(e)}") from e

        if not response.choices:
            raise EngineError("Completion failed: no choices returned")
        content = (response.choices[0].message.content or "").strip()
        if not content:
            raise EngineError("Completion failed: empty response")
        return content
