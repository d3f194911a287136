"""Interviewer prompt templates."""
from typing import Dict, List, Sequence

from interview_relay.services.call_session.models import Turn, TurnRole


def get_system_prompt(topic: str) -> str:
    """Generate the interviewer's system instruction for a topic."""
    return (
        f"You are conducting an interview about {topic}. "
        "Ask relevant questions and provide appropriate responses."
    )


def build_messages(topic: str, turns: Sequence[Turn]) -> List[Dict[str, str]]:
    """
    Build the chat-completion message list.

    The system instruction always comes first, followed by the full
    transcript in insertion order. Stored system turns are replayed as-is.
    """
    messages = [{"role": TurnRole.SYSTEM.value, "content": get_system_prompt(topic)}]
    for turn in turns:
        messages.append({"role": str(turn.role), "content": turn.content})
    return messages
