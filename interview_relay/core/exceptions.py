"""Error taxonomy for the relay.

Each external collaborator has its own error kind so the coordinator can
decide, per inbound message, whether a failure is reported to the client
(start path) or only logged (voice path).
"""
from typing import Optional


class RelayError(Exception):
    """Base class for all relay errors."""


class ValidationError(RelayError):
    """Inbound channel message could not be parsed or is missing fields."""

    def __init__(self, message: str, event: Optional[str] = None):
        super().__init__(message)
        self.event = event  # discriminant of the failed message, if it had one


class PersistenceError(RelayError):
    """Session store unavailable or a write was rejected."""


class GatewayError(RelayError):
    """Telephony gateway rejected or did not answer a call placement."""


class EngineError(RelayError):
    """A conversation engine step (transcribe, respond, synthesize) failed."""


class SessionStateError(RelayError):
    """Illegal interview lifecycle transition."""
