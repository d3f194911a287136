"""FastAPI dependencies."""
from functools import lru_cache

from interview_relay.core.config import settings
from interview_relay.db.database import AsyncSessionLocal
from interview_relay.services.agent.engine import ConversationEngine
from interview_relay.services.call_session.manager import InterviewCoordinator
from interview_relay.services.persistence.interviews import InterviewPersistenceService
from interview_relay.services.telephony.gateway import TelephonyGateway


def get_interview_store() -> InterviewPersistenceService:
    """Get interview persistence service bound to the shared session factory."""
    return InterviewPersistenceService(AsyncSessionLocal)


@lru_cache(maxsize=None)
def get_coordinator() -> InterviewCoordinator:
    """Get the process-wide interview coordinator."""
    return InterviewCoordinator(
        store=get_interview_store(),
        gateway=TelephonyGateway(),
        engine=ConversationEngine(),
        base_url=settings.base_url,
        call_timeout=settings.external_call_timeout,
    )
