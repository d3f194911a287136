"""Interview lifecycle enumeration."""
from enum import Enum
from typing import Dict, FrozenSet


class InterviewStatus(str, Enum):
    """Lifecycle states of an interview session."""

    STARTING = "starting"  # Record created, call being placed
    IN_PROGRESS = "in_progress"  # Gateway confirmed the call connected
    COMPLETED = "completed"  # Channel or call ended normally
    FAILED = "failed"  # Call placement or a required external call failed

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition is possible."""
        return self in TERMINAL_STATUSES

    def __str__(self) -> str:
        """Return the string value of the status."""
        return self.value


TERMINAL_STATUSES: FrozenSet[InterviewStatus] = frozenset(
    {InterviewStatus.COMPLETED, InterviewStatus.FAILED}
)

ALLOWED_TRANSITIONS: Dict[InterviewStatus, FrozenSet[InterviewStatus]] = {
    InterviewStatus.STARTING: frozenset(
        {InterviewStatus.IN_PROGRESS, InterviewStatus.FAILED}
    ),
    InterviewStatus.IN_PROGRESS: frozenset(
        {InterviewStatus.COMPLETED, InterviewStatus.FAILED}
    ),
    InterviewStatus.COMPLETED: frozenset(),
    InterviewStatus.FAILED: frozenset(),
}


def can_transition(current: InterviewStatus, target: InterviewStatus) -> bool:
    """Check whether ``current -> target`` is a legal lifecycle edge."""
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())
