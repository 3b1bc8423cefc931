"""Appointment lifecycle.

scheduled -> confirmed -> (in_progress) -> completed
any non-terminal state -> cancelled

completed and cancelled are terminal. A cancelled appointment frees its slot.
"""
from enum import Enum
from typing import Dict, List


class AppointmentStatus(str, Enum):
    """Discrete appointment states."""
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED})

# Statuses that still deserve a reminder
UPCOMING_STATUSES = frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED})


# State machine transition map
# Pattern: Current state -> [allowed next states]
VALID_TRANSITIONS: Dict[AppointmentStatus, List[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: [
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CANCELLED,
    ],
    AppointmentStatus.CONFIRMED: [
        AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    ],
    AppointmentStatus.IN_PROGRESS: [
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    ],
    AppointmentStatus.COMPLETED: [],
    AppointmentStatus.CANCELLED: [],
}


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    """Check whether current -> target is an allowed transition."""
    return target in VALID_TRANSITIONS.get(AppointmentStatus(current), [])
