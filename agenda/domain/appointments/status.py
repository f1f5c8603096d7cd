"""
Appointment status workflow.

PRE_SCHEDULED → SCHEDULED → CONFIRMED → COMPLETED
CANCELLED is reachable from any non-terminal status.
SERIES_ENDED is reachable from SCHEDULED/CONFIRMED only when the contract ends.
"""

from enum import Enum


class AppointmentStatus(str, Enum):
    PRE_SCHEDULED = "PRE_SCHEDULED"
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    SERIES_ENDED = "SERIES_ENDED"


TERMINAL_STATUSES = frozenset(
    {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.SERIES_ENDED}
)

# Statuses that block the same interval from being offered or booked again
OCCUPYING_STATUSES = frozenset(
    {
        AppointmentStatus.PRE_SCHEDULED,
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.COMPLETED,
    }
)

RESCHEDULABLE_STATUSES = frozenset(
    {AppointmentStatus.PRE_SCHEDULED, AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED}
)

REMINDABLE_STATUSES = frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED})

# Contract termination only ends these; anything else non-terminal is cancelled
SERIES_ENDABLE_STATUSES = frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED})


def is_terminal(status) -> bool:
    return AppointmentStatus(status) in TERMINAL_STATUSES


def is_occupying(status) -> bool:
    return AppointmentStatus(status) in OCCUPYING_STATUSES


def can_transition(current, target, via_contract_end: bool = False) -> bool:
    """
    Check a status change.

    Manual edits (operator override) may jump between non-terminal statuses in
    either direction and may complete or cancel, but never leave a terminal
    status and never set SERIES_ENDED. SERIES_ENDED is only produced by the
    contract termination sweep.
    """
    current = AppointmentStatus(current)
    target = AppointmentStatus(target)

    if current == target:
        return True
    if current in TERMINAL_STATUSES:
        return False
    if target == AppointmentStatus.SERIES_ENDED:
        return via_contract_end and current in SERIES_ENDABLE_STATUSES
    return True
