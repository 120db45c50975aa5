'''
Scheduling arithmetic and the session state machine.
Pure helpers shared by the session service; no database access here.
'''
from datetime import date, datetime, time
from decimal import Decimal, ROUND_HALF_UP
from typing import NamedTuple, Optional

from ..common.exceptions import InvalidDurationError, InvalidTransitionError
from ..database.db_enums import SessionStatus, UserRole

CENTS = Decimal('0.01')


def duration_minutes(start: time, end: time) -> int:
    """Whole minutes between two times of the same day (negative if end < start)."""
    anchor = date.min
    delta = datetime.combine(anchor, end) - datetime.combine(anchor, start)
    return int(delta.total_seconds() // 60)


def validate_duration(start: time, end: time, min_minutes: int) -> int:
    """Returns the duration in minutes or raises InvalidDurationError."""
    if end <= start:
        raise InvalidDurationError("End time must be after start time.")
    minutes = duration_minutes(start, end)
    if minutes < min_minutes:
        raise InvalidDurationError(f"Sessions must last at least {min_minutes} minutes (got {minutes}).")
    return minutes


def compute_cost(start: time, end: time, hourly_rate: Decimal) -> Decimal:
    """duration in hours x hourly rate, rounded half-up to cents."""
    minutes = Decimal(duration_minutes(start, end))
    return (minutes / Decimal(60) * Decimal(hourly_rate)).quantize(CENTS, rounding=ROUND_HALF_UP)


def overlaps(start_a: time, end_a: time, start_b: time, end_b: time) -> bool:
    """Half-open interval overlap: back-to-back sessions do not conflict."""
    return start_a < end_b and start_b < end_a


def within_bounds(start: time, end: time, slot_start: Optional[time], slot_end: Optional[time]) -> bool:
    """True when [start, end) sits inside the slot's optional bounds."""
    if slot_start is not None and start < slot_start:
        return False
    if slot_end is not None and end > slot_end:
        return False
    return True


class Transition(NamedTuple):
    sources: frozenset[SessionStatus]
    target: SessionStatus
    actors: frozenset[UserRole]


TRANSITIONS: dict[str, Transition] = {
    'confirm': Transition(frozenset({SessionStatus.PENDING}), SessionStatus.CONFIRMED, frozenset({UserRole.TUTOR})),
    'reject': Transition(frozenset({SessionStatus.PENDING}), SessionStatus.REJECTED, frozenset({UserRole.TUTOR})),
    'cancel': Transition(
        frozenset({SessionStatus.PENDING, SessionStatus.CONFIRMED}),
        SessionStatus.CANCELLED,
        frozenset({UserRole.STUDENT, UserRole.TUTOR}),
    ),
    'complete': Transition(frozenset({SessionStatus.CONFIRMED}), SessionStatus.COMPLETED, frozenset({UserRole.STUDENT})),
    'reschedule': Transition(
        frozenset({SessionStatus.CONFIRMED}),
        SessionStatus.CONFIRMED,
        frozenset({UserRole.STUDENT, UserRole.TUTOR}),
    ),
}


def check_transition(operation: str, current: SessionStatus | str, actor_role: UserRole | str) -> SessionStatus:
    """
    Validates `operation` for a participant of the given role on a session in `current`.
    Returns the target status or raises InvalidTransitionError.
    """
    transition = TRANSITIONS[operation]
    current = SessionStatus(current)
    actor_role = UserRole(actor_role)
    if actor_role not in transition.actors:
        raise InvalidTransitionError(f"A {actor_role.value} cannot {operation} a session.")
    if current in SessionStatus.terminal():
        raise InvalidTransitionError(f"Session is already {current.value}; no further changes are allowed.")
    if current not in transition.sources:
        raise InvalidTransitionError(f"Cannot {operation} a session that is {current.value}.")
    return transition.target
