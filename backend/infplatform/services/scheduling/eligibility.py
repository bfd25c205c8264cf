# backend/infplatform/services/scheduling/eligibility.py
"""
Booking eligibility for one student.

Allowed iff the resolved phase is priority/open AND the student holds fewer
confirmed bookings for the event than the phase quota. Deprioritized
students (already have an internship) may not book in the priority phase.
"""

from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Bookings, EventSlots
from .errors import BookingRejected, PhaseClosed, PriorityPhaseRestricted, QuotaExceeded
from .phases import PHASE_PRIORITY, ResolvedPhase


def check_phase(resolved: ResolvedPhase, is_deprioritized: bool = False) -> None:
    """Reject when no booking is possible in this phase, whatever the count."""
    if not resolved.is_open:
        raise PhaseClosed()
    if resolved.phase == PHASE_PRIORITY and is_deprioritized:
        raise PriorityPhaseRestricted()


def check_eligibility(
    resolved: ResolvedPhase,
    confirmed_count: int,
    is_deprioritized: bool = False,
) -> None:
    """
    Raise the matching BookingRejected if the student may not book now.

    Raises:
        PhaseClosed: phase closed / upcoming / between / ended / not configured
        PriorityPhaseRestricted: deprioritized student in phase 1
        QuotaExceeded: already at the phase quota
    """
    check_phase(resolved, is_deprioritized)

    if confirmed_count >= resolved.max_bookings:
        raise QuotaExceeded(
            f"You have reached your booking limit "
            f"({confirmed_count}/{resolved.max_bookings} bookings)"
        )


@dataclass(frozen=True)
class BookingAllowance:
    """What the student dashboard shows about booking rights."""
    status: str
    phase: int
    current_count: int
    max_allowed: int
    remaining: int
    can_book: bool
    reason: str | None
    message: str


def booking_allowance(
    resolved: ResolvedPhase,
    confirmed_count: int,
    is_deprioritized: bool = False,
) -> BookingAllowance:
    """Summarize eligibility without raising."""
    try:
        check_eligibility(resolved, confirmed_count, is_deprioritized)
    except BookingRejected as exc:
        reason, can_book, message = exc.reason, False, exc.message
    else:
        reason, can_book = None, True
        message = (
            f"You can book {resolved.max_bookings - confirmed_count} more interview(s). "
            f"Phase {resolved.phase}: {confirmed_count}/{resolved.max_bookings} booked"
        )

    return BookingAllowance(
        status=resolved.status.value,
        phase=resolved.phase,
        current_count=confirmed_count,
        max_allowed=resolved.max_bookings,
        remaining=max(resolved.max_bookings - confirmed_count, 0),
        can_book=can_book,
        reason=reason,
        message=message,
    )


def count_confirmed_bookings(db: Session, student_id: int, event_id: int) -> int:
    """Student's confirmed bookings for an event (all phases)."""
    return (
        db.query(func.count(Bookings.id))
        .join(EventSlots, EventSlots.id == Bookings.slot_id)
        .filter(
            Bookings.student_id == student_id,
            Bookings.status == "confirmed",
            EventSlots.event_id == event_id,
        )
        .scalar()
    ) or 0
