# backend/infplatform/services/scheduling/booking.py
"""
Booking and cancellation of interview slots.

Booking flow (one transaction):
1. student row locked (SELECT ... FOR UPDATE); a student's bookings run
   one at a time, so quota and conflict checks see committed counts
2. slot exists, is active, has not started
3. offer (optional) is active and belongs to the slot's company
4. phase and quota allow booking for this student
5. capacity claimed atomically:
     UPDATE event_slots SET booked_count = booked_count + 1
     WHERE id = ? AND booked_count < capacity AND is_active
   zero rows → slot_full
6. duplicate, company and time conflict checks
7. booking row inserted with the phase it was made in

Any rejection rolls back the claim. The unique index on confirmed
(slot, student) pairs catches duplicates that slip past step 6.

Rejections are returned as BookingResult(success=False, reason=...);
infrastructure failures are raised.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ...models import Bookings, EventSlots, Events, Offers, Students
from ...utils.timeutils import utcnow
from ..events import emit_event
from .actor import Actor, Role
from .config import SchedulingPolicy, get_scheduling_policy
from .eligibility import check_eligibility, count_confirmed_bookings
from .errors import (
    AlreadyCancelled,
    BookingNotFound,
    BookingRejected,
    CompanyAlreadyBooked,
    DuplicateBooking,
    NotFound,
    OfferUnavailable,
    PermissionDenied,
    SlotFull,
    SlotNotFound,
    SlotUnavailable,
    TimeConflict,
)
from .phases import resolve_event_phase
from .store import run_with_retry

logger = logging.getLogger(__name__)

CONFIRMED = "confirmed"
CANCELLED = "cancelled"


@dataclass
class BookingResult:
    success: bool
    booking_id: int | None = None
    reason: str | None = None
    message: str = ""
    booking_phase: int | None = None

    @classmethod
    def rejected(cls, exc: BookingRejected, booking_id: int | None = None) -> "BookingResult":
        return cls(success=False, booking_id=booking_id, reason=exc.reason, message=exc.message)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "booking_id": self.booking_id,
            "reason": self.reason,
            "message": self.message,
            "booking_phase": self.booking_phase,
        }


def book_slot(
    db: Session,
    slot_id: int,
    actor: Actor,
    offer_id: int | None = None,
    now: datetime | None = None,
    policy: SchedulingPolicy | None = None,
) -> BookingResult:
    """
    Book an interview slot for the calling student.

    Returns:
        BookingResult; success=False with a reason for business rejections

    Raises:
        PermissionDenied: caller is not a student
        NotFound: student record missing
        TransientStoreError: store unavailable after retries
    """
    if actor.role != Role.STUDENT:
        raise PermissionDenied("Only students can book interview slots")

    policy = policy or get_scheduling_policy()
    now = now or utcnow()
    student_id = actor.user_id

    def _run() -> tuple[int, int, int]:
        # serializes this student's concurrent bookings for the quota count
        student = (
            db.query(Students)
            .filter(Students.id == student_id)
            .with_for_update()
            .one_or_none()
        )
        if student is None:
            raise NotFound(f"Student {student_id} not found")

        slot = db.get(EventSlots, slot_id)
        if slot is None:
            raise SlotNotFound()
        if not slot.is_active or slot.start_time <= now:
            raise SlotUnavailable()

        if offer_id is not None:
            _check_offer(db, offer_id, slot)

        event = db.get(Events, slot.event_id)
        resolved = resolve_event_phase(event, now)
        confirmed_count = count_confirmed_bookings(db, student.id, slot.event_id)
        check_eligibility(resolved, confirmed_count, student.is_deprioritized)

        _claim_capacity(db, slot.id)

        _check_conflicts(db, student.id, slot, policy)

        booking = Bookings(
            slot_id=slot.id,
            student_id=student.id,
            offer_id=offer_id if offer_id is not None else slot.offer_id,
            status=CONFIRMED,
            booking_phase=resolved.phase,
            created_at=now,
        )
        db.add(booking)
        try:
            db.flush()
        except IntegrityError:
            # concurrent insert of the same (slot, student) pair
            raise DuplicateBooking() from None

        booking_id, company_id = booking.id, slot.company_id
        db.commit()
        return booking_id, resolved.phase, company_id

    try:
        booking_id, phase, company_id = run_with_retry(
            db,
            _run,
            retries=policy.store_retry_attempts,
            description=f"book slot {slot_id}",
        )
    except BookingRejected as exc:
        logger.info(f"Booking rejected: student={student_id}, slot={slot_id}, reason={exc.reason}")
        return BookingResult.rejected(exc)

    logger.info(f"Booking created: id={booking_id}, student={student_id}, slot={slot_id}, phase={phase}")
    emit_event("booking_created", {
        "booking_id": booking_id,
        "student_id": student_id,
        "slot_id": slot_id,
        "company_id": company_id,
        "booking_phase": phase,
    })

    return BookingResult(
        success=True,
        booking_id=booking_id,
        message="Interview booked successfully",
        booking_phase=phase,
    )


def cancel_booking(
    db: Session,
    booking_id: int,
    actor: Actor,
    now: datetime | None = None,
    policy: SchedulingPolicy | None = None,
) -> BookingResult:
    """
    Cancel a confirmed booking and free its seat.

    Students may cancel their own bookings at any time; admins any booking.
    """
    if actor.role not in (Role.STUDENT, Role.ADMIN):
        raise PermissionDenied("Only students and admins can cancel bookings")

    policy = policy or get_scheduling_policy()
    now = now or utcnow()

    def _run() -> int:
        stmt = (
            update(Bookings)
            .where(Bookings.id == booking_id, Bookings.status == CONFIRMED)
            .values(status=CANCELLED, cancelled_at=now)
            .execution_options(synchronize_session=False)
        )
        if not actor.is_admin:
            stmt = stmt.where(Bookings.student_id == actor.user_id)

        if db.execute(stmt).rowcount == 0:
            row = db.execute(
                select(Bookings.student_id, Bookings.status).where(Bookings.id == booking_id)
            ).first()
            if row is None or (not actor.is_admin and row.student_id != actor.user_id):
                raise BookingNotFound()
            raise AlreadyCancelled()

        slot_id = db.execute(
            select(Bookings.slot_id).where(Bookings.id == booking_id)
        ).scalar_one()

        db.execute(
            update(EventSlots)
            .where(EventSlots.id == slot_id, EventSlots.booked_count > 0)
            .values(booked_count=EventSlots.booked_count - 1)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return slot_id

    try:
        slot_id = run_with_retry(
            db,
            _run,
            retries=policy.store_retry_attempts,
            description=f"cancel booking {booking_id}",
        )
    except BookingRejected as exc:
        logger.info(f"Cancellation rejected: booking={booking_id}, reason={exc.reason}")
        return BookingResult.rejected(exc, booking_id=booking_id)

    logger.info(f"Booking cancelled: id={booking_id}, by {actor.role.value} {actor.user_id}")
    emit_event("booking_cancelled", {
        "booking_id": booking_id,
        "slot_id": slot_id,
        "cancelled_by": actor.role.value,
    })

    return BookingResult(
        success=True,
        booking_id=booking_id,
        message="Booking cancelled successfully",
    )


def list_student_bookings(
    db: Session,
    student_id: int,
    event_id: int | None = None,
    include_cancelled: bool = False,
) -> list[Bookings]:
    """Student's bookings with their slots, soonest first."""
    query = (
        db.query(Bookings)
        .join(EventSlots, EventSlots.id == Bookings.slot_id)
        .options(joinedload(Bookings.slot))
        .filter(Bookings.student_id == student_id)
    )
    if event_id is not None:
        query = query.filter(EventSlots.event_id == event_id)
    if not include_cancelled:
        query = query.filter(Bookings.status == CONFIRMED)

    return query.order_by(EventSlots.start_time, Bookings.id).all()


# ── Checks ───────────────────────────────────────────────────────────────


def _check_offer(db: Session, offer_id: int, slot: EventSlots) -> None:
    offer = db.get(Offers, offer_id)
    if offer is None or not offer.is_active or offer.company_id != slot.company_id:
        raise OfferUnavailable()


def _claim_capacity(db: Session, slot_id: int) -> None:
    """Take one seat or raise SlotFull; the WHERE clause is the capacity guard."""
    claimed = db.execute(
        update(EventSlots)
        .where(
            EventSlots.id == slot_id,
            EventSlots.booked_count < EventSlots.capacity,
            EventSlots.is_active.is_(True),
        )
        .values(booked_count=EventSlots.booked_count + 1)
        .execution_options(synchronize_session=False)
    ).rowcount
    if claimed == 0:
        raise SlotFull()


def _confirmed_in_event(db: Session, student_id: int, event_id: int):
    return (
        db.query(Bookings.id)
        .join(EventSlots, EventSlots.id == Bookings.slot_id)
        .filter(
            Bookings.student_id == student_id,
            Bookings.status == CONFIRMED,
            EventSlots.event_id == event_id,
        )
    )


def _check_conflicts(db: Session, student_id: int, slot: EventSlots, policy: SchedulingPolicy) -> None:
    """
    Raises:
        DuplicateBooking: already booked this slot
        CompanyAlreadyBooked: already booked this company for the event
        TimeConflict: overlaps another confirmed booking in the event
    """
    if db.query(Bookings.id).filter(
        Bookings.slot_id == slot.id,
        Bookings.student_id == student_id,
        Bookings.status == CONFIRMED,
    ).first():
        raise DuplicateBooking()

    in_event = _confirmed_in_event(db, student_id, slot.event_id)

    if policy.one_booking_per_company:
        if in_event.filter(EventSlots.company_id == slot.company_id).first():
            raise CompanyAlreadyBooked()

    if policy.enforce_time_conflicts:
        overlapping = in_event.filter(
            EventSlots.start_time < slot.end_time,
            EventSlots.end_time > slot.start_time,
        ).first()
        if overlapping:
            raise TimeConflict()
