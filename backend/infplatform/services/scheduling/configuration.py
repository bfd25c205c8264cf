# backend/infplatform/services/scheduling/configuration.py
"""
Admin configuration: recruiting sessions and event phases.

Sessions
- created with validated timing; slots are generated right away when the
  session is active (same transaction)
- timing / capacity / activity changes regenerate the session's slots
- deleting a session deletes its slots and their bookings

Phases
- phase windows and quotas are validated before they are stored
- date-based events get current_phase synced on write (display only,
  booking always re-resolves)
"""

import logging
from datetime import datetime

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from ...models import Bookings, EventSlots, Events, RecruitingSessions, Students
from ...utils.timeutils import utcnow
from .actor import Actor, require_admin
from .calculator import validate_slot_timing
from .config import SchedulingPolicy, get_scheduling_policy
from .eligibility import BookingAllowance, booking_allowance, count_confirmed_bookings
from .errors import InvalidConfiguration, NotFound
from .phases import (
    PHASE_CLOSED,
    PHASE_OPEN,
    PHASE_PRIORITY,
    PhaseConfig,
    PhaseMode,
    PhaseWindow,
    ResolvedPhase,
    resolve_phase,
)
from .regenerator import (
    RegenerationResult,
    build_session_slots,
    finish_regeneration,
    raise_for_status,
    report_regeneration,
)
from .store import run_with_retry

logger = logging.getLogger(__name__)

SESSION_FIELDS = {
    "name",
    "start_time",
    "end_time",
    "interview_duration_minutes",
    "buffer_minutes",
    "slots_per_time",
    "is_active",
}
# changing any of these invalidates the generated slots
SLOT_SHAPING_FIELDS = SESSION_FIELDS - {"name"}

PHASE_FIELDS = {
    "phase_mode",
    "current_phase",
    "phase1_start_date",
    "phase1_end_date",
    "phase2_start_date",
    "phase2_end_date",
    "phase1_max_bookings",
    "phase2_max_bookings",
}
# the phase windows are the only optional settings
REQUIRED_PHASE_FIELDS = PHASE_FIELDS - {
    "phase1_start_date",
    "phase1_end_date",
    "phase2_start_date",
    "phase2_end_date",
}


# ── Sessions ─────────────────────────────────────────────────────────────


def validate_session_config(
    start_time: datetime,
    end_time: datetime,
    interview_duration_minutes: int,
    buffer_minutes: int,
    slots_per_time: int,
) -> None:
    if start_time is None or end_time is None or start_time >= end_time:
        raise InvalidConfiguration("Session start time must be before end time")
    validate_slot_timing(interview_duration_minutes, buffer_minutes, slots_per_time)


def list_sessions(db: Session, event_id: int | None = None) -> list[RecruitingSessions]:
    query = db.query(RecruitingSessions)
    if event_id is not None:
        query = query.filter(RecruitingSessions.event_id == event_id)
    return query.order_by(RecruitingSessions.start_time, RecruitingSessions.id).all()


def get_session(db: Session, session_id: int) -> RecruitingSessions:
    session = db.get(RecruitingSessions, session_id)
    if session is None:
        raise NotFound(f"Session {session_id} not found")
    return session


def create_session(
    db: Session,
    actor: Actor,
    event_id: int,
    name: str,
    start_time: datetime,
    end_time: datetime,
    interview_duration_minutes: int = 15,
    buffer_minutes: int = 5,
    slots_per_time: int = 2,
    is_active: bool = True,
    policy: SchedulingPolicy | None = None,
) -> tuple[RecruitingSessions, RegenerationResult | None]:
    """
    Create a session and generate its slots.

    Raises:
        InvalidConfiguration: bad timing, nothing is stored
        RegenerationFailed: strict mode and a company failed, nothing is stored
    """
    require_admin(actor)
    policy = policy or get_scheduling_policy()
    validate_session_config(
        start_time, end_time, interview_duration_minutes, buffer_minutes, slots_per_time
    )

    def _run() -> tuple[RecruitingSessions, RegenerationResult | None]:
        if db.get(Events, event_id) is None:
            raise NotFound(f"Event {event_id} not found")

        session = RecruitingSessions(
            event_id=event_id,
            name=name,
            start_time=start_time,
            end_time=end_time,
            interview_duration_minutes=interview_duration_minutes,
            buffer_minutes=buffer_minutes,
            slots_per_time=slots_per_time,
            is_active=is_active,
        )
        db.add(session)
        db.flush()

        if not is_active:
            db.commit()
            return session, None

        result = build_session_slots(db, session)
        finish_regeneration(db, [result], policy.strict_regeneration)
        return session, result

    session, result = run_with_retry(
        db, _run, retries=policy.store_retry_attempts, description="create session"
    )

    if result is not None and result.rolled_back:
        raise_for_status(result)
    if result is not None:
        report_regeneration(result)

    logger.info(
        f"Session created: id={session.id}, event={event_id}, "
        f"slots={result.slots_created if result else 0}"
    )
    return session, result


def update_session(
    db: Session,
    session_id: int,
    actor: Actor,
    changes: dict,
    policy: SchedulingPolicy | None = None,
) -> tuple[RecruitingSessions, RegenerationResult | None]:
    """
    Apply changes to a session; slot-shaping changes regenerate its slots.

    Deactivating keeps booked slots (inactive, bookings kept) and removes
    the unbooked ones.
    """
    require_admin(actor)
    policy = policy or get_scheduling_policy()

    unknown = set(changes) - SESSION_FIELDS
    if unknown:
        raise InvalidConfiguration(f"Unknown session fields: {', '.join(sorted(unknown))}")
    _reject_nulls(changes, SESSION_FIELDS)

    def _run() -> tuple[RecruitingSessions, RegenerationResult | None]:
        session = get_session(db, session_id)

        merged = {f: changes.get(f, getattr(session, f)) for f in SESSION_FIELDS}
        validate_session_config(
            merged["start_time"],
            merged["end_time"],
            merged["interview_duration_minutes"],
            merged["buffer_minutes"],
            merged["slots_per_time"],
        )

        reshaped = any(
            f in changes and changes[f] != getattr(session, f) for f in SLOT_SHAPING_FIELDS
        )
        for field_name, value in changes.items():
            setattr(session, field_name, value)
        db.flush()

        if not reshaped:
            db.commit()
            return session, None

        result = build_session_slots(db, session)
        _set_slots_active(db, session.id, bool(session.is_active))
        finish_regeneration(db, [result], policy.strict_regeneration)
        return session, result

    session, result = run_with_retry(
        db, _run, retries=policy.store_retry_attempts, description=f"update session {session_id}"
    )
    if result is not None and result.rolled_back:
        raise_for_status(result)
    if result is not None:
        report_regeneration(result)

    logger.info(f"Session updated: id={session_id}, fields={sorted(changes)}")
    return session, result


def delete_session(
    db: Session,
    session_id: int,
    actor: Actor,
    policy: SchedulingPolicy | None = None,
) -> int:
    """Delete a session with its slots and bookings. Returns the number of confirmed bookings removed."""
    require_admin(actor)
    policy = policy or get_scheduling_policy()

    def _run() -> int:
        session = get_session(db, session_id)
        confirmed = (
            db.query(func.count(Bookings.id))
            .join(EventSlots, EventSlots.id == Bookings.slot_id)
            .filter(EventSlots.session_id == session_id, Bookings.status == "confirmed")
            .scalar()
        ) or 0
        db.delete(session)
        db.commit()
        return confirmed

    confirmed = run_with_retry(
        db, _run, retries=policy.store_retry_attempts, description=f"delete session {session_id}"
    )
    if confirmed:
        logger.warning(f"Session {session_id} deleted with {confirmed} confirmed booking(s)")
    else:
        logger.info(f"Session {session_id} deleted")
    return confirmed


def _reject_nulls(changes: dict, required: set) -> None:
    missing = sorted(f for f in required if f in changes and changes[f] is None)
    if missing:
        raise InvalidConfiguration(f"Fields cannot be null: {', '.join(missing)}")


def _set_slots_active(db: Session, session_id: int, is_active: bool) -> None:
    db.execute(
        update(EventSlots)
        .where(EventSlots.session_id == session_id, EventSlots.is_active.is_not(is_active))
        .values(is_active=is_active)
        .execution_options(synchronize_session=False)
    )


# ── Phases ───────────────────────────────────────────────────────────────


def validate_phase_config(config: PhaseConfig) -> None:
    """
    Raises InvalidConfiguration unless:
    - manual phase is 0, 1 or 2
    - quotas are >= 0 and phase1 quota <= phase2 quota
    - every window given is well formed, phase 1 ends before phase 2 starts
    - date-based mode has both windows
    """
    if config.manual_phase not in (PHASE_CLOSED, PHASE_PRIORITY, PHASE_OPEN):
        raise InvalidConfiguration(f"Phase must be 0, 1 or 2, got {config.manual_phase}")

    if config.phase1_max_bookings < 0 or config.phase2_max_bookings < 0:
        raise InvalidConfiguration("Booking quotas cannot be negative")
    if config.phase1_max_bookings > config.phase2_max_bookings:
        raise InvalidConfiguration(
            f"Phase 1 quota ({config.phase1_max_bookings}) cannot exceed "
            f"phase 2 quota ({config.phase2_max_bookings})"
        )

    for number, window in ((1, config.phase1), (2, config.phase2)):
        partial = (window.start is None) != (window.end is None)
        if partial or (window.start is not None and not window.is_valid):
            raise InvalidConfiguration(f"Phase {number}: start must be before end")

    if config.phase1.is_valid and config.phase2.is_valid:
        if config.phase1.end > config.phase2.start:
            raise InvalidConfiguration("Phase 1 must end before phase 2 starts")

    if config.mode == PhaseMode.DATE_BASED:
        if not (config.phase1.is_valid and config.phase2.is_valid):
            raise InvalidConfiguration("Date-based mode requires both phase windows")


def get_event(db: Session, event_id: int) -> Events:
    event = db.get(Events, event_id)
    if event is None:
        raise NotFound(f"Event {event_id} not found")
    return event


def get_event_phase(db: Session, event_id: int, now: datetime | None = None) -> tuple[Events, ResolvedPhase]:
    event = get_event(db, event_id)
    return event, resolve_phase(PhaseConfig.from_event(event), now or utcnow())


def get_booking_allowance(
    db: Session,
    event_id: int,
    student_id: int,
    now: datetime | None = None,
) -> BookingAllowance:
    student = db.get(Students, student_id)
    if student is None:
        raise NotFound(f"Student {student_id} not found")

    _, resolved = get_event_phase(db, event_id, now)
    count = count_confirmed_bookings(db, student_id, event_id)
    return booking_allowance(resolved, count, student.is_deprioritized)


def update_phase_config(
    db: Session,
    event_id: int,
    actor: Actor,
    changes: dict,
    now: datetime | None = None,
    policy: SchedulingPolicy | None = None,
) -> tuple[Events, ResolvedPhase]:
    """Validate and store an event's phase configuration."""
    require_admin(actor)
    policy = policy or get_scheduling_policy()
    now = now or utcnow()

    unknown = set(changes) - PHASE_FIELDS
    if unknown:
        raise InvalidConfiguration(f"Unknown phase fields: {', '.join(sorted(unknown))}")
    _reject_nulls(changes, REQUIRED_PHASE_FIELDS)

    if "phase_mode" in changes:
        try:
            changes = {**changes, "phase_mode": PhaseMode(changes["phase_mode"]).value}
        except ValueError:
            raise InvalidConfiguration(f"Unknown phase mode: {changes['phase_mode']}") from None

    def _run() -> tuple[Events, ResolvedPhase]:
        event = get_event(db, event_id)
        merged = {f: changes.get(f, getattr(event, f)) for f in PHASE_FIELDS}

        config = PhaseConfig(
            mode=PhaseMode(merged["phase_mode"]),
            manual_phase=merged["current_phase"],
            phase1=PhaseWindow(merged["phase1_start_date"], merged["phase1_end_date"]),
            phase2=PhaseWindow(merged["phase2_start_date"], merged["phase2_end_date"]),
            phase1_max_bookings=merged["phase1_max_bookings"],
            phase2_max_bookings=merged["phase2_max_bookings"],
        )
        validate_phase_config(config)
        resolved = resolve_phase(config, now)

        for field_name, value in merged.items():
            setattr(event, field_name, value)
        if config.mode == PhaseMode.DATE_BASED:
            event.current_phase = resolved.phase

        db.commit()
        return event, resolved

    event, resolved = run_with_retry(
        db, _run, retries=policy.store_retry_attempts, description=f"update phases of event {event_id}"
    )
    logger.info(
        f"Event {event_id} phase config updated: mode={event.phase_mode}, "
        f"status={resolved.status.value}, phase={resolved.phase}"
    )
    return event, resolved
