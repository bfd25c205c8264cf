# backend/infplatform/services/scheduling/regenerator.py
"""
Slot (re)generation for sessions.

For every company participating in the session's event:
✓ slots with ≥1 confirmed booking are kept unchanged
✓ candidate ranges overlapping a kept slot are skipped for that company
✓ slots without confirmed bookings are deleted
✓ remaining candidate ranges become new slots (company capacity override,
  else session capacity)

Transactions:
- one outer transaction per call, one SAVEPOINT per company
- strict mode: any company failure rolls back everything → "failed"
- non-strict mode: successful companies are committed → "partial_failure"

Deleting uses `booked_count = 0` in the DELETE itself, so a booking
committed concurrently is never lost.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import Companies, EventParticipants, EventSlots, Events, RecruitingSessions
from ..events import emit_event
from .actor import Actor, require_admin
from .calculator import SlotRange, calculate_slots, validate_slot_timing
from .config import SchedulingPolicy, get_scheduling_policy
from .errors import InvalidConfiguration, NotFound, RegenerationFailed, RegenerationPartialFailure
from .store import TRANSIENT_ERRORS, run_with_retry

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_PARTIAL = "partial_failure"
STATUS_FAILED = "failed"

# INF event layout: 15 slots per company split over two sessions
INF_INTERVIEW_MINUTES = 10
INF_BUFFER_MINUTES = 5
INF_CAPACITY = 2
INF_SESSIONS = (
    ("First Interview Session", 8),
    ("Second Interview Session", 7),
)


# ── Results ──────────────────────────────────────────────────────────────


@dataclass
class CompanyOutcome:
    company_id: int
    created: int = 0
    deleted: int = 0
    preserved: int = 0


@dataclass
class RegenerationResult:
    session_id: int
    session_name: str
    outcomes: list[CompanyOutcome] = field(default_factory=list)
    failed_companies: dict[int, str] = field(default_factory=dict)
    rolled_back: bool = False

    @property
    def succeeded_companies(self) -> list[int]:
        return [o.company_id for o in self.outcomes]

    @property
    def slots_created(self) -> int:
        if self.rolled_back:
            return 0
        return sum(o.created for o in self.outcomes)

    @property
    def slots_deleted(self) -> int:
        if self.rolled_back:
            return 0
        return sum(o.deleted for o in self.outcomes)

    @property
    def slots_preserved(self) -> int:
        return sum(o.preserved for o in self.outcomes)

    @property
    def companies_affected(self) -> int:
        if self.rolled_back:
            return 0
        return len(self.outcomes)

    @property
    def status(self) -> str:
        if self.rolled_back:
            return STATUS_FAILED
        if not self.failed_companies:
            return STATUS_SUCCESS
        if not self.outcomes:
            return STATUS_FAILED
        return STATUS_PARTIAL

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "session_name": self.session_name,
            "status": self.status,
            "slots_created": self.slots_created,
            "slots_deleted": self.slots_deleted,
            "slots_preserved": self.slots_preserved,
            "companies_affected": self.companies_affected,
            "succeeded_companies": [] if self.rolled_back else self.succeeded_companies,
            "failed_companies": dict(self.failed_companies),
        }


@dataclass
class EventRegenerationResult:
    event_id: int
    sessions: list[RegenerationResult] = field(default_factory=list)

    @property
    def slots_created(self) -> int:
        return sum(r.slots_created for r in self.sessions)

    @property
    def companies_affected(self) -> int:
        companies: set[int] = set()
        for r in self.sessions:
            if not r.rolled_back:
                companies.update(r.succeeded_companies)
        return len(companies)

    @property
    def failed_companies(self) -> dict[int, str]:
        failed: dict[int, str] = {}
        for r in self.sessions:
            failed.update(r.failed_companies)
        return failed

    @property
    def status(self) -> str:
        return _combined_status([r.status for r in self.sessions])

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "status": self.status,
            "slots_created": self.slots_created,
            "companies_affected": self.companies_affected,
            "failed_companies": self.failed_companies,
            "sessions": [r.to_dict() for r in self.sessions],
        }


@dataclass
class InfGenerationResult:
    event_id: int
    companies_processed: int
    session1: RegenerationResult
    session2: RegenerationResult

    @property
    def session1_slots(self) -> int:
        return self.session1.slots_created

    @property
    def session2_slots(self) -> int:
        return self.session2.slots_created

    @property
    def total_slots_created(self) -> int:
        return self.session1_slots + self.session2_slots

    @property
    def failed_companies(self) -> dict[int, str]:
        return {**self.session1.failed_companies, **self.session2.failed_companies}

    @property
    def status(self) -> str:
        return _combined_status([self.session1.status, self.session2.status])

    @property
    def message(self) -> str:
        return (
            f"Generated {self.total_slots_created} slots for {self.companies_processed} companies "
            f"(Session 1: {self.session1_slots} slots, Session 2: {self.session2_slots} slots)"
        )

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "status": self.status,
            "companies_processed": self.companies_processed,
            "total_slots_created": self.total_slots_created,
            "session1_slots": self.session1_slots,
            "session2_slots": self.session2_slots,
            "failed_companies": self.failed_companies,
            "message": self.message,
        }


def raise_for_status(result) -> None:
    """
    Raise when a regeneration result is not a full success.

    Raises:
        RegenerationFailed: nothing was applied
        RegenerationPartialFailure: some companies need manual follow-up
    """
    failed = ", ".join(str(c) for c in sorted(result.failed_companies))
    if result.status == STATUS_FAILED:
        raise RegenerationFailed(result, f"Slot regeneration failed for companies: {failed}")
    if result.status == STATUS_PARTIAL:
        raise RegenerationPartialFailure(
            result, f"Slot regeneration incomplete, failed companies: {failed}"
        )


# ── Public operations ────────────────────────────────────────────────────


def regenerate_session_slots(
    db: Session,
    session_id: int,
    actor: Actor,
    policy: SchedulingPolicy | None = None,
) -> RegenerationResult:
    """Regenerate all slots of one session (admin only)."""
    require_admin(actor)
    policy = policy or get_scheduling_policy()

    def _run() -> RegenerationResult:
        session = db.get(RecruitingSessions, session_id)
        if session is None:
            raise NotFound(f"Session {session_id} not found")

        result = build_session_slots(db, session)
        finish_regeneration(db, [result], policy.strict_regeneration)
        return result

    result = run_with_retry(
        db,
        _run,
        retries=policy.store_retry_attempts,
        description=f"regenerate session {session_id}",
    )
    report_regeneration(result)
    return result


def regenerate_event_slots(
    db: Session,
    event_id: int,
    actor: Actor,
    policy: SchedulingPolicy | None = None,
) -> EventRegenerationResult:
    """Regenerate every active session of an event in one transaction (admin only)."""
    require_admin(actor)
    policy = policy or get_scheduling_policy()

    def _run() -> EventRegenerationResult:
        if db.get(Events, event_id) is None:
            raise NotFound(f"Event {event_id} not found")

        sessions = (
            db.query(RecruitingSessions)
            .filter(
                RecruitingSessions.event_id == event_id,
                RecruitingSessions.is_active.is_(True),
            )
            .order_by(RecruitingSessions.start_time)
            .all()
        )
        result = EventRegenerationResult(event_id=event_id)
        for session in sessions:
            result.sessions.append(build_session_slots(db, session))

        finish_regeneration(db, result.sessions, policy.strict_regeneration)
        return result

    result = run_with_retry(
        db,
        _run,
        retries=policy.store_retry_attempts,
        description=f"regenerate event {event_id}",
    )
    for session_result in result.sessions:
        report_regeneration(session_result)
    return result


def generate_inf_slots(
    db: Session,
    event_id: int,
    session1_window: tuple[datetime, datetime],
    session2_window: tuple[datetime, datetime],
    actor: Actor,
    policy: SchedulingPolicy | None = None,
) -> InfGenerationResult:
    """
    Generate the INF layout for all verified participating companies.

    Two sessions (upserted by name), 10 min interviews, 5 min buffer,
    capacity 2, 8 slots in session 1 and 7 in session 2 (15 per company).
    Sessions of the event with other names are left untouched.
    """
    require_admin(actor)
    policy = policy or get_scheduling_policy()

    windows = (session1_window, session2_window)
    for number, (start, end) in enumerate(windows, start=1):
        if start is None or end is None or start >= end:
            raise InvalidConfiguration(f"Session {number}: Start time must be before end time")

    def _run() -> InfGenerationResult:
        if db.get(Events, event_id) is None:
            raise NotFound(f"Event {event_id} not found")

        results = []
        for (name, max_slots), (start, end) in zip(INF_SESSIONS, windows):
            session = _upsert_inf_session(db, event_id, name, start, end)
            result = build_session_slots(db, session, max_slots=max_slots, verified_only=True)
            results.append(result)

        finish_regeneration(db, results, policy.strict_regeneration)

        first, second = results
        return InfGenerationResult(
            event_id=event_id,
            companies_processed=len(first.outcomes) + len(first.failed_companies),
            session1=first,
            session2=second,
        )

    result = run_with_retry(
        db,
        _run,
        retries=policy.store_retry_attempts,
        description=f"generate INF slots for event {event_id}",
    )
    report_regeneration(result.session1)
    report_regeneration(result.session2)
    logger.info(result.message)
    return result


# ── Transaction building blocks ──────────────────────────────────────────


def build_session_slots(
    db: Session,
    session: RecruitingSessions,
    max_slots: int | None = None,
    verified_only: bool = False,
) -> RegenerationResult:
    """
    Regenerate a session's slots inside the caller's transaction.

    Does not commit. Each company runs in its own SAVEPOINT; failures are
    recorded in the result.
    """
    ranges = session_candidate_ranges(session, max_slots)
    participants = _participating_companies(db, session.event_id, verified_only)

    result = RegenerationResult(session_id=session.id, session_name=session.name)

    for company_id, capacity_override in participants:
        capacity = capacity_override or session.slots_per_time
        try:
            with db.begin_nested():
                outcome = _regenerate_company(db, session, company_id, ranges, capacity)
        except TRANSIENT_ERRORS:
            raise
        except SQLAlchemyError as e:
            logger.warning(
                f"Slot regeneration failed for company {company_id} "
                f"in session {session.id}: {e}"
            )
            result.failed_companies[company_id] = str(e)
            continue

        result.outcomes.append(outcome)

    return result


def finish_regeneration(db: Session, results: list[RegenerationResult], strict: bool) -> None:
    """Commit, or roll back everything in strict mode when a company failed."""
    if strict and any(r.failed_companies for r in results):
        db.rollback()
        for r in results:
            r.rolled_back = True
        return
    db.commit()


def session_candidate_ranges(
    session: RecruitingSessions,
    max_slots: int | None = None,
) -> list[SlotRange]:
    """Candidate slot ranges for a session; inactive sessions offer none."""
    validate_slot_timing(
        session.interview_duration_minutes,
        session.buffer_minutes,
        session.slots_per_time,
    )

    if not session.is_active:
        logger.info(f"Session {session.id} is inactive, only unbooked slots are removed")
        return []

    ranges = calculate_slots(
        session.start_time,
        session.end_time,
        session.interview_duration_minutes,
        session.buffer_minutes,
        session.slots_per_time,
        max_slots=max_slots,
    )

    if not ranges:
        logger.warning(
            f"Session {session.id} ({session.name}): window "
            f"{session.start_time} - {session.end_time} fits no slot, nothing to generate"
        )
    elif max_slots is not None and len(ranges) < max_slots:
        logger.warning(
            f"Session {session.id} ({session.name}): window fits only "
            f"{len(ranges)} of {max_slots} slots"
        )

    return ranges


# ── Helpers ──────────────────────────────────────────────────────────────


def _regenerate_company(
    db: Session,
    session: RecruitingSessions,
    company_id: int,
    ranges: list[SlotRange],
    capacity: int,
) -> CompanyOutcome:
    """Replace one company's unbooked slots in a session."""
    deleted = len(db.execute(
        delete(EventSlots)
        .where(
            EventSlots.session_id == session.id,
            EventSlots.company_id == company_id,
            EventSlots.booked_count == 0,
        )
        .returning(EventSlots.id),
        execution_options={"synchronize_session": "fetch"},
    ).all())

    preserved = db.execute(
        select(EventSlots.start_time, EventSlots.end_time).where(
            EventSlots.session_id == session.id,
            EventSlots.company_id == company_id,
        )
    ).all()

    fresh = [
        r for r in ranges
        if not any(r.overlaps(p.start_time, p.end_time) for p in preserved)
    ]

    db.add_all([
        EventSlots(
            event_id=session.event_id,
            session_id=session.id,
            company_id=company_id,
            start_time=r.start,
            end_time=r.end,
            capacity=capacity,
            booked_count=0,
            is_active=True,
        )
        for r in fresh
    ])
    db.flush()

    return CompanyOutcome(
        company_id=company_id,
        created=len(fresh),
        deleted=deleted,
        preserved=len(preserved),
    )


def _participating_companies(
    db: Session,
    event_id: int,
    verified_only: bool,
) -> list[tuple[int, int | None]]:
    """(company_id, slot_capacity override) of companies taking part in the event."""
    query = db.query(EventParticipants.company_id, EventParticipants.slot_capacity).filter(
        EventParticipants.event_id == event_id
    )
    if verified_only:
        query = query.join(Companies, Companies.id == EventParticipants.company_id).filter(
            Companies.is_verified.is_(True)
        )
    return [(row.company_id, row.slot_capacity) for row in query.order_by(EventParticipants.company_id)]


def _upsert_inf_session(
    db: Session,
    event_id: int,
    name: str,
    start: datetime,
    end: datetime,
) -> RecruitingSessions:
    session = (
        db.query(RecruitingSessions)
        .filter(RecruitingSessions.event_id == event_id, RecruitingSessions.name == name)
        .first()
    )
    if session is None:
        session = RecruitingSessions(event_id=event_id, name=name)
        db.add(session)

    session.start_time = start
    session.end_time = end
    session.interview_duration_minutes = INF_INTERVIEW_MINUTES
    session.buffer_minutes = INF_BUFFER_MINUTES
    session.slots_per_time = INF_CAPACITY
    session.is_active = True
    db.flush()
    return session


def _combined_status(statuses: list[str]) -> str:
    if all(s == STATUS_SUCCESS for s in statuses):
        return STATUS_SUCCESS
    if all(s == STATUS_FAILED for s in statuses):
        return STATUS_FAILED
    return STATUS_PARTIAL


def report_regeneration(result: RegenerationResult) -> None:
    """Log the outcome and notify consumers."""
    if result.status == STATUS_SUCCESS:
        logger.info(
            f"Session {result.session_id} regenerated: created={result.slots_created}, "
            f"deleted={result.slots_deleted}, preserved={result.slots_preserved}, "
            f"companies={result.companies_affected}"
        )
    else:
        logger.warning(
            f"Session {result.session_id} regeneration {result.status}: "
            f"failed companies={sorted(result.failed_companies)}"
        )

    if result.rolled_back:
        return

    emit_event("slots_regenerated", {
        "session_id": result.session_id,
        "status": result.status,
        "slots_created": result.slots_created,
        "companies_affected": result.companies_affected,
    })
