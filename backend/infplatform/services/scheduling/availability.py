# backend/infplatform/services/scheduling/availability.py
"""
Bookable slots listing.

A slot is listed when:
- the slot is active and starts in the future
- its session (if any) is active
- it still has a free seat (booked_count < capacity)
"""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Companies, EventSlots, RecruitingSessions
from ...utils.timeutils import utcnow


@dataclass(frozen=True)
class AvailableSlot:
    slot_id: int
    event_id: int
    session_id: int | None
    session_name: str | None
    company_id: int
    company_name: str
    offer_id: int | None
    start_time: datetime
    end_time: datetime
    capacity: int
    confirmed_bookings_count: int

    @property
    def available_spots(self) -> int:
        return self.capacity - self.confirmed_bookings_count


def list_available_slots(
    db: Session,
    event_id: int | None = None,
    company_id: int | None = None,
    session_id: int | None = None,
    now: datetime | None = None,
) -> list[AvailableSlot]:
    now = now or utcnow()

    query = (
        db.query(EventSlots, Companies.name, RecruitingSessions.name)
        .join(Companies, Companies.id == EventSlots.company_id)
        .outerjoin(RecruitingSessions, RecruitingSessions.id == EventSlots.session_id)
        .filter(
            EventSlots.is_active.is_(True),
            EventSlots.start_time > now,
            EventSlots.booked_count < EventSlots.capacity,
            or_(EventSlots.session_id.is_(None), RecruitingSessions.is_active.is_(True)),
        )
    )

    if event_id is not None:
        query = query.filter(EventSlots.event_id == event_id)
    if company_id is not None:
        query = query.filter(EventSlots.company_id == company_id)
    if session_id is not None:
        query = query.filter(EventSlots.session_id == session_id)

    rows = query.order_by(EventSlots.start_time, Companies.name, EventSlots.id).all()

    return [
        AvailableSlot(
            slot_id=slot.id,
            event_id=slot.event_id,
            session_id=slot.session_id,
            session_name=session_name,
            company_id=slot.company_id,
            company_name=company_name,
            offer_id=slot.offer_id,
            start_time=slot.start_time,
            end_time=slot.end_time,
            capacity=slot.capacity,
            confirmed_bookings_count=slot.booked_count,
        )
        for slot, company_name, session_name in rows
    ]
