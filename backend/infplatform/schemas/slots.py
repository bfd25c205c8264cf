# backend/infplatform/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import datetime

from pydantic import BaseModel, field_validator

from ..utils.timeutils import to_naive_utc


class AvailableSlotRead(BaseModel):
    """A bookable slot with its remaining seats."""
    slot_id: int
    event_id: int
    session_id: int | None = None
    session_name: str | None = None
    company_id: int
    company_name: str
    offer_id: int | None = None

    start_time: datetime
    end_time: datetime

    capacity: int
    confirmed_bookings_count: int
    available_spots: int

    model_config = {"from_attributes": True}


class InfSlotsRequest(BaseModel):
    """Windows of the two INF interview sessions."""
    session1_start: datetime
    session1_end: datetime
    session2_start: datetime
    session2_end: datetime

    @field_validator("session1_start", "session1_end", "session2_start", "session2_end")
    @classmethod
    def to_utc(cls, v):
        return to_naive_utc(v)


class InfSlotsResponse(BaseModel):
    event_id: int
    status: str
    companies_processed: int
    total_slots_created: int
    session1_slots: int
    session2_slots: int
    failed_companies: dict[int, str]
    message: str
