# backend/infplatform/schemas/events.py

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ..utils.timeutils import to_naive_utc


class PhaseConfigUpdate(BaseModel):
    phase_mode: Optional[Literal["manual", "date-based"]] = None
    current_phase: Optional[int] = Field(default=None, ge=0, le=2)

    phase1_start_date: Optional[datetime] = None
    phase1_end_date: Optional[datetime] = None
    phase2_start_date: Optional[datetime] = None
    phase2_end_date: Optional[datetime] = None

    phase1_max_bookings: Optional[int] = Field(default=None, ge=0)
    phase2_max_bookings: Optional[int] = Field(default=None, ge=0)

    @field_validator(
        "phase1_start_date",
        "phase1_end_date",
        "phase2_start_date",
        "phase2_end_date",
    )
    @classmethod
    def to_utc(cls, v):
        return to_naive_utc(v)


class PhaseRead(BaseModel):
    """Stored phase configuration plus the phase resolved right now."""
    event_id: int
    phase_mode: str
    current_phase: int

    phase1_start_date: Optional[datetime] = None
    phase1_end_date: Optional[datetime] = None
    phase2_start_date: Optional[datetime] = None
    phase2_end_date: Optional[datetime] = None

    phase1_max_bookings: int
    phase2_max_bookings: int

    # resolved
    status: str
    active_phase: int
    max_bookings: int


class BookingAllowanceRead(BaseModel):
    status: str
    phase: int
    current_count: int
    max_allowed: int
    remaining: int
    can_book: bool
    reason: Optional[str] = None
    message: str

    model_config = {"from_attributes": True}
