# backend/infplatform/schemas/bookings.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class BookingCreate(BaseModel):
    slot_id: int
    offer_id: Optional[int] = None


class BookingResultRead(BaseModel):
    success: bool
    booking_id: Optional[int] = None
    reason: Optional[str] = None
    message: str
    booking_phase: Optional[int] = None

    model_config = {"from_attributes": True}


class BookingSlotRead(BaseModel):
    id: int
    event_id: int
    session_id: Optional[int] = None
    company_id: int
    start_time: datetime
    end_time: datetime

    model_config = {"from_attributes": True}


class BookingRead(BaseModel):
    id: int
    slot_id: int
    student_id: int
    offer_id: Optional[int] = None

    status: str
    booking_phase: int

    created_at: datetime
    cancelled_at: Optional[datetime] = None

    slot: BookingSlotRead

    model_config = {"from_attributes": True}
