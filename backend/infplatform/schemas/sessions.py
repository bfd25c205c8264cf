# backend/infplatform/schemas/sessions.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..utils.timeutils import to_naive_utc


class SessionCreate(BaseModel):
    event_id: int
    name: str = Field(min_length=1)

    start_time: datetime
    end_time: datetime

    interview_duration_minutes: int = 15
    buffer_minutes: int = 5
    slots_per_time: int = 2  # capacity per slot
    is_active: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, v):
        return to_naive_utc(v)


class SessionUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)

    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    interview_duration_minutes: Optional[int] = None
    buffer_minutes: Optional[int] = None
    slots_per_time: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, v):
        return to_naive_utc(v)


class SessionRead(BaseModel):
    id: int
    event_id: int
    name: str

    start_time: datetime
    end_time: datetime

    interview_duration_minutes: int
    buffer_minutes: int
    slots_per_time: int
    is_active: bool

    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RegenerationRead(BaseModel):
    """Outcome of regenerating one session's slots."""
    session_id: int
    session_name: str
    status: str  # success | partial_failure | failed
    slots_created: int
    slots_deleted: int
    slots_preserved: int
    companies_affected: int
    succeeded_companies: list[int]
    failed_companies: dict[int, str]


class SessionWriteResponse(BaseModel):
    session: SessionRead
    regeneration: Optional[RegenerationRead] = None


class EventRegenerationRead(BaseModel):
    event_id: int
    status: str
    slots_created: int
    companies_affected: int
    failed_companies: dict[int, str]
    sessions: list[RegenerationRead]
