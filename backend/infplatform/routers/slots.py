# backend/infplatform/routers/slots.py
"""
Slots API endpoints.

GET /slots/available - bookable slots with remaining seats
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.slots import AvailableSlotRead
from ..services.scheduling import list_available_slots


router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/available", response_model=list[AvailableSlotRead])
def get_available_slots(
    event_id: int | None = None,
    company_id: int | None = None,
    session_id: int | None = None,
    db: Session = Depends(get_db),
):
    """Future, active slots that still have a free seat."""
    return list_available_slots(
        db,
        event_id=event_id,
        company_id=company_id,
        session_id=session_id,
    )
