# backend/infplatform/routers/bookings.py

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..auth import get_actor, require_role
from ..database import get_db
from ..schemas.bookings import BookingCreate, BookingRead, BookingResultRead
from ..services.scheduling import (
    Actor,
    BookingResult,
    Role,
    book_slot,
    cancel_booking,
    list_student_bookings,
)
from ..services.scheduling.errors import rejection_status

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _respond(result: BookingResult, success_status: int) -> JSONResponse:
    if result.success:
        return JSONResponse(status_code=success_status, content=result.to_dict())
    return JSONResponse(
        status_code=rejection_status(result.reason),
        content={"reason": result.reason, "message": result.message},
    )


@router.post(
    "/",
    response_model=BookingResultRead,
    status_code=status.HTTP_201_CREATED,
    responses={403: {}, 404: {}, 409: {}},
)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(Role.STUDENT)),
):
    result = book_slot(db, data.slot_id, actor, offer_id=data.offer_id)
    return _respond(result, status.HTTP_201_CREATED)


@router.post("/{id}/cancel", response_model=BookingResultRead, responses={404: {}, 409: {}})
def cancel_booking_endpoint(
    id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    result = cancel_booking(db, id, actor)
    return _respond(result, status.HTTP_200_OK)


@router.get("/mine", response_model=list[BookingRead])
def my_bookings(
    event_id: int | None = None,
    include_cancelled: bool = False,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(Role.STUDENT)),
):
    return list_student_bookings(
        db,
        actor.user_id,
        event_id=event_id,
        include_cancelled=include_cancelled,
    )
