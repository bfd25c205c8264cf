# backend/infplatform/routers/sessions.py

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth import get_actor
from ..database import get_db
from ..schemas.sessions import (
    RegenerationRead,
    SessionCreate,
    SessionRead,
    SessionUpdate,
    SessionWriteResponse,
)
from ..services.scheduling import Actor, raise_for_status, regenerate_session_slots
from ..services.scheduling.configuration import (
    create_session,
    delete_session,
    get_session,
    list_sessions,
    update_session,
)
from ..services.scheduling.regenerator import STATUS_PARTIAL

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("/", response_model=list[SessionRead])
def read_sessions(
    event_id: int | None = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return list_sessions(db, event_id)


@router.post("/", response_model=SessionWriteResponse, status_code=status.HTTP_201_CREATED)
def create_session_endpoint(
    data: SessionCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Create a session; slots are generated right away for active sessions."""
    session, result = create_session(db, actor, **data.model_dump())
    if result is not None and result.status == STATUS_PARTIAL:
        raise_for_status(result)

    return {
        "session": session,
        "regeneration": result.to_dict() if result else None,
    }


@router.get("/{id}", response_model=SessionRead)
def read_session(
    id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return get_session(db, id)


@router.patch("/{id}", response_model=SessionWriteResponse)
def update_session_endpoint(
    id: int,
    data: SessionUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    session, result = update_session(db, id, actor, data.model_dump(exclude_unset=True))
    if result is not None and result.status == STATUS_PARTIAL:
        raise_for_status(result)

    return {
        "session": session,
        "regeneration": result.to_dict() if result else None,
    }


@router.delete("/{id}")
def delete_session_endpoint(
    id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    removed = delete_session(db, id, actor)
    return {"deleted": id, "bookings_removed": removed}


@router.post("/{id}/regenerate", response_model=RegenerationRead)
def regenerate_session(
    id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Rebuild the session's slots, keeping booked ones."""
    result = regenerate_session_slots(db, id, actor)
    raise_for_status(result)
    return result.to_dict()
