# backend/infplatform/routers/events.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_actor, require_role
from ..database import get_db
from ..schemas.events import BookingAllowanceRead, PhaseConfigUpdate, PhaseRead
from ..schemas.sessions import EventRegenerationRead
from ..schemas.slots import InfSlotsRequest, InfSlotsResponse
from ..services.scheduling import (
    Actor,
    ResolvedPhase,
    Role,
    generate_inf_slots,
    raise_for_status,
    regenerate_event_slots,
)
from ..services.scheduling.configuration import (
    get_booking_allowance,
    get_event_phase,
    update_phase_config,
)

router = APIRouter(prefix="/events", tags=["events"])


def _phase_read(event, resolved: ResolvedPhase) -> PhaseRead:
    return PhaseRead(
        event_id=event.id,
        phase_mode=event.phase_mode,
        current_phase=event.current_phase,
        phase1_start_date=event.phase1_start_date,
        phase1_end_date=event.phase1_end_date,
        phase2_start_date=event.phase2_start_date,
        phase2_end_date=event.phase2_end_date,
        phase1_max_bookings=event.phase1_max_bookings,
        phase2_max_bookings=event.phase2_max_bookings,
        status=resolved.status.value,
        active_phase=resolved.phase,
        max_bookings=resolved.max_bookings,
    )


@router.get("/{id}/phase", response_model=PhaseRead)
def read_phase(
    id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Stored phase configuration and the phase in force right now."""
    event, resolved = get_event_phase(db, id)
    return _phase_read(event, resolved)


@router.patch("/{id}/phase", response_model=PhaseRead)
def update_phase(
    id: int,
    data: PhaseConfigUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    event, resolved = update_phase_config(db, id, actor, data.model_dump(exclude_unset=True))
    return _phase_read(event, resolved)


@router.get("/{id}/allowance", response_model=BookingAllowanceRead)
def read_allowance(
    id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(Role.STUDENT)),
):
    return get_booking_allowance(db, id, actor.user_id)


@router.post("/{id}/regenerate", response_model=EventRegenerationRead)
def regenerate_event(
    id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    result = regenerate_event_slots(db, id, actor)
    raise_for_status(result)
    return result.to_dict()


@router.post("/{id}/inf-slots", response_model=InfSlotsResponse)
def create_inf_slots(
    id: int,
    data: InfSlotsRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Two INF sessions, 8 + 7 slots per verified company."""
    result = generate_inf_slots(
        db,
        id,
        (data.session1_start, data.session1_end),
        (data.session2_start, data.session2_end),
        actor,
    )
    raise_for_status(result)
    return result.to_dict()
