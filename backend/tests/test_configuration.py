from datetime import datetime

import pytest

from infplatform.config import settings
from infplatform.models import Bookings, EventSlots, Events, RecruitingSessions
from infplatform.services.scheduling import book_slot
from infplatform.services.scheduling.configuration import (
    create_session,
    delete_session,
    get_booking_allowance,
    update_phase_config,
    update_session,
)
from infplatform.services.scheduling.errors import InvalidConfiguration, NotFound, PermissionDenied

from .conftest import ADMIN, NOW, at, student_actor


@pytest.fixture
def event(factory):
    event = factory.event()
    factory.company("Acme", event=event)
    factory.company("Globex", event=event)
    return event


def test_create_session_generates_slots(db, event):
    session, result = create_session(db, ADMIN, event.id, "Morning", at(9), at(11))

    assert result.slots_created == 12
    assert db.query(EventSlots).filter(EventSlots.session_id == session.id).count() == 12


def test_create_inactive_session_generates_nothing(db, event):
    session, result = create_session(db, ADMIN, event.id, "Later", at(9), at(11), is_active=False)

    assert result is None
    assert db.query(EventSlots).count() == 0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"start_time": at(11), "end_time": at(9)},
        {"interview_duration_minutes": 0},
        {"buffer_minutes": -5},
        {"slots_per_time": 0},
    ],
)
def test_invalid_session_is_not_stored(db, event, kwargs):
    params = {"start_time": at(9), "end_time": at(11), **kwargs}

    with pytest.raises(InvalidConfiguration):
        create_session(db, ADMIN, event.id, "Broken", **params)

    assert db.query(RecruitingSessions).count() == 0


def test_create_session_requires_admin_and_event(db, factory, event):
    with pytest.raises(PermissionDenied):
        create_session(db, student_actor(factory.student()), event.id, "X", at(9), at(11))
    with pytest.raises(NotFound):
        create_session(db, ADMIN, 4040, "X", at(9), at(11))


def test_update_session_regenerates_on_timing_change(db, event):
    session, _ = create_session(db, ADMIN, event.id, "Morning", at(9), at(11))

    _, renamed = update_session(db, session.id, ADMIN, {"name": "Early"})
    assert renamed is None

    _, result = update_session(db, session.id, ADMIN, {"buffer_minutes": 15})
    assert result.slots_created == 8  # 120 min / 30 min step, two companies
    assert db.query(EventSlots).count() == 8


def test_deactivating_keeps_booked_slots_only(db, factory, event):
    session, _ = create_session(db, ADMIN, event.id, "Morning", at(9), at(11))
    slot = db.query(EventSlots).order_by(EventSlots.id).first()
    slot_id = slot.id
    assert book_slot(db, slot_id, student_actor(factory.student()), now=NOW).success

    update_session(db, session.id, ADMIN, {"is_active": False})

    remaining = db.query(EventSlots).all()
    assert [s.id for s in remaining] == [slot_id]
    assert remaining[0].is_active is False

    update_session(db, session.id, ADMIN, {"is_active": True})
    assert db.get(EventSlots, slot_id).is_active is True
    assert db.query(EventSlots).count() == 12 - 1 + 1


def test_update_session_rejects_invalid_merge(db, event):
    session, _ = create_session(db, ADMIN, event.id, "Morning", at(9), at(11))

    with pytest.raises(InvalidConfiguration):
        update_session(db, session.id, ADMIN, {"end_time": at(8)})

    assert db.get(RecruitingSessions, session.id).end_time == at(11)


def test_delete_session_cascades(db, factory, event):
    session, _ = create_session(db, ADMIN, event.id, "Morning", at(9), at(11))
    slot_id = db.query(EventSlots.id).first()[0]
    book_slot(db, slot_id, student_actor(factory.student()), now=NOW)

    removed = delete_session(db, session.id, ADMIN)

    assert removed == 1
    assert db.query(EventSlots).count() == 0
    assert db.query(Bookings).count() == 0


def test_phase_config_validation(db, event):
    with pytest.raises(InvalidConfiguration, match="quota"):
        update_phase_config(db, event.id, ADMIN, {"phase1_max_bookings": 7})

    with pytest.raises(InvalidConfiguration, match="both phase windows"):
        update_phase_config(db, event.id, ADMIN, {"phase_mode": "date-based"})

    with pytest.raises(InvalidConfiguration, match="before phase 2"):
        update_phase_config(db, event.id, ADMIN, {
            "phase_mode": "date-based",
            "phase1_start_date": datetime(2030, 5, 1),
            "phase1_end_date": datetime(2030, 5, 12),
            "phase2_start_date": datetime(2030, 5, 10),
            "phase2_end_date": datetime(2030, 5, 20),
        })

    assert db.get(Events, event.id).phase_mode == "manual"


def test_date_based_phase_config_syncs_current_phase(db, event):
    stored, resolved = update_phase_config(
        db,
        event.id,
        ADMIN,
        {
            "phase_mode": "date-based",
            "phase1_start_date": datetime(2030, 5, 1),
            "phase1_end_date": datetime(2030, 5, 8),
            "phase2_start_date": datetime(2030, 5, 10),
            "phase2_end_date": datetime(2030, 6, 20),
        },
        now=NOW,
    )

    assert resolved.status.value == "open"
    assert stored.current_phase == 2


def test_booking_allowance(db, factory, event):
    student = factory.student()

    allowance = get_booking_allowance(db, event.id, student.id, now=NOW)

    assert allowance.can_book
    assert allowance.max_allowed == 6
    assert allowance.remaining == 6


def test_null_for_required_fields_is_rejected(db, event):
    session, _ = create_session(db, ADMIN, event.id, "Morning", at(9), at(11))

    with pytest.raises(InvalidConfiguration, match="name"):
        update_session(db, session.id, ADMIN, {"name": None})
    with pytest.raises(InvalidConfiguration, match="is_active"):
        update_session(db, session.id, ADMIN, {"is_active": None})
    with pytest.raises(InvalidConfiguration, match="phase1_max_bookings"):
        update_phase_config(db, event.id, ADMIN, {"phase1_max_bookings": None})

    assert db.get(RecruitingSessions, session.id).name == "Morning"
    assert db.get(Events, event.id).phase1_max_bookings == 3


def test_clearing_phase_windows_is_allowed(db, event):
    update_phase_config(db, event.id, ADMIN, {
        "phase1_start_date": datetime(2030, 5, 1),
        "phase1_end_date": datetime(2030, 5, 10),
    })

    stored, _ = update_phase_config(db, event.id, ADMIN, {
        "phase1_start_date": None,
        "phase1_end_date": None,
    })

    assert stored.phase1_start_date is None
    assert stored.phase1_end_date is None


def test_new_event_quotas_come_from_settings(db, monkeypatch):
    monkeypatch.setattr(settings, "default_phase1_max_bookings", 2)
    monkeypatch.setattr(settings, "default_phase2_max_bookings", 5)

    event = Events(name="Spring fair")
    db.add(event)
    db.commit()

    assert (event.phase1_max_bookings, event.phase2_max_bookings) == (2, 5)
