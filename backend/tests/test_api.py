import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from infplatform.services.scheduling import booking, regenerator

from .conftest import at


def headers(role, user_id=1):
    return {"X-User-Id": str(user_id), "X-User-Role": role}


ADMIN = headers("admin")


@pytest.fixture
def seeded(db, factory):
    event = factory.event()
    acme = factory.company("Acme", event=event)
    factory.company("Globex", event=event)
    student = factory.student()
    ids = {"event": event.id, "acme": acme.id, "student": student.id}
    # requests run on their own connections
    db.close()
    return ids


def student(seeded):
    return headers("student", seeded["student"])


def create_session(client, seeded, **overrides):
    body = {
        "event_id": seeded["event"],
        "name": "Morning",
        "start_time": at(9).isoformat(),
        "end_time": at(11).isoformat(),
        "interview_duration_minutes": 15,
        "buffer_minutes": 5,
        "slots_per_time": 2,
        **overrides,
    }
    return client.post("/sessions/", json=body, headers=ADMIN)


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["database"] is True


def test_identity_required(client, seeded):
    assert client.get("/sessions/").status_code == 401
    assert client.get("/sessions/", headers=headers("robot")).status_code == 401


def test_session_lifecycle(client, seeded):
    resp = create_session(client, seeded)
    assert resp.status_code == 201
    data = resp.json()
    assert data["regeneration"]["slots_created"] == 12
    assert data["regeneration"]["status"] == "success"
    session_id = data["session"]["id"]

    listed = client.get(f"/sessions/?event_id={seeded['event']}", headers=ADMIN).json()
    assert [s["id"] for s in listed] == [session_id]

    patched = client.patch(f"/sessions/{session_id}", json={"buffer_minutes": 15}, headers=ADMIN)
    assert patched.status_code == 200
    assert patched.json()["regeneration"]["slots_created"] == 8

    regen = client.post(f"/sessions/{session_id}/regenerate", headers=ADMIN)
    assert regen.status_code == 200
    assert regen.json()["slots_deleted"] == 8

    deleted = client.delete(f"/sessions/{session_id}", headers=ADMIN)
    assert deleted.json() == {"deleted": session_id, "bookings_removed": 0}
    assert client.get(f"/sessions/{session_id}", headers=ADMIN).status_code == 404


def test_session_writes_need_admin_and_valid_timing(client, seeded):
    resp = client.post(
        "/sessions/",
        json={"event_id": seeded["event"], "name": "X",
              "start_time": at(9).isoformat(), "end_time": at(11).isoformat()},
        headers=student(seeded),
    )
    assert resp.status_code == 403

    bad = create_session(client, seeded, start_time=at(12).isoformat())
    assert bad.status_code == 422
    assert "before end time" in bad.json()["detail"]


def test_timezone_aware_input_is_stored_as_utc(client, seeded):
    resp = create_session(
        client,
        seeded,
        start_time="2030-06-01T11:00:00+02:00",
        end_time="2030-06-01T13:00:00+02:00",
    )

    session = resp.json()["session"]
    assert session["start_time"] == "2030-06-01T09:00:00"
    assert session["end_time"] == "2030-06-01T11:00:00"


def test_booking_flow(client, seeded):
    create_session(client, seeded)
    available = client.get(
        f"/slots/available?event_id={seeded['event']}&company_id={seeded['acme']}"
    ).json()
    assert len(available) == 6
    assert available[0]["available_spots"] == 2
    assert available[0]["company_name"] == "Acme"
    slot_id = available[0]["slot_id"]

    booked = client.post("/bookings/", json={"slot_id": slot_id}, headers=student(seeded))
    assert booked.status_code == 201
    booking_id = booked.json()["booking_id"]
    assert booked.json()["booking_phase"] == 2

    duplicate = client.post("/bookings/", json={"slot_id": slot_id}, headers=student(seeded))
    assert duplicate.status_code == 409
    assert duplicate.json()["reason"] == "duplicate_booking"
    assert duplicate.json()["message"]

    slot = next(
        s for s in client.get(f"/slots/available?event_id={seeded['event']}").json()
        if s["slot_id"] == slot_id
    )
    assert slot["confirmed_bookings_count"] == 1
    assert slot["available_spots"] == 1

    mine = client.get("/bookings/mine", headers=student(seeded)).json()
    assert [b["id"] for b in mine] == [booking_id]
    assert mine[0]["slot"]["id"] == slot_id

    cancelled = client.post(f"/bookings/{booking_id}/cancel", headers=student(seeded))
    assert cancelled.status_code == 200
    assert cancelled.json()["success"] is True

    again = client.post(f"/bookings/{booking_id}/cancel", headers=student(seeded))
    assert again.status_code == 409
    assert again.json()["reason"] == "already_cancelled"


def test_booking_rejections_map_to_http_status(client, seeded):
    assert client.post("/bookings/", json={"slot_id": 1}, headers=ADMIN).status_code == 403

    missing = client.post("/bookings/", json={"slot_id": 999}, headers=student(seeded))
    assert missing.status_code == 404
    assert missing.json()["reason"] == "slot_not_found"

    create_session(client, seeded)
    slot_id = client.get("/slots/available").json()[0]["slot_id"]
    client.patch(f"/events/{seeded['event']}/phase", json={"current_phase": 0}, headers=ADMIN)

    closed = client.post("/bookings/", json={"slot_id": slot_id}, headers=student(seeded))
    assert closed.status_code == 403
    assert closed.json()["reason"] == "phase_closed"


def test_phase_endpoints(client, seeded):
    event_id = seeded["event"]

    phase = client.get(f"/events/{event_id}/phase", headers=ADMIN).json()
    assert phase["status"] == "open"
    assert phase["max_bookings"] == 6

    bad = client.patch(
        f"/events/{event_id}/phase",
        json={"phase1_max_bookings": 9},
        headers=ADMIN,
    )
    assert bad.status_code == 422

    forbidden = client.patch(
        f"/events/{event_id}/phase", json={"current_phase": 1}, headers=student(seeded)
    )
    assert forbidden.status_code == 403

    updated = client.patch(f"/events/{event_id}/phase", json={"current_phase": 1}, headers=ADMIN)
    assert updated.json()["status"] == "priority"
    assert updated.json()["max_bookings"] == 3

    allowance = client.get(f"/events/{event_id}/allowance", headers=student(seeded)).json()
    assert allowance["can_book"] is True
    assert allowance["max_allowed"] == 3

    assert client.get("/events/999/phase", headers=ADMIN).status_code == 404


def test_inf_slots_endpoint(client, seeded):
    resp = client.post(
        f"/events/{seeded['event']}/inf-slots",
        json={
            "session1_start": at(9).isoformat(),
            "session1_end": at(11).isoformat(),
            "session2_start": at(13).isoformat(),
            "session2_end": at(15).isoformat(),
        },
        headers=ADMIN,
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["companies_processed"] == 2
    assert data["session1_slots"] == 16
    assert data["session2_slots"] == 14
    assert data["total_slots_created"] == 30

    inverted = client.post(
        f"/events/{seeded['event']}/inf-slots",
        json={
            "session1_start": at(11).isoformat(),
            "session1_end": at(9).isoformat(),
            "session2_start": at(13).isoformat(),
            "session2_end": at(15).isoformat(),
        },
        headers=ADMIN,
    )
    assert inverted.status_code == 422


def test_failed_regeneration_is_reported(client, seeded, monkeypatch):
    session_id = create_session(client, seeded).json()["session"]["id"]

    def broken(db, session, company_id, ranges, capacity):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(regenerator, "_regenerate_company", broken)

    resp = client.post(f"/sessions/{session_id}/regenerate", headers=ADMIN)

    assert resp.status_code == 500
    body = resp.json()
    assert body["result"]["status"] == "failed"
    assert len(body["result"]["failed_companies"]) == 2

    event_resp = client.post(f"/events/{seeded['event']}/regenerate", headers=ADMIN)
    assert event_resp.status_code == 500


def test_null_for_required_fields_is_rejected(client, seeded):
    session_id = create_session(client, seeded).json()["session"]["id"]

    for body in ({"name": None}, {"is_active": None}):
        resp = client.patch(f"/sessions/{session_id}", json=body, headers=ADMIN)
        assert resp.status_code == 422

    phase = client.patch(
        f"/events/{seeded['event']}/phase", json={"phase1_max_bookings": None}, headers=ADMIN
    )
    assert phase.status_code == 422
    assert "phase1_max_bookings" in phase.json()["detail"]

    assert client.get(f"/sessions/{session_id}", headers=ADMIN).json()["name"] == "Morning"


def store_locked(*args, **kwargs):
    raise OperationalError("SELECT count(*) FROM bookings", {}, Exception("database is locked"))


def test_booking_survives_one_transient_error(client, seeded, monkeypatch):
    create_session(client, seeded)
    slot_id = client.get(f"/slots/available?event_id={seeded['event']}").json()[0]["slot_id"]
    calls = []

    def flaky_count(*args, **kwargs):
        calls.append(1)
        if len(calls) == 1:
            store_locked()
        return 0

    monkeypatch.setattr(booking, "count_confirmed_bookings", flaky_count)

    resp = client.post("/bookings/", json={"slot_id": slot_id}, headers=student(seeded))

    assert resp.status_code == 201
    assert len(calls) == 2


def test_store_outage_returns_503(client, seeded, monkeypatch):
    create_session(client, seeded)
    slot_id = client.get(f"/slots/available?event_id={seeded['event']}").json()[0]["slot_id"]
    monkeypatch.setattr(booking, "count_confirmed_bookings", store_locked)

    resp = client.post("/bookings/", json={"slot_id": slot_id}, headers=student(seeded))

    assert resp.status_code == 503
    assert "reason" not in resp.json()
    assert resp.json()["detail"]

    slot = next(
        s for s in client.get(f"/slots/available?event_id={seeded['event']}").json()
        if s["slot_id"] == slot_id
    )
    assert slot["confirmed_bookings_count"] == 0
