import json

from infplatform import redis_client as redis_module
from infplatform.models import EventSlots
from infplatform.services.events import P2P_QUEUE, emit_event
from infplatform.services.scheduling import book_slot, cancel_booking, regenerate_session_slots

from .conftest import ADMIN, NOW, at, student_actor


class RecordingRedis:
    def __init__(self, fail=False):
        self.pushed = []
        self.fail = fail

    def rpush(self, key, value):
        if self.fail:
            raise ConnectionError("redis down")
        self.pushed.append((key, json.loads(value)))


def test_scheduling_operations_emit_events(db, factory, monkeypatch):
    fake = RecordingRedis()
    monkeypatch.setattr(redis_module, "redis_client", fake)
    event = factory.event()
    company = factory.company(event=event)
    session = factory.session(event, start=at(9), end=at(9, 20))
    actor = student_actor(factory.student())

    regenerate_session_slots(db, session.id, ADMIN)
    slot_id = db.query(EventSlots.id).filter(EventSlots.session_id == session.id).scalar()
    booking_id = book_slot(db, slot_id, actor, now=NOW).booking_id
    cancel_booking(db, booking_id, actor)

    types = [payload["type"] for key, payload in fake.pushed]
    assert types == ["slots_regenerated", "booking_created", "booking_cancelled"]
    assert all(key == P2P_QUEUE for key, _ in fake.pushed)

    created = fake.pushed[1][1]
    assert created["booking_id"] == booking_id
    assert created["company_id"] == company.id
    assert "ts" in created


def test_emit_failure_is_not_fatal(monkeypatch, caplog):
    monkeypatch.setattr(redis_module, "redis_client", RecordingRedis(fail=True))

    emit_event("booking_created", {"booking_id": 1})

    assert "Failed to emit event booking_created" in caplog.text


def test_no_redis_configured(monkeypatch):
    monkeypatch.setattr(redis_module, "redis_client", None)

    emit_event("booking_created", {"booking_id": 1})
