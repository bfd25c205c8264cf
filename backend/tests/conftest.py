from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from infplatform.database import create_store_engine, get_db, init_db
from infplatform.main import app
from infplatform.models import (
    Companies,
    EventParticipants,
    Events,
    Offers,
    RecruitingSessions,
    Students,
)
from infplatform.services.scheduling import Actor, Role, SchedulingPolicy

# all scheduled data lives on this day; "now" is the morning before
DAY = datetime(2030, 6, 1)
NOW = DAY - timedelta(hours=12)

ADMIN = Actor(user_id=1, role=Role.ADMIN)


def at(hour: int, minute: int = 0) -> datetime:
    return DAY.replace(hour=hour, minute=minute)


def student_actor(student) -> Actor:
    return Actor(user_id=student.id, role=Role.STUDENT)


class Factory:
    """Inserts committed rows with sensible defaults."""

    def __init__(self, db):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def event(self, **kw):
        kw.setdefault("name", "INF 2030")
        kw.setdefault("phase_mode", "manual")
        kw.setdefault("current_phase", 2)
        kw.setdefault("phase1_max_bookings", 3)
        kw.setdefault("phase2_max_bookings", 6)
        return self._save(Events(**kw))

    def company(self, name="Acme", is_verified=True, event=None, slot_capacity=None):
        company = self._save(Companies(name=name, is_verified=is_verified))
        if event is not None:
            self.participant(event, company, slot_capacity)
        return company

    def participant(self, event, company, slot_capacity=None):
        return self._save(
            EventParticipants(event_id=event.id, company_id=company.id, slot_capacity=slot_capacity)
        )

    def offer(self, company, event=None, is_active=True):
        return self._save(Offers(
            company_id=company.id,
            event_id=event.id if event else None,
            title="Internship",
            is_active=is_active,
        ))

    def student(self, name="Jane Doe", is_deprioritized=False):
        count = self.db.query(Students).count()
        return self._save(Students(
            full_name=name,
            email=f"student{count + 1}@example.org",
            is_deprioritized=is_deprioritized,
        ))

    def session(self, event, start=None, end=None, **kw):
        kw.setdefault("name", "Morning")
        kw.setdefault("interview_duration_minutes", 15)
        kw.setdefault("buffer_minutes", 5)
        kw.setdefault("slots_per_time", 2)
        return self._save(RecruitingSessions(
            event_id=event.id,
            start_time=start or at(9),
            end_time=end or at(11),
            **kw,
        ))


@pytest.fixture
def engine(tmp_path):
    engine = create_store_engine(f"sqlite:///{tmp_path / 'test.db'}", timeout=10)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def policy():
    return SchedulingPolicy()


@pytest.fixture
def client(session_factory):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    # no context manager: the lifespan (phase loop) is not started
    yield TestClient(app)
    app.dependency_overrides.clear()
