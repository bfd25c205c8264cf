from datetime import datetime

from infplatform.models import Events
from infplatform.services.phase_sync import sync_event_phases


def test_sync_updates_date_based_events_only(db, factory):
    dated = factory.event(
        name="Dated",
        phase_mode="date-based",
        current_phase=0,
        phase1_start_date=datetime(2030, 5, 1),
        phase1_end_date=datetime(2030, 5, 8),
        phase2_start_date=datetime(2030, 5, 10),
        phase2_end_date=datetime(2030, 5, 20),
    )
    manual = factory.event(name="Manual", phase_mode="manual", current_phase=0)

    assert sync_event_phases(db, now=datetime(2030, 5, 3)) == 1
    assert db.get(Events, dated.id).current_phase == 1
    assert db.get(Events, manual.id).current_phase == 0

    assert sync_event_phases(db, now=datetime(2030, 5, 4)) == 0

    sync_event_phases(db, now=datetime(2030, 5, 21))
    assert db.get(Events, dated.id).current_phase == 0
