"""
Phase transition loop.

Periodically writes the date-resolved phase into events.current_phase for
date-based events, so dashboards reading the column see the right phase.
Booking never relies on the column: it re-resolves from the windows.

Runs as an asyncio task in backend lifespan.
Uses synchronous DB (via asyncio.to_thread).
"""

import asyncio
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ..config import settings
from ..database import SessionLocal
from ..models import Events
from ..utils.timeutils import utcnow
from .scheduling.phases import PhaseMode, resolve_event_phase

logger = logging.getLogger(__name__)


def sync_event_phases(db: Session, now: datetime | None = None) -> int:
    """Update current_phase of date-based events. Returns the number changed."""
    now = now or utcnow()

    events = (
        db.query(Events)
        .filter(Events.phase_mode == PhaseMode.DATE_BASED.value)
        .all()
    )

    changed = 0
    for event in events:
        resolved = resolve_event_phase(event, now)
        if event.current_phase != resolved.phase:
            logger.info(
                f"Event {event.id}: phase {event.current_phase} → {resolved.phase} "
                f"({resolved.status.value})"
            )
            event.current_phase = resolved.phase
            changed += 1

    db.commit()
    return changed


async def phase_transition_loop(interval: int | None = None) -> None:
    """Periodic loop syncing date-based event phases."""
    interval = interval or settings.phase_sync_interval_seconds
    logger.info("phase_transition_loop started")

    try:
        while True:
            try:
                await asyncio.to_thread(_sync_once)
            except asyncio.CancelledError:
                logger.info("phase_transition_loop cancelled")
                raise
            except Exception:
                logger.exception("phase_transition_loop error")

            await asyncio.sleep(interval)
    except asyncio.CancelledError:
        pass


def _sync_once() -> None:
    db = SessionLocal()
    try:
        sync_event_phases(db)
    finally:
        db.close()
