# backend/infplatform/services/scheduling/phases.py
"""
Booking phase resolution.

Phases: 0 = closed, 1 = priority, 2 = open.

Manual mode:      the admin-set current_phase is used as is.
Date-based mode:  the phase is derived from the two windows and `now`:

    upcoming → priority → (between) → open → ended

Pure given a configuration snapshot and a wall-clock time. Must be
re-evaluated per request; phase boundaries are wall-clock triggered.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


PHASE_CLOSED = 0
PHASE_PRIORITY = 1
PHASE_OPEN = 2


class PhaseMode(str, Enum):
    MANUAL = "manual"
    DATE_BASED = "date-based"


class PhaseStatus(str, Enum):
    CLOSED = "closed"
    NOT_CONFIGURED = "not_configured"
    UPCOMING = "upcoming"
    PRIORITY = "priority"
    BETWEEN = "between"
    OPEN = "open"
    ENDED = "ended"


@dataclass(frozen=True)
class PhaseWindow:
    start: datetime | None
    end: datetime | None

    @property
    def is_valid(self) -> bool:
        return self.start is not None and self.end is not None and self.start < self.end

    def contains(self, now: datetime) -> bool:
        return self.is_valid and self.start <= now < self.end


@dataclass(frozen=True)
class PhaseConfig:
    """Snapshot of an event's phase columns."""
    mode: PhaseMode = PhaseMode.MANUAL
    manual_phase: int = PHASE_CLOSED
    phase1: PhaseWindow = PhaseWindow(None, None)
    phase2: PhaseWindow = PhaseWindow(None, None)
    phase1_max_bookings: int = 3
    phase2_max_bookings: int = 6

    @classmethod
    def from_event(cls, event) -> "PhaseConfig":
        """Build a snapshot from an Events row."""
        try:
            mode = PhaseMode(event.phase_mode or PhaseMode.MANUAL.value)
        except ValueError:
            mode = PhaseMode.MANUAL

        return cls(
            mode=mode,
            manual_phase=event.current_phase or PHASE_CLOSED,
            phase1=PhaseWindow(event.phase1_start_date, event.phase1_end_date),
            phase2=PhaseWindow(event.phase2_start_date, event.phase2_end_date),
            phase1_max_bookings=event.phase1_max_bookings or 0,
            phase2_max_bookings=event.phase2_max_bookings or 0,
        )

    def quota_for(self, phase: int) -> int:
        if phase == PHASE_PRIORITY:
            return self.phase1_max_bookings
        if phase == PHASE_OPEN:
            return self.phase2_max_bookings
        return 0


@dataclass(frozen=True)
class ResolvedPhase:
    status: PhaseStatus
    phase: int
    max_bookings: int

    @property
    def is_open(self) -> bool:
        """Bookings accepted (priority or open phase)."""
        return self.phase in (PHASE_PRIORITY, PHASE_OPEN)


_MANUAL_STATUS = {
    PHASE_CLOSED: PhaseStatus.CLOSED,
    PHASE_PRIORITY: PhaseStatus.PRIORITY,
    PHASE_OPEN: PhaseStatus.OPEN,
}


def resolve_phase(config: PhaseConfig, now: datetime) -> ResolvedPhase:
    """Resolve the active phase and its quota."""
    if config.mode == PhaseMode.MANUAL:
        status = _MANUAL_STATUS.get(config.manual_phase, PhaseStatus.CLOSED)
        phase = config.manual_phase if status != PhaseStatus.CLOSED else PHASE_CLOSED
        return _resolved(config, status, phase)

    phase1, phase2 = config.phase1, config.phase2

    if not phase1.is_valid or not phase2.is_valid:
        return _resolved(config, PhaseStatus.NOT_CONFIGURED, PHASE_CLOSED)

    if now < phase1.start:
        return _resolved(config, PhaseStatus.UPCOMING, PHASE_CLOSED)
    if phase1.contains(now):
        return _resolved(config, PhaseStatus.PRIORITY, PHASE_PRIORITY)
    if phase2.contains(now):
        return _resolved(config, PhaseStatus.OPEN, PHASE_OPEN)
    if now >= phase2.end:
        return _resolved(config, PhaseStatus.ENDED, PHASE_CLOSED)
    return _resolved(config, PhaseStatus.BETWEEN, PHASE_CLOSED)


def resolve_event_phase(event, now: datetime) -> ResolvedPhase:
    """Shortcut: resolve directly from an Events row."""
    return resolve_phase(PhaseConfig.from_event(event), now)


def _resolved(config: PhaseConfig, status: PhaseStatus, phase: int) -> ResolvedPhase:
    return ResolvedPhase(status=status, phase=phase, max_bookings=config.quota_for(phase))
