# backend/infplatform/services/scheduling/calculator.py
"""
Slot calculation for a session window.

Produces the ordered sequence of slot time ranges:
  [start, start + duration), next start = previous start + duration + buffer

A slot is emitted while the interview itself ends inside the window; the
buffer after the last slot may run past window_end. The count is:
  floor((window_end - window_start - duration) / (duration + buffer)) + 1
or 0 when the window is shorter than one interview.

Does NOT consult the store. Deterministic given inputs.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from .errors import InvalidConfiguration


@dataclass(frozen=True)
class SlotRange:
    """One candidate slot: [start, end) with a capacity."""
    start: datetime
    end: datetime
    capacity: int

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return ranges_overlap(self.start, self.end, start, end)


def validate_slot_timing(
    duration_minutes: int,
    buffer_minutes: int,
    capacity: int,
) -> None:
    """Raise InvalidConfiguration for unusable duration / buffer / capacity."""
    if duration_minutes is None or duration_minutes <= 0:
        raise InvalidConfiguration(
            f"Interview duration must be positive, got {duration_minutes}"
        )
    if buffer_minutes is None or buffer_minutes < 0:
        raise InvalidConfiguration(
            f"Buffer must be zero or positive, got {buffer_minutes}"
        )
    if duration_minutes + buffer_minutes <= 0:
        raise InvalidConfiguration("Slot step (duration + buffer) must be positive")
    if capacity is None or capacity < 1:
        raise InvalidConfiguration(f"Capacity must be at least 1, got {capacity}")


def calculate_slots(
    window_start: datetime,
    window_end: datetime,
    duration_minutes: int,
    buffer_minutes: int,
    capacity: int,
    max_slots: int | None = None,
) -> list[SlotRange]:
    """
    Calculate slots for a time window.

    Args:
        window_start: First slot start
        window_end: No interview may extend past this
        duration_minutes: Interview length
        buffer_minutes: Break between interviews
        capacity: Students per slot
        max_slots: Optional cap on the number of slots

    Returns:
        Ordered list of SlotRange. Empty list = nothing to generate.
    """
    validate_slot_timing(duration_minutes, buffer_minutes, capacity)

    if window_end <= window_start:
        return []

    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=duration_minutes + buffer_minutes)

    slots: list[SlotRange] = []
    cursor = window_start

    while cursor + duration <= window_end:
        if max_slots is not None and len(slots) >= max_slots:
            break
        slots.append(SlotRange(start=cursor, end=cursor + duration, capacity=capacity))
        cursor += step

    return slots


def slot_count(
    window_start: datetime,
    window_end: datetime,
    duration_minutes: int,
    buffer_minutes: int,
) -> int:
    """Number of slots calculate_slots produces for a window (no cap)."""
    duration = timedelta(minutes=duration_minutes)
    if window_end - window_start < duration:
        return 0
    step = timedelta(minutes=duration_minutes + buffer_minutes)
    return (window_end - window_start - duration) // step + 1


def ranges_overlap(
    start_a: datetime,
    end_a: datetime,
    start_b: datetime,
    end_b: datetime,
) -> bool:
    """Half-open ranges [a) and [b) share at least one instant."""
    return start_a < end_b and start_b < end_a
