# backend/infplatform/services/scheduling/config.py
"""
Scheduling policy.
"""

from dataclasses import dataclass
from functools import lru_cache

from ...config import settings


@dataclass(frozen=True)
class SchedulingPolicy:
    """
    Policy switches for booking and regeneration.

    Attributes:
        enforce_time_conflicts: Reject bookings overlapping another confirmed
            booking of the same student in the same event
        one_booking_per_company: At most one confirmed booking per company
            per event for a student
        strict_regeneration: Roll back the whole session when any company
            fails to regenerate (otherwise report a partial failure)
        store_retry_attempts: Automatic retries on transient store errors
    """
    enforce_time_conflicts: bool = True
    one_booking_per_company: bool = True
    strict_regeneration: bool = True
    store_retry_attempts: int = 1

    def __post_init__(self):
        """Validate configuration."""
        if self.store_retry_attempts < 0:
            raise ValueError(
                f"store_retry_attempts must be >= 0, got {self.store_retry_attempts}"
            )


@lru_cache
def get_scheduling_policy() -> SchedulingPolicy:
    """Get scheduling policy (singleton, from settings)."""
    return SchedulingPolicy(
        enforce_time_conflicts=settings.enforce_time_conflicts,
        one_booking_per_company=settings.one_booking_per_company,
        strict_regeneration=settings.strict_regeneration,
        store_retry_attempts=settings.store_retry_attempts,
    )
