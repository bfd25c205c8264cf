# backend/infplatform/services/scheduling/__init__.py
"""
Interview slot scheduling.

Pure: slot calculation, phase resolution, eligibility
Store: regeneration, booking / cancellation, availability, configuration
"""

from .actor import Actor, Role, require_admin
from .config import SchedulingPolicy, get_scheduling_policy
from .calculator import SlotRange, calculate_slots, slot_count
from .phases import PhaseConfig, PhaseMode, PhaseStatus, ResolvedPhase, resolve_phase
from .eligibility import BookingAllowance, booking_allowance, check_eligibility
from .regenerator import (
    RegenerationResult,
    generate_inf_slots,
    raise_for_status,
    regenerate_event_slots,
    regenerate_session_slots,
)
from .booking import BookingResult, book_slot, cancel_booking, list_student_bookings
from .availability import AvailableSlot, list_available_slots

__all__ = [
    "Actor",
    "Role",
    "require_admin",
    "SchedulingPolicy",
    "get_scheduling_policy",
    "SlotRange",
    "calculate_slots",
    "slot_count",
    "PhaseConfig",
    "PhaseMode",
    "PhaseStatus",
    "ResolvedPhase",
    "resolve_phase",
    "BookingAllowance",
    "booking_allowance",
    "check_eligibility",
    "RegenerationResult",
    "generate_inf_slots",
    "raise_for_status",
    "regenerate_event_slots",
    "regenerate_session_slots",
    "BookingResult",
    "book_slot",
    "cancel_booking",
    "list_student_bookings",
    "AvailableSlot",
    "list_available_slots",
]
