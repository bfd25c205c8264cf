# backend/infplatform/services/scheduling/errors.py
"""
Error taxonomy of the scheduling engine.

Business rejections (BookingRejected subclasses) are expected outcomes:
the booking service converts them into a BookingResult instead of letting
them propagate. Everything else is raised to the caller.
"""


class SchedulingError(Exception):
    """Base class for scheduling errors."""

    status_code = 400

    def __init__(self, message: str | None = None):
        self.message = message or self.__doc__ or self.__class__.__name__
        super().__init__(self.message)


class InvalidConfiguration(SchedulingError):
    """Invalid session or phase configuration."""

    status_code = 422


class NotFound(SchedulingError):
    """Referenced object not found."""

    status_code = 404


class PermissionDenied(SchedulingError):
    """Operation not allowed for this role."""

    status_code = 403


class TransientStoreError(SchedulingError):
    """Store temporarily unavailable, please retry."""

    status_code = 503


class RegenerationFailed(SchedulingError):
    """Slot regeneration failed and was rolled back."""

    status_code = 500

    def __init__(self, result, message: str | None = None):
        self.result = result
        super().__init__(message)


class RegenerationPartialFailure(RegenerationFailed):
    """Slot regeneration succeeded only for some companies."""

    status_code = 207


# ── Booking rejections ───────────────────────────────────────────────────


class BookingRejected(SchedulingError):
    """Booking request rejected."""

    reason = "rejected"
    status_code = 409


class PhaseClosed(BookingRejected):
    """Bookings are currently closed for this event."""

    reason = "phase_closed"
    status_code = 403


class PriorityPhaseRestricted(BookingRejected):
    """You cannot book during Phase 1 because you indicated you already have an internship. You can book during Phase 2."""

    reason = "priority_phase_restricted"
    status_code = 403


class QuotaExceeded(BookingRejected):
    """You have reached your booking limit."""

    reason = "quota_exceeded"


class SlotFull(BookingRejected):
    """This slot is fully booked."""

    reason = "slot_full"


class DuplicateBooking(BookingRejected):
    """You already have a booking for this time slot."""

    reason = "duplicate_booking"


class CompanyAlreadyBooked(BookingRejected):
    """You already have a booking with this company for this event."""

    reason = "company_already_booked"


class TimeConflict(BookingRejected):
    """This time slot conflicts with another booking."""

    reason = "time_conflict"


class SlotNotFound(BookingRejected):
    """Slot not found."""

    reason = "slot_not_found"
    status_code = 404


class SlotUnavailable(BookingRejected):
    """This slot is no longer available."""

    reason = "slot_unavailable"


class OfferUnavailable(BookingRejected):
    """Offer not found, inactive, or does not belong to this company."""

    reason = "offer_unavailable"


class BookingNotFound(BookingRejected):
    """Booking not found or you are not authorized."""

    reason = "booking_not_found"
    status_code = 404


class AlreadyCancelled(BookingRejected):
    """Booking is already cancelled."""

    reason = "already_cancelled"


def rejection_status(reason: str | None) -> int:
    """HTTP status for a booking rejection reason."""
    for cls in BookingRejected.__subclasses__():
        if cls.reason == reason:
            return cls.status_code
    return BookingRejected.status_code
