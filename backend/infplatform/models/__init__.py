from .tables import (
    Base,
    Bookings,
    Companies,
    EventParticipants,
    EventSlots,
    Events,
    Offers,
    RecruitingSessions,
    Students,
    metadata,
)

__all__ = [
    "Base",
    "Bookings",
    "Companies",
    "EventParticipants",
    "EventSlots",
    "Events",
    "Offers",
    "RecruitingSessions",
    "Students",
    "metadata",
]
