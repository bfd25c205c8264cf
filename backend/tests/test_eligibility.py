import pytest

from infplatform.services.scheduling.eligibility import booking_allowance, check_eligibility
from infplatform.services.scheduling.errors import (
    PhaseClosed,
    PriorityPhaseRestricted,
    QuotaExceeded,
)
from infplatform.services.scheduling.phases import PhaseStatus, ResolvedPhase

CLOSED = ResolvedPhase(PhaseStatus.CLOSED, 0, 0)
PRIORITY = ResolvedPhase(PhaseStatus.PRIORITY, 1, 3)
OPEN = ResolvedPhase(PhaseStatus.OPEN, 2, 6)


def test_closed_phase_rejects_everyone():
    with pytest.raises(PhaseClosed):
        check_eligibility(CLOSED, 0)


def test_quota_per_phase():
    check_eligibility(PRIORITY, 2)
    with pytest.raises(QuotaExceeded) as exc:
        check_eligibility(PRIORITY, 3)
    assert "3/3" in exc.value.message

    # the same three bookings are fine once phase 2 opens
    check_eligibility(OPEN, 3)
    with pytest.raises(QuotaExceeded):
        check_eligibility(OPEN, 6)


def test_deprioritized_students_wait_for_phase_two():
    with pytest.raises(PriorityPhaseRestricted):
        check_eligibility(PRIORITY, 0, is_deprioritized=True)

    check_eligibility(OPEN, 0, is_deprioritized=True)


def test_allowance_summary():
    allowance = booking_allowance(PRIORITY, 1)

    assert allowance.can_book
    assert allowance.remaining == 2
    assert allowance.reason is None

    blocked = booking_allowance(PRIORITY, 3)
    assert not blocked.can_book
    assert blocked.remaining == 0
    assert blocked.reason == "quota_exceeded"

    closed = booking_allowance(CLOSED, 0)
    assert closed.reason == "phase_closed"
    assert closed.status == "closed"
