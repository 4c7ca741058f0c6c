"""Appointment status workflow table"""

import pytest

from clinicbook.domain.scheduling.transitions import can_transition, is_terminal
from clinicbook.models import AppointmentStatus

PENDING = AppointmentStatus.PENDING
CONFIRMED = AppointmentStatus.CONFIRMED
COMPLETED = AppointmentStatus.COMPLETED
CANCELLED = AppointmentStatus.CANCELLED

ALLOWED = {
    (PENDING, CONFIRMED),
    (PENDING, CANCELLED),
    (CONFIRMED, COMPLETED),
    (CONFIRMED, CANCELLED),
}


class TestCanTransition:
    @pytest.mark.parametrize("current,target", sorted(ALLOWED))
    def test_allowed_edges(self, current, target):
        assert can_transition(current, target) is True

    @pytest.mark.parametrize(
        "current,target",
        [
            (c, t)
            for c in AppointmentStatus
            for t in AppointmentStatus
            if (c, t) not in ALLOWED
        ],
    )
    def test_every_other_pair_is_rejected(self, current, target):
        assert can_transition(current, target) is False

    def test_pending_cannot_skip_to_completed(self):
        assert can_transition(PENDING, COMPLETED) is False

    def test_accepts_raw_stored_values(self):
        """Values read back from the database may be plain strings"""
        assert can_transition("PENDING", CONFIRMED) is True


class TestIsTerminal:
    def test_completed_and_cancelled_are_terminal(self):
        assert is_terminal(COMPLETED)
        assert is_terminal(CANCELLED)

    def test_open_statuses_are_not_terminal(self):
        assert not is_terminal(PENDING)
        assert not is_terminal(CONFIRMED)
