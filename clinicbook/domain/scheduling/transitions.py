"""Appointment status transitions"""

from ...models import AppointmentStatus

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    """Whether an appointment in ``current`` may move to ``target``"""
    return target in ALLOWED_TRANSITIONS[AppointmentStatus(current)]


def is_terminal(status: AppointmentStatus) -> bool:
    return not ALLOWED_TRANSITIONS[AppointmentStatus(status)]
