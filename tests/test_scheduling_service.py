"""AppointmentService against the database"""

from datetime import date, datetime, timedelta

import pytest
from fastapi import HTTPException

from clinicbook.domain.scheduling.schemas import (
    AppointmentCreate,
    AppointmentStatusUpdate,
    AppointmentUpdate,
)
from clinicbook.domain.scheduling.service import AppointmentService
from clinicbook.models import AppointmentStatus
from conftest import (
    DOCTOR_ID,
    MISSING_ID,
    NOW,
    OTHER_PATIENT_ID,
    PATIENT_ID,
    UNAVAILABLE_DOCTOR_ID,
)

SLOT = datetime(2030, 1, 2, 10, 0)


@pytest.fixture
def service(db):
    return AppointmentService(db, clock=lambda: NOW)


def booking(start=SLOT, patient_id=PATIENT_ID, doctor_id=DOCTOR_ID, **extra):
    return AppointmentCreate(patientId=patient_id, doctorId=doctor_id, startTime=start, **extra)


def status_update(status, **extra):
    return AppointmentStatusUpdate(status=status, **extra)


def assert_rejected(exc_info, status_code, detail):
    assert exc_info.value.status_code == status_code
    assert exc_info.value.detail == detail


class TestCreateAppointment:
    def test_books_pending_appointment_with_default_duration(self, service):
        appointment = service.create_appointment(booking(reason="Annual checkup"))

        assert appointment.id is not None
        assert appointment.status == AppointmentStatus.PENDING
        assert appointment.scheduled_at == SLOT
        assert appointment.duration_minutes == 30
        assert appointment.reason == "Annual checkup"
        assert appointment.invoice_id is None

    def test_custom_duration(self, service):
        appointment = service.create_appointment(booking(durationMinutes=45))
        assert appointment.duration_minutes == 45

    def test_unknown_patient(self, service):
        with pytest.raises(HTTPException) as exc_info:
            service.create_appointment(booking(patient_id=MISSING_ID))
        assert_rejected(exc_info, 404, "Patient not found")

    def test_unknown_doctor(self, service):
        with pytest.raises(HTTPException) as exc_info:
            service.create_appointment(booking(doctor_id=MISSING_ID))
        assert_rejected(exc_info, 404, "Doctor not found")

    def test_unavailable_doctor(self, service):
        with pytest.raises(HTTPException) as exc_info:
            service.create_appointment(booking(doctor_id=UNAVAILABLE_DOCTOR_ID))
        assert_rejected(exc_info, 400, "Doctor is not available for appointments")

    @pytest.mark.parametrize("start", [NOW, NOW - timedelta(minutes=1)])
    def test_start_must_be_in_the_future(self, service, start):
        with pytest.raises(HTTPException) as exc_info:
            service.create_appointment(booking(start=start))
        assert_rejected(exc_info, 400, "Appointment time must be in the future")

    def test_same_doctor_same_instant_conflicts(self, service):
        service.create_appointment(booking())

        with pytest.raises(HTTPException) as exc_info:
            service.create_appointment(booking(patient_id=OTHER_PATIENT_ID))
        assert_rejected(exc_info, 400, "Doctor already has an appointment at this time")

    def test_slot_is_released_by_cancellation(self, service):
        first = service.create_appointment(booking())
        service.cancel_appointment(first.id)

        second = service.create_appointment(booking(patient_id=OTHER_PATIENT_ID))
        assert second.status == AppointmentStatus.PENDING

    def test_slot_is_released_by_completion(self, service):
        first = service.create_appointment(booking())
        service.update_status(first.id, status_update(AppointmentStatus.CONFIRMED))
        service.update_status(first.id, status_update(AppointmentStatus.COMPLETED))

        assert service.create_appointment(booking(patient_id=OTHER_PATIENT_ID)).id != first.id

    def test_overlapping_but_different_instants_do_not_conflict(self, service):
        service.create_appointment(booking(durationMinutes=60))
        later = service.create_appointment(booking(start=SLOT + timedelta(minutes=15)))
        assert later.status == AppointmentStatus.PENDING


class TestUpdateAppointment:
    def test_reschedule(self, service):
        appointment = service.create_appointment(booking())
        new_start = SLOT + timedelta(hours=2)

        updated = service.update_appointment(
            appointment.id, AppointmentUpdate(startTime=new_start, notes="Moved")
        )

        assert updated.scheduled_at == new_start
        assert updated.notes == "Moved"

    def test_partial_update_keeps_other_fields(self, service):
        appointment = service.create_appointment(booking(reason="Follow up", durationMinutes=20))

        updated = service.update_appointment(appointment.id, AppointmentUpdate(notes="Bring results"))

        assert updated.reason == "Follow up"
        assert updated.duration_minutes == 20
        assert updated.scheduled_at == SLOT

    def test_keeping_own_start_is_not_a_conflict(self, service):
        appointment = service.create_appointment(booking())
        updated = service.update_appointment(appointment.id, AppointmentUpdate(startTime=SLOT))
        assert updated.scheduled_at == SLOT

    def test_reschedule_onto_taken_slot(self, service):
        service.create_appointment(booking())
        other = service.create_appointment(booking(start=SLOT + timedelta(hours=1)))

        with pytest.raises(HTTPException) as exc_info:
            service.update_appointment(other.id, AppointmentUpdate(startTime=SLOT))
        assert_rejected(exc_info, 400, "Doctor already has an appointment at this time")

    def test_reschedule_into_the_past(self, service):
        appointment = service.create_appointment(booking())
        with pytest.raises(HTTPException) as exc_info:
            service.update_appointment(
                appointment.id, AppointmentUpdate(startTime=NOW - timedelta(days=1))
            )
        assert_rejected(exc_info, 400, "Appointment time must be in the future")

    @pytest.mark.parametrize("final_status", [AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED])
    def test_terminal_appointments_are_frozen(self, service, final_status):
        appointment = service.create_appointment(booking())
        service.update_status(appointment.id, status_update(AppointmentStatus.CONFIRMED))
        service.update_status(appointment.id, status_update(final_status))

        with pytest.raises(HTTPException) as exc_info:
            service.update_appointment(appointment.id, AppointmentUpdate(notes="Too late"))
        assert_rejected(exc_info, 400, "Cannot update completed or cancelled appointments")

    def test_missing_appointment(self, service):
        with pytest.raises(HTTPException) as exc_info:
            service.update_appointment(MISSING_ID, AppointmentUpdate(notes="x"))
        assert_rejected(exc_info, 404, "Appointment not found")


class TestStatusWorkflow:
    def test_full_lifecycle_with_doctor_notes(self, service):
        appointment = service.create_appointment(booking())

        confirmed = service.update_status(appointment.id, status_update(AppointmentStatus.CONFIRMED))
        assert confirmed.status == AppointmentStatus.CONFIRMED

        completed = service.update_status(
            appointment.id,
            status_update(AppointmentStatus.COMPLETED, doctorNotes="Blood pressure normal"),
        )
        assert completed.status == AppointmentStatus.COMPLETED
        assert completed.doctor_notes == "Blood pressure normal"

    def test_pending_cannot_complete(self, service):
        appointment = service.create_appointment(booking())

        with pytest.raises(HTTPException) as exc_info:
            service.update_status(appointment.id, status_update(AppointmentStatus.COMPLETED))
        assert_rejected(exc_info, 400, "Cannot transition from PENDING to COMPLETED")

        assert service.get_appointment(appointment.id).status == AppointmentStatus.PENDING

    def test_cancelled_cannot_be_reopened(self, service):
        appointment = service.create_appointment(booking())
        service.cancel_appointment(appointment.id)

        with pytest.raises(HTTPException) as exc_info:
            service.update_status(appointment.id, status_update(AppointmentStatus.CONFIRMED))
        assert_rejected(exc_info, 400, "Cannot transition from CANCELLED to CONFIRMED")

    def test_cancel_twice(self, service):
        appointment = service.create_appointment(booking())
        service.cancel_appointment(appointment.id)

        with pytest.raises(HTTPException) as exc_info:
            service.cancel_appointment(appointment.id)
        assert_rejected(exc_info, 400, "Cannot transition from CANCELLED to CANCELLED")

    def test_cancel_keeps_record(self, service):
        appointment = service.create_appointment(booking())
        service.cancel_appointment(appointment.id)
        assert service.get_appointment(appointment.id).status == AppointmentStatus.CANCELLED

    def test_missing_appointment(self, service):
        with pytest.raises(HTTPException) as exc_info:
            service.update_status(MISSING_ID, status_update(AppointmentStatus.CONFIRMED))
        assert_rejected(exc_info, 404, "Appointment not found")


class TestQueries:
    @pytest.fixture
    def booked(self, service):
        return [
            service.create_appointment(booking()),
            service.create_appointment(booking(start=SLOT + timedelta(hours=1), patient_id=OTHER_PATIENT_ID)),
            service.create_appointment(booking(start=SLOT + timedelta(days=1))),
        ]

    def test_by_patient(self, service, booked):
        ids = [a.id for a in service.get_appointments_by_patient(PATIENT_ID)]
        assert ids == [booked[0].id, booked[2].id]

    def test_by_doctor(self, service, booked):
        assert len(service.get_appointments_by_doctor(DOCTOR_ID)) == 3
        assert service.get_appointments_by_doctor(UNAVAILABLE_DOCTOR_ID) == []

    def test_by_status(self, service, booked):
        service.cancel_appointment(booked[1].id)
        cancelled = service.get_appointments_by_status("cancelled")
        assert [a.id for a in cancelled] == [booked[1].id]

    def test_by_unknown_status(self, service):
        with pytest.raises(HTTPException) as exc_info:
            service.get_appointments_by_status("NO_SHOW")
        assert exc_info.value.status_code == 400

    def test_by_date(self, service, booked):
        day = date(2030, 1, 2)
        assert [a.id for a in service.get_appointments_by_date(day)] == [booked[0].id, booked[1].id]
        assert service.get_doctor_appointments_by_date(UNAVAILABLE_DOCTOR_ID, day) == []
        assert len(service.get_doctor_appointments_by_date(DOCTOR_ID, date(2030, 1, 3))) == 1

    def test_get_missing(self, service):
        with pytest.raises(HTTPException) as exc_info:
            service.get_appointment(MISSING_ID)
        assert_rejected(exc_info, 404, "Appointment not found")
