"""Appointment service - Business logic for the scheduling engine"""

import logging
from datetime import date, datetime
from typing import Callable, NoReturn, Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import DEFAULT_APPOINTMENT_DURATION
from ...directory import Directory, SqlDirectory
from ...models import Appointment, AppointmentStatus
from ...shared.validators import parse_enum
from ...utils.sanitization import sanitize_text
from .repository import AppointmentRepository
from .schemas import AppointmentCreate, AppointmentStatusUpdate, AppointmentUpdate
from .transitions import can_transition, is_terminal

logger = logging.getLogger(__name__)

SLOT_CONFLICT_MESSAGE = "Doctor already has an appointment at this time"


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(
        self,
        db: Session,
        directory: Optional[Directory] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.db = db
        self.repo = AppointmentRepository()
        self.directory = directory or SqlDirectory(db)
        self.clock = clock

    def _reject(self, status_code: int, detail: str) -> NoReturn:
        """End the unit of work and surface the failure to the caller"""
        self.db.rollback()
        if status_code >= 500:
            logger.error(f"❌ {detail}")
        else:
            logger.warning(f"⚠️ {detail}")
        raise HTTPException(status_code=status_code, detail=detail)

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get_appointments(self) -> list[Appointment]:
        return self.repo.get_appointments(self.db)

    def get_appointment(self, appointment_id: int) -> Appointment:
        """Get a specific appointment"""
        appointment = self.repo.get_appointment_by_id(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment

    def get_appointments_by_patient(self, patient_id: int) -> list[Appointment]:
        return self.repo.get_appointments_by_patient(self.db, patient_id)

    def get_appointments_by_doctor(self, doctor_id: int) -> list[Appointment]:
        return self.repo.get_appointments_by_doctor(self.db, doctor_id)

    def get_appointments_by_status(self, status) -> list[Appointment]:
        try:
            status = parse_enum(AppointmentStatus, status)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return self.repo.get_appointments_by_status(self.db, status)

    def get_appointments_by_date(self, day: date) -> list[Appointment]:
        return self.repo.get_appointments_by_date(self.db, day)

    def get_doctor_appointments_by_date(self, doctor_id: int, day: date) -> list[Appointment]:
        return self.repo.get_appointments_by_date(self.db, day, doctor_id=doctor_id)

    # ========================================================================
    # BOOKING
    # ========================================================================

    def _ensure_future(self, start_time: datetime) -> None:
        if start_time <= self.clock():
            self._reject(400, "Appointment time must be in the future")

    def _ensure_slot_free(self, doctor_id: int, start_time: datetime) -> None:
        # Exact-instant match only; overlapping durations are not checked
        self.repo.lock_doctor(self.db, doctor_id)
        if self.repo.has_conflict(self.db, doctor_id, start_time):
            self._reject(400, SLOT_CONFLICT_MESSAGE)

    def create_appointment(self, data: AppointmentCreate) -> Appointment:
        """Book a new appointment in PENDING status"""
        logger.info(
            f"📥 Booking appointment for patient_id: {data.patientId} with doctor_id: {data.doctorId} at {data.startTime}"
        )

        if not self.directory.patient_exists(data.patientId):
            self._reject(404, "Patient not found")
        if not self.directory.doctor_exists(data.doctorId):
            self._reject(404, "Doctor not found")
        if not self.directory.doctor_available(data.doctorId):
            self._reject(400, "Doctor is not available for appointments")

        self._ensure_future(data.startTime)
        self._ensure_slot_free(data.doctorId, data.startTime)

        appointment_data = {
            "patient_id": data.patientId,
            "doctor_id": data.doctorId,
            "scheduled_at": data.startTime,
            "duration_minutes": data.durationMinutes or DEFAULT_APPOINTMENT_DURATION,
            "status": AppointmentStatus.PENDING,
            "reason": sanitize_text(data.reason),
            "notes": sanitize_text(data.notes),
        }

        try:
            appointment = self.repo.create_appointment(self.db, **appointment_data)
        except IntegrityError:
            # Lost the race for this slot to a concurrent booking
            self._reject(400, SLOT_CONFLICT_MESSAGE)

        logger.info(f"✅ Appointment created with ID: {appointment.id}")
        return appointment

    def update_appointment(self, appointment_id: int, data: AppointmentUpdate) -> Appointment:
        """Reschedule or edit an open appointment; only provided fields change"""
        logger.info(f"📝 Updating appointment with ID: {appointment_id}")

        appointment = self.repo.get_appointment_for_update(self.db, appointment_id)
        if not appointment:
            self._reject(404, "Appointment not found")

        if is_terminal(appointment.status):
            self._reject(400, "Cannot update completed or cancelled appointments")

        updates = {}
        if data.startTime is not None:
            self._ensure_future(data.startTime)
            if data.startTime != appointment.scheduled_at:
                self._ensure_slot_free(appointment.doctor_id, data.startTime)
            updates["scheduled_at"] = data.startTime
        if data.reason is not None:
            updates["reason"] = sanitize_text(data.reason)
        if data.notes is not None:
            updates["notes"] = sanitize_text(data.notes)
        if data.durationMinutes is not None:
            updates["duration_minutes"] = data.durationMinutes

        try:
            appointment = self.repo.update_appointment(self.db, appointment, **updates)
        except IntegrityError:
            self._reject(400, SLOT_CONFLICT_MESSAGE)

        logger.info(f"✅ Appointment {appointment_id} updated")
        return appointment

    # ========================================================================
    # STATUS WORKFLOW
    # ========================================================================

    def update_status(self, appointment_id: int, data: AppointmentStatusUpdate) -> Appointment:
        """Move an appointment along the status workflow"""
        try:
            target = parse_enum(AppointmentStatus, data.status)
        except ValueError as e:
            self._reject(400, str(e))

        logger.info(f"🔄 Updating status for appointment ID: {appointment_id} to {target.value}")

        appointment = self.repo.get_appointment_for_update(self.db, appointment_id)
        if not appointment:
            self._reject(404, "Appointment not found")

        current = AppointmentStatus(appointment.status)
        if not can_transition(current, target):
            self._reject(400, f"Cannot transition from {current.value} to {target.value}")

        updates = {"status": target}
        if data.doctorNotes is not None:
            updates["doctor_notes"] = sanitize_text(data.doctorNotes)

        appointment = self.repo.update_appointment(self.db, appointment, **updates)
        logger.info(f"✅ Appointment {appointment_id} is now {target.value}")
        return appointment

    def cancel_appointment(self, appointment_id: int) -> Appointment:
        """Cancel an open appointment"""
        logger.info(f"🗑️ Cancelling appointment with ID: {appointment_id}")
        return self.update_status(
            appointment_id, AppointmentStatusUpdate(status=AppointmentStatus.CANCELLED)
        )
