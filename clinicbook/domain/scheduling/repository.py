"""Appointment repository - Database operations for scheduling"""

from datetime import date, datetime, time
from typing import Optional

from sqlalchemy.orm import Session

from ...models import (
    TERMINAL_APPOINTMENT_STATUSES,
    Appointment,
    AppointmentStatus,
    Doctor,
)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """First and last second of a calendar day"""
    return datetime.combine(day, time.min), datetime.combine(day, time(23, 59, 59))


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_appointments(db: Session) -> list[Appointment]:
        """Get all appointments"""
        return db.query(Appointment).order_by(Appointment.id).all()

    @staticmethod
    def get_appointment_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        """Get a specific appointment by ID"""
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def get_appointment_for_update(db: Session, appointment_id: int) -> Optional[Appointment]:
        """Get an appointment and lock its row until commit"""
        return (
            db.query(Appointment)
            .filter(Appointment.id == appointment_id)
            .with_for_update()
            .first()
        )

    @staticmethod
    def get_appointments_by_patient(db: Session, patient_id: int) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.patient_id == patient_id)
            .order_by(Appointment.id)
            .all()
        )

    @staticmethod
    def get_appointments_by_doctor(db: Session, doctor_id: int) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.doctor_id == doctor_id)
            .order_by(Appointment.id)
            .all()
        )

    @staticmethod
    def get_appointments_by_status(db: Session, status: AppointmentStatus) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.status == status)
            .order_by(Appointment.id)
            .all()
        )

    @staticmethod
    def get_appointments_by_date(
        db: Session, day: date, doctor_id: Optional[int] = None
    ) -> list[Appointment]:
        """Get appointments starting on a given day, optionally for one doctor"""
        start, end = day_bounds(day)
        query = db.query(Appointment).filter(Appointment.scheduled_at.between(start, end))

        if doctor_id is not None:
            query = query.filter(Appointment.doctor_id == doctor_id)

        return query.order_by(Appointment.id).all()

    @staticmethod
    def lock_doctor(db: Session, doctor_id: int) -> Optional[Doctor]:
        """
        Lock the doctor row for the rest of the transaction.

        Serializes booking attempts for the same doctor on databases that
        support row locks; SQLite ignores FOR UPDATE and relies on the
        partial unique index instead.
        """
        return db.query(Doctor).filter(Doctor.id == doctor_id).with_for_update().first()

    @staticmethod
    def has_conflict(db: Session, doctor_id: int, scheduled_at: datetime) -> bool:
        """Whether the doctor already holds an open appointment at this exact instant"""
        return (
            db.query(Appointment.id)
            .filter(
                Appointment.doctor_id == doctor_id,
                Appointment.scheduled_at == scheduled_at,
                Appointment.status.notin_(TERMINAL_APPOINTMENT_STATUSES),
            )
            .first()
            is not None
        )

    @staticmethod
    def create_appointment(db: Session, **appointment_data) -> Appointment:
        """Create a new appointment"""
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def update_appointment(db: Session, appointment: Appointment, **updates) -> Appointment:
        """Update an appointment with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(appointment, key):
                setattr(appointment, key, value)

        db.commit()
        db.refresh(appointment)
        return appointment
