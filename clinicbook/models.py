"""
Directory and Appointment Models for Clinic Scheduling
"""

import enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.sql import func

from .database import Base


class AppointmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# Statuses that still hold a doctor's slot
ACTIVE_APPOINTMENT_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)
TERMINAL_APPOINTMENT_STATUSES = (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED)


class Patient(Base):
    """Directory entry for a patient (profile data lives elsewhere)"""

    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Doctor(Base):
    """Directory entry for a doctor with the bookable flag"""

    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    specialization = Column(String(100), nullable=True)
    is_available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Appointment(Base):
    """Appointment booked with a doctor at an exact start instant"""

    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)

    # Scheduling
    scheduled_at = Column(DateTime, nullable=False, index=True)
    duration_minutes = Column(Integer, default=30, nullable=False)

    # Status workflow: PENDING → CONFIRMED → COMPLETED, or → CANCELLED from either open state
    status = Column(
        SQLEnum(AppointmentStatus, native_enum=False, length=20),
        default=AppointmentStatus.PENDING,
        nullable=False,
        index=True,
    )

    reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    doctor_notes = Column(Text, nullable=True)

    # Id of the invoice raised for this appointment; the invoice side owns the link
    invoice_id = Column(Integer, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        # One open appointment per doctor per start instant
        Index(
            "uq_appointments_doctor_open_slot",
            "doctor_id",
            "scheduled_at",
            unique=True,
            sqlite_where=text("status IN ('PENDING', 'CONFIRMED')"),
            postgresql_where=text("status IN ('PENDING', 'CONFIRMED')"),
        ),
    )

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, doctor_id={self.doctor_id}, "
            f"scheduled_at='{self.scheduled_at}', status='{self.status}')>"
        )
