"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import AppointmentStatus
from ...shared.validators import to_local_naive


def _validate_duration(v: Optional[int]) -> Optional[int]:
    if v is not None and v < 1:
        raise ValueError("durationMinutes must be at least 1")
    return v


class AppointmentCreate(BaseModel):
    """Schema for booking a new appointment"""

    patientId: int
    doctorId: int
    startTime: datetime
    durationMinutes: Optional[int] = None  # Falls back to DEFAULT_APPOINTMENT_DURATION
    reason: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("startTime")
    @classmethod
    def normalize_start_time(cls, v: datetime) -> datetime:
        return to_local_naive(v)

    @field_validator("durationMinutes")
    @classmethod
    def validate_duration(cls, v: Optional[int]) -> Optional[int]:
        return _validate_duration(v)


class AppointmentUpdate(BaseModel):
    """Schema for rescheduling or editing an open appointment"""

    startTime: Optional[datetime] = None
    durationMinutes: Optional[int] = None
    reason: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("startTime")
    @classmethod
    def normalize_start_time(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_local_naive(v)

    @field_validator("durationMinutes")
    @classmethod
    def validate_duration(cls, v: Optional[int]) -> Optional[int]:
        return _validate_duration(v)


class AppointmentStatusUpdate(BaseModel):
    """Schema for moving an appointment through its status workflow"""

    status: AppointmentStatus
    doctorNotes: Optional[str] = None


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: int
    patientId: int
    doctorId: int
    startTime: datetime
    durationMinutes: int
    status: AppointmentStatus
    reason: Optional[str] = None
    notes: Optional[str] = None
    doctorNotes: Optional[str] = None
    invoiceId: Optional[int] = None
    createdAt: Optional[datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_model(cls, appointment) -> "AppointmentResponse":
        return cls(
            id=appointment.id,
            patientId=appointment.patient_id,
            doctorId=appointment.doctor_id,
            startTime=appointment.scheduled_at,
            durationMinutes=appointment.duration_minutes,
            status=appointment.status,
            reason=appointment.reason,
            notes=appointment.notes,
            doctorNotes=appointment.doctor_notes,
            invoiceId=appointment.invoice_id,
            createdAt=appointment.created_at,
        )
