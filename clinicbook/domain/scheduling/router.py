"""Appointment router - FastAPI endpoints for scheduling operations"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...database import get_db
from ...directory import Directory, get_directory
from ...models import AppointmentStatus
from .schemas import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatusUpdate,
    AppointmentUpdate,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/appointments", tags=["Appointments"])


def get_appointment_service(
    db: Session = Depends(get_db),
    directory: Directory = Depends(get_directory),
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db, directory)


# ============================================================================
# QUERIES
# ============================================================================


@router.get("", response_model=list[AppointmentResponse])
async def get_appointments(service: AppointmentService = Depends(get_appointment_service)):
    """Get all appointments"""
    return [AppointmentResponse.from_model(a) for a in service.get_appointments()]


@router.get("/patient/{patient_id}", response_model=list[AppointmentResponse])
async def get_appointments_by_patient(
    patient_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    return [AppointmentResponse.from_model(a) for a in service.get_appointments_by_patient(patient_id)]


@router.get("/doctor/{doctor_id}", response_model=list[AppointmentResponse])
async def get_appointments_by_doctor(
    doctor_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    return [AppointmentResponse.from_model(a) for a in service.get_appointments_by_doctor(doctor_id)]


@router.get("/status/{appointment_status}", response_model=list[AppointmentResponse])
async def get_appointments_by_status(
    appointment_status: AppointmentStatus,
    service: AppointmentService = Depends(get_appointment_service),
):
    appointments = service.get_appointments_by_status(appointment_status)
    return [AppointmentResponse.from_model(a) for a in appointments]


@router.get("/date/{day}", response_model=list[AppointmentResponse])
async def get_appointments_by_date(
    day: date,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Get all appointments starting on a given day (YYYY-MM-DD)"""
    return [AppointmentResponse.from_model(a) for a in service.get_appointments_by_date(day)]


@router.get("/doctor/{doctor_id}/date/{day}", response_model=list[AppointmentResponse])
async def get_doctor_appointments_by_date(
    doctor_id: int,
    day: date,
    service: AppointmentService = Depends(get_appointment_service),
):
    appointments = service.get_doctor_appointments_by_date(doctor_id, day)
    return [AppointmentResponse.from_model(a) for a in appointments]


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.from_model(service.get_appointment(appointment_id))


# ============================================================================
# MUTATIONS
# ============================================================================


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    data: AppointmentCreate,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book a new appointment"""
    return AppointmentResponse.from_model(service.create_appointment(data))


@router.put("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Reschedule or edit an appointment"""
    return AppointmentResponse.from_model(service.update_appointment(appointment_id, data))


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: int,
    data: AppointmentStatusUpdate,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Move an appointment through its status workflow"""
    return AppointmentResponse.from_model(service.update_status(appointment_id, data))


@router.delete("/{appointment_id}")
async def cancel_appointment(
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Cancel an appointment (the record is kept)"""
    service.cancel_appointment(appointment_id)
    return {"message": "Appointment cancelled successfully"}


__all__ = [
    "router",
    "get_appointment_service",
]
