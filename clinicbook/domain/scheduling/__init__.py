"""
Scheduling Domain

Appointment booking for doctors at exact start instants.

Structure:
- schemas.py      # Request/response models
- repository.py   # Appointment queries and writes
- transitions.py  # Status workflow table
- service.py      # Booking, rescheduling and status changes
- router.py       # /api/v1/appointments endpoints

Status workflow:
    PENDING → CONFIRMED → COMPLETED
    PENDING | CONFIRMED → CANCELLED
COMPLETED and CANCELLED appointments are never modified again.
"""

from .router import router
from .service import AppointmentService

__all__ = ["router", "AppointmentService"]
