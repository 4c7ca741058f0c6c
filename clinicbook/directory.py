"""
Directory lookups for patients and doctors.

Scheduling and billing only need to know whether a patient or doctor exists
and whether a doctor currently accepts bookings. Profile management belongs
to the hosting application, which can swap in its own implementation of
``Directory`` through the ``get_directory`` dependency.
"""

from typing import Optional, Protocol

from fastapi import Depends
from sqlalchemy.orm import Session

from .database import get_db
from .models import Doctor, Patient


class Directory(Protocol):
    def patient_exists(self, patient_id: int) -> bool: ...

    def doctor_exists(self, doctor_id: int) -> bool: ...

    def doctor_available(self, doctor_id: int) -> bool: ...


class SqlDirectory:
    """Directory backed by the local patients/doctors tables"""

    def __init__(self, db: Session):
        self.db = db

    def _get_doctor(self, doctor_id: int) -> Optional[Doctor]:
        return self.db.query(Doctor).filter(Doctor.id == doctor_id).first()

    def patient_exists(self, patient_id: int) -> bool:
        return self.db.query(Patient.id).filter(Patient.id == patient_id).first() is not None

    def doctor_exists(self, doctor_id: int) -> bool:
        return self._get_doctor(doctor_id) is not None

    def doctor_available(self, doctor_id: int) -> bool:
        doctor = self._get_doctor(doctor_id)
        return bool(doctor and doctor.is_available)


def get_directory(db: Session = Depends(get_db)) -> Directory:
    """Dependency injection for the Directory"""
    return SqlDirectory(db)
