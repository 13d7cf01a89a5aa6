from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from typing import List, Optional
import logging

from ..core.exceptions import StorageError
from ..core.security import get_password_hash
from ..models.doctor import Doctor
from ..repositories.account_repository import AccountRepository
from ..repositories.appointment_repository import AppointmentRepository
from ..schemas.doctor import DoctorCreate, DoctorUpdate
from .availability_service import slot_period
from .booking_service import doctor_lock

logger = logging.getLogger(__name__)

class DoctorService:
    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountRepository(db)
        self.appointments = AppointmentRepository(db)

    def list_doctors(
        self,
        name: Optional[str] = None,
        specialty: Optional[str] = None,
        period: Optional[str] = None,
    ) -> List[Doctor]:
        """List doctors, narrowed by any filters that are given.

        ``period`` is ``"AM"`` or ``"PM"`` and keeps doctors with at least
        one declared slot in that half of the day.
        """
        doctors = self.accounts.doctors(
            name=name.strip() if name else None,
            specialty=specialty.strip() if specialty else None,
        )
        if period:
            wanted = period.strip().upper()
            doctors = [
                doctor for doctor in doctors
                if any(slot_period(slot) == wanted for slot in doctor.available_times or [])
            ]
        return doctors

    def add_doctor(self, doctor_data: DoctorCreate) -> Doctor:
        """Create a doctor account."""
        if self.accounts.doctor_by_email(doctor_data.email):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Doctor already exists"
            )

        doctor = Doctor(
            name=doctor_data.name,
            specialty=doctor_data.specialty,
            email=doctor_data.email,
            phone=doctor_data.phone,
            password_hash=get_password_hash(doctor_data.password),
            available_times=list(doctor_data.available_times),
        )
        self.db.add(doctor)
        self._commit("add_doctor")
        self.db.refresh(doctor)

        logger.info(f"Added doctor {doctor.id}")
        return doctor

    def update_doctor(self, doctor_id: int, doctor_data: DoctorUpdate) -> Doctor:
        """Replace a doctor's profile and declared slots."""
        doctor = self.accounts.doctor_by_id(doctor_id)
        if doctor is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Doctor not found"
            )

        other = self.accounts.doctor_by_email(doctor_data.email)
        if other is not None and other.id != doctor.id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already in use"
            )

        doctor.name = doctor_data.name
        doctor.specialty = doctor_data.specialty
        doctor.email = doctor_data.email
        doctor.phone = doctor_data.phone
        doctor.available_times = list(doctor_data.available_times)
        if doctor_data.password:
            doctor.password_hash = get_password_hash(doctor_data.password)

        self._commit("update_doctor")
        self.db.refresh(doctor)
        return doctor

    def delete_doctor(self, doctor_id: int) -> None:
        """Delete a doctor together with all of their appointments."""
        doctor = self.accounts.doctor_by_id(doctor_id)
        if doctor is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Doctor not found"
            )

        with doctor_lock(doctor_id):
            removed = self.appointments.delete_all_by_doctor(doctor_id)
            self.db.delete(doctor)
            self._commit("delete_doctor")

        logger.info(f"Deleted doctor {doctor_id} and {removed} appointment(s)")

    def _commit(self, operation: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(f"{operation} failed")
            raise StorageError(operation) from exc
