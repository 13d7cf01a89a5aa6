from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from typing import List, Optional
import logging

from ..core.exceptions import StorageError
from ..core.security import AuthorizationError
from ..models.appointment import Appointment
from ..models.prescription import Prescription
from ..repositories.appointment_repository import AppointmentRepository
from ..repositories.prescription_repository import PrescriptionRepository
from ..schemas.prescription import PrescriptionCreate

logger = logging.getLogger(__name__)

class PrescriptionService:
    """Prescriptions written by a doctor for one of their appointments."""

    def __init__(self, db: Session):
        self.db = db
        self.appointments = AppointmentRepository(db)
        self.prescriptions = PrescriptionRepository(db)

    def save_prescription(self, data: PrescriptionCreate, doctor_id: int) -> Prescription:
        self._own_appointment(data.appointment_id, doctor_id, required=True)

        prescription = self.prescriptions.create(
            appointment_id=data.appointment_id,
            patient_name=data.patient_name.strip(),
            medication=data.medication.strip(),
            dosage=data.dosage.strip(),
            doctor_notes=data.doctor_notes,
        )
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("save_prescription failed")
            raise StorageError("save_prescription") from exc

        self.db.refresh(prescription)
        logger.info(f"Saved prescription {prescription.id} for appointment {data.appointment_id}")
        return prescription

    def prescriptions_for(self, appointment_id: int, doctor_id: int) -> List[Prescription]:
        """Prescriptions of an appointment; empty when the appointment has none or does not exist."""
        if self._own_appointment(appointment_id, doctor_id, required=False) is None:
            return []
        return self.prescriptions.find_by_appointment(appointment_id)

    def _own_appointment(self, appointment_id: int, doctor_id: int, required: bool) -> Optional[Appointment]:
        appointment = self.appointments.find_by_id(appointment_id)
        if appointment is None:
            if required:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Appointment not found."
                )
            return None

        if appointment.doctor_id != doctor_id:
            raise AuthorizationError("You are not authorized to access prescriptions of this appointment.")
        return appointment
