from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from typing import List, Optional

from ..models.appointment import Appointment, AppointmentStatus
from ..repositories.appointment_repository import AppointmentRepository

CONDITION_STATUS = {
    "past": AppointmentStatus.COMPLETED,
    "future": AppointmentStatus.SCHEDULED,
}

class PatientService:
    def __init__(self, db: Session):
        self.appointments = AppointmentRepository(db)

    def appointments_for(
        self,
        patient_id: int,
        condition: Optional[str] = None,
        doctor_name: Optional[str] = None,
    ) -> List[Appointment]:
        """A patient's appointments, optionally by condition and doctor name."""
        status_filter = None
        if condition:
            key = condition.strip().lower()
            if key not in CONDITION_STATUS:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Invalid condition. Use 'past' or 'future'."
                )
            status_filter = CONDITION_STATUS[key].value

        return self.appointments.find_by_patient(
            patient_id,
            status=status_filter,
            doctor_name=doctor_name.strip() if doctor_name else None,
        )
