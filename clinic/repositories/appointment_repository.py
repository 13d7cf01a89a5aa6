from datetime import datetime
from sqlalchemy.orm import Session
from typing import List, Optional

from ..models.appointment import Appointment
from ..models.doctor import Doctor
from ..models.patient import Patient

class AppointmentRepository:
    """Appointment store.

    Write methods only stage changes on the session; callers own the commit
    so that a check and its write can share one transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, doctor_id: int, patient_id: int, appointment_time: datetime, status: int) -> Appointment:
        appointment = Appointment(
            doctor_id=doctor_id,
            patient_id=patient_id,
            appointment_time=appointment_time,
            status=status,
        )
        self.db.add(appointment)
        return appointment

    def update(self, appointment: Appointment, **changes) -> Appointment:
        for field, value in changes.items():
            setattr(appointment, field, value)
        self.db.add(appointment)
        return appointment

    def delete(self, appointment: Appointment) -> None:
        self.db.delete(appointment)

    def find_by_id(self, appointment_id: int) -> Optional[Appointment]:
        return self.db.query(Appointment).filter(Appointment.id == appointment_id).first()

    def find_by_doctor_and_time_range(
        self,
        doctor_id: int,
        start: datetime,
        end: datetime,
        inclusive_start: bool = True,
        patient_name: Optional[str] = None,
    ) -> List[Appointment]:
        """Appointments of a doctor whose instant lies in [start, end).

        With ``inclusive_start=False`` the range is the open interval (start, end).
        """
        lower = Appointment.appointment_time >= start if inclusive_start else Appointment.appointment_time > start
        query = self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            lower,
            Appointment.appointment_time < end,
        )
        if patient_name:
            query = query.join(Patient, Appointment.patient_id == Patient.id).filter(
                Patient.name.ilike(f"%{patient_name}%")
            )
        return query.order_by(Appointment.appointment_time).all()

    def find_by_patient(
        self,
        patient_id: int,
        status: Optional[int] = None,
        doctor_name: Optional[str] = None,
    ) -> List[Appointment]:
        query = self.db.query(Appointment).filter(Appointment.patient_id == patient_id)
        if status is not None:
            query = query.filter(Appointment.status == status)
        if doctor_name:
            query = query.join(Doctor, Appointment.doctor_id == Doctor.id).filter(
                Doctor.name.ilike(f"%{doctor_name}%")
            )
        return query.order_by(Appointment.appointment_time).all()

    def delete_all_by_doctor(self, doctor_id: int) -> int:
        return (
            self.db.query(Appointment)
            .filter(Appointment.doctor_id == doctor_id)
            .delete(synchronize_session=False)
        )
