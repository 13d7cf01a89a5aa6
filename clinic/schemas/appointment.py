from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional

from ..models.appointment import AppointmentStatus

def to_clinic_time(value: Optional[datetime]) -> Optional[datetime]:
    """Convert to naive clinic-local time truncated to the minute."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value.replace(second=0, microsecond=0)

class AppointmentCreate(BaseModel):
    doctor_id: int = Field(..., gt=0)
    appointment_time: Optional[datetime] = None

    @field_validator("appointment_time")
    @classmethod
    def clinic_time(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_clinic_time(value)

class AppointmentUpdate(AppointmentCreate):
    pass

class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus

class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    doctor_id: int
    patient_id: int
    appointment_time: datetime
    status: AppointmentStatus

class AppointmentDetail(AppointmentResponse):
    doctor_name: Optional[str] = None
    patient_name: Optional[str] = None
    patient_email: Optional[str] = None
    patient_phone: Optional[str] = None
    patient_address: Optional[str] = None

    @classmethod
    def from_appointment(cls, appointment) -> "AppointmentDetail":
        doctor = appointment.doctor
        patient = appointment.patient
        return cls(
            id=appointment.id,
            doctor_id=appointment.doctor_id,
            patient_id=appointment.patient_id,
            appointment_time=appointment.appointment_time,
            status=appointment.status,
            doctor_name=doctor.name if doctor else None,
            patient_name=patient.name if patient else None,
            patient_email=patient.email if patient else None,
            patient_phone=patient.phone if patient else None,
            patient_address=patient.address if patient else None,
        )

class AvailabilityResponse(BaseModel):
    doctor_id: int
    date: date
    availability: List[str]

class MessageResponse(BaseModel):
    message: str
