from sqlalchemy import Column, Integer, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class AppointmentStatus(enum.IntEnum):
    SCHEDULED = 0  # upcoming visit
    COMPLETED = 1  # visit took place

class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        UniqueConstraint("doctor_id", "appointment_time", name="uq_appointment_doctor_time"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)

    # Appointment details, naive clinic-local time at minute precision
    appointment_time = Column(DateTime, nullable=False, index=True)
    status = Column(Integer, nullable=False, default=AppointmentStatus.SCHEDULED.value)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    doctor = relationship("Doctor", back_populates="appointments")
    patient = relationship("Patient", back_populates="appointments")

    def __repr__(self):
        return f"<Appointment(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, time='{self.appointment_time}')>"
