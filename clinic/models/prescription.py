from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.sql import func

from ..core.database import Base

class Prescription(Base):
    __tablename__ = "prescriptions"

    id = Column(Integer, primary_key=True, index=True)

    # Removed together with its appointment
    appointment_id = Column(Integer, ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_name = Column(String(100), nullable=False)

    # Prescription details
    medication = Column(String(100), nullable=False)
    dosage = Column(String(20), nullable=False)
    doctor_notes = Column(String(200), nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return f"<Prescription(id={self.id}, appointment_id={self.appointment_id}, medication='{self.medication}')>"
