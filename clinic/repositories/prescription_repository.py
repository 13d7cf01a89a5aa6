from sqlalchemy.orm import Session
from typing import List

from ..models.prescription import Prescription

class PrescriptionRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields) -> Prescription:
        prescription = Prescription(**fields)
        self.db.add(prescription)
        return prescription

    def find_by_appointment(self, appointment_id: int) -> List[Prescription]:
        return (
            self.db.query(Prescription)
            .filter(Prescription.appointment_id == appointment_id)
            .order_by(Prescription.id)
            .all()
        )
