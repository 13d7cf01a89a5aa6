from sqlalchemy.orm import Session
from typing import List, Optional

from ..models.admin import Admin
from ..models.doctor import Doctor
from ..models.patient import Patient

class AccountRepository:
    """Lookups over the three account tables."""

    def __init__(self, db: Session):
        self.db = db

    def admin_by_username(self, username: str) -> Optional[Admin]:
        return self.db.query(Admin).filter(Admin.username == username).first()

    def doctor_by_email(self, email: str) -> Optional[Doctor]:
        return self.db.query(Doctor).filter(Doctor.email == email).first()

    def patient_by_email(self, email: str) -> Optional[Patient]:
        return self.db.query(Patient).filter(Patient.email == email).first()

    def doctor_by_id(self, doctor_id: int, for_update: bool = False) -> Optional[Doctor]:
        query = self.db.query(Doctor).filter(Doctor.id == doctor_id)
        if for_update:
            # Row lock on databases that support it; ignored by SQLite
            query = query.with_for_update()
        return query.first()

    def patient_by_id(self, patient_id: int) -> Optional[Patient]:
        return self.db.query(Patient).filter(Patient.id == patient_id).first()

    def doctors(
        self,
        name: Optional[str] = None,
        specialty: Optional[str] = None,
    ) -> List[Doctor]:
        query = self.db.query(Doctor)
        if name:
            query = query.filter(Doctor.name.ilike(f"%{name}%"))
        if specialty:
            query = query.filter(Doctor.specialty.ilike(specialty))
        return query.order_by(Doctor.id).all()
