from datetime import date
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...api.deps import require_admin, require_any_role
from ...schemas.appointment import AvailabilityResponse, MessageResponse
from ...schemas.doctor import DoctorCreate, DoctorUpdate, DoctorResponse
from ...services.auth_service import Principal
from ...services.availability_service import AvailabilityService
from ...services.doctor_service import DoctorService

router = APIRouter(prefix="/doctors", tags=["Doctors"])

@router.get("", response_model=List[DoctorResponse])
async def list_doctors(
    name: Optional[str] = None,
    specialty: Optional[str] = None,
    period: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List doctors by optional name, specialty and AM/PM period."""
    doctors = DoctorService(db).list_doctors(name=name, specialty=specialty, period=period)
    return [DoctorResponse.model_validate(d) for d in doctors]

@router.get("/{doctor_id}/availability", response_model=AvailabilityResponse)
async def get_doctor_availability(
    doctor_id: int,
    date: date,
    _: Principal = Depends(require_any_role),
    db: Session = Depends(get_db)
):
    """Free slots of a doctor on a date."""
    slots = AvailabilityService(db).availability(doctor_id, date)
    return AvailabilityResponse(doctor_id=doctor_id, date=date, availability=slots)

@router.post("", response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
async def add_doctor(
    doctor_data: DoctorCreate,
    _: Principal = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Add a doctor (admin only)."""
    doctor = DoctorService(db).add_doctor(doctor_data)
    return DoctorResponse.model_validate(doctor)

@router.put("/{doctor_id}", response_model=DoctorResponse)
async def update_doctor(
    doctor_id: int,
    doctor_data: DoctorUpdate,
    _: Principal = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Update a doctor (admin only)."""
    doctor = DoctorService(db).update_doctor(doctor_id, doctor_data)
    return DoctorResponse.model_validate(doctor)

@router.delete("/{doctor_id}", response_model=MessageResponse)
async def delete_doctor(
    doctor_id: int,
    _: Principal = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a doctor and their appointments (admin only)."""
    DoctorService(db).delete_doctor(doctor_id)
    return MessageResponse(message="Doctor deleted successfully.")
