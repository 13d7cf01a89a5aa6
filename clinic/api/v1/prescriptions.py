from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import require_doctor
from ...schemas.prescription import PrescriptionCreate, PrescriptionList, PrescriptionResponse
from ...services.auth_service import Principal
from ...services.prescription_service import PrescriptionService

router = APIRouter(prefix="/prescriptions", tags=["Prescriptions"])

@router.post("", response_model=PrescriptionResponse, status_code=status.HTTP_201_CREATED)
def save_prescription(
    prescription_data: PrescriptionCreate,
    principal: Principal = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    """Save a prescription for one of the calling doctor's appointments."""
    prescription = PrescriptionService(db).save_prescription(prescription_data, principal.account_id)
    return PrescriptionResponse.model_validate(prescription)

@router.get("/{appointment_id}", response_model=PrescriptionList)
def get_prescriptions(
    appointment_id: int,
    principal: Principal = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    """Prescriptions written for an appointment."""
    prescriptions = PrescriptionService(db).prescriptions_for(appointment_id, principal.account_id)
    if not prescriptions:
        return PrescriptionList(prescriptions=[], message="No prescription exists for that appointment")
    return PrescriptionList(prescriptions=[PrescriptionResponse.model_validate(p) for p in prescriptions])
