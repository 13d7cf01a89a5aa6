from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...api.deps import get_auth_service, require_patient
from ...schemas.appointment import AppointmentDetail
from ...schemas.auth import PatientRegister
from ...schemas.patient import PatientResponse
from ...services.auth_service import AuthService, Principal
from ...services.patient_service import PatientService

router = APIRouter(prefix="/patients", tags=["Patients"])

@router.post("", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
async def register_patient(
    patient_data: PatientRegister,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Register a new patient."""
    patient = auth_service.register_patient(patient_data)
    return PatientResponse.model_validate(patient)

@router.get("/me", response_model=PatientResponse)
async def get_patient_details(
    principal: Principal = Depends(require_patient)
):
    """Details of the patient owning the token."""
    return PatientResponse.model_validate(principal.account)

@router.get("/me/appointments", response_model=List[AppointmentDetail])
async def get_patient_appointments(
    condition: Optional[str] = None,
    doctor_name: Optional[str] = None,
    principal: Principal = Depends(require_patient),
    db: Session = Depends(get_db)
):
    """The caller's appointments, filtered by ``past``/``future`` and doctor name."""
    appointments = PatientService(db).appointments_for(
        principal.account_id,
        condition=condition,
        doctor_name=doctor_name,
    )
    return [AppointmentDetail.from_appointment(a) for a in appointments]
