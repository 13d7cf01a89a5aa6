from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...core.security import AuthenticationError, AuthorizationError
from ...api.deps import require_doctor, require_patient
from ...schemas.appointment import (
    AppointmentCreate, AppointmentUpdate, AppointmentResponse,
    AppointmentDetail, AppointmentStatusUpdate, MessageResponse
)
from ...services.auth_service import Principal
from ...services.booking_service import (
    ActionOutcome, AppointmentDraft, BookingOutcome, BookingResult,
    BookingService, BOOKING_MESSAGES
)

router = APIRouter(prefix="/appointments", tags=["Appointments"])

BOOKING_STATUS_CODES = {
    BookingOutcome.MISSING_TIME: status.HTTP_400_BAD_REQUEST,
    BookingOutcome.PAST_TIME: status.HTTP_400_BAD_REQUEST,
    BookingOutcome.DOCTOR_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    BookingOutcome.PATIENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    BookingOutcome.SLOT_TAKEN: status.HTTP_409_CONFLICT,
    BookingOutcome.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    BookingOutcome.FORBIDDEN: status.HTTP_403_FORBIDDEN,
}

def _raise_for_booking(result: BookingResult) -> None:
    if result.ok:
        return
    if result.outcome == BookingOutcome.FORBIDDEN:
        raise AuthorizationError(BOOKING_MESSAGES[result.outcome])
    raise HTTPException(
        status_code=BOOKING_STATUS_CODES[result.outcome],
        detail=BOOKING_MESSAGES[result.outcome]
    )

def _raise_for_action(outcome: ActionOutcome, action: str) -> None:
    if outcome == ActionOutcome.UNAUTHORIZED:
        raise AuthenticationError()
    if outcome == ActionOutcome.NOT_FOUND:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Appointment not found."
        )
    if outcome == ActionOutcome.FORBIDDEN:
        raise AuthorizationError(f"You are not authorized to {action} this appointment.")

@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
    appointment_data: AppointmentCreate,
    principal: Principal = Depends(require_patient),
    db: Session = Depends(get_db)
):
    """Book an appointment for the patient owning the token."""
    draft = AppointmentDraft(
        doctor_id=appointment_data.doctor_id,
        patient_id=principal.account_id,
        appointment_time=appointment_data.appointment_time,
    )
    result = BookingService(db).book_appointment(draft)
    _raise_for_booking(result)
    return AppointmentResponse.model_validate(result.appointment)

@router.put("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    appointment_data: AppointmentUpdate,
    principal: Principal = Depends(require_patient),
    db: Session = Depends(get_db)
):
    """Reschedule one of the caller's appointments."""
    draft = AppointmentDraft(
        doctor_id=appointment_data.doctor_id,
        patient_id=principal.account_id,
        appointment_time=appointment_data.appointment_time,
    )
    result = BookingService(db).update_appointment(appointment_id, draft, principal.account_id)
    _raise_for_booking(result)
    return AppointmentResponse.model_validate(result.appointment)

@router.delete("/{appointment_id}", response_model=MessageResponse)
def cancel_appointment(
    appointment_id: int,
    principal: Principal = Depends(require_patient),
    db: Session = Depends(get_db)
):
    """Cancel one of the caller's appointments."""
    outcome = BookingService(db).cancel_appointment(appointment_id, principal.subject)
    _raise_for_action(outcome, "cancel")
    return MessageResponse(message="Appointment canceled successfully.")

@router.get("", response_model=List[AppointmentDetail])
def get_doctor_appointments(
    date: date,
    patient_name: Optional[str] = None,
    principal: Principal = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    """The calling doctor's appointments on a date."""
    appointments = BookingService(db).doctor_appointments(
        principal.account_id, date, patient_name=patient_name
    )
    return [AppointmentDetail.from_appointment(a) for a in appointments]

@router.patch("/{appointment_id}/status", response_model=MessageResponse)
def change_appointment_status(
    appointment_id: int,
    status_data: AppointmentStatusUpdate,
    principal: Principal = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    """Mark one of the calling doctor's appointments scheduled or completed."""
    outcome = BookingService(db).change_status(appointment_id, status_data.status, principal.account_id)
    _raise_for_action(outcome, "update")
    return MessageResponse(message="Appointment status updated.")
