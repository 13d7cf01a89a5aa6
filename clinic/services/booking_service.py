from datetime import date, datetime, time, timedelta
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional
import logging
import threading
import weakref

from ..core.config import settings
from ..core.exceptions import StorageError
from ..models.appointment import Appointment, AppointmentStatus
from ..repositories.account_repository import AccountRepository
from ..repositories.appointment_repository import AppointmentRepository

logger = logging.getLogger(__name__)

class BookingOutcome(str, Enum):
    VALID = "valid"
    MISSING_TIME = "missing_time"
    PAST_TIME = "past_time"
    DOCTOR_NOT_FOUND = "doctor_not_found"
    PATIENT_NOT_FOUND = "patient_not_found"
    SLOT_TAKEN = "slot_taken"
    # Only produced when rescheduling an existing appointment
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"

BOOKING_MESSAGES = {
    BookingOutcome.VALID: "Appointment is valid.",
    BookingOutcome.MISSING_TIME: "Appointment time is required.",
    BookingOutcome.PAST_TIME: "Appointment time cannot be in the past.",
    BookingOutcome.DOCTOR_NOT_FOUND: "Invalid doctor ID.",
    BookingOutcome.PATIENT_NOT_FOUND: "Invalid patient ID.",
    BookingOutcome.SLOT_TAKEN: "Appointment already booked for this time.",
    BookingOutcome.NOT_FOUND: "Appointment not found.",
    BookingOutcome.FORBIDDEN: "You are not authorized to change this appointment.",
}

class ActionOutcome(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    UNAUTHORIZED = "unauthorized"

@dataclass
class AppointmentDraft:
    doctor_id: Optional[int]
    patient_id: Optional[int]
    appointment_time: Optional[datetime]

@dataclass
class BookingResult:
    outcome: BookingOutcome
    appointment: Optional[Appointment] = None

    @property
    def ok(self) -> bool:
        return self.outcome == BookingOutcome.VALID

# Entries disappear once no caller holds the lock
_doctor_locks: "weakref.WeakValueDictionary[Optional[int], threading.Lock]" = weakref.WeakValueDictionary()
_doctor_locks_guard = threading.Lock()

def doctor_lock(doctor_id: Optional[int]) -> threading.Lock:
    """Lock serializing conflict checks and writes for one doctor in this process."""
    with _doctor_locks_guard:
        lock = _doctor_locks.get(doctor_id)
        if lock is None:
            lock = threading.Lock()
            _doctor_locks[doctor_id] = lock
        return lock

class BookingService:
    def __init__(self, db: Session, clock: Optional[Callable[[], datetime]] = None):
        self.db = db
        self.clock = clock or datetime.now
        self.accounts = AccountRepository(db)
        self.appointments = AppointmentRepository(db)
        self.duration = timedelta(minutes=settings.APPOINTMENT_DURATION_MINUTES)

    def validate(
        self,
        draft: AppointmentDraft,
        exclude_id: Optional[int] = None,
        now: Optional[datetime] = None,
        lock_doctor: bool = False,
    ) -> BookingOutcome:
        """Decide whether ``draft`` may be stored; the first failing check wins.

        ``exclude_id`` names the appointment being rescheduled so it does not
        conflict with itself.
        """
        start = draft.appointment_time
        if start is None:
            return BookingOutcome.MISSING_TIME

        if start < (now or self.clock()):
            return BookingOutcome.PAST_TIME

        if draft.doctor_id is None or self.accounts.doctor_by_id(draft.doctor_id, for_update=lock_doctor) is None:
            return BookingOutcome.DOCTOR_NOT_FOUND

        if draft.patient_id is None or self.accounts.patient_by_id(draft.patient_id) is None:
            return BookingOutcome.PATIENT_NOT_FOUND

        # Every appointment lasts one duration, so windows overlap exactly
        # when the two start instants are less than one duration apart.
        overlapping = self.appointments.find_by_doctor_and_time_range(
            draft.doctor_id,
            start - self.duration,
            start + self.duration,
            inclusive_start=False,
        )
        if any(appointment.id != exclude_id for appointment in overlapping):
            return BookingOutcome.SLOT_TAKEN

        return BookingOutcome.VALID

    def book_appointment(self, draft: AppointmentDraft) -> BookingResult:
        """Validate and store a new appointment as one atomic step."""
        with doctor_lock(draft.doctor_id):
            outcome = self.validate(draft, lock_doctor=True)
            if outcome != BookingOutcome.VALID:
                self.db.rollback()
                return BookingResult(outcome)

            appointment = self.appointments.create(
                doctor_id=draft.doctor_id,
                patient_id=draft.patient_id,
                appointment_time=draft.appointment_time,
                status=AppointmentStatus.SCHEDULED.value,
            )
            result = self._commit_booking(appointment, "book_appointment")

        if result.ok:
            logger.info(
                f"Booked appointment {appointment.id} for doctor {draft.doctor_id} "
                f"at {draft.appointment_time.isoformat()}"
            )
        return result

    def update_appointment(
        self,
        appointment_id: int,
        draft: AppointmentDraft,
        requesting_patient_id: int,
    ) -> BookingResult:
        """Reschedule an appointment owned by ``requesting_patient_id``."""
        existing = self.appointments.find_by_id(appointment_id)
        if existing is None:
            return BookingResult(BookingOutcome.NOT_FOUND)
        if existing.patient_id != requesting_patient_id:
            return BookingResult(BookingOutcome.FORBIDDEN)

        draft = AppointmentDraft(
            doctor_id=draft.doctor_id,
            patient_id=existing.patient_id,
            appointment_time=draft.appointment_time,
        )

        with doctor_lock(draft.doctor_id):
            outcome = self.validate(draft, exclude_id=existing.id, lock_doctor=True)
            if outcome != BookingOutcome.VALID:
                self.db.rollback()
                return BookingResult(outcome)

            self.appointments.update(
                existing,
                doctor_id=draft.doctor_id,
                appointment_time=draft.appointment_time,
            )
            result = self._commit_booking(existing, "update_appointment")

        if result.ok:
            logger.info(f"Rescheduled appointment {appointment_id} to {draft.appointment_time.isoformat()}")
        return result

    def cancel_appointment(self, appointment_id: int, requesting_subject: str) -> ActionOutcome:
        """Delete an appointment on behalf of the patient who booked it."""
        patient = self.accounts.patient_by_email(requesting_subject) if requesting_subject else None
        if patient is None:
            return ActionOutcome.UNAUTHORIZED

        appointment = self.appointments.find_by_id(appointment_id)
        if appointment is None:
            return ActionOutcome.NOT_FOUND

        if appointment.patient_id != patient.id:
            logger.warning(f"Patient {patient.id} attempted to cancel appointment {appointment_id} they do not own")
            return ActionOutcome.FORBIDDEN

        self.appointments.delete(appointment)
        self._commit("cancel_appointment")
        logger.info(f"Cancelled appointment {appointment_id}")
        return ActionOutcome.SUCCESS

    def change_status(self, appointment_id: int, status: AppointmentStatus, doctor_id: int) -> ActionOutcome:
        """Set the status of one of the doctor's own appointments."""
        appointment = self.appointments.find_by_id(appointment_id)
        if appointment is None:
            return ActionOutcome.NOT_FOUND
        if appointment.doctor_id != doctor_id:
            return ActionOutcome.FORBIDDEN

        self.appointments.update(appointment, status=AppointmentStatus(status).value)
        self._commit("change_status")
        return ActionOutcome.SUCCESS

    def doctor_appointments(
        self,
        doctor_id: int,
        day: date,
        patient_name: Optional[str] = None,
    ) -> List[Appointment]:
        """A doctor's appointments on ``day``, optionally by patient name."""
        day_start = datetime.combine(day, time.min)
        return self.appointments.find_by_doctor_and_time_range(
            doctor_id,
            day_start,
            day_start + timedelta(days=1),
            patient_name=patient_name.strip() if patient_name else None,
        )

    def _commit_booking(self, appointment: Appointment, operation: str) -> BookingResult:
        try:
            self.db.commit()
        except IntegrityError:
            # The unique (doctor, time) constraint caught a concurrent writer
            self.db.rollback()
            logger.warning(f"{operation}: slot claimed concurrently")
            return BookingResult(BookingOutcome.SLOT_TAKEN)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(f"{operation} failed")
            raise StorageError(operation) from exc

        self.db.refresh(appointment)
        return BookingResult(BookingOutcome.VALID, appointment)

    def _commit(self, operation: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(f"{operation} failed")
            raise StorageError(operation) from exc
