from datetime import date, datetime, time, timedelta
from sqlalchemy.orm import Session
from typing import Iterable, List, Optional
import re

from ..core.config import settings
from ..repositories.account_repository import AccountRepository
from ..repositories.appointment_repository import AppointmentRepository

_SLOT_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])?\s*$")

def normalize_slot(label: str) -> str:
    """Return the canonical 24-hour ``HH:MM`` form of a slot label.

    Accepts ``"9:00"``, ``"09:00"``, ``"09:00 AM"`` and ``"2:30 pm"``.
    """
    match = _SLOT_PATTERN.match(label or "")
    if not match:
        raise ValueError(f"Invalid slot label: {label!r}")

    hour, minute, meridiem = int(match.group(1)), int(match.group(2)), match.group(3)
    if meridiem:
        if not 1 <= hour <= 12:
            raise ValueError(f"Invalid slot label: {label!r}")
        hour = hour % 12 + (12 if meridiem.upper() == "PM" else 0)

    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid slot label: {label!r}")
    return f"{hour:02d}:{minute:02d}"

def normalize_slots(labels: Iterable[str]) -> List[str]:
    """Normalize labels, dropping repeats and keeping first-seen order."""
    slots = []
    for label in labels:
        slot = normalize_slot(label)
        if slot not in slots:
            slots.append(slot)
    return slots

def slot_start(day: date, slot: str) -> datetime:
    """The instant a canonical ``HH:MM`` slot begins on ``day``."""
    return datetime.combine(day, time(int(slot[:2]), int(slot[3:])))

def slot_period(slot: str) -> str:
    """``AM`` for slots before noon, ``PM`` otherwise."""
    return "AM" if int(slot[:2]) < 12 else "PM"

class AvailabilityService:
    def __init__(self, db: Session):
        self.accounts = AccountRepository(db)
        self.appointments = AppointmentRepository(db)
        self.duration = timedelta(minutes=settings.APPOINTMENT_DURATION_MINUTES)

    def availability(self, doctor_id: int, day: Optional[date]) -> List[str]:
        """Free slot labels of a doctor on ``day``, in declaration order.

        A declared slot is taken when any appointment of the doctor overlaps
        its window, including appointments that do not start on a declared
        slot and ones late on the previous day. An unknown doctor or a doctor
        without declared slots has no availability.
        """
        if doctor_id is None or day is None:
            return []

        doctor = self.accounts.doctor_by_id(doctor_id)
        if doctor is None or not doctor.available_times:
            return []

        day_start = datetime.combine(day, time.min)
        booked = self.appointments.find_by_doctor_and_time_range(
            doctor_id,
            day_start - self.duration,
            day_start + timedelta(days=1) + self.duration,
            inclusive_start=False,
        )
        starts = [appointment.appointment_time for appointment in booked]

        return [
            slot for slot in doctor.available_times
            if not self._overlaps(slot_start(day, slot), starts)
        ]

    def _overlaps(self, start: datetime, booked_starts: List[datetime]) -> bool:
        # Windows of equal length overlap when their starts are under one duration apart
        return any(abs(booked - start) < self.duration for booked in booked_starts)
