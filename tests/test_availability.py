from datetime import date, datetime

import pytest

from clinic.models.appointment import Appointment
from clinic.services.availability_service import (
    AvailabilityService, normalize_slot, normalize_slots, slot_period, slot_start
)
from clinic.services.booking_service import AppointmentDraft, BookingOutcome, BookingService

DAY = date(2024, 6, 1)

def book(db, doctor, patient, when):
    db.add(Appointment(doctor_id=doctor.id, patient_id=patient.id, appointment_time=when, status=0))
    db.commit()

class TestSlotLabels:

    @pytest.mark.parametrize("label, expected", [
        ("09:00", "09:00"),
        ("9:00", "09:00"),
        ("09:00 AM", "09:00"),
        ("12:00 AM", "00:00"),
        ("12:30 PM", "12:30"),
        ("2:30 pm", "14:30"),
        ("23:59", "23:59"),
    ])
    def test_normalize(self, label, expected):
        assert normalize_slot(label) == expected

    @pytest.mark.parametrize("label", ["", "9", "24:00", "10:60", "13:00 PM", "noon", "9.30"])
    def test_rejects_bad_labels(self, label):
        with pytest.raises(ValueError):
            normalize_slot(label)

    def test_normalize_slots_keeps_order_and_drops_repeats(self):
        assert normalize_slots(["14:00", "9:00 AM", "09:00", "2:00 PM"]) == ["14:00", "09:00"]

    def test_period(self):
        assert slot_period("11:59") == "AM"
        assert slot_period("12:00") == "PM"

class TestAvailability:

    def test_all_declared_slots_free(self, db, make_doctor):
        doctor = make_doctor(available_times=["09:00", "10:00"])
        assert AvailabilityService(db).availability(doctor.id, DAY) == ["09:00", "10:00"]

    def test_booked_slot_removed(self, db, make_doctor, make_patient):
        doctor = make_doctor(available_times=["09:00", "10:00", "11:00"])
        patient = make_patient()
        book(db, doctor, patient, datetime(2024, 6, 1, 10, 0))

        assert AvailabilityService(db).availability(doctor.id, DAY) == ["09:00", "11:00"]

    def test_other_days_and_doctors_do_not_consume(self, db, make_doctor, make_patient):
        doctor = make_doctor(available_times=["09:00", "10:00"])
        other = make_doctor(email="wilson@clinic.io", available_times=["09:00"])
        patient = make_patient()
        book(db, doctor, patient, datetime(2024, 6, 2, 9, 0))
        book(db, doctor, patient, datetime(2024, 5, 31, 10, 0))
        book(db, other, patient, datetime(2024, 6, 1, 9, 0))

        assert AvailabilityService(db).availability(doctor.id, DAY) == ["09:00", "10:00"]
        assert AvailabilityService(db).availability(other.id, DAY) == []

    def test_midnight_belongs_to_its_own_day(self, db, make_doctor, make_patient):
        doctor = make_doctor(available_times=["00:00", "09:00"])
        patient = make_patient()
        book(db, doctor, patient, datetime(2024, 6, 2, 0, 0))

        assert AvailabilityService(db).availability(doctor.id, DAY) == ["00:00", "09:00"]
        assert AvailabilityService(db).availability(doctor.id, date(2024, 6, 2)) == ["09:00"]

    def test_off_grid_booking_consumes_every_slot_it_overlaps(self, db, make_doctor, make_patient):
        doctor = make_doctor(available_times=["09:00", "10:00", "11:00"])
        patient = make_patient()
        book(db, doctor, patient, datetime(2024, 6, 1, 9, 30))

        assert AvailabilityService(db).availability(doctor.id, DAY) == ["11:00"]

    def test_booking_late_on_previous_day_consumes_early_slot(self, db, make_doctor, make_patient):
        doctor = make_doctor(available_times=["00:00", "09:00"])
        patient = make_patient()
        book(db, doctor, patient, datetime(2024, 5, 31, 23, 30))

        assert AvailabilityService(db).availability(doctor.id, DAY) == ["09:00"]

    def test_free_slots_are_exactly_the_bookable_ones(self, db, make_doctor, make_patient):
        doctor = make_doctor(available_times=["08:00", "09:00", "10:00", "11:00", "12:00"])
        patient = make_patient()
        book(db, doctor, patient, datetime(2024, 6, 1, 9, 45))
        book(db, doctor, patient, datetime(2024, 6, 1, 12, 0))

        free = AvailabilityService(db).availability(doctor.id, DAY)
        assert free == ["08:00", "11:00"]

        booking = BookingService(db, clock=lambda: datetime(2024, 5, 1))
        for slot in doctor.available_times:
            outcome = booking.validate(
                AppointmentDraft(doctor_id=doctor.id, patient_id=patient.id, appointment_time=slot_start(DAY, slot))
            )
            assert (outcome == BookingOutcome.VALID) == (slot in free)

    def test_result_is_subset_of_declared(self, db, make_doctor, make_patient):
        doctor = make_doctor(available_times=["08:00", "13:00", "15:00"])
        patient = make_patient()
        book(db, doctor, patient, datetime(2024, 6, 1, 13, 0))

        free = AvailabilityService(db).availability(doctor.id, DAY)
        assert set(free) <= set(doctor.available_times)
        assert "13:00" not in free

    def test_unknown_doctor_has_no_availability(self, db):
        assert AvailabilityService(db).availability(9999, DAY) == []

    def test_doctor_without_slots_has_no_availability(self, db, make_doctor):
        doctor = make_doctor(available_times=[])
        assert AvailabilityService(db).availability(doctor.id, DAY) == []
