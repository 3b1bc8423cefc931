"""Tests for availability resolution."""
import pytest

from clinic_booking.errors import NotFoundError, ValidationError
from clinic_booking.schedule import Schedule
from tests.utils.booking_data import DEFAULT_DAY_SLOTS, MONDAY, SUNDAY, TUESDAY


def slots_of(result, doctor_id):
    entry = next(e for e in result["availableSlots"] if e["doctor"]["id"] == doctor_id)
    return entry["slots"]


class TestAvailableSlots:
    """Annotated slot lists per doctor."""

    def test_monday_without_bookings(self, resolver, clinic, doctor):
        """18 slots 08:00 ... 16:30, all free."""
        result = resolver.get_available_slots(clinic.id, MONDAY.isoformat())
        slots = slots_of(result, doctor.id)

        assert [s["time"] for s in slots] == DEFAULT_DAY_SLOTS
        assert all(s["available"] for s in slots)

    def test_response_shape(self, resolver, clinic, doctor):
        result = resolver.get_available_slots(clinic.id, MONDAY.isoformat())

        assert result["date"] == "2030-01-07"
        assert result["clinic"] == {"id": clinic.id, "name": "Downtown Medical Center"}
        assert result["availableSlots"][0]["doctor"] == {
            "id": doctor.id,
            "fullName": "Dr. Garcia",
            "specialty": "General Practice",
        }

    def test_booked_slot_is_unavailable(self, resolver, clinic, doctor, book):
        book("10:00")

        slots = slots_of(resolver.get_available_slots(clinic.id, MONDAY), doctor.id)
        taken = [s["time"] for s in slots if not s["available"]]

        assert taken == ["10:00"]
        assert sum(1 for s in slots if s["available"]) == 17

    def test_cancelled_booking_frees_slot(self, resolver, admission, clinic, doctor, patient, book):
        appointment = book("10:00")
        admission.cancel(appointment.id, patient)

        slots = slots_of(resolver.get_available_slots(clinic.id, MONDAY), doctor.id)
        assert all(s["available"] for s in slots)

    def test_completed_booking_still_holds_slot(
        self, resolver, admission, clinic, doctor, doctor_actor, book
    ):
        appointment = book("11:30")
        admission.confirm(appointment.id, doctor_actor)
        admission.complete(appointment.id, doctor_actor)

        slots = slots_of(resolver.get_available_slots(clinic.id, MONDAY), doctor.id)
        assert {"time": "11:30", "available": False} in slots

    def test_day_off_gives_empty_list(self, resolver, clinic, doctor, book):
        """Sunday is not a working day: empty list, not an error."""
        book("10:00")

        result = resolver.get_available_slots(clinic.id, SUNDAY.isoformat())
        assert slots_of(result, doctor.id) == []

    def test_bookings_on_other_days_do_not_leak(self, resolver, clinic, doctor, book):
        book("10:00", day=TUESDAY)

        slots = slots_of(resolver.get_available_slots(clinic.id, MONDAY), doctor.id)
        assert all(s["available"] for s in slots)

    def test_bookings_of_other_doctors_do_not_leak(self, resolver, directory, clinic, doctor, book):
        colleague = directory.create_doctor(clinic.id, "Dr. Lopez", specialty="Pediatrics")
        book("10:00", doctor_id=colleague.id)

        result = resolver.get_available_slots(clinic.id, MONDAY)
        assert all(s["available"] for s in slots_of(result, doctor.id))
        assert {"time": "10:00", "available": False} in slots_of(result, colleague.id)

    def test_same_query_twice_is_identical(self, resolver, clinic, doctor, book):
        book("09:00")

        first = resolver.get_available_slots(clinic.id, MONDAY.isoformat(), doctor_id=doctor.id)
        second = resolver.get_available_slots(clinic.id, MONDAY.isoformat(), doctor_id=doctor.id)
        assert first == second

    def test_custom_schedule(self, resolver, directory, clinic):
        pediatrician = directory.create_doctor(
            clinic.id,
            "Dr. Tran",
            schedule=Schedule(working_days=[1, 3], start_time="09:00", end_time="10:00", slot_duration=20),
        )

        result = resolver.get_available_slots(clinic.id, MONDAY, doctor_id=pediatrician.id)
        assert [s["time"] for s in slots_of(result, pediatrician.id)] == ["09:00", "09:20", "09:40"]

        result = resolver.get_available_slots(clinic.id, TUESDAY, doctor_id=pediatrician.id)
        assert slots_of(result, pediatrician.id) == []


class TestDoctorSelection:

    def test_doctor_filter(self, resolver, directory, clinic, doctor):
        directory.create_doctor(clinic.id, "Dr. Lopez")

        result = resolver.get_available_slots(clinic.id, MONDAY, doctor_id=doctor.id)
        assert [e["doctor"]["id"] for e in result["availableSlots"]] == [doctor.id]

    def test_all_doctors_ordered_by_name(self, resolver, directory, clinic, doctor):
        directory.create_doctor(clinic.id, "Dr. Adams")

        result = resolver.get_available_slots(clinic.id, MONDAY)
        names = [e["doctor"]["fullName"] for e in result["availableSlots"]]
        assert names == ["Dr. Adams", "Dr. Garcia"]

    def test_unavailable_doctor_is_skipped(self, resolver, directory, clinic, doctor):
        directory.create_doctor(clinic.id, "Dr. Away", is_available=False)

        result = resolver.get_available_slots(clinic.id, MONDAY)
        assert [e["doctor"]["id"] for e in result["availableSlots"]] == [doctor.id]

    def test_doctor_of_another_clinic_yields_nothing(self, resolver, directory, clinic, doctor):
        other_clinic = directory.create_clinic(name="Uptown Clinic")
        outsider = directory.create_doctor(other_clinic.id, "Dr. Outsider")

        result = resolver.get_available_slots(clinic.id, MONDAY, doctor_id=outsider.id)
        assert result["availableSlots"] == []


class TestAvailabilityErrors:
    """Invalid input must be distinguishable from "no slots"."""

    def test_unknown_clinic(self, resolver):
        with pytest.raises(NotFoundError):
            resolver.get_available_slots("no-such-clinic", MONDAY.isoformat())

    def test_missing_date(self, resolver, clinic):
        with pytest.raises(ValidationError, match="date is required"):
            resolver.get_available_slots(clinic.id, None)

    def test_malformed_date(self, resolver, clinic):
        with pytest.raises(ValidationError):
            resolver.get_available_slots(clinic.id, "2030-02-30")
