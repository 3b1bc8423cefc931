"""Unit tests for API request/response models."""
import pytest
from pydantic import ValidationError

from clinic_booking.api.models import (
    AppointmentOut, BookingRequest, DoctorOut, ErrorResponse, ScheduleRequest,
)


def test_booking_request_reads_camel_case():
    request = BookingRequest(**{
        "clinicId": "c-1",
        "doctorId": "d-1",
        "appointmentDate": "2030-01-07",
        "timeSlot": "10:00",
    })

    assert request.clinic_id == "c-1"
    assert request.time_slot == "10:00"
    assert request.type is None


@pytest.mark.parametrize("time_slot", ["9:00", "24:00", "10:60", "10h00", ""])
def test_booking_request_rejects_malformed_slot(time_slot):
    with pytest.raises(ValidationError):
        BookingRequest(clinic_id="c", doctor_id="d", appointment_date="2030-01-07", time_slot=time_slot)


def test_booking_request_rejects_unknown_type():
    with pytest.raises(ValidationError):
        BookingRequest(
            clinic_id="c", doctor_id="d", appointment_date="2030-01-07", time_slot="10:00", type="surgery"
        )


def test_booking_request_requires_date():
    with pytest.raises(ValidationError):
        BookingRequest(clinic_id="c", doctor_id="d", time_slot="10:00")


def test_schedule_request_fills_defaults():
    schedule = ScheduleRequest(**{"workingDays": [6, 0], "slotDuration": 45}).to_schedule()

    assert schedule.working_days == [0, 6]
    assert schedule.start_time == "08:00"
    assert schedule.slot_duration == 45


def test_schedule_request_rejects_zero_duration():
    with pytest.raises(ValidationError):
        ScheduleRequest(slot_duration=0)


def test_schedule_request_rejects_empty_working_days():
    with pytest.raises(ValidationError):
        ScheduleRequest(**{"workingDays": []})


def test_schedule_request_without_working_days_uses_default():
    assert ScheduleRequest().to_schedule().working_days == [1, 2, 3, 4, 5]


def test_appointment_out_writes_camel_case(book):
    data = AppointmentOut.model_validate(book("10:00")).to_json()

    assert data["timeSlot"] == "10:00"
    assert data["appointmentDate"] == "2030-01-07T00:00:00"
    assert data["status"] == "scheduled"
    assert "patientId" in data


def test_doctor_out_includes_effective_schedule(doctor):
    data = DoctorOut.from_doctor(doctor).to_json()

    assert data["fullName"] == "Dr. Garcia"
    assert data["schedule"] == {
        "workingDays": [1, 2, 3, 4, 5],
        "startTime": "08:00",
        "endTime": "17:00",
        "slotDuration": 30,
    }


def test_error_response_defaults():
    body = ErrorResponse(error="slot already booked", code="CONFLICT").model_dump()
    assert body == {"success": False, "error": "slot already booked", "code": "CONFLICT"}
