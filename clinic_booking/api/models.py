"""Pydantic models for API request/response validation.

JSON uses camelCase field names; Python code uses snake_case.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from clinic_booking.api.database_models import Doctor
from clinic_booking.directory import schedule_of
from clinic_booking.schedule import Schedule

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
AppointmentType = Literal["consultation", "checkup", "follow-up"]


class CamelModel(BaseModel):
    """Base model reading and writing camelCase JSON."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# ----------------------------------------------------------------------
# Requests
# ----------------------------------------------------------------------

class BookingRequest(CamelModel):
    """Request schema for POST /api/appointments."""
    clinic_id: str = Field(..., min_length=1, description="Clinic identifier")
    doctor_id: str = Field(..., min_length=1, description="Doctor identifier")
    appointment_date: str = Field(
        ...,
        min_length=1,
        description="Calendar day (YYYY-MM-DD or ISO datetime; time of day is ignored)",
        examples=["2030-01-07"]
    )
    time_slot: str = Field(..., pattern=TIME_PATTERN, examples=["10:00"])
    type: Optional[AppointmentType] = None
    reason: Optional[str] = Field(None, max_length=2000)
    symptoms: Optional[str] = Field(None, max_length=2000)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "clinicId": "8f14e45fceea167a5a36dedd4bea2543",
                "doctorId": "c9f0f895fb98ab9159f51fd0297e236d",
                "appointmentDate": "2030-01-07",
                "timeSlot": "10:00",
                "type": "consultation",
                "reason": "Persistent cough"
            }
        }
    )


class AppointmentUpdateRequest(CamelModel):
    """Request schema for PUT /api/appointments/{id}."""
    appointment_date: Optional[str] = None
    time_slot: Optional[str] = Field(None, pattern=TIME_PATTERN)
    type: Optional[AppointmentType] = None
    reason: Optional[str] = Field(None, max_length=2000)
    symptoms: Optional[str] = Field(None, max_length=2000)
    notes: Optional[str] = Field(None, max_length=5000)


class CancelRequest(CamelModel):
    reason: Optional[str] = Field(None, max_length=2000)


class CompleteRequest(CamelModel):
    notes: Optional[str] = Field(None, max_length=5000)


class ScheduleRequest(CamelModel):
    """Weekly schedule. Omitted fields fall back to the clinic defaults."""
    working_days: Optional[List[int]] = Field(
        None,
        min_length=1,
        description="Weekdays 0 (Sunday) to 6 (Saturday); omit to use the default",
        examples=[[1, 2, 3, 4, 5]]
    )
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN, examples=["08:00"])
    end_time: Optional[str] = Field(None, pattern=TIME_PATTERN, examples=["17:00"])
    slot_duration: Optional[int] = Field(None, gt=0, le=24 * 60, examples=[30])

    def to_schedule(self) -> Schedule:
        return Schedule.from_stored(
            working_days=self.working_days,
            start_time=self.start_time,
            end_time=self.end_time,
            slot_duration=self.slot_duration,
        )


class ClinicCreateRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None


class DoctorCreateRequest(CamelModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    specialty: Optional[str] = Field(None, max_length=200)
    consultation_fee: float = Field(0, ge=0)
    user_id: Optional[str] = Field(None, description="Login identity of the doctor")
    is_available: bool = True
    schedule: Optional[ScheduleRequest] = None


# ----------------------------------------------------------------------
# Responses
# ----------------------------------------------------------------------

class AppointmentOut(CamelModel):
    id: str
    patient_id: str
    clinic_id: str
    doctor_id: str
    appointment_date: datetime
    time_slot: str
    status: str
    type: str
    reason: Optional[str] = None
    symptoms: Optional[str] = None
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ClinicOut(CamelModel):
    id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    description: Optional[str] = None
    is_active: bool


class ScheduleOut(CamelModel):
    working_days: List[int]
    start_time: str
    end_time: str
    slot_duration: int


class DoctorOut(CamelModel):
    id: str
    clinic_id: str
    full_name: str
    specialty: Optional[str] = None
    consultation_fee: float
    is_available: bool
    schedule: ScheduleOut

    @classmethod
    def from_doctor(cls, doctor: Doctor) -> "DoctorOut":
        """Doctor with its effective schedule (defaults applied)."""
        schedule = schedule_of(doctor)
        return cls(
            id=doctor.id,
            clinic_id=doctor.clinic_id,
            full_name=doctor.full_name,
            specialty=doctor.specialty,
            consultation_fee=doctor.consultation_fee,
            is_available=doctor.is_available,
            schedule=ScheduleOut(
                working_days=schedule.working_days,
                start_time=schedule.start_time,
                end_time=schedule.end_time,
                slot_duration=schedule.slot_duration,
            ),
        )


class ErrorResponse(BaseModel):
    """Error response schema."""
    success: bool = Field(False, description="Always false for errors")
    error: str = Field(..., description="Error message")
    code: Optional[str] = Field(None, description="Error code")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": False,
                "error": "slot already booked",
                "code": "CONFLICT"
            }
        }
    )
