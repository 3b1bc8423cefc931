"""Availability resolution.

Combines each doctor's generated slots with the booking ledger:

    {"doctor": {...}, "slots": [{"time": "08:00", "available": True}, ...]}

A doctor who does not work the requested weekday gets an empty slot list.
That is a normal answer, not an error.
"""
from datetime import date
from typing import Any, Dict, List, Optional, Union

from clinic_booking.api.database_models import Doctor
from clinic_booking.directory import ClinicDirectory, schedule_of
from clinic_booking.ledger import BookingLedger
from clinic_booking.logging_config import get_logger
from clinic_booking.schedule import parse_day

logger = get_logger(__name__)


class AvailabilityResolver:
    """Marks every candidate slot of a clinic's doctors as available or taken."""

    def __init__(self, directory: ClinicDirectory, ledger: BookingLedger):
        self.directory = directory
        self.ledger = ledger

    def doctor_slots(self, doctor: Doctor, day: date) -> List[Dict[str, Any]]:
        """
        Annotated slots for one doctor on one day.

        Args:
            doctor: Stored doctor (schedule defaults applied here)
            day: Calendar day

        Returns:
            [{"time": "HH:MM", "available": bool}, ...] in chronological order
        """
        candidates = schedule_of(doctor).slots_for(day)
        if not candidates:
            return []

        booked = self.ledger.booked_slots(doctor.id, day)
        return [
            {"time": slot, "available": slot not in booked}
            for slot in candidates
        ]

    def get_available_slots(
        self,
        clinic_id: str,
        day: Union[str, date, None],
        doctor_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Slot availability for a clinic's doctors on a date.

        Args:
            clinic_id: Clinic identifier
            day: Requested date ("YYYY-MM-DD" or date)
            doctor_id: Restrict to one doctor (unknown ids yield no doctors)

        Returns:
            {"date", "clinic": {"id", "name"}, "availableSlots": [...]}

        Raises:
            ValidationError: If the date is missing or malformed
            NotFoundError: If the clinic doesn't exist
        """
        requested_day = parse_day(day)
        clinic = self.directory.get_clinic(clinic_id)

        doctors = self.directory.list_doctors(clinic.id, doctor_id=doctor_id)

        available_slots = [
            {
                "doctor": {
                    "id": doctor.id,
                    "fullName": doctor.full_name,
                    "specialty": doctor.specialty,
                },
                "slots": self.doctor_slots(doctor, requested_day),
            }
            for doctor in doctors
        ]

        logger.debug(
            "availability_resolved",
            clinic_id=clinic.id,
            day=requested_day.isoformat(),
            doctors=len(doctors),
        )

        return {
            "date": requested_day.isoformat(),
            "clinic": {"id": clinic.id, "name": clinic.name},
            "availableSlots": available_slots,
        }
