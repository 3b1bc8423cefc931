#!/usr/bin/env python3
"""CLI tool to seed a demo clinic with doctors."""
import sys

from clinic_booking import config
from clinic_booking.directory import ClinicDirectory
from clinic_booking.schedule import Schedule

DEMO_DOCTORS = [
    {
        "full_name": "Dr. Nguyen Van An",
        "specialty": "General Practice",
        "consultation_fee": 200000,
        "schedule": Schedule(),
    },
    {
        "full_name": "Dr. Tran Thi Binh",
        "specialty": "Pediatrics",
        "consultation_fee": 250000,
        "schedule": Schedule(working_days=[1, 3, 5], start_time="09:00", end_time="12:00", slot_duration=20),
    },
    {
        "full_name": "Dr. Le Minh Chau",
        "specialty": "Cardiology",
        "consultation_fee": 400000,
        "schedule": Schedule(working_days=[2, 4, 6], start_time="13:00", end_time="17:30", slot_duration=45),
    },
]


def main():
    """Create one clinic and its doctors."""
    database_url = sys.argv[1] if len(sys.argv) > 1 else config.DATABASE_URL
    directory = ClinicDirectory(database_url=database_url)

    clinic = directory.create_clinic(
        name="Downtown Medical Center",
        address="123 Main Street, Downtown",
        phone="555-0100",
    )
    print(f"\n✅ Clinic created: {clinic.name} ({clinic.id})")

    for entry in DEMO_DOCTORS:
        doctor = directory.create_doctor(clinic.id, **entry)
        print(f"   - {doctor.full_name} ({doctor.id})")

    print("\n📋 Try:")
    print(f"  curl 'http://localhost:{config.API_PORT}/api/clinics/{clinic.id}/available-slots?date=2030-01-07'\n")


if __name__ == "__main__":
    main()
