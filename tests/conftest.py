"""Shared test fixtures."""
from datetime import date

import pytest
from fastapi.testclient import TestClient

from clinic_booking.actors import Actor, Role
from clinic_booking.availability import AvailabilityResolver
from clinic_booking.booking import BookingAdmission
from clinic_booking.database import close_engines
from clinic_booking.directory import ClinicDirectory
from clinic_booking.ledger import BookingLedger
from tests.utils.booking_data import MONDAY, TODAY


@pytest.fixture(autouse=True)
def dispose_engines():
    """Release database engines created during a test."""
    yield
    close_engines()


@pytest.fixture
def database_url(tmp_path) -> str:
    """File-backed SQLite database unique to each test."""
    return f"sqlite:///{tmp_path / 'clinic_booking.db'}"


@pytest.fixture
def directory(database_url) -> ClinicDirectory:
    return ClinicDirectory(database_url=database_url)


@pytest.fixture
def ledger(database_url) -> BookingLedger:
    return BookingLedger(database_url=database_url)


@pytest.fixture
def clinic(directory):
    return directory.create_clinic(
        name="Downtown Medical Center",
        address="123 Main Street, Downtown",
        phone="555-0100",
    )


@pytest.fixture
def doctor(directory, clinic):
    """Doctor on the default schedule: Mon-Fri 08:00-17:00, 30 minute slots."""
    return directory.create_doctor(
        clinic.id,
        "Dr. Garcia",
        specialty="General Practice",
        user_id="doctor-user-1",
    )


@pytest.fixture
def resolver(directory, ledger) -> AvailabilityResolver:
    return AvailabilityResolver(directory, ledger)


@pytest.fixture
def admission(directory, ledger) -> BookingAdmission:
    """Booking admission with the clock fixed before the test dates."""
    return BookingAdmission(directory, ledger, today=lambda: TODAY)


@pytest.fixture
def patient() -> Actor:
    return Actor(user_id="patient-1", role=Role.PATIENT)


@pytest.fixture
def other_patient() -> Actor:
    return Actor(user_id="patient-2", role=Role.PATIENT)


@pytest.fixture
def doctor_actor(doctor) -> Actor:
    return Actor(user_id=doctor.user_id, role=Role.DOCTOR)


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id="admin-1", role=Role.CLINIC_ADMIN)


@pytest.fixture
def book(admission, clinic, doctor, patient):
    """Book a slot with the default clinic, doctor and patient."""
    def _book(time_slot: str = "10:00", day: date = MONDAY, **overrides):
        fields = {
            "patient_id": patient.user_id,
            "clinic_id": clinic.id,
            "doctor_id": doctor.id,
            "appointment_date": day.isoformat(),
            "time_slot": time_slot,
        }
        fields.update(overrides)
        return admission.create_booking(**fields)
    return _book


@pytest.fixture
def client(directory, ledger):
    """FastAPI test client wired to the per-test database."""
    from clinic_booking.api.dependencies import get_directory, get_ledger
    from clinic_booking.api_server import app

    app.dependency_overrides[get_directory] = lambda: directory
    app.dependency_overrides[get_ledger] = lambda: ledger
    yield TestClient(app)
    app.dependency_overrides.clear()
