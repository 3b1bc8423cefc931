"""Clinic directory: clinics, doctors and doctor schedules."""
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from clinic_booking.api.database_models import Clinic, Doctor
from clinic_booking.database import get_session_factory
from clinic_booking.errors import NotFoundError, ValidationError
from clinic_booking.logging_config import get_logger
from clinic_booking.schedule import Schedule

logger = get_logger(__name__)

USER_LINKED_MESSAGE = "userId is already linked to a doctor"


def schedule_of(doctor: Doctor) -> Schedule:
    """Fully populated Schedule for a stored doctor."""
    return Schedule.from_stored(
        working_days=doctor.working_days,
        start_time=doctor.start_time,
        end_time=doctor.end_time,
        slot_duration=doctor.slot_duration,
    )


class ClinicDirectory:
    """
    Loads and stores clinics and doctors.

    Pattern: Separate database persistence from domain models.
    Doctor (database) vs Schedule (domain).
    """

    def __init__(self, database_url: str):
        """Initialize with database connection."""
        self.SessionLocal = get_session_factory(database_url)

    def create_clinic(self, name: str, **fields) -> Clinic:
        clinic = Clinic(name=name, **fields)
        with self.SessionLocal() as db:
            db.add(clinic)
            db.commit()
            db.refresh(clinic)

        logger.info("clinic_created", clinic_id=clinic.id, name=clinic.name)
        return clinic

    def get_clinic(self, clinic_id: str) -> Clinic:
        """
        Load a clinic.

        Raises:
            NotFoundError: If the clinic doesn't exist
        """
        with self.SessionLocal() as db:
            clinic = db.get(Clinic, clinic_id)

        if not clinic:
            raise NotFoundError("Clinic not found")
        return clinic

    def list_clinics(self, offset: int = 0, limit: int = 10) -> Tuple[List[Clinic], int]:
        """Active clinics ordered by name, with the total count."""
        with self.SessionLocal() as db:
            query = db.query(Clinic).filter(Clinic.is_active == True)  # noqa: E712
            total = query.count()
            clinics = query.order_by(Clinic.name.asc()).offset(offset).limit(limit).all()
        return clinics, total

    def create_doctor(
        self,
        clinic_id: str,
        full_name: str,
        schedule: Optional[Schedule] = None,
        **fields
    ) -> Doctor:
        """
        Register a doctor at a clinic.

        Args:
            clinic_id: Clinic the doctor works at
            full_name: Display name
            schedule: Weekly schedule; defaults apply when omitted
            **fields: specialty, consultation_fee, user_id, is_available

        Raises:
            NotFoundError: If the clinic doesn't exist
            ValidationError: If the schedule is unusable or the user is
                already linked to another doctor
        """
        self.get_clinic(clinic_id)

        schedule = schedule or Schedule()
        schedule.validate()

        user_id = fields.get("user_id")
        if user_id and self.find_doctor_by_user(user_id):
            raise ValidationError(USER_LINKED_MESSAGE)

        doctor = Doctor(
            clinic_id=clinic_id,
            full_name=full_name,
            working_days=list(schedule.working_days),
            start_time=schedule.start_time,
            end_time=schedule.end_time,
            slot_duration=schedule.slot_duration,
            **fields
        )
        with self.SessionLocal() as db:
            db.add(doctor)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                if user_id:
                    raise ValidationError(USER_LINKED_MESSAGE) from exc
                raise
            db.refresh(doctor)

        logger.info("doctor_created", doctor_id=doctor.id, clinic_id=clinic_id)
        return doctor

    def get_doctor(self, doctor_id: str) -> Doctor:
        """
        Load a doctor.

        Raises:
            NotFoundError: If the doctor doesn't exist
        """
        with self.SessionLocal() as db:
            doctor = db.get(Doctor, doctor_id)

        if not doctor:
            raise NotFoundError("Doctor not found")
        return doctor

    def find_doctor_by_user(self, user_id: str) -> Optional[Doctor]:
        """Doctor record linked to a doctor-role user, if any."""
        with self.SessionLocal() as db:
            return db.query(Doctor).filter(Doctor.user_id == user_id).first()

    def list_doctors(
        self,
        clinic_id: str,
        doctor_id: Optional[str] = None,
        available_only: bool = True
    ) -> List[Doctor]:
        """
        Doctors of a clinic ordered by name.

        Args:
            clinic_id: Clinic identifier
            doctor_id: Restrict to this doctor
            available_only: Skip doctors marked unavailable
        """
        with self.SessionLocal() as db:
            query = db.query(Doctor).filter(Doctor.clinic_id == clinic_id)
            if available_only:
                query = query.filter(Doctor.is_available == True)  # noqa: E712
            if doctor_id:
                query = query.filter(Doctor.id == doctor_id)
            return query.order_by(Doctor.full_name.asc()).all()

    def update_schedule(self, doctor_id: str, schedule: Schedule) -> Doctor:
        """
        Replace a doctor's weekly schedule.

        Raises:
            NotFoundError: If the doctor doesn't exist
            ValidationError: If the schedule is unusable
        """
        schedule.validate()

        with self.SessionLocal() as db:
            doctor = db.get(Doctor, doctor_id)
            if not doctor:
                raise NotFoundError("Doctor not found")

            doctor.working_days = list(schedule.working_days)
            doctor.start_time = schedule.start_time
            doctor.end_time = schedule.end_time
            doctor.slot_duration = schedule.slot_duration
            db.commit()
            db.refresh(doctor)

        logger.info("schedule_updated", doctor_id=doctor_id)
        return doctor
