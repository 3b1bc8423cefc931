"""Booking admission: the write path for appointments.

Creating a booking:
1. Clinic and doctor must exist
2. The day must not be in the past, the doctor must work it and the
   slot must be one the doctor's schedule generates
3. The ledger is checked for an active appointment on the same
   (doctor, day, slot)
4. The appointment is inserted as "scheduled"; the storage uniqueness
   index rejects a concurrent duplicate that slipped past step 3

Status changes follow clinic_booking.state.VALID_TRANSITIONS.
"""
from datetime import date, datetime, time
from typing import Callable, Dict, List, Optional, Tuple, Union

from clinic_booking import config
from clinic_booking.actors import Actor
from clinic_booking.api.database_models import Appointment, Doctor, utc_now
from clinic_booking.directory import ClinicDirectory, schedule_of
from clinic_booking.errors import (
    ConflictError, NotFoundError, PermissionDeniedError, ValidationError,
)
from clinic_booking.ledger import SLOT_TAKEN_MESSAGE, BookingLedger
from clinic_booking.logging_config import get_logger
from clinic_booking.schedule import day_window, parse_day, parse_time
from clinic_booking.state import (
    UPCOMING_STATUSES, AppointmentStatus, can_transition, TERMINAL_STATUSES,
)

logger = get_logger(__name__)

# Fields a patient may change on their own appointment
PATIENT_EDITABLE_FIELDS = {"appointment_date", "time_slot", "reason", "symptoms", "type"}


class BookingAdmission:
    """
    Admits, changes and reads appointments.

    Args:
        directory: Clinic and doctor lookups
        ledger: Appointment storage
        today: Clock returning the current calendar day (injectable for tests)
    """

    def __init__(
        self,
        directory: ClinicDirectory,
        ledger: BookingLedger,
        today: Callable[[], date] = date.today
    ):
        self.directory = directory
        self.ledger = ledger
        self.today = today

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_booking(
        self,
        patient_id: str,
        clinic_id: str,
        doctor_id: str,
        appointment_date: Union[str, date],
        time_slot: str,
        type: Optional[str] = None,
        reason: Optional[str] = None,
        symptoms: Optional[str] = None
    ) -> Appointment:
        """
        Book a slot for a patient.

        Returns:
            The created appointment (status "scheduled")

        Raises:
            NotFoundError: Clinic or doctor missing
            ValidationError: Doctor of another clinic, bad date, day off,
                slot outside the schedule, bad type
            ConflictError: Slot already booked
        """
        clinic = self.directory.get_clinic(clinic_id)
        doctor = self.directory.get_doctor(doctor_id)
        if doctor.clinic_id != clinic.id:
            raise ValidationError("Doctor does not work at this clinic")

        day = parse_day(appointment_date)
        self._check_slot(doctor, day, time_slot)
        appointment_type = self._check_type(type)

        appointment = self.ledger.add(
            patient_id=patient_id,
            clinic_id=clinic.id,
            doctor_id=doctor.id,
            appointment_date=datetime.combine(day, time.min),
            appointment_day=day,
            time_slot=time_slot,
            status=AppointmentStatus.SCHEDULED.value,
            type=appointment_type,
            reason=reason,
            symptoms=symptoms,
        )

        logger.info(
            "appointment_booked",
            appointment_id=appointment.id,
            doctor_id=doctor.id,
            day=day.isoformat(),
            time_slot=time_slot,
        )
        return appointment

    def _check_slot(
        self,
        doctor: Doctor,
        day: date,
        time_slot: str,
        exclude_id: Optional[str] = None
    ):
        if day < self.today():
            raise ValidationError("Appointment date must be today or in the future")

        schedule = schedule_of(doctor)
        if not schedule.works_on(day):
            raise ValidationError("Doctor does not work on this day")

        parse_time(time_slot)
        if time_slot not in schedule.slots_for(day):
            raise ValidationError("Time slot is not within the doctor's working schedule")

        if self.ledger.find_active(doctor.id, day, time_slot, exclude_id=exclude_id):
            raise ConflictError(SLOT_TAKEN_MESSAGE)

    @staticmethod
    def _check_type(appointment_type: Optional[str]) -> str:
        if appointment_type is None:
            return config.DEFAULT_APPOINTMENT_TYPE
        if appointment_type not in config.APPOINTMENT_TYPES:
            raise ValidationError(
                f"Invalid appointment type '{appointment_type}'. "
                f"Use one of: {', '.join(config.APPOINTMENT_TYPES)}"
            )
        return appointment_type

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, appointment_id: str, actor: Actor) -> Appointment:
        """
        Load an appointment the actor may see.

        Raises:
            NotFoundError: If it doesn't exist
            PermissionDeniedError: If it belongs to someone else
        """
        appointment = self.ledger.get(appointment_id)
        self._check_access(appointment, actor)
        return appointment

    def list(
        self,
        actor: Actor,
        status: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        page: int = 1,
        limit: int = config.DEFAULT_PAGE_SIZE
    ) -> Tuple[List[Appointment], Dict[str, int]]:
        """
        Appointments visible to the actor, newest first.

        Patients see their own, doctors see theirs, admins see all.
        Date bounds are inclusive calendar days.

        Returns:
            Tuple of (appointments, pagination dict)
        """
        page = max(page, 1)
        limit = min(max(limit, 1), config.MAX_PAGE_SIZE)

        statuses = [self._parse_status(status)] if status else None
        start = day_window(parse_day(start_date))[0] if start_date else None
        end = day_window(parse_day(end_date))[1] if end_date else None

        appointments, total = self.ledger.search(
            statuses=statuses,
            start=start,
            end=end,
            offset=(page - 1) * limit,
            limit=limit,
            **self._scope(actor)
        )

        total_pages = -(-total // limit)
        pagination = {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": total_pages,
            "hasMore": page < total_pages,
        }
        return appointments, pagination

    def upcoming(self, actor: Actor) -> List[Appointment]:
        """Scheduled or confirmed appointments from today on, soonest first."""
        appointments, _ = self.ledger.search(
            statuses=UPCOMING_STATUSES,
            start=day_window(self.today())[0],
            limit=config.UPCOMING_LIMIT,
            newest_first=False,
            **self._scope(actor)
        )
        return appointments

    def _scope(self, actor: Actor) -> Dict[str, str]:
        if actor.is_patient:
            return {"patient_id": actor.user_id}
        if actor.is_doctor:
            return {"doctor_id": self._doctor_of(actor).id}
        return {}

    def _doctor_of(self, actor: Actor) -> Doctor:
        doctor = self.directory.find_doctor_by_user(actor.user_id)
        if not doctor:
            raise NotFoundError("Doctor profile not found")
        return doctor

    def _check_access(self, appointment: Appointment, actor: Actor):
        if actor.is_patient and appointment.patient_id != actor.user_id:
            raise PermissionDeniedError("You do not have access to this appointment")
        if actor.is_doctor and appointment.doctor_id != self._doctor_of(actor).id:
            raise PermissionDeniedError("You do not have access to this appointment")

    @staticmethod
    def _parse_status(status: str) -> AppointmentStatus:
        try:
            return AppointmentStatus(status)
        except ValueError:
            raise ValidationError(f"Invalid status '{status}'")

    # ------------------------------------------------------------------
    # Change
    # ------------------------------------------------------------------

    def update(self, appointment_id: str, actor: Actor, **changes) -> Appointment:
        """
        Edit an appointment, re-checking the slot when date or time changes.

        Patients may only change date, time slot, type, reason and symptoms.

        Raises:
            NotFoundError, PermissionDeniedError, ValidationError, ConflictError
        """
        appointment = self.get(appointment_id, actor)

        if AppointmentStatus(appointment.status) in TERMINAL_STATUSES:
            raise ValidationError(f"Cannot update a {appointment.status} appointment")

        if actor.is_patient:
            changes = {k: v for k, v in changes.items() if k in PATIENT_EDITABLE_FIELDS}
        changes = {k: v for k, v in changes.items() if v is not None}

        if "type" in changes:
            changes["type"] = self._check_type(changes["type"])

        if "appointment_date" in changes or "time_slot" in changes:
            day = parse_day(changes.pop("appointment_date", appointment.appointment_day))
            time_slot = changes.pop("time_slot", appointment.time_slot)

            if day != appointment.appointment_day or time_slot != appointment.time_slot:
                doctor = self.directory.get_doctor(appointment.doctor_id)
                self._check_slot(doctor, day, time_slot, exclude_id=appointment.id)
                changes.update(
                    appointment_date=datetime.combine(day, time.min),
                    appointment_day=day,
                    time_slot=time_slot,
                )

        if not changes:
            return appointment

        updated = self.ledger.update(appointment.id, **changes)
        logger.info("appointment_updated", appointment_id=appointment.id, fields=sorted(changes))
        return updated

    def confirm(self, appointment_id: str, actor: Actor) -> Appointment:
        """scheduled -> confirmed (doctor or clinic admin)."""
        self._require_staff(actor)
        appointment = self.get(appointment_id, actor)
        return self._transition(
            appointment, AppointmentStatus.CONFIRMED, confirmed_at=utc_now()
        )

    def start(self, appointment_id: str, actor: Actor) -> Appointment:
        """confirmed -> in_progress (doctor)."""
        self._require_doctor(actor)
        appointment = self.get(appointment_id, actor)
        return self._transition(appointment, AppointmentStatus.IN_PROGRESS)

    def complete(
        self,
        appointment_id: str,
        actor: Actor,
        notes: Optional[str] = None
    ) -> Appointment:
        """confirmed | in_progress -> completed (doctor)."""
        self._require_doctor(actor)
        appointment = self.get(appointment_id, actor)
        return self._transition(
            appointment,
            AppointmentStatus.COMPLETED,
            completed_at=utc_now(),
            notes=notes or appointment.notes,
        )

    def cancel(
        self,
        appointment_id: str,
        actor: Actor,
        reason: Optional[str] = None
    ) -> Appointment:
        """Any non-terminal status -> cancelled. Frees the slot."""
        appointment = self.get(appointment_id, actor)
        return self._transition(
            appointment,
            AppointmentStatus.CANCELLED,
            cancelled_at=utc_now(),
            cancel_reason=reason or config.DEFAULT_CANCEL_REASON,
        )

    def _transition(
        self,
        appointment: Appointment,
        target: AppointmentStatus,
        **extra
    ) -> Appointment:
        current = AppointmentStatus(appointment.status)
        if not can_transition(current, target):
            raise ValidationError(
                f"Cannot change appointment from {current.value} to {target.value}"
            )

        updated = self.ledger.update(appointment.id, status=target.value, **extra)
        logger.info(
            "appointment_status_changed",
            appointment_id=appointment.id,
            from_status=current.value,
            to_status=target.value,
        )
        return updated

    @staticmethod
    def _require_staff(actor: Actor):
        if not (actor.is_doctor or actor.is_admin):
            raise PermissionDeniedError("Only doctors or clinic admins can do this")

    @staticmethod
    def _require_doctor(actor: Actor):
        if not actor.is_doctor:
            raise PermissionDeniedError("Only doctors can do this")
