"""Booking ledger: the persisted appointments that decide slot occupancy."""
from datetime import date, datetime
from typing import Iterable, List, Optional, Set, Tuple

from sqlalchemy.exc import IntegrityError

from clinic_booking.api.database_models import Appointment
from clinic_booking.database import get_session_factory
from clinic_booking.errors import ConflictError, NotFoundError
from clinic_booking.logging_config import get_logger
from clinic_booking.schedule import day_window
from clinic_booking.state import AppointmentStatus

logger = get_logger(__name__)

ACTIVE_SLOT_INDEX = "uq_appointments_active_slot"
SLOT_TAKEN_MESSAGE = "slot already booked"


def _is_slot_collision(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return ACTIVE_SLOT_INDEX in message or (
        "UNIQUE constraint failed" in message and "appointments.time_slot" in message
    )


class BookingLedger:
    """
    Appointment storage with day-window queries.

    Responsibilities:
    - Answer which slot labels are held on a doctor's day
    - Insert and update appointments, turning a uniqueness violation
      on (doctor, day, slot) into ConflictError
    - List appointments for the read endpoints and the reminder job

    Pattern: Thin wrapper around SQLAlchemy for appointment persistence.
    """

    def __init__(self, database_url: str):
        """
        Initialize the ledger with a database connection.

        Args:
            database_url: SQLAlchemy connection string
        """
        self.SessionLocal = get_session_factory(database_url)

    def booked_slots(self, doctor_id: str, day: date) -> Set[str]:
        """
        Slot labels held by non-cancelled appointments on a doctor's day.

        Args:
            doctor_id: Doctor identifier
            day: Calendar day

        Returns:
            Set of "HH:MM" labels
        """
        start, next_start = day_window(day)

        with self.SessionLocal() as db:
            rows = db.query(Appointment.time_slot).filter(
                Appointment.doctor_id == doctor_id,
                Appointment.appointment_date >= start,
                Appointment.appointment_date < next_start,
                Appointment.status != AppointmentStatus.CANCELLED.value,
            ).all()

        return {row.time_slot for row in rows}

    def find_active(
        self,
        doctor_id: str,
        day: date,
        time_slot: str,
        exclude_id: Optional[str] = None
    ) -> Optional[Appointment]:
        """Non-cancelled appointment holding (doctor, day, slot), if any."""
        start, next_start = day_window(day)

        with self.SessionLocal() as db:
            query = db.query(Appointment).filter(
                Appointment.doctor_id == doctor_id,
                Appointment.appointment_date >= start,
                Appointment.appointment_date < next_start,
                Appointment.time_slot == time_slot,
                Appointment.status != AppointmentStatus.CANCELLED.value,
            )
            if exclude_id:
                query = query.filter(Appointment.id != exclude_id)
            return query.first()

    def add(self, **fields) -> Appointment:
        """
        Insert a new appointment.

        Raises:
            ConflictError: If another active appointment holds the slot
        """
        appointment = Appointment(**fields)

        with self.SessionLocal() as db:
            db.add(appointment)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                if _is_slot_collision(exc):
                    logger.warning(
                        "slot_collision_on_insert",
                        doctor_id=fields.get("doctor_id"),
                        day=str(fields.get("appointment_day")),
                        time_slot=fields.get("time_slot"),
                    )
                    raise ConflictError(SLOT_TAKEN_MESSAGE) from exc
                raise
            db.refresh(appointment)

        return appointment

    def get(self, appointment_id: str) -> Appointment:
        """
        Load one appointment.

        Raises:
            NotFoundError: If it doesn't exist
        """
        with self.SessionLocal() as db:
            appointment = db.get(Appointment, appointment_id)

        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def update(self, appointment_id: str, **changes) -> Appointment:
        """
        Apply field changes to an appointment.

        Raises:
            NotFoundError: If it doesn't exist
            ConflictError: If a date/slot change collides with an active booking
        """
        with self.SessionLocal() as db:
            appointment = db.get(Appointment, appointment_id)
            if not appointment:
                raise NotFoundError("Appointment not found")

            for key, value in changes.items():
                setattr(appointment, key, value)

            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                if _is_slot_collision(exc):
                    raise ConflictError(SLOT_TAKEN_MESSAGE) from exc
                raise
            db.refresh(appointment)

        return appointment

    def search(
        self,
        patient_id: Optional[str] = None,
        doctor_id: Optional[str] = None,
        statuses: Optional[Iterable[str]] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        offset: int = 0,
        limit: Optional[int] = None,
        newest_first: bool = True
    ) -> Tuple[List[Appointment], int]:
        """
        Filter appointments.

        Args:
            patient_id: Only this patient's appointments
            doctor_id: Only this doctor's appointments
            statuses: Only these statuses
            start: appointment_date >= start
            end: appointment_date < end
            offset: Rows to skip
            limit: Maximum rows returned (None for all)
            newest_first: Sort by appointment_date descending

        Returns:
            Tuple of (page of appointments, total matching count)
        """
        with self.SessionLocal() as db:
            query = db.query(Appointment)
            if patient_id:
                query = query.filter(Appointment.patient_id == patient_id)
            if doctor_id:
                query = query.filter(Appointment.doctor_id == doctor_id)
            if statuses:
                query = query.filter(
                    Appointment.status.in_([AppointmentStatus(s).value for s in statuses])
                )
            if start:
                query = query.filter(Appointment.appointment_date >= start)
            if end:
                query = query.filter(Appointment.appointment_date < end)

            total = query.count()

            order = Appointment.appointment_date.desc() if newest_first else Appointment.appointment_date.asc()
            query = query.order_by(order, Appointment.time_slot.asc()).offset(offset)
            if limit is not None:
                query = query.limit(limit)

            return query.all(), total

    def for_day(self, day: date, statuses: Iterable[str]) -> List[Appointment]:
        """Appointments on a calendar day with one of the given statuses."""
        start, next_start = day_window(day)
        appointments, _ = self.search(
            statuses=statuses, start=start, end=next_start, newest_first=False
        )
        return appointments
