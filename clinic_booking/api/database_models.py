"""SQLAlchemy database models for the booking ledger and clinic directory."""
import uuid
from datetime import datetime, UTC

from sqlalchemy import (
    Boolean, Column, Date, DateTime, Float, ForeignKey, Index, Integer, JSON,
    String, Text, text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utc_now():
    """Get current UTC timestamp."""
    return datetime.now(UTC)


def new_id():
    """Generate a primary key."""
    return uuid.uuid4().hex


class Clinic(Base):
    """Clinic where doctors see patients."""
    __tablename__ = "clinics"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    address = Column(String(500), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self):
        return f"<Clinic(id={self.id}, name={self.name})>"


class Doctor(Base):
    """Doctor with an embedded weekly schedule.

    Schedule columns are nullable; defaults are applied when the
    Schedule is built (see clinic_booking.schedule.Schedule.from_stored).
    """
    __tablename__ = "doctors"

    id = Column(String(32), primary_key=True, default=new_id)
    clinic_id = Column(String(32), ForeignKey("clinics.id"), nullable=False, index=True)
    user_id = Column(String(100), nullable=True, unique=True, index=True)
    full_name = Column(String(200), nullable=False)
    specialty = Column(String(200), nullable=True)
    consultation_fee = Column(Float, default=0, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False, index=True)

    working_days = Column(JSON, nullable=True)  # [0..6], Sunday=0
    start_time = Column(String(5), nullable=True)  # "HH:MM"
    end_time = Column(String(5), nullable=True)
    slot_duration = Column(Integer, nullable=True)  # minutes

    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self):
        return f"<Doctor(id={self.id}, name={self.full_name}, clinic={self.clinic_id})>"


class Appointment(Base):
    """One booking of a (doctor, day, time slot).

    At most one non-cancelled row may exist per (doctor_id, appointment_day,
    time_slot); the partial unique index makes the insert itself the
    atomic conflict check.
    """
    __tablename__ = "appointments"

    id = Column(String(32), primary_key=True, default=new_id)
    patient_id = Column(String(100), nullable=False, index=True)
    clinic_id = Column(String(32), ForeignKey("clinics.id"), nullable=False, index=True)
    doctor_id = Column(String(32), ForeignKey("doctors.id"), nullable=False, index=True)

    appointment_date = Column(DateTime, nullable=False, index=True)
    appointment_day = Column(Date, nullable=False)
    time_slot = Column(String(5), nullable=False)

    status = Column(String(20), nullable=False, default="scheduled", index=True)
    type = Column(String(20), nullable=False, default="consultation")
    reason = Column(Text, nullable=True)
    symptoms = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    cancel_reason = Column(Text, nullable=True)

    confirmed_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    __table_args__ = (
        Index(
            "uq_appointments_active_slot",
            "doctor_id",
            "appointment_day",
            "time_slot",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
        Index("ix_appointments_doctor_date", "doctor_id", "appointment_date"),
    )

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, doctor={self.doctor_id}, "
            f"day={self.appointment_day}, slot={self.time_slot}, status={self.status})>"
        )
