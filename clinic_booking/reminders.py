"""Daily appointment reminders.

Once a day, every scheduled or confirmed appointment for tomorrow is handed
to a Notifier. Delivery (email, push) is an external concern; the default
notifier only writes a structured log line.
"""
import asyncio
from datetime import date, datetime, timedelta
from typing import Callable, Dict, Optional, Protocol

from clinic_booking.api.database_models import Appointment
from clinic_booking.directory import ClinicDirectory
from clinic_booking.errors import NotFoundError
from clinic_booking.ledger import BookingLedger
from clinic_booking.logging_config import get_logger
from clinic_booking.state import UPCOMING_STATUSES

logger = get_logger(__name__)


class Notifier(Protocol):
    """Sends one reminder."""

    def send_reminder(self, appointment: Appointment, details: Dict[str, str]) -> None:
        ...


class LoggingNotifier:
    """Notifier that records reminders in the log instead of sending them."""

    def send_reminder(self, appointment: Appointment, details: Dict[str, str]) -> None:
        logger.info(
            "appointment_reminder",
            appointment_id=appointment.id,
            patient_id=appointment.patient_id,
            **details
        )


class AppointmentReminderJob:
    """Finds tomorrow's active appointments and notifies each patient."""

    def __init__(
        self,
        ledger: BookingLedger,
        directory: ClinicDirectory,
        notifier: Optional[Notifier] = None
    ):
        self.ledger = ledger
        self.directory = directory
        self.notifier = notifier or LoggingNotifier()

    def run(self, today: Optional[date] = None) -> Dict[str, int]:
        """
        Send reminders for the day after `today`.

        A failure for one appointment is logged and counted; the pass
        carries on with the rest.

        Returns:
            {"total": n, "sent": n, "failed": n}
        """
        target_day = (today or date.today()) + timedelta(days=1)
        appointments = self.ledger.for_day(target_day, UPCOMING_STATUSES)

        sent = 0
        failed = 0
        for appointment in appointments:
            try:
                self.notifier.send_reminder(appointment, self._details(appointment))
                sent += 1
            except Exception:
                failed += 1
                logger.exception("reminder_failed", appointment_id=appointment.id)

        summary = {"total": len(appointments), "sent": sent, "failed": failed}
        logger.info("reminder_pass_complete", day=target_day.isoformat(), **summary)
        return summary

    def _details(self, appointment: Appointment) -> Dict[str, str]:
        details = {
            "date": appointment.appointment_day.isoformat(),
            "time_slot": appointment.time_slot,
        }
        try:
            doctor = self.directory.get_doctor(appointment.doctor_id)
            clinic = self.directory.get_clinic(appointment.clinic_id)
        except NotFoundError:
            return details

        details.update(
            doctor_name=doctor.full_name,
            clinic_name=clinic.name,
            clinic_address=clinic.address or "",
        )
        return details


def seconds_until(hour: int, now: Optional[datetime] = None) -> float:
    """Seconds from now until the next local occurrence of hour:00."""
    now = now or datetime.now()
    next_run = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if next_run <= now:
        next_run += timedelta(days=1)
    return (next_run - now).total_seconds()


async def run_reminders_daily(
    job: AppointmentReminderJob,
    hour: int,
    sleep: Callable[[float], "asyncio.Future"] = asyncio.sleep
):
    """Background task: run the reminder pass every day at hour:00."""
    while True:
        try:
            await sleep(seconds_until(hour))
            await asyncio.to_thread(job.run)
        except Exception as e:
            logger.error("reminder_loop_error", error=str(e))
