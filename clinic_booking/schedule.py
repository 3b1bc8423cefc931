"""Doctor schedules and slot generation.

A Schedule is a doctor's recurring weekly availability. Slots are fixed
"HH:MM" labels generated from the working window:

    08:00-17:00 with 30 minute slots -> 08:00, 08:30, ..., 16:30
    08:00-09:45 with 30 minute slots -> 08:00, 08:30, 09:00

A trailing partial slot is dropped, never rounded.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Tuple, Union

from clinic_booking import config
from clinic_booking.errors import ValidationError

MINUTES_PER_DAY = 24 * 60


def parse_time(value: str) -> int:
    """
    Convert an "HH:MM" label to minutes since midnight.

    Raises:
        ValidationError: If the label is malformed or out of range
    """
    try:
        parsed = datetime.strptime(value, "%H:%M")
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid time format '{value}'. Use HH:MM (e.g., 14:30)")
    return parsed.hour * 60 + parsed.minute


def format_time(minutes: int) -> str:
    """Format minutes since midnight as "HH:MM"."""
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def generate_slots(start_time: str, end_time: str, slot_duration: int) -> List[str]:
    """
    Generate slot labels for one working day.

    Args:
        start_time: Window start ("HH:MM")
        end_time: Window end ("HH:MM"), exclusive
        slot_duration: Slot length in minutes

    Returns:
        Chronological list of labels, each strictly before end_time.
        A slot that would run past end_time is not emitted.
        Empty when the duration is not positive or the window is empty.
    """
    if slot_duration <= 0:
        return []

    start = parse_time(start_time)
    end = parse_time(end_time)

    slots = []
    current = start
    while current + slot_duration <= end:
        slots.append(format_time(current))
        current += slot_duration
    return slots


def day_of_week(day: date) -> int:
    """Weekday number with Sunday=0 .. Saturday=6."""
    return (day.weekday() + 1) % 7


def day_window(day: date) -> Tuple[datetime, datetime]:
    """Half-open datetime window [start_of_day, start_of_next_day)."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def parse_day(value: Union[str, date, None]) -> date:
    """
    Read a calendar day from "YYYY-MM-DD" or an ISO datetime string.

    Only the calendar date is kept; no timezone conversion is applied.

    Raises:
        ValidationError: If value is missing or malformed
    """
    if value is None or value == "":
        raise ValidationError("date is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        pass
    try:
        return datetime.fromisoformat(value).date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date '{value}'. Use YYYY-MM-DD")


@dataclass
class Schedule:
    """Recurring weekly availability of a doctor."""
    working_days: List[int] = field(
        default_factory=lambda: list(config.DEFAULT_SCHEDULE["working_days"])
    )
    start_time: str = config.DEFAULT_SCHEDULE["start_time"]
    end_time: str = config.DEFAULT_SCHEDULE["end_time"]
    slot_duration: int = config.DEFAULT_SCHEDULE["slot_duration_minutes"]

    @classmethod
    def from_stored(
        cls,
        working_days: Optional[Iterable[int]] = None,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        slot_duration: Optional[int] = None,
    ) -> "Schedule":
        """Build a fully populated Schedule, defaulting absent fields."""
        defaults = cls()
        return cls(
            working_days=sorted(set(working_days)) if working_days else defaults.working_days,
            start_time=start_time or defaults.start_time,
            end_time=end_time or defaults.end_time,
            slot_duration=slot_duration or defaults.slot_duration,
        )

    def validate(self):
        """
        Check the schedule is usable.

        Raises:
            ValidationError: On bad weekdays, an empty window or a bad duration
        """
        for weekday in self.working_days:
            if not isinstance(weekday, int) or not 0 <= weekday <= 6:
                raise ValidationError(
                    f"Invalid working day {weekday!r}. Use 0 (Sunday) to 6 (Saturday)"
                )
        if parse_time(self.start_time) >= parse_time(self.end_time):
            raise ValidationError("startTime must be before endTime")
        if self.slot_duration <= 0 or self.slot_duration > MINUTES_PER_DAY:
            raise ValidationError("slotDuration must be a positive number of minutes")

    def works_on(self, day: date) -> bool:
        return day_of_week(day) in self.working_days

    def slots_for(self, day: date) -> List[str]:
        """Slot labels for a day; empty when the doctor does not work it."""
        if not self.works_on(day):
            return []
        return generate_slots(self.start_time, self.end_time, self.slot_duration)
