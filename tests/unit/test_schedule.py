"""Tests for schedules and slot generation."""
import pytest

from clinic_booking.errors import ValidationError
from clinic_booking.schedule import (
    Schedule, day_of_week, day_window, format_time, generate_slots, parse_day, parse_time,
)
from tests.utils.booking_data import DEFAULT_DAY_SLOTS, MONDAY, SATURDAY, SUNDAY


class TestGenerateSlots:
    """Slot labels for one working day."""

    def test_default_day_has_eighteen_slots(self):
        """08:00-17:00 in 30 minute slots -> 08:00 ... 16:30."""
        slots = generate_slots("08:00", "17:00", 30)

        assert slots == DEFAULT_DAY_SLOTS
        assert len(slots) == 18
        assert slots[0] == "08:00"
        assert slots[-1] == "16:30"

    @pytest.mark.parametrize("start,end,duration", [
        ("08:00", "17:00", 30),
        ("09:00", "12:00", 20),
        ("13:00", "17:30", 45),
        ("08:00", "09:45", 30),
        ("00:00", "23:59", 60),
        ("10:00", "10:07", 7),
    ])
    def test_length_order_and_bounds(self, start, end, duration):
        """Length is floor((end-start)/duration); labels increase and stay before end."""
        slots = generate_slots(start, end, duration)
        minutes = [parse_time(slot) for slot in slots]

        assert len(slots) == (parse_time(end) - parse_time(start)) // duration
        assert minutes == sorted(set(minutes))
        assert all(m < parse_time(end) for m in minutes)

    def test_trailing_partial_slot_is_dropped(self):
        """A slot that would run past the end is not emitted."""
        assert generate_slots("08:00", "09:45", 30) == ["08:00", "08:30", "09:00"]

    @pytest.mark.parametrize("duration", [0, -15])
    def test_non_positive_duration_gives_no_slots(self, duration):
        assert generate_slots("08:00", "17:00", duration) == []

    @pytest.mark.parametrize("start,end", [("17:00", "08:00"), ("09:00", "09:00")])
    def test_empty_window_gives_no_slots(self, start, end):
        assert generate_slots(start, end, 30) == []

    def test_duration_longer_than_window(self):
        assert generate_slots("08:00", "08:20", 30) == []

    def test_same_input_same_output(self):
        assert generate_slots("08:00", "17:00", 15) == generate_slots("08:00", "17:00", 15)


class TestTimeHelpers:

    def test_parse_and_format(self):
        assert parse_time("08:30") == 510
        assert format_time(510) == "08:30"
        assert format_time(0) == "00:00"

    @pytest.mark.parametrize("bad", ["8h30", "25:00", "", None, "12:60"])
    def test_parse_time_rejects_malformed(self, bad):
        with pytest.raises(ValidationError):
            parse_time(bad)

    def test_day_of_week_starts_on_sunday(self):
        assert day_of_week(SUNDAY) == 0
        assert day_of_week(MONDAY) == 1
        assert day_of_week(SATURDAY) == 6

    def test_day_window_is_half_open(self):
        start, next_start = day_window(MONDAY)

        assert start.date() == MONDAY
        assert start.hour == 0 and start.minute == 0
        assert (next_start - start).days == 1
        assert next_start.date() == MONDAY.replace(day=MONDAY.day + 1)

    def test_parse_day_accepts_date_and_datetime_strings(self):
        assert parse_day("2030-01-07") == MONDAY
        assert parse_day("2030-01-07T23:30:00") == MONDAY
        assert parse_day("2030-01-07T10:00:00+07:00") == MONDAY
        assert parse_day(MONDAY) == MONDAY

    @pytest.mark.parametrize("bad", [None, "", "07/01/2030", "2030-13-01", "tomorrow"])
    def test_parse_day_rejects_missing_or_malformed(self, bad):
        with pytest.raises(ValidationError):
            parse_day(bad)


class TestSchedule:
    """Schedule defaults and validation."""

    def test_defaults(self):
        schedule = Schedule()

        assert schedule.working_days == [1, 2, 3, 4, 5]
        assert schedule.start_time == "08:00"
        assert schedule.end_time == "17:00"
        assert schedule.slot_duration == 30

    def test_from_stored_fills_absent_fields(self):
        schedule = Schedule.from_stored(working_days=[], start_time=None, end_time="12:00")

        assert schedule.working_days == [1, 2, 3, 4, 5]
        assert schedule.start_time == "08:00"
        assert schedule.end_time == "12:00"
        assert schedule.slot_duration == 30

    def test_from_stored_deduplicates_days(self):
        schedule = Schedule.from_stored(working_days=[3, 1, 3])
        assert schedule.working_days == [1, 3]

    def test_slots_for_day_off_is_empty(self):
        schedule = Schedule()

        assert schedule.slots_for(SUNDAY) == []
        assert schedule.slots_for(SATURDAY) == []
        assert len(schedule.slots_for(MONDAY)) == 18

    def test_weekend_schedule(self):
        schedule = Schedule(working_days=[0, 6], start_time="09:00", end_time="11:00", slot_duration=60)

        assert schedule.slots_for(SUNDAY) == ["09:00", "10:00"]
        assert schedule.slots_for(MONDAY) == []

    @pytest.mark.parametrize("kwargs", [
        {"working_days": [7]},
        {"working_days": [-1]},
        {"start_time": "17:00", "end_time": "08:00"},
        {"start_time": "09:00", "end_time": "09:00"},
        {"slot_duration": 0},
        {"start_time": "9am"},
    ])
    def test_validate_rejects_unusable_schedules(self, kwargs):
        with pytest.raises(ValidationError):
            Schedule(**kwargs).validate()

    def test_validate_accepts_defaults(self):
        Schedule().validate()
