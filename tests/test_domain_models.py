"""
Tests for domain models.
"""

import pendulum
import pytest

from openinghours.domain.exceptions import (
    InvalidDayName,
    InvalidTimeRangeString,
    InvalidTimeString,
    OverlappingTimeRanges,
)
from openinghours.domain.models import Day, OpeningHoursForDay, Time, TimeRange


class TestTime:
    """Tests for Time model."""

    def test_parse_and_format(self):
        """Test round-tripping a time through its string form."""
        time = Time.from_string("09:30")

        assert time.hour == 9
        assert time.minute == 30
        assert str(time) == "09:30"

    def test_overnight_hours_are_allowed(self):
        """Test that hours past midnight keep their extended form."""
        time = Time.from_string("26:15")

        assert time.is_overnight()
        assert str(time) == "26:15"
        assert time > Time(23, 59)

    @pytest.mark.parametrize("value", ["9:00", "09:60", "48:00", "nine", "09:00:00"])
    def test_invalid_time_strings_raise_error(self, value):
        """Test that malformed times are rejected."""
        with pytest.raises(InvalidTimeString):
            Time.from_string(value)

    def test_error_message_names_the_format(self):
        """Test that the error explains the expected format."""
        with pytest.raises(InvalidTimeString, match="must be formatted as `HH:MM`"):
            Time.from_string("9h")

    def test_from_datetime_drops_seconds(self):
        """Test that seconds are ignored when taking the time of a datetime."""
        dt = pendulum.datetime(2024, 11, 25, 11, 59, 59)

        assert Time.from_datetime(dt) == Time(11, 59)

    def test_overnight_shift(self):
        """Test expressing a time against the previous day."""
        assert Time(1, 30).overnight() == Time(25, 30)


class TestTimeRange:
    """Tests for TimeRange model."""

    def test_create_valid_time_range(self):
        """Test creating a valid time range."""
        tr = TimeRange.from_string("09:00-17:00")

        assert tr.start == Time(9, 0)
        assert tr.end == Time(17, 0)
        assert tr.duration_minutes() == 480  # 8 hours
        assert str(tr) == "09:00-17:00"

    @pytest.mark.parametrize("value", ["17:00-09:00", "09:00-09:00"])
    def test_inverted_or_empty_range_raises_error(self, value):
        """Test that a range must start before it ends."""
        with pytest.raises(InvalidTimeRangeString, match="must be before end time"):
            TimeRange.from_string(value)

    def test_malformed_range_raises_error(self):
        """Test that a range needs exactly two times."""
        with pytest.raises(InvalidTimeRangeString, match="must be formatted as `HH:MM-HH:MM`"):
            TimeRange.from_string("09:00")

    def test_overlaps(self):
        """Test overlap detection."""
        tr1 = TimeRange.from_string("09:00-12:00")
        tr2 = TimeRange.from_string("11:00-14:00")
        tr3 = TimeRange.from_string("14:00-17:00")

        assert tr1.overlaps(tr2)
        assert tr2.overlaps(tr1)
        assert not tr1.overlaps(tr3)

    def test_touching_ranges_do_not_overlap(self):
        """Test that sharing an endpoint is not an overlap."""
        morning = TimeRange.from_string("09:00-12:00")
        afternoon = TimeRange.from_string("12:00-17:00")

        assert not morning.overlaps(afternoon)
        assert not afternoon.overlaps(morning)

    def test_contains_time_is_half_open(self):
        """Test that the start is included and the end is not."""
        tr = TimeRange.from_string("09:00-12:00")

        assert tr.contains_time(Time(9, 0))
        assert tr.contains_time(Time(11, 59))
        assert not tr.contains_time(Time(12, 0))
        assert not tr.contains_time(Time(8, 59))

    def test_from_list_spans_all_ranges(self):
        """Test spanning several ranges."""
        spanned = TimeRange.from_list([
            TimeRange.from_string("11:00-18:00"),
            TimeRange.from_string("09:00-12:00"),
        ])

        assert str(spanned) == "09:00-18:00"


class TestDay:
    """Tests for Day enumeration."""

    def test_names_are_case_insensitive(self):
        """Test parsing day names regardless of case."""
        assert Day.from_name("MONDAY") is Day.MONDAY
        assert Day.from_name("Sunday") is Day.SUNDAY
        assert Day.is_valid("tuesday")

    def test_invalid_day_name_raises_error(self):
        """Test that unknown names are rejected."""
        assert not Day.is_valid("funday")

        with pytest.raises(InvalidDayName, match="funday"):
            Day.from_name("funday")

    def test_on_date(self):
        """Test looking up the weekday of a date."""
        assert Day.on_date(pendulum.date(2024, 11, 25)) is Day.MONDAY
        assert Day.on_date(pendulum.datetime(2024, 12, 25, 23, 30)) is Day.WEDNESDAY

    def test_iso_numbering(self):
        """Test the ISO day numbers."""
        assert Day.MONDAY.to_iso() == 1
        assert Day.SUNDAY.to_iso() == 7
        assert Day.from_iso(3) is Day.WEDNESDAY

        with pytest.raises(InvalidDayName):
            Day.from_iso(8)


class TestOpeningHoursForDay:
    """Tests for OpeningHoursForDay model."""

    def test_ranges_are_sorted(self):
        """Test that ranges are kept in chronological order."""
        day = OpeningHoursForDay.from_strings(["13:00-18:00", "09:00-12:00"])

        assert [str(tr) for tr in day] == ["09:00-12:00", "13:00-18:00"]
        assert str(day) == "09:00-12:00,13:00-18:00"
        assert len(day) == 2

    def test_overlapping_ranges_raise_error(self):
        """Test that a day cannot hold overlapping ranges."""
        with pytest.raises(OverlappingTimeRanges):
            OpeningHoursForDay.from_strings(["09:00-12:00", "11:00-14:00"])

    def test_empty_day_is_closed(self):
        """Test that no ranges means closed all day."""
        day = OpeningHoursForDay.from_strings([])

        assert day.is_empty()
        assert not day.is_open_at(Time(12, 0))

    def test_is_open_at(self):
        """Test point in time checks."""
        day = OpeningHoursForDay.from_strings(["09:00-12:00", "13:00-18:00"])

        assert day.is_open_at(Time(9, 0))
        assert not day.is_open_at(Time(12, 30))
        assert not day.is_open_at(Time(18, 0))

    def test_next_open_and_close(self):
        """Test finding the next boundary after a time."""
        day = OpeningHoursForDay.from_strings(["09:00-12:00", "13:00-18:00"])

        assert day.next_open(Time(8, 0)) == Time(9, 0)
        assert day.next_open(Time(9, 0)) == Time(13, 0)
        assert day.next_open(Time(13, 0)) is None
        assert day.next_close(Time(10, 0)) == Time(12, 0)
        assert day.next_close(Time(12, 30)) == Time(18, 0)
        assert day.next_close(Time(18, 0)) is None

    def test_equality_is_structural(self):
        """Test that order and metadata don't affect equality."""
        first = OpeningHoursForDay.from_strings(["09:00-12:00", "13:00-18:00"], data="a")
        second = OpeningHoursForDay.from_strings(["13:00-18:00", "09:00-12:00"], data="b")

        assert first == second
        assert first != OpeningHoursForDay.from_strings(["09:00-12:00"])
