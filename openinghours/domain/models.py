"""
Domain models for wall-clock times, time ranges, weekdays and daily schedules.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple

from .exceptions import (
    InvalidDayName,
    InvalidTimeRangeString,
    InvalidTimeString,
    OverlappingTimeRanges,
)

TIME_PATTERN = re.compile(r"^(\d{2}):(\d{2})$")

# Hours 24-47 belong to the overnight continuation of the day a range is attributed to.
MAX_HOUR = 47


@dataclass(frozen=True, order=True)
class Time:
    """
    A wall-clock time within a day.

    The hour may exceed 23 to express hours past the midnight that follows
    the day the time belongs to ("26:00" is 02:00 the next morning).
    """
    hour: int
    minute: int

    def __post_init__(self):
        if not 0 <= self.hour <= MAX_HOUR or not 0 <= self.minute <= 59:
            raise InvalidTimeString(f"The string `{self}` isn't a valid time string. A time string must be formatted as `HH:MM`, e.g. `18:00`.")

    @classmethod
    def from_string(cls, string: str) -> "Time":
        match = TIME_PATTERN.match(string.strip())
        if not match:
            raise InvalidTimeString(f"The string `{string}` isn't a valid time string. A time string must be formatted as `HH:MM`, e.g. `18:00`.")
        return cls(hour=int(match.group(1)), minute=int(match.group(2)))

    @classmethod
    def from_datetime(cls, dt: datetime) -> "Time":
        """Take the time of day of a datetime, dropping seconds."""
        return cls(hour=dt.hour, minute=dt.minute)

    def to_minutes(self) -> int:
        return self.hour * 60 + self.minute

    def overnight(self) -> "Time":
        """The same wall-clock time expressed against the previous day."""
        return Time(hour=self.hour + 24, minute=self.minute)

    def is_overnight(self) -> bool:
        return self.hour >= 24

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable interval between two times of the same day.

    Invariant: start must be before end. Ranges are half-open: a range
    contains its start but not its end.
    """
    start: Time
    end: Time

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidTimeRangeString(f"Start time {self.start} must be before end time {self.end}")

    @classmethod
    def from_string(cls, string: str) -> "TimeRange":
        parts = string.split("-")
        if len(parts) != 2:
            raise InvalidTimeRangeString(f"The string `{string}` isn't a time range string. A time range string must be formatted as `HH:MM-HH:MM`, e.g. `09:00-18:00`.")
        return cls(start=Time.from_string(parts[0]), end=Time.from_string(parts[1]))

    @classmethod
    def from_list(cls, ranges: Iterable["TimeRange"]) -> "TimeRange":
        """Span a list of ranges from the earliest start to the latest end."""
        ranges = list(ranges)
        if not ranges:
            raise InvalidTimeRangeString("Cannot build a time range from an empty list")
        return cls(
            start=min(r.start for r in ranges),
            end=max(r.end for r in ranges),
        )

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another. Touching ranges don't overlap."""
        return self.start < other.end and self.end > other.start

    def contains_time(self, time: Time) -> bool:
        return self.start <= time < self.end

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end.to_minutes() - self.start.to_minutes()

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


class Day(Enum):
    """The seven weekdays, valued by their lowercase english name."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def days(cls) -> List["Day"]:
        return list(cls)

    @classmethod
    def is_valid(cls, name: str) -> bool:
        return name.lower() in {day.value for day in cls}

    @classmethod
    def from_name(cls, name: "str | Day") -> "Day":
        """Parse a day name case-insensitively."""
        if isinstance(name, Day):
            return name
        if not isinstance(name, str) or not cls.is_valid(name):
            raise InvalidDayName(str(name))
        return cls(name.lower())

    @classmethod
    def on_date(cls, value: date) -> "Day":
        """Which weekday a calendar date falls on."""
        return cls.days()[value.weekday()]

    @classmethod
    def from_iso(cls, number: int) -> "Day":
        """1 is Monday, 7 is Sunday."""
        if not 1 <= number <= 7:
            raise InvalidDayName(str(number))
        return cls.days()[number - 1]

    def to_iso(self) -> int:
        return Day.days().index(self) + 1

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class OpeningHoursForDay:
    """
    The schedule of a single day: sorted, mutually non-overlapping ranges.

    An empty schedule means closed all day. ``data`` carries optional
    metadata and does not take part in equality.
    """
    ranges: Tuple[TimeRange, ...] = ()
    data: Any = field(default=None, compare=False)

    def __post_init__(self):
        ordered = tuple(sorted(self.ranges, key=lambda r: (r.start, r.end)))
        for previous, current in zip(ordered, ordered[1:]):
            if previous.overlaps(current):
                raise OverlappingTimeRanges(f"Time ranges {previous} and {current} overlap.")
        object.__setattr__(self, "ranges", ordered)

    @classmethod
    def from_strings(cls, strings: Iterable["str | TimeRange"], data: Any = None) -> "OpeningHoursForDay":
        ranges = [
            value if isinstance(value, TimeRange) else TimeRange.from_string(value)
            for value in strings
        ]
        return cls(ranges=tuple(ranges), data=data)

    def is_empty(self) -> bool:
        return not self.ranges

    def is_open_at(self, time: Time) -> bool:
        return any(time_range.contains_time(time) for time_range in self.ranges)

    def next_open(self, time: Time) -> Optional[Time]:
        """Earliest range start strictly after ``time``."""
        for time_range in self.ranges:
            if time_range.start > time:
                return time_range.start
        return None

    def next_close(self, time: Time) -> Optional[Time]:
        """Earliest range end strictly after ``time``."""
        for time_range in self.ranges:
            if time_range.end > time:
                return time_range.end
        return None

    def map(self, callback: Callable[[TimeRange], Any]) -> List[Any]:
        return [callback(time_range) for time_range in self.ranges]

    def __len__(self) -> int:
        return len(self.ranges)

    def __iter__(self) -> Iterator[TimeRange]:
        return iter(self.ranges)

    def __getitem__(self, index: int) -> TimeRange:
        return self.ranges[index]

    def __str__(self) -> str:
        return ",".join(str(time_range) for time_range in self.ranges)
