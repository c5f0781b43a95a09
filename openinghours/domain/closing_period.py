"""
Calendar dates and date ranges used for closing periods and exception keys.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

import pendulum

from .exceptions import InvalidDate

EXACT_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
RECURRING_DATE_PATTERN = re.compile(r"^(\d{2})-(\d{2})$")

# Recurring dates are validated against a leap year so that 02-29 is accepted.
_LEAP_YEAR = 2000


@dataclass(frozen=True)
class Date:
    """
    A calendar date without a time component.

    Without a year the date recurs every year (`12-25`).
    """
    day: int
    month: int
    year: Optional[int] = None

    @classmethod
    def from_string(cls, string: str) -> "Date":
        """
        Parse `YYYY-MM-DD` or `MM-DD`.

        Raises:
            InvalidDate: If the string has another shape or names no real date
        """
        if not isinstance(string, str):
            raise InvalidDate(str(string))

        exact = EXACT_DATE_PATTERN.match(string)
        recurring = RECURRING_DATE_PATTERN.match(string)

        if exact:
            year, month, day = (int(part) for part in exact.groups())
        elif recurring:
            year = None
            month, day = (int(part) for part in recurring.groups())
        else:
            raise InvalidDate(string)

        try:
            pendulum.date(_LEAP_YEAR if year is None else year, month, day)
        except ValueError as exc:
            raise InvalidDate(string) from exc

        return cls(day=day, month=month, year=year)

    @classmethod
    def from_date(cls, value: date) -> "Date":
        return cls(day=value.day, month=value.month, year=value.year)

    def is_recurring(self) -> bool:
        return self.year is None

    def month_day(self) -> Tuple[int, int]:
        return (self.month, self.day)

    def to_date(self) -> pendulum.Date:
        if self.year is None:
            raise InvalidDate(str(self), "a recurring date has no single calendar date")
        return pendulum.date(self.year, self.month, self.day)

    def __str__(self) -> str:
        if self.year is None:
            return f"{self.month:02d}-{self.day:02d}"
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


@dataclass(frozen=True)
class DateRange:
    """
    Inclusive range of calendar dates.

    Both ends share one format. A recurring range whose start lies after
    its end wraps over New Year, e.g. `12-24` to `01-02`.
    """
    start: Date
    end: Date

    def __post_init__(self):
        if self.start.is_recurring() != self.end.is_recurring():
            raise InvalidDate(
                f"{self.start} - {self.end}",
                "both ends of a closing period must use the same format",
            )
        if not self.start.is_recurring() and self.start.to_date() > self.end.to_date():
            raise InvalidDate(f"{self.start} - {self.end}", "the period ends before it starts")

    @classmethod
    def from_definition(cls, start: str, end: str) -> "DateRange":
        return cls(start=Date.from_string(start), end=Date.from_string(end))

    def is_recurring(self) -> bool:
        return self.start.is_recurring()

    def contains(self, value: date) -> bool:
        if not self.is_recurring():
            day = pendulum.date(value.year, value.month, value.day)
            return self.start.to_date() <= day <= self.end.to_date()

        current = (value.month, value.day)
        first, last = self.start.month_day(), self.end.month_day()
        if first <= last:
            return first <= current <= last
        return current >= first or current <= last

    def __str__(self) -> str:
        return f"{self.start} - {self.end}"


@dataclass(frozen=True)
class ClosingPeriod:
    """A date range during which the schedule is closed all day."""
    range: DateRange

    @classmethod
    def from_range(cls, start: str, end: str) -> "ClosingPeriod":
        return cls(range=DateRange.from_definition(start, end))

    def is_in_range(self, value: date) -> bool:
        """Test inclusive membership of the date, ignoring any time of day."""
        return self.range.contains(value)

    def __str__(self) -> str:
        return str(self.range)
