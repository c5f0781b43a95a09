"""
The opening hours resolution engine.

This is the heart of the library - it combines the regular weekly schedule
with closing periods, filters and date exceptions, and answers queries such
as "is it open at this instant?" or "when does it open next?".
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pendulum
from pendulum import DateTime

from .closing_period import ClosingPeriod, Date
from .exceptions import InvalidTimezone, SearchLimitExceeded
from .models import Day, OpeningHoursForDay, Time
from .overrides import ClosingPeriods, Filter, FilterChain, OverrideProvider, split_exceptions

logger = logging.getLogger(__name__)

STRUCTURED_DATA_TYPE = "OpeningHoursSpecification"


def resolve_timezone(name: str) -> pendulum.Timezone:
    """Look up a timezone by name, raising InvalidTimezone for unknown zones."""
    try:
        return pendulum.timezone(name)
    except (KeyError, ValueError) as exc:
        raise InvalidTimezone(f"Unknown timezone `{name}`") from exc


class OpeningHours:
    """
    Weekly opening hours with closing periods, filters and exceptions.

    The effective schedule of a date is resolved with strict precedence:
    1. Closing periods (closed all day)
    2. Filters, in registration order
    3. Exceptions for the exact date (`2024-12-24`)
    4. Exceptions recurring every year (`12-24`)
    5. The regular schedule of the weekday

    Instances are read-only after construction apart from ``set_timezone``
    and ``set_filters``.
    """

    def __init__(self, timezone: str | None = None):
        self._timezone = resolve_timezone(timezone) if timezone else None
        self._opening_hours: Dict[Day, OpeningHoursForDay] = {
            day: OpeningHoursForDay() for day in Day
        }
        self._closing_periods: Tuple[ClosingPeriod, ...] = ()
        self._exceptions: Dict[str, OpeningHoursForDay] = {}
        self._exact_exceptions, self._recurring_exceptions = split_exceptions({})
        self._filters: Tuple[Filter, ...] = ()
        self.data: Any = None

    # Construction

    @classmethod
    def build(
        cls,
        daily_schedules: Mapping[str | Day, OpeningHoursForDay],
        closing_periods: Iterable[ClosingPeriod] = (),
        exceptions: Mapping[str, OpeningHoursForDay] | None = None,
        filters: Sequence[Filter] = (),
        timezone: str | None = None,
        data: Any = None,
    ) -> "OpeningHours":
        """
        Assemble an engine from already parsed parts.

        Args:
            daily_schedules: Schedule per weekday; missing days are closed
            closing_periods: Date ranges that are closed all day
            exceptions: Schedules keyed by `YYYY-MM-DD` or `MM-DD`
            filters: Functions mapping a date to range strings or None
            timezone: Zone applied to every query instant
            data: Free-form metadata

        Raises:
            InvalidDayName: If a schedule key isn't a weekday
            InvalidDate: If an exception key isn't a valid date
            InvalidTimezone: If the timezone is unknown
        """
        opening_hours = cls(timezone=timezone)

        for day, schedule in daily_schedules.items():
            opening_hours._opening_hours[Day.from_name(day)] = schedule

        opening_hours._closing_periods = tuple(closing_periods)
        opening_hours._set_exceptions(exceptions or {})
        opening_hours.set_filters(filters)
        opening_hours.data = data

        return opening_hours

    @classmethod
    def create(cls, data: Mapping[str, Any], timezone: str | None = None) -> "OpeningHours":
        """Build an engine from a nested configuration mapping."""
        from ..config import OpeningHoursConfig

        return OpeningHoursConfig.model_validate(data).to_opening_hours(timezone=timezone)

    @classmethod
    def merge_overlapping_ranges(cls, data: Mapping[str, Any]) -> Dict[str, Any]:
        from .merge import merge_overlapping_ranges

        return merge_overlapping_ranges(dict(data))

    @classmethod
    def create_and_merge_overlapping_ranges(
        cls,
        data: Mapping[str, Any],
        timezone: str | None = None,
    ) -> "OpeningHours":
        return cls.create(cls.merge_overlapping_ranges(data), timezone=timezone)

    @classmethod
    def is_valid(cls, data: Mapping[str, Any]) -> bool:
        """Tell whether a configuration builds, without raising."""
        from pydantic import ValidationError

        from .exceptions import OpeningHoursError

        try:
            cls.create(data)
        except (OpeningHoursError, ValidationError) as exc:
            logger.debug("Opening hours configuration is invalid: %s", exc)
            return False
        return True

    def _set_exceptions(self, exceptions: Mapping[str, OpeningHoursForDay]) -> None:
        self._exact_exceptions, self._recurring_exceptions = split_exceptions(exceptions)
        self._exceptions = {
            str(Date.from_string(key)): opening_hours
            for key, opening_hours in exceptions.items()
        }

    # Configuration access

    @property
    def timezone(self) -> Optional[pendulum.Timezone]:
        return self._timezone

    def set_timezone(self, timezone: str) -> None:
        self._timezone = resolve_timezone(timezone)

    @property
    def filters(self) -> Tuple[Filter, ...]:
        return self._filters

    def set_filters(self, filters: Sequence[Filter]) -> "OpeningHours":
        self._filters = tuple(filters)
        return self

    @property
    def closing_periods(self) -> Tuple[ClosingPeriod, ...]:
        return self._closing_periods

    @property
    def exceptions(self) -> Dict[str, OpeningHoursForDay]:
        return dict(self._exceptions)

    def _override_providers(self) -> Tuple[OverrideProvider, ...]:
        return (
            ClosingPeriods(self._closing_periods),
            FilterChain(self._filters),
            self._exact_exceptions,
            self._recurring_exceptions,
        )

    # Schedule lookups

    def for_regular_week(self) -> Dict[Day, OpeningHoursForDay]:
        return dict(self._opening_hours)

    def for_week(self, reference: date | None = None) -> Dict[Day, OpeningHoursForDay]:
        """Effective schedules for the Monday-Sunday week containing ``reference``."""
        moment = self._apply_timezone(reference) if reference is not None else self._now()
        monday = moment.start_of("week")

        return {
            day: self.for_date(monday.add(days=offset))
            for offset, day in enumerate(Day.days())
        }

    def for_week_combined(self) -> Dict[Day, Dict[str, Any]]:
        """
        Group the regular weekdays that share an identical schedule.

        Returns a mapping from the first day of each group to
        ``{"days": [...], "opening_hours": OpeningHoursForDay}``.
        """
        combined: Dict[Day, Dict[str, Any]] = {}

        for day, opening_hours in self._opening_hours.items():
            for group in combined.values():
                if group["opening_hours"] == opening_hours:
                    group["days"].append(day)
                    break
            else:
                combined[day] = {"days": [day], "opening_hours": opening_hours}

        return combined

    def for_day(self, day: str | Day) -> OpeningHoursForDay:
        return self._opening_hours[Day.from_name(day)]

    def for_date(self, value: date) -> OpeningHoursForDay:
        """Resolve the effective schedule of a calendar date."""
        moment = self._apply_timezone(value)

        for provider in self._override_providers():
            opening_hours = provider.resolve(moment)
            if opening_hours is not None:
                return opening_hours

        return self._opening_hours[Day.on_date(moment)]

    # Point in time queries

    def is_open_on(self, day: str | Day) -> bool:
        return not self.for_day(day).is_empty()

    def is_closed_on(self, day: str | Day) -> bool:
        return not self.is_open_on(day)

    def is_open_at(self, value: datetime) -> bool:
        """
        Check whether the schedule is open at an instant.

        Ranges of the previous date that run past midnight (hours >= 24)
        count as well.
        """
        moment = self._apply_timezone(value)
        time = Time.from_datetime(moment)

        if self.for_date(moment).is_open_at(time):
            return True

        return self.for_date(moment.subtract(days=1)).is_open_at(time.overnight())

    def is_closed_at(self, value: datetime) -> bool:
        return not self.is_open_at(value)

    def is_open(self) -> bool:
        return self.is_open_at(self._now())

    def is_closed(self) -> bool:
        return not self.is_open()

    # Next open / close search

    def next_open(self, value: datetime, max_days: int | None = None) -> DateTime:
        """
        Find the first instant after ``value`` at which the schedule opens.

        The search walks forward day by day without bound unless ``max_days``
        is given; a schedule that never opens will otherwise never return.

        Raises:
            SearchLimitExceeded: If nothing was found within ``max_days`` days
        """
        return self._next_transition(self._apply_timezone(value), opening=True, max_days=max_days)

    def next_close(self, value: datetime, max_days: int | None = None) -> DateTime:
        """
        Find the first instant after ``value`` at which the schedule closes.

        Same termination contract as ``next_open``.
        """
        return self._next_transition(self._apply_timezone(value), opening=False, max_days=max_days)

    def _next_transition(self, moment: DateTime, opening: bool, max_days: int | None) -> DateTime:
        edge_kind = "opening" if opening else "closing"
        day = moment.start_of("day")
        after = Time.from_datetime(moment)
        days_searched = 0

        while True:
            edge = self._next_edge(day, after, opening)

            while edge is not None:
                candidate = day.set(hour=edge.hour, minute=edge.minute)
                if self._flips_at(candidate, opening):
                    return candidate

                logger.debug("Skipping %s at %s, state doesn't change there", edge_kind, candidate)
                after = edge
                edge = self._next_edge(day, after, opening)

            days_searched += 1
            if max_days is not None and days_searched > max_days:
                raise SearchLimitExceeded(
                    f"No {edge_kind} found within {max_days} days after {moment.to_datetime_string()}"
                )

            day = day.add(days=1)
            logger.debug("No further %s on the previous day, continuing on %s", edge_kind, day.to_date_string())

            # The new day may start with the transition itself, unless the
            # previous day's ranges already carried the state over midnight.
            if self._flips_at(day, opening):
                return day

            after = Time(0, 0)

    def _next_edge(self, day: DateTime, after: Time, opening: bool) -> Optional[Time]:
        """
        Earliest boundary on the calendar date ``day`` strictly after ``after``.

        Boundaries of the date's own schedule count below 24:00; boundaries of
        the previous date's schedule count from 24:00 on, shifted back a day.
        """
        def next_edge(opening_hours: OpeningHoursForDay, time: Time) -> Optional[Time]:
            return opening_hours.next_open(time) if opening else opening_hours.next_close(time)

        candidates: List[Time] = []

        own = next_edge(self.for_date(day), after)
        if own is not None and not own.is_overnight():
            candidates.append(own)

        carried = next_edge(self.for_date(day.subtract(days=1)), after.overnight())
        if carried is not None:
            candidates.append(Time(hour=carried.hour - 24, minute=carried.minute))

        return min(candidates, default=None)

    def _flips_at(self, moment: DateTime, opening: bool) -> bool:
        was_open = self.is_open_at(moment.subtract(seconds=1))
        is_open = self.is_open_at(moment)
        if opening:
            return is_open and not was_open
        return was_open and not is_open

    # Reporting

    def regular_closing_days(self) -> List[Day]:
        return list(self.filter(lambda opening_hours, day: opening_hours.is_empty()))

    def regular_closing_days_iso(self) -> List[int]:
        return [day.to_iso() for day in self.regular_closing_days()]

    def exceptional_closing_dates(self) -> List[pendulum.Date]:
        """Closed exact-date exceptions; recurring keys have no single date."""
        closed = self.filter_exceptions(lambda opening_hours, key: opening_hours.is_empty())
        dates = [Date.from_string(key) for key in closed]
        return [value.to_date() for value in dates if not value.is_recurring()]

    def filter(self, callback: Callable[[OpeningHoursForDay, Day], bool]) -> Dict[Day, OpeningHoursForDay]:
        return {
            day: opening_hours
            for day, opening_hours in self._opening_hours.items()
            if callback(opening_hours, day)
        }

    def map(self, callback: Callable[[OpeningHoursForDay, Day], Any]) -> Dict[Day, Any]:
        return {day: callback(opening_hours, day) for day, opening_hours in self._opening_hours.items()}

    def flat_map(self, callback: Callable[[OpeningHoursForDay, Day], Iterable[Any]]) -> List[Any]:
        return [
            item
            for day, opening_hours in self._opening_hours.items()
            for item in callback(opening_hours, day)
        ]

    def filter_exceptions(self, callback: Callable[[OpeningHoursForDay, str], bool]) -> Dict[str, OpeningHoursForDay]:
        return {
            key: opening_hours
            for key, opening_hours in self._exceptions.items()
            if callback(opening_hours, key)
        }

    def map_exceptions(self, callback: Callable[[OpeningHoursForDay, str], Any]) -> Dict[str, Any]:
        return {key: callback(opening_hours, key) for key, opening_hours in self._exceptions.items()}

    def flat_map_exceptions(self, callback: Callable[[OpeningHoursForDay, str], Iterable[Any]]) -> List[Any]:
        return [
            item
            for key, opening_hours in self._exceptions.items()
            for item in callback(opening_hours, key)
        ]

    def as_structured_data(self) -> List[Dict[str, str]]:
        """Export the schedule as schema.org OpeningHoursSpecification records."""
        def regular(opening_hours: OpeningHoursForDay, day: Day) -> List[Dict[str, str]]:
            return opening_hours.map(lambda time_range: {
                "@type": STRUCTURED_DATA_TYPE,
                "dayOfWeek": day.display_name,
                "opens": str(time_range.start),
                "closes": str(time_range.end),
            })

        def exception(opening_hours: OpeningHoursForDay, key: str) -> List[Dict[str, str]]:
            if opening_hours.is_empty():
                return [_exception_record("00:00", "00:00", key)]
            return opening_hours.map(
                lambda time_range: _exception_record(str(time_range.start), str(time_range.end), key)
            )

        return self.flat_map(regular) + self.flat_map_exceptions(exception)

    # Helpers

    def _now(self) -> DateTime:
        return pendulum.now(self._timezone) if self._timezone else pendulum.now()

    def _apply_timezone(self, value: date) -> DateTime:
        """
        Convert any date or datetime into a pendulum DateTime in the configured zone.

        Naive values are read as wall-clock time in that zone, plain dates as
        their midnight.
        """
        if not isinstance(value, datetime):
            value = datetime(value.year, value.month, value.day)

        if value.tzinfo is None:
            return pendulum.datetime(
                value.year, value.month, value.day,
                value.hour, value.minute, value.second, value.microsecond,
                tz=self._timezone or "UTC",
            )

        moment = pendulum.instance(value)
        return moment.in_timezone(self._timezone) if self._timezone else moment


def _exception_record(opens: str, closes: str, key: str) -> Dict[str, str]:
    return {
        "@type": STRUCTURED_DATA_TYPE,
        "opens": opens,
        "closes": closes,
        "validFrom": key,
        "validThrough": key,
    }
