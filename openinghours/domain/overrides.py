"""
Providers that may override the regular weekly schedule for a given date.

The engine asks each provider in a fixed order (closing periods, filters,
exact-date exceptions, recurring exceptions); the first one that answers
decides the effective schedule for that date.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional, Protocol, Sequence, Tuple

from pendulum import DateTime

from .closing_period import ClosingPeriod, Date
from .merge import merge_ranges
from .models import OpeningHoursForDay, TimeRange

# A filter receives the date being resolved and returns range strings, or None
# when it has nothing to say about that date.
Filter = Callable[[DateTime], Optional[Sequence[str]]]

EXACT_KEY_FORMAT = "%Y-%m-%d"
RECURRING_KEY_FORMAT = "%m-%d"


class OverrideProvider(Protocol):
    """Protocol describing a source of date-specific schedules."""

    def resolve(self, moment: DateTime) -> Optional[OpeningHoursForDay]:
        """Return the schedule for the date, or None to defer to the next provider."""


@dataclass(frozen=True)
class ClosingPeriods:
    periods: Tuple[ClosingPeriod, ...] = ()

    def resolve(self, moment: DateTime) -> Optional[OpeningHoursForDay]:
        if any(period.is_in_range(moment) for period in self.periods):
            return OpeningHoursForDay()
        return None


@dataclass(frozen=True)
class FilterChain:
    """
    Filters evaluated in registration order; the first match wins.

    Filter output is coalesced like configured ranges, so overlapping
    results never fail a query.
    """
    filters: Tuple[Filter, ...] = ()

    def resolve(self, moment: DateTime) -> Optional[OpeningHoursForDay]:
        for date_filter in self.filters:
            result = date_filter(moment)
            if result is not None:
                ranges = [
                    value if isinstance(value, TimeRange) else TimeRange.from_string(value)
                    for value in result
                ]
                return OpeningHoursForDay(ranges=tuple(merge_ranges(ranges)))
        return None


@dataclass(frozen=True)
class DateTable:
    """Exceptions keyed by the date formatted with ``key_format``."""
    key_format: str
    table: Mapping[str, OpeningHoursForDay] = field(default_factory=dict)

    def resolve(self, moment: DateTime) -> Optional[OpeningHoursForDay]:
        return self.table.get(moment.strftime(self.key_format))


def split_exceptions(
    exceptions: Mapping[str, OpeningHoursForDay],
) -> Tuple[DateTable, DateTable]:
    """
    Split an exception registry into its exact-date and recurring tables.

    Keys must be `YYYY-MM-DD` or `MM-DD`; anything else raises InvalidDate.
    """
    exact: Dict[str, OpeningHoursForDay] = {}
    recurring: Dict[str, OpeningHoursForDay] = {}

    for key, opening_hours in exceptions.items():
        parsed = Date.from_string(key)
        target = recurring if parsed.is_recurring() else exact
        target[str(parsed)] = opening_hours

    return (
        DateTable(key_format=EXACT_KEY_FORMAT, table=exact),
        DateTable(key_format=RECURRING_KEY_FORMAT, table=recurring),
    )
