"""
Domain layer - Pure scheduling logic without I/O.
"""

from .closing_period import ClosingPeriod, Date, DateRange
from .merge import merge_overlapping_ranges, merge_ranges
from .models import Day, OpeningHoursForDay, Time, TimeRange
from .opening_hours import OpeningHours

__all__ = [
    "ClosingPeriod",
    "Date",
    "DateRange",
    "Day",
    "OpeningHours",
    "OpeningHoursForDay",
    "Time",
    "TimeRange",
    "merge_overlapping_ranges",
    "merge_ranges",
]
