"""
Opening hours - weekly schedules with exceptions, closing periods and overnight ranges.
"""

from .domain import (
    ClosingPeriod,
    Day,
    OpeningHours,
    OpeningHoursForDay,
    Time,
    TimeRange,
)

__version__ = "0.1.0"

__all__ = [
    "ClosingPeriod",
    "Day",
    "OpeningHours",
    "OpeningHoursForDay",
    "Time",
    "TimeRange",
    "__version__",
]
