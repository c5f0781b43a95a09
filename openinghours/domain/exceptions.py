"""
Domain-specific exception hierarchy for the opening hours engine.
"""


class OpeningHoursError(Exception):
    """Base class for all library-level errors."""


class InvalidDayName(OpeningHoursError):
    """Raised when a weekday name does not match any known day."""

    def __init__(self, name: str):
        super().__init__(f"Day `{name}` isn't a valid day name. Valid day names are lowercase english words, e.g. `monday`, `thursday`.")
        self.name = name


class InvalidDate(OpeningHoursError):
    """Raised when a date key is neither `MM-DD` nor `YYYY-MM-DD`."""

    def __init__(self, value: str, reason: str | None = None):
        message = f"Date `{value}` isn't a valid date. Dates should be formatted as `YYYY-MM-DD`, e.g. `2016-12-25`, or `MM-DD`, e.g. `12-25`."
        if reason:
            message = f"Date `{value}` is invalid: {reason}"
        super().__init__(message)
        self.value = value


class InvalidTimeString(OpeningHoursError):
    """Raised when a time isn't formatted as `HH:MM`."""


class InvalidTimeRangeString(OpeningHoursError):
    """Raised when a time range isn't formatted as `HH:MM-HH:MM` or is inverted."""


class OverlappingTimeRanges(OpeningHoursError):
    """Raised when a single day is built from ranges that overlap."""


class InvalidTimezone(OpeningHoursError):
    """Raised when a timezone name cannot be resolved."""


class SearchLimitExceeded(OpeningHoursError):
    """Raised when next_open/next_close runs past its lookahead horizon."""
