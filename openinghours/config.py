"""
Configuration parsing using Pydantic.

Turns the nested mapping users write (per-weekday range lists, closing
periods, exceptions, filters and metadata) into a populated OpeningHours.
"""

import logging
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .domain.closing_period import ClosingPeriod, Date
from .domain.models import Day, OpeningHoursForDay
from .domain.opening_hours import OpeningHours

logger = logging.getLogger(__name__)


def _date_key(value: Any) -> Any:
    """YAML reads unquoted ISO dates as date objects; turn them back into keys."""
    if isinstance(value, date):
        return value.isoformat()
    return value


class DayScheduleConfig(BaseModel):
    """Schedule of one weekday or exception: its ranges plus optional metadata."""
    hours: List[str] = Field(default_factory=list)
    data: Any = None

    @model_validator(mode="before")
    @classmethod
    def accept_plain_list(cls, value: Any) -> Any:
        """Allow the short form, a bare list of range strings."""
        if value is None:
            return {"hours": []}
        if isinstance(value, (list, tuple)):
            return {"hours": list(value)}
        return value

    def to_opening_hours_for_day(self) -> OpeningHoursForDay:
        return OpeningHoursForDay.from_strings(self.hours, data=self.data)


class OpeningHoursConfig(BaseModel):
    """Opening hours configuration."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    days: Dict[Day, DayScheduleConfig] = Field(default_factory=dict)
    closing_periods: Dict[str, str] = Field(default_factory=dict)
    exceptions: Dict[str, DayScheduleConfig] = Field(default_factory=dict)
    filters: List[Callable] = Field(default_factory=list)
    data: Any = None
    timezone: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def split_sections(cls, value: Any) -> Any:
        """
        Sort the flat user mapping into sections.

        Callable exceptions join the end of the filter chain, every other
        top-level key must be a weekday name.

        Raises:
            InvalidDayName: If a top-level key isn't a weekday or reserved key
        """
        if not isinstance(value, dict) or "days" in value:
            return value

        remaining = dict(value)
        filters = remaining.pop("filters", None) or []
        exceptions = remaining.pop("exceptions", None) or {}
        sections: Dict[str, Any] = {
            "data": remaining.pop("data", None),
            "timezone": remaining.pop("timezone", None),
            "filters": list(filters) if isinstance(filters, (list, tuple)) else filters,
            "closing_periods": remaining.pop("closing_periods", None) or {},
            "exceptions": exceptions,
        }

        # Misshapen sections are left for field validation to reject.
        if isinstance(exceptions, dict) and isinstance(sections["filters"], list):
            sections["exceptions"] = {}
            for key, exception in exceptions.items():
                if callable(exception):
                    sections["filters"].append(exception)
                    continue
                sections["exceptions"][key] = exception

        sections["days"] = {
            Day.from_name(day): schedule
            for day, schedule in remaining.items()
        }

        return sections

    @field_validator("closing_periods", mode="before")
    @classmethod
    def validate_closing_periods(cls, value: Any) -> Any:
        """Ensure both ends of each closing period are valid dates."""
        if not isinstance(value, dict):
            return value
        periods = {_date_key(start): _date_key(end) for start, end in value.items()}
        for start, end in periods.items():
            Date.from_string(start)
            Date.from_string(end)
        return periods

    @field_validator("exceptions", mode="before")
    @classmethod
    def validate_exception_dates(cls, value: Any) -> Any:
        """Ensure exception keys are `YYYY-MM-DD` or `MM-DD`."""
        if not isinstance(value, dict):
            return value
        exceptions = {_date_key(key): hours for key, hours in value.items()}
        for key in exceptions:
            Date.from_string(key)
        return exceptions

    def to_opening_hours(self, timezone: str | None = None) -> OpeningHours:
        """
        Build the engine described by this configuration.

        Args:
            timezone: Overrides the configured timezone when given
        """
        return OpeningHours.build(
            daily_schedules={
                day: schedule.to_opening_hours_for_day()
                for day, schedule in self.days.items()
            },
            closing_periods=[
                ClosingPeriod.from_range(start, end)
                for start, end in self.closing_periods.items()
            ],
            exceptions={
                key: schedule.to_opening_hours_for_day()
                for key, schedule in self.exceptions.items()
            },
            filters=self.filters,
            timezone=timezone or self.timezone,
            data=self.data,
        )

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "OpeningHoursConfig":
        """
        Read a weekly schedule from a YAML document.

        The root must be a mapping of weekday names and reserved sections.
        Unquoted dates that YAML turns into date objects are accepted as keys.

        Raises:
            FileNotFoundError: If there is no schedule at config_path
            ValueError: If the document isn't YAML or its root isn't a mapping
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: no opening hours schedule at {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        logger.debug("Loaded opening hours configuration from %s", config_path)
        return cls.model_validate(data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.cwd() / "opening_hours.yaml"
