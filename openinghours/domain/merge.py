"""
Coalescing of overlapping time range definitions.

Configurations often list ranges that overlap ("09:00-12:00", "11:00-18:00")
or repeat each other. The merge walks every group of a nested configuration
and collapses each overlapping cluster into a single spanning range, leaving
everything that is not a range definition untouched.
"""

from typing import Any, Dict, List

from .exceptions import OpeningHoursError
from .models import TimeRange

# Keys whose values are never range definitions and are passed through as-is.
PASSTHROUGH_KEYS = frozenset({"data", "closing_periods", "filters", "timezone"})


def merge_ranges(ranges: List[TimeRange]) -> List[TimeRange]:
    """
    Merge a single group of ranges, in input order.

    Each new range is compared against the accumulated disjoint ranges:
    an identical range is dropped, an overlapping one is absorbed into the
    union, which then keeps absorbing the remaining accumulated ranges.

    Example: [09:00-12:00, 11:00-18:00] -> [09:00-18:00]
    Example: [09:00-12:00, 12:00-18:00] -> unchanged, touching isn't overlapping
    """
    accumulated: List[TimeRange] = []

    for candidate in ranges:
        remaining: List[TimeRange] = []
        duplicate = False

        for existing in accumulated:
            if str(candidate) == str(existing):
                duplicate = True
                break

            if candidate.overlaps(existing):
                candidate = TimeRange.from_list([candidate, existing])
                continue

            remaining.append(existing)

        if duplicate:
            continue

        remaining.append(candidate)
        accumulated = remaining

    return accumulated


def merge_overlapping_ranges(data: Any) -> Any:
    """
    Apply ``merge_ranges`` to every group of a nested configuration.

    Mappings are walked key by key; lists are treated as one group whose
    string entries are range definitions. Nested lists and mappings recurse
    independently. Merged ranges are returned as canonical strings after the
    group's non-range entries.
    """
    if isinstance(data, dict):
        return _merge_mapping(data)
    if isinstance(data, (list, tuple)):
        return _merge_group(data)
    return data


def _merge_mapping(data: Dict[Any, Any]) -> Dict[Any, Any]:
    result: Dict[Any, Any] = {}
    for key, value in data.items():
        if key in PASSTHROUGH_KEYS or callable(value):
            result[key] = value
        else:
            result[key] = merge_overlapping_ranges(value)
    return result


def _merge_group(values: List[Any]) -> List[Any]:
    passthrough: List[Any] = []
    ranges: List[TimeRange] = []

    for value in values:
        if isinstance(value, TimeRange):
            ranges.append(value)
        elif isinstance(value, str):
            try:
                ranges.append(TimeRange.from_string(value))
            except OpeningHoursError:
                passthrough.append(value)
        else:
            passthrough.append(merge_overlapping_ranges(value))

    return passthrough + [str(time_range) for time_range in merge_ranges(ranges)]
