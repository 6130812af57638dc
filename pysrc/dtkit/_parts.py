"""Extracting single fields from zoned values."""

from __future__ import annotations

from typing import Callable, Union

from ._units import Part
from ._zoned import ZonedValue

__all__ = ["extract_part"]

# NOTE: WEEKDAY counts from Sunday=0, while WEEK is the ISO week number
# (weeks start on Monday). Both conventions are deliberate.
_EXTRACTORS: dict[Part, Callable[[ZonedValue], int]] = {
    Part.YEAR: lambda z: z.year,
    Part.QUARTER: lambda z: z.quarter,
    Part.MONTH: lambda z: z.month,
    Part.DAY_OF_YEAR: lambda z: z.day_of_year,
    Part.DAY: lambda z: z.day,
    Part.WEEK: lambda z: z.iso_week,
    Part.WEEKDAY: lambda z: z.weekday,
    Part.HOUR: lambda z: z.hour,
    Part.MINUTE: lambda z: z.minute,
    Part.SECOND: lambda z: z.second,
    # The fraction of the second, in groups of three digits
    Part.MILLISECOND: lambda z: z.millisecond,
    Part.MICROSECOND: lambda z: z.microsecond,
    Part.NANOSECOND: lambda z: z.nanosecond % 1_000,
}


def extract_part(value: ZonedValue, part: Union[Part, str]) -> int:
    """A single field of ``value``, named by any alias of a :class:`Part`.

    >>> z = ZonedValue(2024, 8, 7, 9, 36, 42, nanosecond=367_322_100, tz="UTC")
    >>> extract_part(z, "qtr"), extract_part(z, "w"), extract_part(z, "mcs")
    (3, 3, 322)
    """
    return _EXTRACTORS[Part.from_alias(part)](value)
