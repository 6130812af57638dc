"""Resolve messy datetime strings, do calendar arithmetic with them,
and measure the distance between them."""

from __future__ import annotations

import logging as _logging

from ._catalog import (
    FORMAT_CATALOG,
    SHORT_DATE_FORMATS,
    CatalogFormat,
    list_format_specifiers,
    list_formats,
)
from ._diff import SpanDifference, difference
from ._errors import (
    ConflictingUnitOptions,
    DateOverflow,
    DtError,
    InvalidCalendarField,
    InvalidOffsetError,
    InvalidSpan,
    RepeatedTime,
    SkippedTime,
    TimeZoneNotFoundError,
    UnknownUnit,
    UnparseableDatetime,
)
from ._parts import extract_part
from ._resolve import (
    STRATEGIES,
    OffsetConflict,
    ResolverConfig,
    from_unix_seconds,
    now,
    resolve,
    utcnow,
)
from ._span import CalendarSpan, parse_span
from ._tz import PosixTz, reset_system_tz
from ._units import Part, Unit, list_parts, list_units, render_listing
from ._zoned import ZonedValue, _unpkl_zoned, add

__version__ = "0.1.0"

__all__ = [
    # Values
    "ZonedValue",
    "CalendarSpan",
    "SpanDifference",
    # Resolution
    "resolve",
    "now",
    "utcnow",
    "from_unix_seconds",
    "ResolverConfig",
    "OffsetConflict",
    "STRATEGIES",
    # Operations
    "add",
    "difference",
    "parse_span",
    "extract_part",
    # Units and listings
    "Unit",
    "Part",
    "list_units",
    "list_parts",
    "render_listing",
    "FORMAT_CATALOG",
    "SHORT_DATE_FORMATS",
    "CatalogFormat",
    "list_formats",
    "list_format_specifiers",
    "reset_system_tz",
    "PosixTz",
    # Exceptions
    "DtError",
    "UnparseableDatetime",
    "InvalidSpan",
    "UnknownUnit",
    "ConflictingUnitOptions",
    "DateOverflow",
    "InvalidCalendarField",
    "SkippedTime",
    "RepeatedTime",
    "TimeZoneNotFoundError",
    "InvalidOffsetError",
]

_logging.getLogger(__name__).addHandler(_logging.NullHandler())
