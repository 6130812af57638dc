"""The unit abbreviation registry.

A single static table maps each canonical name to the abbreviations
users may type. Span units (:class:`Unit`) and extractable fields
(:class:`Part`) are both looked up in it. Lookups are case-insensitive:
the registry lowercases (and strips) the input itself.
"""

from __future__ import annotations

import enum
from typing import Iterable, Mapping

from ._errors import UnknownUnit

# Listing order is the order shown to users
_ALIASES: Mapping[str, tuple[str, ...]] = {
    "year": ("year", "years", "yyyy", "yy", "yr", "yrs"),
    "quarter": ("quarter", "qq", "q", "qs", "qtr"),
    "month": ("month", "months", "mth", "mths", "mm", "m", "mon"),
    "dayofyear": ("dayofyear", "dy", "doy"),
    "day": ("day", "days", "dd", "d"),
    "week": (
        "week",
        "weeks",
        "ww",
        "wk",
        "wks",
        "iso_week",
        "isowk",
        "isoww",
    ),
    "weekday": ("weekday", "wd", "wds", "w"),
    "hour": ("hour", "hours", "hh", "hr", "hrs"),
    "minute": ("minute", "minutes", "mi", "n", "min", "mins"),
    "second": ("second", "seconds", "ss", "s", "sec", "secs"),
    "millisecond": ("millisecond", "ms", "millis"),
    "microsecond": ("microsecond", "mcs", "us", "micros"),
    "nanosecond": ("nanosecond", "ns", "nano", "nanos"),
}

_NAME_BY_ALIAS: Mapping[str, str] = {
    alias: name for name, aliases in _ALIASES.items() for alias in aliases
}


def _canonical_name(alias: str) -> str | None:
    return _NAME_BY_ALIAS.get(alias.strip().lower())


class Unit(enum.Enum):
    """The units of a span, from coarsest to finest.

    ``.value`` is the canonical name.
    """

    YEAR = "year"
    MONTH = "month"
    WEEK = "week"
    DAY = "day"
    HOUR = "hour"
    MINUTE = "minute"
    SECOND = "second"
    MILLISECOND = "millisecond"
    MICROSECOND = "microsecond"
    NANOSECOND = "nanosecond"

    @classmethod
    def from_alias(cls, alias: str | Unit, /) -> Unit:
        """Look up a unit by any of its names or abbreviations.

        >>> Unit.from_alias("yrs")
        Unit.YEAR
        """
        if isinstance(alias, Unit):
            return alias
        try:
            return cls(_canonical_name(alias))
        except ValueError:
            raise UnknownUnit(alias) from None

    @property
    def rank(self) -> int:
        """Position in the ordering: 0 for years, 9 for nanoseconds"""
        return _UNIT_ORDER.index(self)

    @property
    def is_calendar(self) -> bool:
        """Whether the length of the unit depends on the calendar"""
        return self.rank <= 3

    @property
    def nanos(self) -> int:
        """The exact length of a time unit in nanoseconds"""
        try:
            return _UNIT_NANOS[self]
        except KeyError:
            raise ValueError(f"{self.value} has no fixed length") from None

    @property
    def field(self) -> str:
        """The name of the corresponding span component"""
        return self.value + "s"

    @property
    def abbreviation(self) -> str:
        """The abbreviation used in human-readable durations"""
        return _HUMAN_ABBREVIATIONS[self]

    def aliases(self) -> tuple[str, ...]:
        return _ALIASES[self.value]

    def __repr__(self) -> str:
        return f"Unit.{self.name}"


_UNIT_ORDER = tuple(Unit)

_UNIT_NANOS = {
    Unit.HOUR: 3_600_000_000_000,
    Unit.MINUTE: 60_000_000_000,
    Unit.SECOND: 1_000_000_000,
    Unit.MILLISECOND: 1_000_000,
    Unit.MICROSECOND: 1_000,
    Unit.NANOSECOND: 1,
}

_HUMAN_ABBREVIATIONS = {
    Unit.YEAR: "yrs",
    Unit.MONTH: "mths",
    Unit.WEEK: "wks",
    Unit.DAY: "days",
    Unit.HOUR: "hrs",
    Unit.MINUTE: "mins",
    Unit.SECOND: "secs",
    Unit.MILLISECOND: "ms",
    Unit.MICROSECOND: "µs",
    Unit.NANOSECOND: "ns",
}


class Part(enum.Enum):
    """The fields that can be extracted from a zoned value.

    ``.value`` is the canonical name.
    """

    YEAR = "year"
    QUARTER = "quarter"
    MONTH = "month"
    DAY_OF_YEAR = "dayofyear"
    DAY = "day"
    WEEK = "week"
    WEEKDAY = "weekday"
    HOUR = "hour"
    MINUTE = "minute"
    SECOND = "second"
    MILLISECOND = "millisecond"
    MICROSECOND = "microsecond"
    NANOSECOND = "nanosecond"

    @classmethod
    def from_alias(cls, alias: str | Part, /) -> Part:
        """Look up a part by any of its names or abbreviations.

        >>> Part.from_alias("qtr")
        Part.QUARTER
        """
        if isinstance(alias, Part):
            return alias
        try:
            return cls(_canonical_name(alias))
        except ValueError:
            raise UnknownUnit(alias, "list_parts()") from None

    def aliases(self) -> tuple[str, ...]:
        return _ALIASES[self.value]

    def __repr__(self) -> str:
        return f"Part.{self.name}"


def render_listing(
    names: Iterable[str],
) -> list[tuple[str, str]]:
    """Rows of ``(name, "alias, alias, ...")`` for help output"""
    return [(name, ", ".join(_ALIASES[name])) for name in names]


def list_units() -> list[tuple[str, str]]:
    """The span units and their abbreviations, coarsest first"""
    return render_listing(u.value for u in Unit)


def list_parts() -> list[tuple[str, str]]:
    """The extractable fields and their abbreviations"""
    return render_listing(p.value for p in Part)
