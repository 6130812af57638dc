"""The exceptions raised by dtkit.

Each one maps to a single failed operation. They all derive from
:class:`DtError`, which is itself a :class:`ValueError`.
"""

from __future__ import annotations

from typing import Sequence


class DtError(ValueError):
    """Base class for all errors raised by dtkit"""


class UnparseableDatetime(DtError):
    """A string could not be resolved into a zoned value by any strategy"""

    input: str
    attempts: tuple[tuple[str, str], ...]

    def __init__(
        self, input: str, attempts: Sequence[tuple[str, str]] = ()
    ) -> None:
        self.input = input
        self.attempts = tuple(attempts)
        tried = ", ".join(name for name, _ in self.attempts) or "nothing"
        super().__init__(
            f"Could not parse datetime string: {input!r} (tried: {tried})"
        )

    def explain(self) -> str:
        """A multi-line account of why each strategy rejected the input"""
        return "\n".join(
            [str(self)] + [f"  {name}: {why}" for name, why in self.attempts]
        )


class InvalidSpan(DtError):
    """A duration expression could not be parsed into a span"""

    input: str
    reason: str

    def __init__(self, input: str, reason: str) -> None:
        self.input = input
        self.reason = reason
        super().__init__(f"Invalid span {input!r}: {reason}")

    @classmethod
    def bad_component(cls, input: str, component: str) -> InvalidSpan:
        return cls(
            input,
            f"unexpected {component!r}. Valid designators are "
            "Y, M, W, D (date part) and H, M, S after 'T' (time part), "
            "e.g. 'P1y2m3dT4h5m6.5s'",
        )


class UnknownUnit(DtError):
    """A unit name or abbreviation is not in the registry"""

    input: str

    def __init__(self, input: str, listing: str = "list_units()") -> None:
        self.input = input
        super().__init__(
            f"Unknown unit name {input!r}. "
            f"See {listing} for the valid names and abbreviations."
        )


class ConflictingUnitOptions(DtError):
    """Mutually exclusive unit options were requested together"""

    def __init__(
        self,
        msg: str = "'as_unit' cannot be combined with 'smallest' or 'largest'",
    ) -> None:
        super().__init__(msg)


class DateOverflow(DtError):
    """An operation produced a date outside the supported range"""

    operation: str

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(
            f"Result of {operation} is out of the supported range "
            "(years 1-9999)"
        )


class InvalidCalendarField(DtError):
    """A calendar field has a value that is impossible for its date"""

    field: str
    value: object

    def __init__(self, field: str, value: object, msg: str = "") -> None:
        self.field = field
        self.value = value
        super().__init__(msg or f"Invalid value for {field}: {value!r}")


class SkippedTime(InvalidCalendarField):
    """A datetime is skipped in a timezone, e.g. because of DST"""

    @classmethod
    def _for_tz(cls, d: object, tzid: str | None) -> SkippedTime:
        return cls("datetime", d, f"{d} is skipped in {_tzid_display(tzid)}")


class RepeatedTime(InvalidCalendarField):
    """A datetime is repeated in a timezone, e.g. because of DST"""

    @classmethod
    def _for_tz(cls, d: object, tzid: str | None) -> RepeatedTime:
        return cls(
            "datetime", d, f"{d} is repeated in {_tzid_display(tzid)}"
        )


class TimeZoneNotFoundError(DtError):
    """A timezone with the given ID was not found"""

    @classmethod
    def for_key(cls, key: str) -> TimeZoneNotFoundError:
        return cls(f"No time zone found for key: {key!r}")


class InvalidOffsetError(DtError):
    """A string has an invalid offset for the given zone"""

    @classmethod
    def for_zone(cls, offset: str, tzid: str | None) -> InvalidOffsetError:
        return cls(f"Offset {offset} is not valid in {_tzid_display(tzid)}")


def _tzid_display(tzid: str | None) -> str:
    if tzid is None:
        return "system timezone (with unknown ID)"
    else:
        return f"timezone '{tzid}'"
