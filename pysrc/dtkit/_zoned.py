# The MIT License (MIT)
#
# Copyright (c) Arie Bovenberg
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

# Maintainer's notes:
#
# - A ZonedValue keeps the local datetime with a *fixed* offset tzinfo,
#   plus the zone it belongs to. The fixed offset makes the value
#   unambiguous without relying on `fold`.
# - Arithmetic is done on UTC datetimes and converted back to the zone.
from __future__ import annotations

import re
from datetime import (
    date as _date,
    datetime as _datetime,
    time as _time,
    timedelta as _timedelta,
    timezone as _timezone,
    tzinfo as _tzinfo,
)
from email.utils import format_datetime
from pickle import PicklingError
from typing import Callable, Union

from ._common import (
    MAX_YEAR,
    MIN_YEAR,
    NS_PER_SEC,
    UTC,
    Nanos,
    _ImmutableBase,
    final,
    format_offset,
    mk_fixed_tzinfo,
)
from ._errors import DateOverflow, InvalidCalendarField
from ._math import (
    add_days,
    add_months,
    day_of_year,
    days_in_month,
    iso_week,
    quarter,
    weekday_from_sunday,
)
from ._parse import MONTH_NAMES, WEEKDAY_NAMES
from ._span import CalendarSpan
from ._tz import (
    Disambiguate,
    PosixTz,
    as_tzinfo,
    get_tz,
    resolve_ambiguity,
    tz_key,
)
from ._tz.store import TzLike

__all__ = ["ZonedValue", "add"]

# An amount of time: exact nanoseconds or a calendar span
Amount = Union[int, CalendarSpan]


def _offset_secs(dt: _datetime) -> int:
    return int(dt.utcoffset().total_seconds())  # type: ignore[union-attr]


def _in_zone(dt: _datetime, tz: _tzinfo) -> _datetime:
    """The same instant in ``tz``, with a fixed-offset tzinfo"""
    local = dt.astimezone(tz)
    return local.replace(tzinfo=mk_fixed_tzinfo(_offset_secs(local)))


def _check_fields(
    year: int,
    month: int,
    day: int,
    hour: int,
    minute: int,
    second: int,
    nanosecond: int,
) -> None:
    for name, value, lo, hi in (
        ("year", year, MIN_YEAR, MAX_YEAR),
        ("month", month, 1, 12),
        ("hour", hour, 0, 23),
        ("minute", minute, 0, 59),
        ("second", second, 0, 59),
        ("nanosecond", nanosecond, 0, NS_PER_SEC - 1),
    ):
        if not isinstance(value, int):
            raise TypeError(f"{name} must be an integer, got {value!r}")
        if not lo <= value <= hi:
            raise InvalidCalendarField(
                name, value, f"{name} must be in {lo}..{hi}, got {value}"
            )
    if not isinstance(day, int):
        raise TypeError(f"day must be an integer, got {day!r}")
    if not 1 <= day <= (max_day := days_in_month(year, month)):
        raise InvalidCalendarField(
            "day",
            day,
            f"day must be in 1..{max_day} for {year:04d}-{month:02d}, "
            f"got {day}",
        )


@final
class ZonedValue(_ImmutableBase):
    """An exact moment in time, together with the zone used to read it.

    The zone is either an IANA timezone or a fixed UTC offset.

    Example
    -------
    >>> ZonedValue(2024, 12, 8, hour=11, tz="Europe/Paris")
    ZonedValue(2024-12-08 11:00:00+01:00[Europe/Paris])
    >>> # Explicitly resolve ambiguities during DST transitions
    >>> ZonedValue(2023, 10, 29, 1, 15, tz="Europe/London", disambiguate="earlier")
    ZonedValue(2023-10-29 01:15:00+01:00[Europe/London])
    """

    __slots__ = ("_py_dt", "_nanos", "_tz")

    # The local datetime, with a fixed offset tzinfo
    _py_dt: _datetime
    _nanos: Nanos
    # A ZoneInfo, or a datetime.timezone for fixed offsets
    _tz: _tzinfo

    def __init__(
        self,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
        *,
        nanosecond: int = 0,
        tz: TzLike,
        disambiguate: Disambiguate = "compatible",
    ) -> None:
        _check_fields(year, month, day, hour, minute, second, nanosecond)
        zone = as_tzinfo(tz)
        try:
            self._py_dt = resolve_ambiguity(
                _datetime(year, month, day, hour, minute, second),
                zone,
                disambiguate,
            )
        except OverflowError:
            raise DateOverflow("construction") from None
        self._nanos = nanosecond
        self._tz = zone

    @classmethod
    def _from_py_unchecked(
        cls, d: _datetime, nanos: Nanos, tz: _tzinfo, /
    ) -> ZonedValue:
        assert not d.microsecond
        assert 0 <= nanos < NS_PER_SEC
        self = _object_new(cls)
        self._py_dt = d
        self._nanos = nanos
        self._tz = tz
        return self

    @classmethod
    def _from_local(
        cls,
        d: _datetime,
        nanos: Nanos,
        tz: _tzinfo,
        disambiguate: Disambiguate | _timedelta = "compatible",
    ) -> ZonedValue:
        """Resolve a naive local datetime in the given zone"""
        try:
            resolved = resolve_ambiguity(d, tz, disambiguate)
        except OverflowError:
            raise DateOverflow("zone resolution") from None
        return cls._from_py_unchecked(resolved, nanos, tz)

    @classmethod
    def _from_instant(
        cls, d: _datetime, nanos: Nanos, tz: _tzinfo, operation: str
    ) -> ZonedValue:
        """The instant ``d`` (any aware datetime) read in ``tz``"""
        try:
            local = _in_zone(d, tz)
        except (OverflowError, ValueError):
            raise DateOverflow(operation) from None
        return cls._from_py_unchecked(local, nanos, tz)

    # Calendar fields

    @property
    def year(self) -> int:
        return self._py_dt.year

    @property
    def month(self) -> int:
        return self._py_dt.month

    @property
    def day(self) -> int:
        return self._py_dt.day

    @property
    def hour(self) -> int:
        return self._py_dt.hour

    @property
    def minute(self) -> int:
        return self._py_dt.minute

    @property
    def second(self) -> int:
        return self._py_dt.second

    @property
    def nanosecond(self) -> int:
        """The fraction of the second, 0..999,999,999"""
        return self._nanos

    @property
    def millisecond(self) -> int:
        """The first three digits of the fraction"""
        return self._nanos // 1_000_000

    @property
    def microsecond(self) -> int:
        """The second group of three digits of the fraction.
        This is *not* the fraction in microseconds."""
        return self._nanos // 1_000 % 1_000

    @property
    def day_of_year(self) -> int:
        return day_of_year(self._py_dt.date())

    @property
    def iso_week(self) -> int:
        return iso_week(self._py_dt.date())

    @property
    def iso_weekday(self) -> int:
        """Monday=1 through Sunday=7. Only used for ISO week numbering."""
        return self._py_dt.isoweekday()

    @property
    def weekday(self) -> int:
        """Sunday=0 through Saturday=6"""
        return weekday_from_sunday(self._py_dt.date())

    @property
    def quarter(self) -> int:
        return quarter(self._py_dt.month)

    @property
    def offset_seconds(self) -> int:
        """The UTC offset in effect at this moment"""
        return _offset_secs(self._py_dt)

    @property
    def tz(self) -> str | None:
        """The IANA timezone ID, or None for a fixed offset"""
        return tz_key(self._tz)

    @property
    def tzinfo(self) -> _tzinfo:
        return self._tz

    @property
    def is_fixed_offset(self) -> bool:
        return isinstance(self._tz, _timezone)

    def date(self) -> _date:
        return self._py_dt.date()

    def time(self) -> _time:
        return self._py_dt.time()

    def local(self) -> _datetime:
        """The naive local datetime, without the fraction"""
        return self._py_dt.replace(tzinfo=None)

    # Conversions

    def timestamp(self) -> int:
        """The UNIX timestamp in whole seconds, rounded down"""
        return (self._py_dt - _EPOCH) // _SECOND

    def timestamp_nanos(self) -> int:
        return self.timestamp() * NS_PER_SEC + self._nanos

    @classmethod
    def from_timestamp(
        cls, i: int | float, /, *, tz: TzLike
    ) -> ZonedValue:
        """Create an instance from a UNIX timestamp (in seconds).

        The inverse of the ``timestamp()`` method.
        """
        secs, fract = divmod(i, 1)
        return cls._from_epoch(
            int(secs), int(fract * NS_PER_SEC), as_tzinfo(tz)
        )

    @classmethod
    def from_timestamp_nanos(cls, i: int, /, *, tz: TzLike) -> ZonedValue:
        """Create an instance from a UNIX timestamp (in nanoseconds).

        The inverse of the ``timestamp_nanos()`` method.
        """
        if not isinstance(i, int):
            raise TypeError("method requires an integer")
        secs, nanos = divmod(i, NS_PER_SEC)
        return cls._from_epoch(secs, nanos, as_tzinfo(tz))

    @classmethod
    def _from_epoch(cls, secs: int, nanos: Nanos, tz: _tzinfo) -> ZonedValue:
        try:
            utc = _EPOCH + _timedelta(seconds=secs)
        except OverflowError:
            raise DateOverflow("timestamp conversion") from None
        return cls._from_instant(utc, nanos, tz, "timestamp conversion")

    def to_tz(self, tz: TzLike, /) -> ZonedValue:
        """The same moment in another zone"""
        return self._from_instant(
            self._py_dt, self._nanos, as_tzinfo(tz), "zone conversion"
        )

    def to_utc(self) -> ZonedValue:
        return self.to_tz(get_tz("UTC"))

    def py_datetime(self) -> _datetime:
        """Convert to a standard library datetime with the zone as tzinfo.

        Note
        ----
        Nanoseconds are truncated to microseconds.
        """
        return self._py_dt.astimezone(self._tz).replace(
            microsecond=self._nanos // 1_000
        )

    def exact_eq(self, other: ZonedValue, /) -> bool:
        """Compare by value (local time, offset, and zone)
        instead of by instant.

        >>> a = ZonedValue(2020, 8, 15, 12, tz="Europe/Paris")
        >>> a == a.to_tz("Asia/Tokyo")
        True
        >>> a.exact_eq(a.to_tz("Asia/Tokyo"))
        False
        """
        if type(other) is not ZonedValue:
            raise TypeError("Cannot compare different types")
        return (
            self._py_dt,
            self._py_dt.utcoffset(),
            self._nanos,
            self._tz,
        ) == (
            other._py_dt,
            other._py_dt.utcoffset(),
            other._nanos,
            other._tz,
        )

    def _instant(self) -> tuple[_datetime, Nanos]:
        return (self._py_dt.astimezone(UTC), self._nanos)

    def __eq__(self, other: object) -> bool:
        """Whether two values are the same moment in time.

        Use :meth:`exact_eq` to also compare the zones.
        """
        if not isinstance(other, ZonedValue):
            return NotImplemented
        return self._instant() == other._instant()

    def __lt__(self, other: ZonedValue) -> bool:
        if not isinstance(other, ZonedValue):
            return NotImplemented
        return self._instant() < other._instant()

    def __le__(self, other: ZonedValue) -> bool:
        if not isinstance(other, ZonedValue):
            return NotImplemented
        return self._instant() <= other._instant()

    def __gt__(self, other: ZonedValue) -> bool:
        if not isinstance(other, ZonedValue):
            return NotImplemented
        return self._instant() > other._instant()

    def __ge__(self, other: ZonedValue) -> bool:
        if not isinstance(other, ZonedValue):
            return NotImplemented
        return self._instant() >= other._instant()

    def __hash__(self) -> int:
        return hash(self._instant())

    # Arithmetic

    def add(self, amount: Amount, /) -> ZonedValue:
        """Add exact nanoseconds or a :class:`CalendarSpan`.

        Months (years count as 12) are added first, clamping the day to
        the end of the month. Then weeks and days are added to the
        calendar date, keeping the offset if the zone still allows it.
        The time units are added last, as exact elapsed time.

        >>> d = ZonedValue(2024, 1, 31, 12, tz="Europe/Paris")
        >>> d.add(CalendarSpan(months=1, hours=1))
        ZonedValue(2024-02-29 13:00:00+01:00[Europe/Paris])
        """
        return self._shift(1, amount, "addition")

    def subtract(self, amount: Amount, /) -> ZonedValue:
        """Subtract exact nanoseconds or a :class:`CalendarSpan`.

        Equivalent to adding the negated amount.
        """
        return self._shift(-1, amount, "subtraction")

    def __add__(self, amount: Amount) -> ZonedValue:
        if not isinstance(amount, (int, CalendarSpan)):
            return NotImplemented
        return self.add(amount)

    def __sub__(self, amount: Amount) -> ZonedValue:
        if not isinstance(amount, (int, CalendarSpan)):
            return NotImplemented
        return self.subtract(amount)

    def _shift(self, sign: int, amount: Amount, operation: str) -> ZonedValue:
        if isinstance(amount, CalendarSpan):
            return self._shift_calendar(
                sign * amount.total_months(),
                sign * amount.total_days(),
                sign * amount.time_nanos(),
                operation,
            )
        elif isinstance(amount, int) and not isinstance(amount, bool):
            return self._add_nanos(sign * amount, operation)
        raise TypeError(
            "amount must be an int (nanoseconds) or a CalendarSpan, "
            f"not {type(amount).__name__}"
        )

    def _shift_calendar(
        self,
        months: int,
        days: int,
        nanos: int = 0,
        operation: str = "addition",
    ) -> ZonedValue:
        result = self
        if months or days:
            try:
                new_date = add_days(
                    add_months(self._py_dt.date(), months), days
                )
            except OverflowError:
                raise DateOverflow(operation) from None
            result = self._replace_date(new_date, operation)
        return result._add_nanos(nanos, operation) if nanos else result

    def _replace_date(self, d: _date, operation: str) -> ZonedValue:
        try:
            resolved = resolve_ambiguity(
                _datetime.combine(d, self._py_dt.time()),
                self._tz,
                # keep the offset if the zone still allows it
                self._py_dt.utcoffset(),  # type: ignore[arg-type]
            )
        except OverflowError:
            raise DateOverflow(operation) from None
        return self._from_py_unchecked(resolved, self._nanos, self._tz)

    def _add_nanos(
        self, nanos: int, operation: str = "addition"
    ) -> ZonedValue:
        secs, nanos = divmod(self._nanos + nanos, NS_PER_SEC)
        try:
            utc = self._py_dt.astimezone(UTC) + _timedelta(seconds=secs)
        except OverflowError:
            raise DateOverflow(operation) from None
        return self._from_instant(utc, nanos, self._tz, operation)

    def _nanos_until(self, other: ZonedValue) -> int:
        """Exact elapsed nanoseconds from self to other"""
        delta = other._py_dt - self._py_dt
        return (
            (delta.days * 86_400 + delta.seconds) * NS_PER_SEC
            + other._nanos
            - self._nanos
        )

    # Formatting

    def _frac_str(self) -> str:
        return bool(self._nanos) * f".{self._nanos:09d}".rstrip("0")

    def _offset_str(self, sep: str = ":") -> str:
        return format_offset(self.offset_seconds, sep)

    def _annotation(self) -> str:
        return self.tz or self._offset_str()

    def format_iso(self) -> str:
        """The canonical format ``YYYY-MM-DDTHH:MM:SS[.f]±HH:MM[ZONE]``

        Fixed offsets are annotated with the offset itself.

        >>> ZonedValue(2020, 8, 15, 23, 12, tz="Europe/London").format_iso()
        '2020-08-15T23:12:00+01:00[Europe/London]'
        """
        return self._format_iso8601() + f"[{self._annotation()}]"

    def _format_iso8601(self, sep: str = "T") -> str:
        return (
            self._py_dt.isoformat(sep=sep)[:19]  # without the offset
            + self._frac_str()
            + self._offset_str()
        )

    def format_rfc3339(self) -> str:
        """Format as RFC 3339: ``YYYY-MM-DD HH:MM:SS[.f]±HH:MM``

        If you prefer the ``T`` separator, use the ``iso8601`` form of
        :meth:`to_formats`.
        """
        return self._format_iso8601(sep=" ")

    def format_rfc2822(self) -> str:
        """Format as RFC 2822, e.g. ``Sat, 15 Aug 2020 23:12:00 +0200``.
        The fraction of the second is dropped."""
        return format_datetime(self._py_dt)

    def to_formats(self) -> dict[str, str]:
        """The same moment in several standard formats"""
        return {
            "rfc9557": self.format_iso(),
            "rfc3339": self.format_rfc3339(),
            "rfc2822": self.format_rfc2822(),
            "iso8601": self._format_iso8601(),
        }

    def format(self, fmt: str, /) -> str:
        """Format with strftime-like directives.

        See :func:`list_format_specifiers` for the supported directives.

        >>> ZonedValue(2024, 7, 14, 23, 30, tz="Europe/Paris").format("%a %e %b, %I:%M %p")
        'Sun 14 Jul, 11:30 PM'
        """

        def replace(m: re.Match[str]) -> str:
            try:
                return _DIRECTIVES[m[0]](self)
            except KeyError:
                raise ValueError(
                    f"Unsupported format directive {m[0]!r} in {fmt!r}"
                ) from None

        return _DIRECTIVE_RE.sub(replace, fmt)

    def __str__(self) -> str:
        return self.format_iso()

    def __repr__(self) -> str:
        return f"ZonedValue({str(self).replace('T', ' ', 1)})"

    # a custom pickle implementation with a smaller payload
    def __reduce__(self) -> tuple[object, ...]:
        tz: str | int | PosixTz
        if self.tz is not None:
            tz = self.tz
        elif self.is_fixed_offset:
            tz = self.offset_seconds
        elif isinstance(self._tz, PosixTz):
            tz = self._tz
        else:
            # e.g. a zone read from a file: nothing can load it again
            raise PicklingError(
                f"Cannot pickle {self!r}: its time zone has no key"
            )
        return (_unpkl_zoned, (self.timestamp_nanos(), tz))


# A separate function is needed for unpickling, because the
# constructor doesn't accept an exact instant.
def _unpkl_zoned(nanos: int, tz: str | int | PosixTz) -> ZonedValue:
    return ZonedValue.from_timestamp_nanos(
        nanos, tz=mk_fixed_tzinfo(tz) if isinstance(tz, int) else tz
    )


ZonedValue.__module__ = "dtkit"
_unpkl_zoned.__module__ = "dtkit"


_object_new = object.__new__
_EPOCH = _datetime(1970, 1, 1, tzinfo=UTC)
_SECOND = _timedelta(seconds=1)


def _hour12(z: ZonedValue) -> int:
    return z.hour % 12 or 12


def _tzname(z: ZonedValue) -> str:
    if z.is_fixed_offset:
        return z._offset_str()
    return z.py_datetime().tzname() or z._offset_str()


_DIRECTIVES: dict[str, Callable[[ZonedValue], str]] = {
    "%%": lambda z: "%",
    "%A": lambda z: WEEKDAY_NAMES[z.iso_weekday - 1],
    "%a": lambda z: WEEKDAY_NAMES[z.iso_weekday - 1][:3],
    "%B": lambda z: MONTH_NAMES[z.month],
    "%b": lambda z: MONTH_NAMES[z.month][:3],
    "%h": lambda z: MONTH_NAMES[z.month][:3],
    "%D": lambda z: f"{z.month:02d}/{z.day:02d}/{z.year % 100:02d}",
    "%d": lambda z: f"{z.day:02d}",
    "%-d": lambda z: f"{z.day}",
    "%e": lambda z: f"{z.day:>2}",
    "%F": lambda z: f"{z.year:04d}-{z.month:02d}-{z.day:02d}",
    "%f": lambda z: f"{z.nanosecond:09d}".rstrip("0") or "0",
    "%.f": lambda z: z._frac_str(),
    "%H": lambda z: f"{z.hour:02d}",
    "%-H": lambda z: f"{z.hour}",
    "%I": lambda z: f"{_hour12(z):02d}",
    "%-I": lambda z: f"{_hour12(z)}",
    "%M": lambda z: f"{z.minute:02d}",
    "%m": lambda z: f"{z.month:02d}",
    "%-m": lambda z: f"{z.month}",
    "%P": lambda z: "am" if z.hour < 12 else "pm",
    "%p": lambda z: "AM" if z.hour < 12 else "PM",
    "%S": lambda z: f"{z.second:02d}",
    "%T": lambda z: f"{z.hour:02d}:{z.minute:02d}:{z.second:02d}",
    "%V": lambda z: z.tz or z._offset_str(""),
    "%:V": lambda z: z.tz or z._offset_str(),
    "%Y": lambda z: f"{z.year:04d}",
    "%y": lambda z: f"{z.year % 100:02d}",
    "%Z": lambda z: _tzname(z),
    "%z": lambda z: z._offset_str(""),
    "%:z": lambda z: z._offset_str(),
}

_DIRECTIVE_RE = re.compile(r"%(?:\.f|:[A-Za-z]|-?[A-Za-z]|.|$)")


def add(value: ZonedValue, amount: Amount) -> ZonedValue:
    """Add exact nanoseconds or a :class:`CalendarSpan` to a value.

    Same as ``value.add(amount)``.
    """
    return value.add(amount)
