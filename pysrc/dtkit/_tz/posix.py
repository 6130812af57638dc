"""POSIX TZ strings, such as ``CET-1CEST,M3.5.0,M10.5.0/3``, as tzinfo.

The ``TZ`` environment variable may hold one of these instead of an
IANA key. Only the rules in the string itself apply: there is no
history of past transitions.
"""

from __future__ import annotations

import re
from datetime import (
    date as _date,
    datetime as _datetime,
    timedelta as _timedelta,
    tzinfo as _tzinfo,
)
from typing import NamedTuple, Optional, Union

from .._math import days_in_month, is_leap
from .common import Ambiguity, Fold, Gap, Unambiguous

__all__ = ["PosixTz"]

DEFAULT_DST = 3600
DEFAULT_RULE_TIME = 2 * 3600
MAX_OFFSET = 24 * 3600

_UNIX_EPOCH_ORDINAL = _date(1970, 1, 1).toordinal()
_MAX_ORDINAL = _date.max.toordinal()
_NAIVE_EPOCH = _datetime(1970, 1, 1)
_SECOND = _timedelta(seconds=1)


def _epoch_days(d: _date) -> int:
    return d.toordinal() - _UNIX_EPOCH_ORDINAL


def _year_of(epoch: int) -> int:
    # clamped, so the rules still apply at the edges of the date range
    ordinal = epoch // 86400 + _UNIX_EPOCH_ORDINAL
    return _date.fromordinal(min(max(ordinal, 1), _MAX_ORDINAL)).year


class LastWeekday(NamedTuple):
    """``Mm.5.d``: the last weekday ``d`` (Sunday=0) of month ``m``"""

    month: int
    weekday: int

    def apply(self, year: int) -> _date:
        last = _date(year, self.month, days_in_month(year, self.month))
        return last - _timedelta((last.isoweekday() - self.weekday) % 7)


class NthWeekday(NamedTuple):
    """``Mm.n.d``: the n-th (1-4) weekday ``d`` (Sunday=0) of month ``m``"""

    month: int
    nth: int
    weekday: int

    def apply(self, year: int) -> _date:
        first = _date(year, self.month, 1)
        return first.replace(
            day=1
            + (self.weekday - first.isoweekday()) % 7
            + 7 * (self.nth - 1)
        )


class DayOfYear(NamedTuple):
    """``n``: zero-based day of the year, counting February 29"""

    nth: int

    def apply(self, year: int) -> _date:
        last = 364 + is_leap(year)
        return _date(year, 1, 1) + _timedelta(min(self.nth, last))


class JulianDayOfYear(NamedTuple):
    """``Jn``: day 1-365 of the year, never counting February 29"""

    nth: int

    def apply(self, year: int) -> _date:
        day = self.nth + (is_leap(year) and self.nth > 59)
        return _date(year, 1, 1) + _timedelta(day - 1)


Rule = Union[LastWeekday, NthWeekday, DayOfYear, JulianDayOfYear]


class Dst(NamedTuple):
    name: str
    offset: int
    start: Rule
    # seconds after local midnight, in standard time
    start_time: int
    end: Rule
    # seconds after local midnight, in daylight saving time
    end_time: int


_NAME = r"<[^<>]+>|[A-Za-z]+"
_HMS = r"[+-]?\d{1,3}(?::\d{2}(?::\d{2})?)?"
_RULE = rf"(?:M\d{{1,2}}\.\d\.\d|J\d{{1,3}}|\d{{1,3}})(?:/{_HMS})?"
_TZ_STRING_RE = re.compile(
    rf"""
    (?P<std_name>{_NAME})(?P<std>{_HMS})
    (?:
        (?P<dst_name>{_NAME})(?P<dst>{_HMS})?
        ,(?P<start>{_RULE}),(?P<end>{_RULE})
    )?
    """,
    re.VERBOSE,
)


def _parse_hms(s: str) -> int:
    sign = -1 if s[0] == "-" else 1
    hours, minutes, seconds = (s.lstrip("+-").split(":") + ["0", "0"])[:3]
    if int(minutes) > 59 or int(seconds) > 59:
        raise ValueError(f"Invalid time {s!r} in POSIX TZ string")
    return sign * (int(hours) * 3600 + int(minutes) * 60 + int(seconds))


def _parse_offset(s: str) -> int:
    secs = _parse_hms(s)
    if abs(secs) >= MAX_OFFSET:
        raise ValueError(f"Offset {s!r} out of range in POSIX TZ string")
    # POSIX offsets count west of Greenwich
    return -secs


def _parse_rule(s: str) -> tuple[Rule, int]:
    rule_str, _, time_str = s.partition("/")
    time = _parse_hms(time_str) if time_str else DEFAULT_RULE_TIME
    rule: Rule
    if rule_str[0] == "M":
        month, nth, weekday = map(int, rule_str[1:].split("."))
        if not (1 <= month <= 12 and 1 <= nth <= 5 and weekday <= 6):
            raise ValueError(f"Invalid DST rule {s!r} in POSIX TZ string")
        if nth == 5:
            rule = LastWeekday(month, weekday)
        else:
            rule = NthWeekday(month, nth, weekday)
    elif rule_str[0] == "J":
        if not 1 <= (nth := int(rule_str[1:])) <= 365:
            raise ValueError(f"Invalid Julian day {s!r} in POSIX TZ string")
        rule = JulianDayOfYear(nth)
    else:
        if (nth := int(rule_str)) > 365:
            raise ValueError(f"Invalid day of year {s!r} in POSIX TZ string")
        rule = DayOfYear(nth)
    return rule, time


def _strip_brackets(name: str) -> str:
    return name[1:-1] if name.startswith("<") else name


class PosixTz(_tzinfo):
    """A zone following the rules of a POSIX TZ string.

    >>> tz = PosixTz("CET-1CEST,M3.5.0,M10.5.0/3")
    >>> datetime(2024, 7, 1, tzinfo=tz).utcoffset()
    datetime.timedelta(seconds=7200)
    """

    def __init__(self, tz_string: str) -> None:
        if not tz_string.isascii() or not (
            m := _TZ_STRING_RE.fullmatch(tz_string)
        ):
            raise ValueError(f"Invalid POSIX TZ string: {tz_string!r}")
        self.tz_string = tz_string
        self._std_name = _strip_brackets(m["std_name"])
        self._std = _parse_offset(m["std"])
        self._dst: Optional[Dst] = None
        if m["dst_name"]:
            if m["dst"]:
                dst = _parse_offset(m["dst"])
            elif (dst := self._std + DEFAULT_DST) >= MAX_OFFSET:
                raise ValueError(
                    f"DST offset out of range in POSIX TZ string: "
                    f"{tz_string!r}"
                )
            self._dst = Dst(
                _strip_brackets(m["dst_name"]),
                dst,
                *_parse_rule(m["start"]),
                *_parse_rule(m["end"]),
            )

    def _transitions(self, year: int) -> tuple[int, int]:
        """Start and end of DST in the given year, as local epoch seconds"""
        dst = self._dst
        assert dst is not None
        return (
            _epoch_days(dst.start.apply(year)) * 86400 + dst.start_time,
            _epoch_days(dst.end.apply(year)) * 86400 + dst.end_time,
        )

    def offset_for_instant(self, epoch: int) -> int:
        if self._dst is None:
            return self._std
        dst = self._dst.offset
        # Crossing a transition doesn't change the year it happens in
        start, end = self._transitions(_year_of(epoch + self._std))
        start -= self._std
        end -= dst
        if start < end:
            return dst if start <= epoch < end else self._std
        # DST spans the new year, e.g. in the southern hemisphere
        return self._std if end <= epoch < start else dst

    def ambiguity_for_local(self, epoch: int) -> Ambiguity:
        """Classify a local time, given in local epoch seconds"""
        if self._dst is None:
            return Unambiguous(self._std)
        std, dst = self._std, self._dst.offset
        start, end = self._transitions(_year_of(epoch))
        for at, before, after in ((start, std, dst), (end, dst, std)):
            shift = after - before
            if shift > 0 and at <= epoch < at + shift:
                return Gap(before, after)
            elif shift < 0 and at + shift <= epoch < at:
                return Fold(before, after)
        if start < end:
            return Unambiguous(dst if start <= epoch < end else std)
        return Unambiguous(std if end <= epoch < start else dst)

    def _offset_secs(self, dt: _datetime) -> int:
        epoch = (dt.replace(tzinfo=None) - _NAIVE_EPOCH) // _SECOND
        ambiguity = self.ambiguity_for_local(epoch)
        if isinstance(ambiguity, Unambiguous):
            return ambiguity.offset
        return ambiguity.after if dt.fold else ambiguity.before

    def utcoffset(self, dt: Optional[_datetime]) -> Optional[_timedelta]:
        if dt is None:
            return None
        return _timedelta(seconds=self._offset_secs(dt))

    def dst(self, dt: Optional[_datetime]) -> Optional[_timedelta]:
        if dt is None:
            return None
        return _timedelta(seconds=self._offset_secs(dt) - self._std)

    def tzname(self, dt: Optional[_datetime]) -> Optional[str]:
        if dt is None or self._dst is None:
            return self._std_name
        if self._offset_secs(dt) == self._dst.offset:
            return self._dst.name
        return self._std_name

    def fromutc(self, dt: _datetime) -> _datetime:
        if dt.tzinfo is not self:
            raise ValueError("fromutc: dt.tzinfo is not self")
        epoch = (dt.replace(tzinfo=None) - _NAIVE_EPOCH) // _SECOND
        offset = self.offset_for_instant(epoch)
        local = dt + _timedelta(seconds=offset)
        ambiguity = self.ambiguity_for_local(epoch + offset)
        # the second occurrence of a repeated time
        if isinstance(ambiguity, Fold) and offset == ambiguity.after:
            return local.replace(fold=1)
        return local

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PosixTz):
            return NotImplemented
        return self._std == other._std and self._dst == other._dst

    def __hash__(self) -> int:
        return hash((self._std, self._dst))

    def __repr__(self) -> str:
        return f"PosixTz({self.tz_string!r})"

    def __str__(self) -> str:
        return self.tz_string

    def __reduce__(self) -> tuple[object, ...]:
        return (PosixTz, (self.tz_string,))
