"""Low level string grammars.

The functions here only recognize text. They raise a plain
:class:`ValueError` describing what didn't match, and leave the
choice of timezone to the caller.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date as _date, datetime as _datetime, time as _time
from functools import lru_cache
from typing import Literal, NoReturn, Optional

from ._common import UTC, Nanos, check_utc_bounds, mk_fixed_tzinfo


def _parse_err(s: str) -> NoReturn:
    raise ValueError(f"Invalid format: {s!r}") from None


def _parse_nanos(s: str) -> Nanos:
    if len(s) > 9 or not s.isdigit() or not s.isascii():
        raise ValueError("Invalid decimals")
    return int(s.ljust(9, "0"))


def _split_nextchar(
    s: str, chars: str, start: int = 0, end: int = -1
) -> tuple[str, str | None, str]:
    for c in chars:
        if (idx := s.find(c, start, end)) != -1:
            return (s[:idx], c, s[idx + 1 :])
    return (s, None, "")


_is_sep = " Tt".__contains__


def offset_from_iso(s: str) -> int:
    """Parse an unsigned offset: ``HH``, ``HHMM``, ``HH:MM``,
    ``HHMMSS`` or ``HH:MM:SS``"""
    minutes = 0
    seconds = 0
    if not s.isascii() or not s.replace(":", "").isdigit():
        raise ValueError("Invalid offset format")
    if len(s) == 5 and s[2] == ":" and s[3] < "6":  # most common: HH:MM
        hours = int(s[:2])
        minutes = int(s[3:])
    elif len(s) == 4 and s[2] < "6":  # HHMM
        hours = int(s[:2])
        minutes = int(s[2:])
    elif len(s) == 2:  # HH
        hours = int(s)
    elif (
        len(s) == 8
        and s[2] == ":"
        and s[5] == ":"
        and s[3] < "6"
        and s[6] < "6"
    ):  # HH:MM:SS
        hours = int(s[:2])
        minutes = int(s[3:5])
        seconds = int(s[6:])
    elif len(s) == 6 and s[2] < "6" and s[4] < "6":  # HHMMSS
        hours = int(s[:2])
        minutes = int(s[2:4])
        seconds = int(s[4:])
    else:
        raise ValueError("Invalid offset format")
    if hours > 23:
        raise ValueError("Offset out of range")
    return hours * 3600 + minutes * 60 + seconds


def signed_offset_from_iso(s: str) -> int:
    if s[:1] not in ("+", "-"):
        raise ValueError("Offset must start with a sign")
    secs = offset_from_iso(s[1:])
    return -secs if s[0] == "-" else secs


def _date_from_iso_nocheck(s: str) -> _date:
    # fromisoformat also accepts week dates, which we don't want
    if "W" in s or "w" in s or len(s) not in (8, 10):
        raise ValueError("Invalid date")
    return _date.fromisoformat(s)


def date_from_iso(s: str) -> _date:
    """``YYYY-MM-DD`` or ``YYYYMMDD``"""
    if not s.isascii():
        _parse_err(s)
    try:
        return _date_from_iso_nocheck(s)
    except ValueError:
        _parse_err(s)


def _time_from_iso_nofrac(s: str) -> _time:
    # CPython accepts times like "12:34:56:78" before 3.14
    if s.count(":") > 2:
        raise ValueError()
    if s and all(map("0123456789:".__contains__, s)):
        return _time.fromisoformat(s)
    raise ValueError()


def time_from_iso(s_orig: str) -> tuple[_time, Nanos]:
    """``HH[:MM[:SS[.fraction]]]``, or the basic form without colons"""
    if not s_orig.isascii():
        _parse_err(s_orig)
    s, sep, nanos_raw = _split_nextchar(s_orig, ".,", 6, 9)
    try:
        return (
            _time_from_iso_nofrac(s),
            _parse_nanos(nanos_raw) if sep else 0,
        )
    except ValueError:
        _parse_err(s_orig)


def _split_date(s: str) -> tuple[_date, str]:
    # Extended dates are 10 characters, basic ones 8
    for width in (10, 8):
        if len(s) >= width and (len(s) == width or not s[width].isdigit()):
            try:
                return _date_from_iso_nocheck(s[:width]), s[width:]
            except ValueError:
                continue
    raise ValueError("Invalid date")


def datetime_from_iso(s: str) -> tuple[_datetime, Nanos]:
    """A civil date and time without any offset or zone"""
    if not s.isascii():
        _parse_err(s)
    try:
        date, rest = _split_date(s)
        if not rest or not _is_sep(rest[0]):
            raise ValueError()
        time, nanos = time_from_iso(rest[1:])
    except ValueError:
        _parse_err(s)
    return _datetime.combine(date, time), nanos


@dataclass(frozen=True)
class ZonedParts:
    """The pieces of an RFC 9557 string, before any zone is applied"""

    date: _date
    time: _time
    nanos: Nanos
    # Offset in seconds, "Z" for UTC with unknown local offset
    offset: int | Literal["Z"] | None
    # The bracketed zone: an IANA key or a signed offset
    annotation: Optional[str]
    critical: bool = False

    def naive(self) -> _datetime:
        return _datetime.combine(self.date, self.time)


def _split_annotations(s: str) -> tuple[str, str | None, bool]:
    """Strip the trailing bracketed annotations.

    The first one names the zone. Others are ``key=value`` pairs which
    are ignored unless marked critical with ``!``.
    """
    annotations = []
    # NOTE: \x5b is an open bracket '['
    while s.endswith("]"):
        s, _, raw = s[:-1].rpartition("\x5b")
        if not raw:
            raise ValueError("Empty annotation")
        annotations.append(raw)
    annotations.reverse()

    zone: str | None = None
    critical = False
    for i, raw in enumerate(annotations):
        is_critical = raw.startswith("!")
        body = raw[1:] if is_critical else raw
        if "=" in body:
            if is_critical:
                raise ValueError(f"Unsupported critical annotation [{raw}]")
        elif i == 0:
            zone, critical = body, is_critical
        else:
            raise ValueError(f"Unexpected annotation [{raw}]")
    if "\x5b" in s or "]" in s:
        raise ValueError("Unbalanced brackets")
    return s, zone, critical


def zoned_from_iso(s: str) -> ZonedParts:
    """Parse ``date[Ttime][offset][[zone]]``.

    An offset requires a time. A missing time means midnight.
    """
    if not s.isascii():
        _parse_err(s)
    try:
        s_rest, zone, critical = _split_annotations(s)
        date, rest = _split_date(s_rest)

        offset: int | Literal["Z"] | None
        if not rest:
            time, nanos, offset = _time(), 0, None
        elif _is_sep(rest[0]):
            rest = rest[1:]
            if rest.endswith(("Z", "z")):
                rest, offset = rest[:-1], "Z"
            else:
                rest, sign, s_offset = _split_nextchar(rest, "+-")
                if sign is None:
                    offset = None
                else:
                    offset = signed_offset_from_iso(sign + s_offset)
            time, nanos = time_from_iso(rest)
        else:
            raise ValueError()
    except ValueError:
        _parse_err(s)
    return ZonedParts(date, time, nanos, offset, zone, critical)


def instant_from_rfc3339(s: str) -> tuple[_datetime, Nanos]:
    """An exact UTC instant such as ``2024-03-01T12:00:00Z``"""
    if not s.endswith(("Z", "z")):
        _parse_err(s)
    dt, nanos = datetime_from_iso(s[:-1])
    return check_utc_bounds(dt.replace(tzinfo=UTC)), nanos


_EPOCH_RE = re.compile(r"@([+-]?\d{1,12})(?:\.(\d{1,9}))?", re.ASCII)


def epoch_from_str(s: str) -> tuple[int, Nanos]:
    """``@seconds[.fraction]`` since the Unix epoch, in nanoseconds
    split as (whole seconds, nanoseconds)"""
    if (m := _EPOCH_RE.fullmatch(s)) is None:
        _parse_err(s)
    secs = int(m[1])
    nanos = _parse_nanos(m[2]) if m[2] else 0
    if secs < 0 and nanos:
        secs, nanos = secs - 1, 1_000_000_000 - nanos
    return secs, nanos


# Monday-first, like isoweekday()
WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
MONTH_NAMES = (
    "",  # 1-indexed
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
_MONTH_BY_NAME = {
    **{name.lower(): i for i, name in enumerate(MONTH_NAMES) if name},
    **{name[:3].lower(): i for i, name in enumerate(MONTH_NAMES) if name},
}


@dataclass(frozen=True)
class TemplateMatch:
    date: _date
    time: _time
    nanos: Nanos
    # None if the template has no offset directive
    offset: Optional[int]

    def naive(self) -> _datetime:
        return _datetime.combine(self.date, self.time)


# Composite directives, expanded before compiling
_COMPOSITES = {
    "T": "%H:%M:%S",
    "D": "%m/%d/%y",
    "F": "%Y-%m-%d",
}

_DIRECTIVE_RE = re.compile(r"%(?:%|\.f|:z|-?[A-Za-z])")

_WEEKDAY_ALTS = "|".join(WEEKDAY_NAMES)
_WEEKDAY_ABBR_ALTS = "|".join(n[:3] for n in WEEKDAY_NAMES)
_MONTH_ALTS = "|".join(MONTH_NAMES[1:])
_MONTH_ABBR_ALTS = "|".join(n[:3] for n in MONTH_NAMES[1:])

# directive -> (group name or None, pattern)
_PATTERNS: dict[str, tuple[Optional[str], str]] = {
    "Y": ("year", r"\d{4}"),
    "y": ("year2", r"\d{2}"),
    "m": ("month", r"\d{1,2}"),
    "-m": ("month", r"\d{1,2}"),
    "d": ("day", r"\d{1,2}"),
    "-d": ("day", r"\d{1,2}"),
    "e": ("day", r"\s?\d{1,2}"),
    "H": ("hour", r"\d{1,2}"),
    "-H": ("hour", r"\d{1,2}"),
    "M": ("minute", r"\d{1,2}"),
    "S": ("second", r"\d{1,2}"),
    "f": ("frac", r"\d{1,9}"),
    ".f": ("frac", r"(?:\.\d{1,9})?"),
    "z": ("offset", r"[+-]\d{4}(?:\d{2})?"),
    ":z": ("offset", r"[+-]\d{2}:\d{2}(?::\d{2})?"),
    "a": (None, f"(?:{_WEEKDAY_ABBR_ALTS})"),
    "A": (None, f"(?:{_WEEKDAY_ALTS})"),
    "b": ("month_name", f"(?:{_MONTH_ABBR_ALTS})"),
    "h": ("month_name", f"(?:{_MONTH_ABBR_ALTS})"),
    "B": ("month_name", f"(?:{_MONTH_ALTS})"),
    "%": (None, "%"),
}


def _literal(text: str) -> str:
    return "".join(
        r"\s+" if c.isspace() else re.escape(c)
        for c in re.sub(r"\s+", " ", text)
    )


@lru_cache(maxsize=64)
def compile_template(template: str) -> re.Pattern[str]:
    """Translate a strptime-style template to an anchored regex"""
    for key, expansion in _COMPOSITES.items():
        template = template.replace("%" + key, expansion)

    parts = []
    seen = set()
    pos = 0
    for m in _DIRECTIVE_RE.finditer(template):
        parts.append(_literal(template[pos : m.start()]))
        directive = m.group()[1:]
        try:
            group, pattern = _PATTERNS[directive]
        except KeyError:
            raise ValueError(
                f"Unsupported directive %{directive} in {template!r}"
            ) from None
        if group is None:
            parts.append(pattern)
        elif group in seen:
            raise ValueError(f"Repeated field {group!r} in {template!r}")
        else:
            seen.add(group)
            parts.append(f"(?P<{group}>{pattern})")
        pos = m.end()
    parts.append(_literal(template[pos:]))
    return re.compile("".join(parts), re.IGNORECASE | re.ASCII)


def expand_two_digit_year(yy: int) -> int:
    """00-68 are in the 2000s, 69-99 in the 1900s"""
    return 2000 + yy if yy < 69 else 1900 + yy


def match_template(template: str, s: str) -> TemplateMatch:
    """Match ``s`` against the whole template.

    Weekday names are recognized but not checked against the date.
    """
    if (m := compile_template(template).fullmatch(s)) is None:
        raise ValueError(f"{s!r} does not match {template!r}")
    fields = m.groupdict()

    if fields.get("year") is not None:
        year = int(fields["year"])
    elif fields.get("year2") is not None:
        year = expand_two_digit_year(int(fields["year2"]))
    else:
        raise ValueError(f"Template {template!r} has no year")
    if fields.get("month_name") is not None:
        month = _MONTH_BY_NAME[fields["month_name"].lower()]
    else:
        month = int(fields.get("month") or 0)
    day = int((fields.get("day") or "0").strip())

    frac = (fields.get("frac") or "").lstrip(".")
    try:
        date = _date(year, month, day)
        time = _time(
            int(fields.get("hour") or 0),
            int(fields.get("minute") or 0),
            int(fields.get("second") or 0),
        )
    except ValueError as e:
        raise ValueError(f"{s!r} has an invalid field: {e}") from None

    offset = None
    if (raw_offset := fields.get("offset")) is not None:
        offset = signed_offset_from_iso(raw_offset)
    return TemplateMatch(
        date, time, _parse_nanos(frac) if frac else 0, offset
    )


def fixed_dt(naive: _datetime, offset: int) -> _datetime:
    """Attach a fixed offset, checking the instant is in range"""
    return check_utc_bounds(naive.replace(tzinfo=mk_fixed_tzinfo(offset)))
