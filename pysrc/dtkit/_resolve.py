"""Turning free-form datetime strings into zoned values.

Resolution tries a fixed sequence of strategies and returns the result
of the first one that accepts the input:

1. short dates (``2024-07-09``, ``7/9/24``, ``7/9/2024``) at midnight
   in the system zone
2. RFC 9557 / ISO 8601 with an offset and/or a bracketed zone
3. the zone-bearing templates of the format catalog, in catalog order
4. an exact timestamp (``@1700000000`` or ``2024-03-01T12:00:00Z``),
   a civil datetime, a civil date, and a time of day (today), all in
   the system zone

The order is part of the contract: ``STRATEGIES`` lists it.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import (
    datetime as _datetime,
    time as _time,
    timedelta as _timedelta,
    tzinfo as _tzinfo,
)
from time import time_ns
from typing import Callable, Optional

from ._catalog import FORMAT_CATALOG, SHORT_DATE_FORMATS, CatalogFormat
from ._common import UTC, format_offset, mk_fixed_tzinfo
from ._errors import InvalidOffsetError, UnparseableDatetime
from ._parse import (
    date_from_iso,
    datetime_from_iso,
    epoch_from_str,
    fixed_dt,
    instant_from_rfc3339,
    match_template,
    signed_offset_from_iso,
    time_from_iso,
    zoned_from_iso,
)
from ._tz import get_system_tz, get_tz, tz_key
from ._tz.ambiguity import offset_is_valid
from ._tz.store import TzLike, as_tzinfo
from ._zoned import ZonedValue

__all__ = [
    "OffsetConflict",
    "ResolverConfig",
    "STRATEGIES",
    "resolve",
    "now",
    "utcnow",
    "from_unix_seconds",
]

_log = logging.getLogger(__name__)


class OffsetConflict(enum.Enum):
    """What to do when a string has both an offset and a zone, and the
    zone doesn't use that offset at that local time"""

    REJECT = "reject"
    PREFER_OFFSET = "prefer_offset"
    PREFER_ZONE = "prefer_zone"


@dataclass(frozen=True)
class ResolverConfig:
    """The ambient inputs of resolution, made explicit.

    Tests pass a fixed zone and a frozen clock instead of reading them
    from the machine.
    """

    system_tz: TzLike
    offset_conflict: OffsetConflict = OffsetConflict.PREFER_OFFSET
    # nanoseconds since the UNIX epoch
    clock: Callable[[], int] = field(default=time_ns, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "system_tz", as_tzinfo(self.system_tz))
        object.__setattr__(
            self, "offset_conflict", OffsetConflict(self.offset_conflict)
        )

    @classmethod
    def from_environment(cls, **kwargs) -> ResolverConfig:
        """A config using the detected system timezone"""
        return cls(get_system_tz(), **kwargs)

    def today(self) -> ZonedValue:
        return ZonedValue.from_timestamp_nanos(
            self.clock(), tz=self.system_tz
        )


Strategy = Callable[[str, ResolverConfig], ZonedValue]


def _in_system_tz(
    naive: _datetime, nanos: int, config: ResolverConfig
) -> ZonedValue:
    return ZonedValue._from_local(naive, nanos, config.system_tz)


def _template_strategy(fmt: CatalogFormat) -> Strategy:
    def strategy(s: str, config: ResolverConfig) -> ZonedValue:
        m = match_template(fmt.template, s)
        if m.offset is None:
            return _in_system_tz(m.naive(), m.nanos, config)
        return ZonedValue._from_py_unchecked(
            fixed_dt(m.naive(), m.offset), m.nanos, mk_fixed_tzinfo(m.offset)
        )

    strategy.__name__ = f"catalog_{fmt.name}"
    return strategy


def _zone_from_annotation(annotation: str) -> _tzinfo:
    if annotation[:1] in ("+", "-"):
        return mk_fixed_tzinfo(signed_offset_from_iso(annotation))
    return get_tz(annotation)


def zoned(s: str, config: ResolverConfig) -> ZonedValue:
    """A date and time with an offset, a bracketed zone, or both"""
    parts = zoned_from_iso(s)
    naive = parts.naive()

    if parts.annotation is None:
        if parts.offset is None or parts.offset == "Z":
            raise ValueError("no offset or zone annotation")
        return ZonedValue._from_py_unchecked(
            fixed_dt(naive, parts.offset),
            parts.nanos,
            mk_fixed_tzinfo(parts.offset),
        )

    zone = _zone_from_annotation(parts.annotation)
    if parts.offset is None:
        return ZonedValue._from_local(naive, parts.nanos, zone)
    elif parts.offset == "Z":
        # the exact instant is known; the zone only says how to read it
        return ZonedValue._from_instant(
            naive.replace(tzinfo=UTC), parts.nanos, zone, "zone conversion"
        )

    policy = config.offset_conflict
    if policy is OffsetConflict.PREFER_ZONE:
        return ZonedValue._from_local(naive, parts.nanos, zone)
    elif offset_is_valid(naive, zone, parts.offset):
        return ZonedValue._from_local(
            naive, parts.nanos, zone, _timedelta(seconds=parts.offset)
        )
    elif policy is OffsetConflict.REJECT or parts.critical:
        raise InvalidOffsetError.for_zone(
            format_offset(parts.offset), tz_key(zone)
        )
    _log.debug(
        "offset %s is not used by %s at %s, using the zone's rules",
        format_offset(parts.offset),
        parts.annotation,
        naive,
    )
    return ZonedValue._from_local(naive, parts.nanos, zone)


def timestamp(s: str, config: ResolverConfig) -> ZonedValue:
    """``@<epoch seconds>`` or an exact UTC instant ending in ``Z``"""
    if s.startswith("@"):
        secs, nanos = epoch_from_str(s)
        return ZonedValue._from_epoch(secs, nanos, config.system_tz)
    dt, nanos = instant_from_rfc3339(s)
    return ZonedValue._from_instant(
        dt, nanos, config.system_tz, "zone conversion"
    )


def civil_datetime(s: str, config: ResolverConfig) -> ZonedValue:
    naive, nanos = datetime_from_iso(s)
    return _in_system_tz(naive, nanos, config)


def civil_date(s: str, config: ResolverConfig) -> ZonedValue:
    return _in_system_tz(
        _datetime.combine(date_from_iso(s), _time()), 0, config
    )


def time_of_day(s: str, config: ResolverConfig) -> ZonedValue:
    """A time of day, on today's date in the system zone"""
    # Bare numbers like "2024" are not times
    if ":" not in s:
        raise ValueError(f"Invalid format: {s!r}")
    time, nanos = time_from_iso(s)
    today = config.today().date()
    return _in_system_tz(_datetime.combine(today, time), nanos, config)


STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    *(
        (f"short_date:{fmt.name}", _template_strategy(fmt))
        for fmt in SHORT_DATE_FORMATS
    ),
    ("zoned", zoned),
    *(
        (f"catalog:{fmt.name}", _template_strategy(fmt))
        for fmt in FORMAT_CATALOG
        # already tried first
        if fmt not in SHORT_DATE_FORMATS
    ),
    ("timestamp", timestamp),
    ("datetime", civil_datetime),
    ("date", civil_date),
    ("time", time_of_day),
)


def resolve(s: str, config: Optional[ResolverConfig] = None) -> ZonedValue:
    """Resolve a datetime string into a :class:`ZonedValue`.

    Raises :class:`UnparseableDatetime` listing why each strategy
    rejected the input.

    >>> config = ResolverConfig("America/Chicago")
    >>> resolve("2017-08-25", config)
    ZonedValue(2017-08-25 00:00:00-05:00[America/Chicago])
    >>> resolve("Thu, 18 Aug 2022 12:45:06 +0800", config)
    ZonedValue(2022-08-18 12:45:06+08:00[+08:00])
    """
    if config is None:
        config = ResolverConfig.from_environment()
    text = s.strip()
    if not text:
        raise UnparseableDatetime(s, [("input", "empty string")])

    attempts: list[tuple[str, str]] = []
    for name, strategy in STRATEGIES:
        try:
            value = strategy(text, config)
        except ValueError as e:
            _log.debug("strategy %s rejected %r: %s", name, text, e)
            attempts.append((name, str(e)))
        else:
            _log.debug("resolved %r with strategy %s: %s", text, name, value)
            return value
    raise UnparseableDatetime(s, attempts)


def now(config: Optional[ResolverConfig] = None) -> ZonedValue:
    """The current time in the system zone"""
    return (config or ResolverConfig.from_environment()).today()


def utcnow(config: Optional[ResolverConfig] = None) -> ZonedValue:
    """The current time in UTC"""
    config = config or ResolverConfig.from_environment()
    return ZonedValue.from_timestamp_nanos(config.clock(), tz=get_tz("UTC"))


def from_unix_seconds(
    secs: int, *, utc: bool = False, config: Optional[ResolverConfig] = None
) -> ZonedValue:
    """A UNIX timestamp in UTC, or in the system zone"""
    if not isinstance(secs, int):
        raise TypeError("secs must be an integer")
    if utc:
        return ZonedValue.from_timestamp(secs, tz=get_tz("UTC"))
    config = config or ResolverConfig.from_environment()
    return ZonedValue.from_timestamp(secs, tz=config.system_tz)
