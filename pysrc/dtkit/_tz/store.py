"""Timezone database access and system zone detection."""

from __future__ import annotations

import logging
from datetime import timezone as _timezone, tzinfo as _tzinfo
from typing import NewType, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .._errors import TimeZoneNotFoundError
from . import system
from .posix import PosixTz

__all__ = [
    "TzLike",
    "as_tzinfo",
    "get_tz",
    "get_system_tz",
    "reset_system_tz",
    "tz_key",
    "validate_tzid",
]

_log = logging.getLogger(__name__)

TzLike = Union[str, ZoneInfo, PosixTz, _timezone]


def get_tz(key: str) -> ZoneInfo:
    # ZoneInfo keeps its own per-key cache
    try:
        return ZoneInfo(validate_tzid(key))
    # Several exceptions amount to "can't find the key"
    except (ZoneInfoNotFoundError, ValueError, OSError):
        raise TimeZoneNotFoundError.for_key(key) from None


def validate_tzid(key: str) -> SafeTzId:
    """Checks for invalid characters and path traversal in the key."""
    if (
        key.isascii()
        # There's no standard limit on IANA tz IDs, but we have to draw
        # the line somewhere to prevent abuse.
        and 0 < len(key) < 100
        and all(b.isalnum() or b in "-_+/." for b in key)
        # specific sequences not allowed
        and ".." not in key
        and "//" not in key
        and "/./" not in key
        # specific restrictions on the first and list characters
        and key[0] not in ".-+/"
        and key[-1] != "/"
    ):
        return SafeTzId(key)
    else:
        raise TimeZoneNotFoundError.for_key(key)


# Alias for a TZ key that has been confirmed not to be a path traversal
# or contain other "bad" characters.
SafeTzId = NewType("SafeTzId", str)


def as_tzinfo(tz: TzLike) -> _tzinfo:
    """Normalize the accepted ways of naming a zone to a tzinfo"""
    if isinstance(tz, str):
        return get_tz(tz)
    elif isinstance(tz, (ZoneInfo, PosixTz, _timezone)):
        return tz
    raise TypeError(
        "tz must be an IANA key, a ZoneInfo, a PosixTz, or a fixed-offset "
        f"timezone, not {type(tz).__name__}"
    )


def tz_key(tz: _tzinfo) -> str | None:
    """The IANA key of a zone, or None for fixed offsets and
    zones without a key"""
    return tz.key if isinstance(tz, ZoneInfo) else None


_CACHED_SYSTEM_TZ: _tzinfo | None = None


def get_system_tz() -> _tzinfo:
    global _CACHED_SYSTEM_TZ
    # Last writer wins; detection is side-effect free
    if _CACHED_SYSTEM_TZ is None:
        _CACHED_SYSTEM_TZ = _read_system_tz()  # pragma: no cover
    return _CACHED_SYSTEM_TZ


def reset_system_tz() -> None:
    """Resets the cached system timezone to the current system timezone."""
    global _CACHED_SYSTEM_TZ
    _CACHED_SYSTEM_TZ = _read_system_tz()


def _read_system_tz() -> _tzinfo:
    tz_type, tz_value = system.get_tz()
    tz: _tzinfo
    if tz_type == 0:  # IANA TZID
        tz = get_tz(tz_value)
    elif tz_type == 2:  # IANA TZID or POSIX string (we don't know which)
        try:
            tz = get_tz(tz_value)
        except TimeZoneNotFoundError:
            try:
                tz = PosixTz(tz_value)
            except ValueError:
                raise TimeZoneNotFoundError(
                    f"TZ={tz_value!r} is neither a time zone key "
                    "nor a POSIX TZ string"
                ) from None
    else:  # file-based timezone (no key)
        assert tz_type == 1, "Unknown system timezone type"
        with open(tz_value, "rb") as f:
            tz = ZoneInfo.from_file(f)
    _log.debug("detected system timezone: %s", tz_key(tz) or tz_value)
    return tz
