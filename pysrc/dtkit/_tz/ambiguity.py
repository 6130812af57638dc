from __future__ import annotations

from datetime import (
    datetime as _datetime,
    timedelta as _timedelta,
    tzinfo as _tzinfo,
)

from .._common import UTC, mk_fixed_tzinfo
from .._errors import RepeatedTime, SkippedTime
from .common import Disambiguate, Fold, Gap, Unambiguous, ambiguity_for_local
from .store import tz_key


def resolve_ambiguity(
    dt: _datetime, tz: _tzinfo, disambiguate: Disambiguate | _timedelta
) -> _datetime:
    """Attach an offset to a naive local datetime in the given zone.

    The result carries a fixed-offset tzinfo. Times in a gap are shifted
    out of it by the size of the gap.
    """
    assert dt.tzinfo is None, "dt must be naive"
    if isinstance(disambiguate, _timedelta):
        return resolve_ambiguity_using_prev_offset(dt, disambiguate, tz)
    elif disambiguate not in ("compatible", "earlier", "later", "raise"):
        raise ValueError(
            "disambiguate must be 'compatible', 'earlier', 'later', or 'raise'"
        )

    ambiguity = ambiguity_for_local(dt, tz)
    if isinstance(ambiguity, Unambiguous):
        offset = ambiguity.offset
    elif isinstance(ambiguity, Fold):
        if disambiguate in ("compatible", "earlier"):
            offset = ambiguity.before
        elif disambiguate == "later":
            offset = ambiguity.after
        else:  # disambiguate == "raise"
            raise RepeatedTime._for_tz(dt, tz_key(tz))
    else:  # isinstance(ambiguity, Gap):
        if disambiguate in ("compatible", "later"):
            offset = ambiguity.after
            shift = ambiguity.after - ambiguity.before
        elif disambiguate == "earlier":
            offset = ambiguity.before
            shift = ambiguity.before - ambiguity.after
        else:  # disambiguate == "raise"
            raise SkippedTime._for_tz(dt, tz_key(tz))
        # shift the datetime out of the gap
        dt += _timedelta(seconds=shift)

    resolved = dt.replace(tzinfo=mk_fixed_tzinfo(offset))
    # This ensures we raise an exception if the instant is out of range,
    # even if the local time is valid.
    resolved.astimezone(UTC)
    return resolved


def resolve_ambiguity_using_prev_offset(
    dt: _datetime, prev_offset: _timedelta, tz: _tzinfo
) -> _datetime:
    """Like :func:`resolve_ambiguity`, but keep the previous offset
    as long as it is still valid at the new local time."""
    ambiguity = ambiguity_for_local(dt, tz)
    offset = int(prev_offset.total_seconds())
    if isinstance(ambiguity, Unambiguous):
        offset = ambiguity.offset
    elif isinstance(ambiguity, Fold):
        if offset not in (ambiguity.before, ambiguity.after):
            offset = ambiguity.before
    else:  # isinstance(ambiguity, Gap)
        offset = ambiguity.after
        dt += _timedelta(seconds=ambiguity.after - ambiguity.before)

    resolved = dt.replace(tzinfo=mk_fixed_tzinfo(offset))
    resolved.astimezone(UTC)
    return resolved


def offset_is_valid(dt: _datetime, tz: _tzinfo, offset: int) -> bool:
    """Whether the zone uses ``offset`` at naive local time ``dt``"""
    ambiguity = ambiguity_for_local(dt, tz)
    if isinstance(ambiguity, Unambiguous):
        return ambiguity.offset == offset
    elif isinstance(ambiguity, Fold):
        return offset in (ambiguity.before, ambiguity.after)
    else:  # a gap has no valid offsets
        return False
