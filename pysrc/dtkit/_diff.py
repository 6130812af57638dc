"""Calendar-aware differences between two zoned values."""

from __future__ import annotations

from datetime import timedelta as _timedelta
from typing import NamedTuple, Optional, Union

from ._errors import ConflictingUnitOptions
from ._math import add_months, months_between, round_half_expand
from ._span import CalendarSpan
from ._units import Unit
from ._zoned import ZonedValue

__all__ = ["SpanDifference", "difference"]

UnitLike = Union[Unit, str]


class SpanDifference(NamedTuple):
    """The result of :func:`difference`, in three renderings"""

    span: CalendarSpan
    # e.g. P5y2m27dT21h37m30.3673221s
    machine: str
    # e.g. 5yrs 2mths 3wks 6days 21hrs 37mins 30secs 367ms 322µs 100ns
    human: str


def _tdivmod(a: int, b: int) -> tuple[int, int]:
    """divmod, but truncating towards zero"""
    q = abs(a) // b * (-1 if a < 0 else 1)
    return q, a - q * b


def _decompose_nanos(nanos: int, largest: Unit) -> dict[str, int]:
    """Split exact nanoseconds into time units, starting at ``largest``"""
    out = {}
    for unit in Unit:
        if unit.is_calendar or unit.rank < largest.rank:
            continue
        out[unit.field], nanos = _tdivmod(nanos, unit.nanos)
    return out


def _until(
    start: ZonedValue, end: ZonedValue, largest: Unit, use_weeks: bool
) -> CalendarSpan:
    """The unrounded span from start to end, with nothing above ``largest``"""
    if not largest.is_calendar:
        return CalendarSpan(
            **_decompose_nanos(start._nanos_until(end), largest)
        )

    sign = 1 if end >= start else -1
    start_date = start.date()
    end_date = end.date()
    start_tod = (start.time(), start.nanosecond)
    end_tod = (end.time(), end.nanosecond)
    # an incomplete day at the end doesn't count towards the days
    if sign > 0 and end_tod < start_tod:
        end_date -= _timedelta(days=1)
    elif sign < 0 and end_tod > start_tod:
        end_date += _timedelta(days=1)

    while True:
        if (end_date - start_date).days * sign < 0:
            # the end is less than a day away, across a backward transition
            end_date = start_date
        if largest in (Unit.YEAR, Unit.MONTH):
            months = months_between(start_date, end_date)
        else:
            months = 0
        days = (end_date - add_months(start_date, months)).days
        intermediate = start._shift_calendar(months, days)
        nanos = intermediate._nanos_until(end)
        # A transition may make the last day shorter than the time left
        if not nanos or (nanos > 0) == (sign > 0):
            break
        end_date -= _timedelta(days=sign)

    years = 0
    if largest is Unit.YEAR:
        years, months = _tdivmod(months, 12)
    weeks = 0
    if use_weeks:
        weeks, days = _tdivmod(days, 7)
    return CalendarSpan(
        years=years,
        months=months,
        weeks=weeks,
        days=days,
        **_decompose_nanos(nanos, Unit.HOUR),
    )


def _truncate(span: CalendarSpan, smallest: Unit) -> CalendarSpan:
    return span.replace(
        **{u.field: 0 for u in Unit if u.rank > smallest.rank}
    )


def _apply(start: ZonedValue, span: CalendarSpan) -> ZonedValue:
    return start._shift_calendar(
        span.total_months(), span.total_days(), span.time_nanos()
    )


def _round(
    start: ZonedValue,
    end: ZonedValue,
    span: CalendarSpan,
    smallest: Unit,
    largest: Unit,
    use_weeks: bool,
) -> CalendarSpan:
    """Round the span half-expand at ``smallest``, carrying into
    larger units where needed"""
    if smallest is Unit.NANOSECOND:
        return span

    if not smallest.is_calendar:
        # Round the exact remainder, then measure again up to the
        # rounded end point. This carries e.g. 60 minutes into an hour.
        remainder = span.time_nanos()
        rounded = round_half_expand(remainder, smallest.nanos)
        if rounded == remainder:
            return span
        new_end = end._add_nanos(rounded - remainder, "rounding")
        return _truncate(_until(start, new_end, largest, use_weeks), smallest)

    sign = span.sign or 1
    truncated = _truncate(span, smallest)
    expanded = truncated.replace(
        **{smallest.field: truncated.get(smallest) + sign}
    )
    trunc_end = _apply(start, truncated)
    expand_end = _apply(start, expanded)
    progress = abs(trunc_end._nanos_until(end))
    step = abs(trunc_end._nanos_until(expand_end))
    if progress * 2 >= step:
        return _truncate(
            _until(start, expand_end, largest, use_weeks), smallest
        )
    return truncated


def difference(
    start: ZonedValue,
    end: ZonedValue,
    *,
    smallest: Optional[UnitLike] = None,
    largest: Optional[UnitLike] = None,
    as_unit: Optional[UnitLike] = None,
) -> SpanDifference:
    """The calendar-aware span from ``start`` to ``end``.

    The span is rounded half-expand at ``smallest`` (default
    nanoseconds) and has no components above ``largest`` (default
    years). ``as_unit`` sets both at once. Weeks are only used when
    they are the largest or smallest unit.

    Values in different zones are both converted to UTC first.

    >>> a = resolve("2019-05-10T09:59:12-07:00")
    >>> b = resolve("2024-08-07T09:36:42.367322100-05:00")
    >>> difference(a, b, as_unit="hr").human
    '45982hrs'
    """
    if as_unit is not None:
        if smallest is not None or largest is not None:
            raise ConflictingUnitOptions()
        smallest_unit = largest_unit = Unit.from_alias(as_unit)
    else:
        smallest_unit = (
            Unit.NANOSECOND if smallest is None else Unit.from_alias(smallest)
        )
        largest_unit = (
            Unit.YEAR if largest is None else Unit.from_alias(largest)
        )
    if smallest_unit.rank < largest_unit.rank:
        raise ConflictingUnitOptions(
            f"smallest unit ({smallest_unit.value}) is larger than "
            f"largest unit ({largest_unit.value})"
        )

    if start.tzinfo != end.tzinfo:
        start, end = start.to_utc(), end.to_utc()

    use_weeks = Unit.WEEK in (smallest_unit, largest_unit)
    span = _round(
        start,
        end,
        _until(start, end, largest_unit, use_weeks),
        smallest_unit,
        largest_unit,
        use_weeks,
    )
    if as_unit is not None:
        human = span.format_single(smallest_unit)
    else:
        human = span.format_human(zero_unit=smallest_unit)
    return SpanDifference(span, span.format_machine(), human)
