"""Date, calendar, and time arithmetic helpers."""

from datetime import date as _date, timedelta as _timedelta

from ._common import MAX_YEAR, MIN_YEAR


def is_leap(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


# 1-indexed days per month
_MONTHDAYS = [0, 31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]


def days_in_month(year: int, month: int) -> int:
    return _MONTHDAYS[month] + (month == 2 and is_leap(year))


def add_months(d: _date, months: int) -> _date:
    """Shift a date by a number of months, clamping the day to the end of
    the target month (Jan 31 + 1 month = Feb 28/29)."""
    year_delta, month0_new = divmod(d.month - 1 + months, 12)
    year_new = d.year + year_delta
    if not MIN_YEAR <= year_new <= MAX_YEAR:
        raise OverflowError("date out of range")
    month_new = month0_new + 1
    return d.replace(
        year=year_new,
        month=month_new,
        day=min(d.day, days_in_month(year_new, month_new)),
    )


def add_days(d: _date, days: int) -> _date:
    # date + timedelta raises OverflowError at the edges of the range
    return d + _timedelta(days=days)


def months_between(start: _date, end: _date) -> int:
    """The largest whole number of months (towards ``end``) that can be
    added to ``start`` without passing ``end``."""
    diff = (end.year - start.year) * 12 + (end.month - start.month)
    shift = add_months(start, diff)

    # Check if we overshot
    if (diff > 0 and shift > end) or (diff < 0 and shift < end):
        diff -= 1 if diff > 0 else -1
    return diff


def day_of_year(d: _date) -> int:
    return d.toordinal() - _date(d.year, 1, 1).toordinal() + 1


# NOTE: ISO week numbering is Monday-based (isoweekday() == 1 on Monday).
# Don't mix this up with the Sunday=0 convention of `weekday_from_sunday`.
def iso_week(d: _date) -> int:
    """The ISO 8601 week number: the week belongs to the year
    that contains its Thursday."""
    thursday = d + _timedelta(days=4 - d.isoweekday())
    jan1 = _date(thursday.year, 1, 1)
    return (thursday.toordinal() - jan1.toordinal()) // 7 + 1


def weekday_from_sunday(d: _date) -> int:
    """Day of the week with Sunday=0 through Saturday=6"""
    return d.isoweekday() % 7


def quarter(month: int) -> int:
    return (month - 1) // 3 + 1


def round_half_expand(value: int, increment: int) -> int:
    """Round to a multiple of ``increment``, with ties away from zero"""
    quotient, remainder = divmod(abs(value), increment)
    if remainder * 2 >= increment:
        quotient += 1
    return quotient * increment * (-1 if value < 0 else 1)
