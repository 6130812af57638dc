"""Calendar-aware spans: parsing and rendering."""

from __future__ import annotations

from typing import Iterable

from ._common import NS_PER_SEC, _ImmutableBase, final
from ._errors import InvalidSpan
from ._units import Unit

__all__ = ["CalendarSpan", "parse_span"]

_FIELDS = tuple(u.field for u in Unit)

_DATE_DESIGNATORS = {
    "Y": Unit.YEAR,
    "M": Unit.MONTH,
    "W": Unit.WEEK,
    "D": Unit.DAY,
}
_TIME_DESIGNATORS = {"H": Unit.HOUR, "M": Unit.MINUTE, "S": Unit.SECOND}

_MAX_DIGITS = 20
# str.isdigit() also accepts other scripts and superscripts
_NUMBER_CHARS = frozenset("0123456789.,")


@final
class CalendarSpan(_ImmutableBase):
    """A signed duration in calendar units (years, months, weeks, days)
    and exact units (hours down to nanoseconds).

    All non-zero components share one sign.

    >>> CalendarSpan(months=1, days=3)
    CalendarSpan(P1m3d)
    >>> CalendarSpan.parse("-1d")
    CalendarSpan(-P1d)
    """

    __slots__ = ("_values",)

    _values: tuple[int, ...]

    def __init__(
        self,
        *,
        years: int = 0,
        months: int = 0,
        weeks: int = 0,
        days: int = 0,
        hours: int = 0,
        minutes: int = 0,
        seconds: int = 0,
        milliseconds: int = 0,
        microseconds: int = 0,
        nanoseconds: int = 0,
    ) -> None:
        values = (
            years,
            months,
            weeks,
            days,
            hours,
            minutes,
            seconds,
            milliseconds,
            microseconds,
            nanoseconds,
        )
        for name, v in zip(_FIELDS, values):
            if not isinstance(v, int):
                raise TypeError(f"{name} must be an integer, got {v!r}")
        if any(v > 0 for v in values) and any(v < 0 for v in values):
            raise InvalidSpan(
                ", ".join(
                    f"{n}={v}" for n, v in zip(_FIELDS, values) if v
                ),
                "mixed signs are not allowed",
            )
        self._values = values

    @classmethod
    def _from_values(cls, values: Iterable[int]) -> CalendarSpan:
        return cls(**dict(zip(_FIELDS, values)))

    @classmethod
    def parse(cls, text: str, /) -> CalendarSpan:
        """Parse a duration expression such as ``P1y2m``, ``1d``,
        ``T1h30m`` or ``-2w``.

        The leading ``P`` is optional and a sign may precede it.
        Designators are case-insensitive.
        """
        return parse_span(text)

    years = property(lambda self: self._values[0], doc="Number of years")
    months = property(lambda self: self._values[1], doc="Number of months")
    weeks = property(lambda self: self._values[2], doc="Number of weeks")
    days = property(lambda self: self._values[3], doc="Number of days")
    hours = property(lambda self: self._values[4], doc="Number of hours")
    minutes = property(lambda self: self._values[5], doc="Number of minutes")
    seconds = property(lambda self: self._values[6], doc="Number of seconds")
    milliseconds = property(lambda self: self._values[7])
    microseconds = property(lambda self: self._values[8])
    nanoseconds = property(lambda self: self._values[9])

    def get(self, unit: Unit) -> int:
        return self._values[unit.rank]

    @property
    def sign(self) -> int:
        """-1, 0 or 1"""
        for v in self._values:
            if v:
                return 1 if v > 0 else -1
        return 0

    def is_zero(self) -> bool:
        return not any(self._values)

    def total_months(self) -> int:
        return self.years * 12 + self.months

    def total_days(self) -> int:
        """The calendar days, weeks included. Their length depends on the
        zone."""
        return self.weeks * 7 + self.days

    def time_nanos(self) -> int:
        """The exact part of the span, in nanoseconds"""
        return sum(
            v * u.nanos
            for u, v in zip(Unit, self._values)
            if not u.is_calendar
        )

    def replace(self, **kwargs: int) -> CalendarSpan:
        return CalendarSpan(**{**dict(zip(_FIELDS, self._values)), **kwargs})

    def __neg__(self) -> CalendarSpan:
        return self._from_values(-v for v in self._values)

    def __abs__(self) -> CalendarSpan:
        return self._from_values(abs(v) for v in self._values)

    def __eq__(self, other: object) -> bool:
        """Compare component-wise. ``P1d`` and ``PT24h`` are not equal."""
        if not isinstance(other, CalendarSpan):
            return NotImplemented
        return self._values == other._values

    def __hash__(self) -> int:
        return hash(self._values)

    def __bool__(self) -> bool:
        return not self.is_zero()

    def format_machine(self) -> str:
        """ISO 8601-like rendering with lowercase designators.

        >>> CalendarSpan(years=5, days=27, milliseconds=367).format_machine()
        'P5y27dT0.367s'
        """
        if self.is_zero():
            return "PT0s"
        y, mo, w, d, h, mi, s, ms, us, ns = map(abs, self._values)
        date = "".join(
            f"{v}{c}"
            for v, c in ((y, "y"), (mo, "m"), (w, "w"), (d, "d"))
            if v
        )
        secs, frac = divmod(
            s * NS_PER_SEC + ms * 1_000_000 + us * 1_000 + ns, NS_PER_SEC
        )
        time = f"{h}h" * bool(h) + f"{mi}m" * bool(mi)
        if secs or frac:
            time += f"{secs}" + bool(frac) * f".{frac:09d}".rstrip("0") + "s"
        sign = "-" * (self.sign < 0)
        return sign + "P" + date + ("T" + time if time else "")

    def format_human(self, zero_unit: Unit = Unit.NANOSECOND) -> str:
        """Space-separated ``<n><abbrev>`` tokens, largest unit first.

        More than six days with no weeks is shown as weeks and days.
        An empty span shows as zero of ``zero_unit``.

        >>> CalendarSpan(months=2, days=27, hours=21).format_human()
        '2mths 3wks 6days 21hrs'
        """
        if self.is_zero():
            return f"0{zero_unit.abbreviation}"
        values = dict(zip(Unit, map(abs, self._values)))
        if values[Unit.DAY] > 6 and not values[Unit.WEEK]:
            values[Unit.WEEK], values[Unit.DAY] = divmod(values[Unit.DAY], 7)
        tokens = " ".join(
            f"{v}{u.abbreviation}" for u, v in values.items() if v
        )
        return "-" * (self.sign < 0) + tokens

    def format_single(self, unit: Unit) -> str:
        """The one component in ``unit``, e.g. ``45982hrs``"""
        return f"{self.get(unit)}{unit.abbreviation}"

    def __str__(self) -> str:
        return self.format_machine()

    def __repr__(self) -> str:
        return f"CalendarSpan({self.format_machine()})"


def _insert_designator(s: str) -> str:
    if s[:1] in ("P", "p"):
        return s
    elif s[:1] in ("+", "-"):
        if s[1:2] in ("P", "p") or len(s) <= 2:
            return s
        return s[0] + "P" + s[1:]
    return "P" + s


def _split_fraction(digits: str, input: str) -> tuple[int, int]:
    """Whole and fractional (in billionths) parts of a number"""
    whole, sep, frac = digits.replace(",", ".").partition(".")
    if (
        not whole
        or len(whole) > _MAX_DIGITS
        or (sep and not frac.isdigit())
        or len(frac) > 9
    ):
        raise InvalidSpan(input, f"invalid number {digits!r}")
    return int(whole), int(frac.ljust(9, "0")) if frac else 0


def _spread(nanos: int) -> dict[str, int]:
    """Distribute exact nanoseconds over the time units below hours"""
    out = {}
    for unit in tuple(Unit)[5:]:
        out[unit.field], nanos = divmod(nanos, unit.nanos)
    return out


def parse_span(text: str) -> CalendarSpan:
    """Parse a duration expression into a :class:`CalendarSpan`.

    The grammar is ``[+-]P[nY][nM][nW][nD][T[nH][nM][n[.f]S]]``. Only the
    final time component may have a fraction. It is converted exactly
    into the finer units.

    >>> parse_span("1y2mT3.5h")
    CalendarSpan(P1y2mT3h30m)
    """
    stripped = text.strip()
    if not stripped:
        raise InvalidSpan(text, "empty duration")
    s = _insert_designator(stripped).upper()

    sign = 1
    if s[0] in "+-":
        sign = -1 if s[0] == "-" else 1
        s = s[1:]
    if not s.startswith("P"):
        raise InvalidSpan(text, f"expected a 'P' designator at {stripped!r}")

    values: dict[str, int] = {}
    designators = _DATE_DESIGNATORS
    seen: list[Unit] = []
    in_time = False
    pos = 1
    fraction_unit: Unit | None = None
    fraction = 0
    while pos < len(s):
        if s[pos] == "T":
            if in_time:
                raise InvalidSpan.bad_component(text, "T")
            in_time = True
            designators = _TIME_DESIGNATORS
            pos += 1
            continue
        start = pos
        while pos < len(s) and s[pos] in _NUMBER_CHARS:
            pos += 1
        number = s[start:pos]
        if not number:
            raise InvalidSpan.bad_component(text, s[start:])
        if pos == len(s):
            raise InvalidSpan(
                text, f"number {number!r} is missing a unit designator"
            )
        letter = s[pos]
        unit = designators.get(letter)
        if unit is None or (seen and unit.rank <= seen[-1].rank):
            raise InvalidSpan.bad_component(text, s[start : pos + 1])
        if fraction_unit is not None:
            raise InvalidSpan(
                text,
                "only the last time component may have a fraction, "
                f"not {fraction_unit.value}s",
            )
        whole, frac = _split_fraction(number, text)
        if frac and not in_time:
            raise InvalidSpan(
                text, f"fractional {unit.value}s are not supported"
            )
        if frac:
            fraction_unit, fraction = unit, frac
        values[unit.field] = whole
        seen.append(unit)
        pos += 1

    if not seen:
        raise InvalidSpan(
            text, "expected at least one unit, e.g. '1d' or 'T1h'"
        )
    if in_time and not seen[-1].rank > Unit.DAY.rank:
        raise InvalidSpan(text, "expected a time component after 'T'")

    if fraction_unit is not None:
        extra = fraction * fraction_unit.nanos // NS_PER_SEC
        for field, v in _spread(extra).items():
            values[field] = values.get(field, 0) + v

    return CalendarSpan(**{k: sign * v for k, v in values.items()})
