from datetime import (
    datetime as _datetime,
    timedelta as _timedelta,
    timezone as _timezone,
)
from functools import lru_cache
from typing import TYPE_CHECKING, no_type_check

UTC = _timezone.utc
Nanos = int  # 0-999_999_999

MIN_YEAR = 1
MAX_YEAR = 9999

NS_PER_SEC = 1_000_000_000
NS_PER_DAY = 86_400 * NS_PER_SEC


# Fixed-offset tzinfo objects are cached: most offsets are whole hours,
# so the same few are created over and over.
@lru_cache
def mk_fixed_tzinfo(secs: int, /) -> _timezone:
    return _timezone(_timedelta(seconds=secs))


def format_offset(secs: int, sep: str = ":") -> str:
    sign = "-" if secs < 0 else "+"
    hrs, rest = divmod(abs(secs), 3600)
    mins, secs = divmod(rest, 60)
    s = f"{sign}{hrs:02d}{sep}{mins:02d}"
    if secs:
        s += f"{sep}{secs:02d}"
    return s


def check_utc_bounds(dt: _datetime) -> _datetime:
    try:
        dt.astimezone(UTC)
    except (OverflowError, ValueError):
        raise ValueError("Instant out of range")
    return dt


class _ImmutableBase:
    __slots__ = ()

    # Immutable classes don't need to be copied
    @no_type_check
    def __copy__(self):
        return self

    @no_type_check
    def __deepcopy__(self, _):
        return self


if TYPE_CHECKING:
    from typing import final
else:

    def final(cls):

        def init_subclass_not_allowed(cls, **kwargs):  # pragma: no cover
            raise TypeError("Subclassing not allowed")

        cls.__init_subclass__ = init_subclass_not_allowed
        return cls
