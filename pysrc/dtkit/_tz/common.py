from __future__ import annotations

from datetime import datetime as _datetime, tzinfo as _tzinfo
from typing import Literal, Union

Disambiguate = Literal["compatible", "earlier", "later", "raise"]


class Unambiguous:
    offset: int

    def __init__(self, offset: int):
        self.offset = offset

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Unambiguous):
            return self.offset == other.offset
        return False  # pragma: no cover

    def __repr__(self) -> str:
        return f"Unambiguous({self.offset})"


class Gap:
    """A local time skipped by a forward transition.

    ``before`` and ``after`` are the offsets on either side of it.
    """

    before: int
    after: int

    def __init__(self, before: int, after: int):
        self.before = before
        self.after = after

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Gap):
            return self.before == other.before and self.after == other.after
        return False  # pragma: no cover

    def __repr__(self) -> str:
        return f"Gap({self.before}, {self.after})"


class Fold:
    """A local time repeated by a backward transition.

    ``before`` and ``after`` are the offsets on either side of it.
    """

    before: int
    after: int

    def __init__(self, before: int, after: int):
        self.before = before
        self.after = after

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Fold):
            return self.before == other.before and self.after == other.after
        return False  # pragma: no cover

    def __repr__(self) -> str:
        return f"Fold({self.before}, {self.after})"


Ambiguity = Union[Unambiguous, Gap, Fold]


def _offset_secs(dt: _datetime) -> int:
    off = dt.utcoffset()
    assert off is not None
    return int(off.total_seconds())


def ambiguity_for_local(dt: _datetime, tz: _tzinfo) -> Ambiguity:
    """Classify a naive local datetime in the given zone.

    ``zoneinfo`` answers with the offset before the transition for
    ``fold=0`` and the one after it for ``fold=1``. They only differ
    inside a gap or a fold.
    """
    assert dt.tzinfo is None, "dt must be naive"
    before = _offset_secs(dt.replace(tzinfo=tz, fold=0))
    after = _offset_secs(dt.replace(tzinfo=tz, fold=1))
    if before == after:
        return Unambiguous(before)
    elif before < after:
        return Gap(before, after)
    else:
        return Fold(before, after)
