from .ambiguity import resolve_ambiguity, resolve_ambiguity_using_prev_offset
from .common import Disambiguate, Fold, Gap, Unambiguous, ambiguity_for_local
from .posix import PosixTz
from .store import (
    as_tzinfo,
    get_system_tz,
    get_tz,
    reset_system_tz,
    tz_key,
    validate_tzid,
)

__all__ = [
    "Disambiguate",
    "Unambiguous",
    "Gap",
    "Fold",
    "ambiguity_for_local",
    "PosixTz",
    "resolve_ambiguity",
    "resolve_ambiguity_using_prev_offset",
    "as_tzinfo",
    "get_tz",
    "get_system_tz",
    "reset_system_tz",
    "tz_key",
    "validate_tzid",
]
