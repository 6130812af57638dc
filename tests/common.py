import os
from contextlib import contextmanager
from unittest.mock import patch

from dtkit import ResolverConfig, reset_system_tz

CHICAGO = "America/Chicago"

# 2024-07-09T15:30:00Z, i.e. 10:30 in Chicago
FROZEN_NANOS = 1_720_539_000 * 1_000_000_000


def frozen_clock() -> int:
    return FROZEN_NANOS


def chicago_config(**kwargs) -> ResolverConfig:
    return ResolverConfig(CHICAGO, clock=frozen_clock, **kwargs)


@contextmanager
def system_tz(name):
    try:
        with patch.dict(os.environ, {"TZ": name}):
            reset_system_tz()
            yield
    finally:
        reset_system_tz()  # the patch is gone, so detect again
