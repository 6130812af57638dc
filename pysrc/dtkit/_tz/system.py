"""Detection of the system timezone."""

import os
import os.path
import platform
from typing import Literal, Optional

SYSTEM = platform.system()
LOCALTIME = "/etc/localtime"

# Kind of the detected value
KEY: Literal[0] = 0
FILE: Literal[1] = 1
KEY_OR_POSIX: Literal[2] = 2

# On unix-like systems /etc/localtime is a symlink into the zoneinfo tree.
# Elsewhere we ask tzlocal.
if SYSTEM in ("Linux", "Darwin"):  # pragma: no cover

    def _key_or_file() -> tuple[Literal[0, 1], str]:
        if not os.path.exists(LOCALTIME):
            # like glibc, no localtime means UTC
            return (KEY, "UTC")  # pragma: no cover
        tzif_path = os.path.realpath(LOCALTIME)
        if tzif_path == LOCALTIME:
            # not a symlink: the key can't be known
            return (FILE, LOCALTIME)  # pragma: no cover

        if (tzid := tzid_from_path(tzif_path)) is None:
            return (FILE, tzif_path)
        else:
            return (KEY, tzid)

else:  # pragma: no cover
    import tzlocal

    def _key_or_file() -> tuple[Literal[0, 1], str]:
        return (KEY, tzlocal.get_localzone_name())


def tzid_from_path(path: str) -> Optional[str]:
    """The IANA key of a zoneinfo file path, e.g.
    ``/usr/share/zoneinfo/Europe/Paris`` gives ``Europe/Paris``.
    None if the path is not in a zoneinfo directory.
    """
    # The segment may be `zoneinfo/` or e.g. `zoneinfo.default/`
    if (index := path.find("/", path.rfind("zoneinfo"))) == -1:
        return None
    return path[index + 1 :] or None


def get_tz() -> tuple[Literal[0, 1, 2], str]:
    """Where the system timezone comes from, as ``(kind, value)``.

    ``kind`` is :data:`KEY` for an IANA key, :data:`FILE` for a path to
    a TZif file with an unknown key, or :data:`KEY_OR_POSIX` when the
    ``TZ`` variable could be either a key or a POSIX TZ string.
    """
    try:
        tz_env = os.environ["TZ"]
    except KeyError:  # pragma: no cover
        return _key_or_file()
    else:
        tz_env = tz_env.removeprefix(":")
        if not tz_env:
            return _key_or_file()  # pragma: no cover
        elif os.path.isabs(tz_env):
            return (FILE, tz_env)
        # A digit suggests a POSIX string. Keys like Etc/GMT+5 have them too.
        elif any(c.isdigit() for c in tz_env):
            return (KEY_OR_POSIX, tz_env)
        else:
            return (KEY, tz_env)
