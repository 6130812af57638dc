import os
import pickle
from datetime import datetime, timedelta, timezone
from importlib.resources import files
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest
from hypothesis import given
from hypothesis.strategies import datetimes

from dtkit import TimeZoneNotFoundError
from dtkit._tz import (
    Fold,
    Gap,
    PosixTz,
    Unambiguous,
    ambiguity_for_local,
    as_tzinfo,
    get_system_tz,
    get_tz,
    resolve_ambiguity,
    resolve_ambiguity_using_prev_offset,
    tz_key,
    validate_tzid,
)
from dtkit._tz.ambiguity import offset_is_valid
from dtkit._tz.system import FILE, KEY, KEY_OR_POSIX, tzid_from_path
from dtkit._tz.system import get_tz as detect_system_tz

from .common import system_tz

CHICAGO = ZoneInfo("America/Chicago")
CDT = -5 * 3600
CST = -6 * 3600


class TestAmbiguity:

    def test_unambiguous(self):
        assert ambiguity_for_local(
            datetime(2024, 7, 1, 12), CHICAGO
        ) == Unambiguous(CDT)

    def test_gap(self):
        assert ambiguity_for_local(
            datetime(2024, 3, 10, 2, 30), CHICAGO
        ) == Gap(CST, CDT)

    def test_fold(self):
        assert ambiguity_for_local(
            datetime(2024, 11, 3, 1, 30), CHICAGO
        ) == Fold(CDT, CST)

    def test_fixed_offset(self):
        tz = timezone(timedelta(hours=3))
        assert ambiguity_for_local(datetime(2024, 1, 1), tz) == Unambiguous(
            3 * 3600
        )

    def test_repr(self):
        assert repr(Gap(CST, CDT)) == "Gap(-21600, -18000)"


class TestResolve:

    @pytest.mark.parametrize(
        "disambiguate, expect",
        [
            ("compatible", "2024-03-10T03:30:00-05:00"),
            ("later", "2024-03-10T03:30:00-05:00"),
            ("earlier", "2024-03-10T01:30:00-06:00"),
        ],
    )
    def test_gap(self, disambiguate, expect):
        dt = resolve_ambiguity(
            datetime(2024, 3, 10, 2, 30), CHICAGO, disambiguate
        )
        assert dt.isoformat() == expect

    def test_result_has_fixed_offset(self):
        dt = resolve_ambiguity(datetime(2024, 7, 1), CHICAGO, "raise")
        assert dt.tzinfo == timezone(timedelta(hours=-5))

    @pytest.mark.parametrize(
        "prev, expect",
        [
            (CDT, "2024-11-03T01:30:00-05:00"),
            (CST, "2024-11-03T01:30:00-06:00"),
            # not valid in the fold: the earlier offset is used
            (0, "2024-11-03T01:30:00-05:00"),
        ],
    )
    def test_prev_offset_in_fold(self, prev, expect):
        dt = resolve_ambiguity_using_prev_offset(
            datetime(2024, 11, 3, 1, 30), timedelta(seconds=prev), CHICAGO
        )
        assert dt.isoformat() == expect

    def test_prev_offset_in_gap(self):
        dt = resolve_ambiguity_using_prev_offset(
            datetime(2024, 3, 10, 2, 30), timedelta(seconds=CST), CHICAGO
        )
        assert dt.isoformat() == "2024-03-10T03:30:00-05:00"

    def test_offset_is_valid(self):
        fold = datetime(2024, 11, 3, 1, 30)
        assert offset_is_valid(fold, CHICAGO, CDT)
        assert offset_is_valid(fold, CHICAGO, CST)
        assert not offset_is_valid(fold, CHICAGO, 0)
        assert not offset_is_valid(datetime(2024, 3, 10, 2, 30), CHICAGO, CST)
        assert offset_is_valid(datetime(2024, 7, 1), CHICAGO, CDT)


class TestStore:

    def test_get_tz(self):
        assert get_tz("America/Chicago") is CHICAGO

    @pytest.mark.parametrize(
        "key",
        [
            "America/Nowhere",
            "",
            "../etc/passwd",
            "/etc/localtime",
            "America//Chicago",
            "America/Chicago/",
            "Europe/./Paris",
            "Amérique/Chicago",
            "a" * 100,
        ],
    )
    def test_invalid_keys(self, key):
        with pytest.raises(TimeZoneNotFoundError):
            get_tz(key)

    def test_validate_tzid(self):
        assert validate_tzid("Etc/GMT+5") == "Etc/GMT+5"
        with pytest.raises(TimeZoneNotFoundError, match="No time zone found"):
            validate_tzid("-bad")

    def test_as_tzinfo(self):
        fixed = timezone(timedelta(hours=1))
        assert as_tzinfo(fixed) is fixed
        assert as_tzinfo("America/Chicago") is CHICAGO
        with pytest.raises(TypeError):
            as_tzinfo(3600)  # type: ignore[arg-type]

    def test_tz_key(self):
        assert tz_key(CHICAGO) == "America/Chicago"
        assert tz_key(timezone.utc) is None


class TestSystemTz:

    def test_from_env_key(self):
        with system_tz("Europe/Amsterdam"):
            assert get_system_tz().key == "Europe/Amsterdam"
            assert detect_system_tz() == (KEY, "Europe/Amsterdam")

    def test_colon_prefix(self):
        with system_tz(":Asia/Tokyo"):
            assert get_system_tz().key == "Asia/Tokyo"

    def test_key_with_digits(self):
        with system_tz("Etc/GMT+5"):
            assert detect_system_tz() == (KEY_OR_POSIX, "Etc/GMT+5")
            assert get_system_tz().key == "Etc/GMT+5"

    def test_from_path(self):
        with patch.dict(os.environ, {"TZ": "/opt/zones/custom.tzif"}):
            assert detect_system_tz() == (FILE, "/opt/zones/custom.tzif")

    def test_from_file(self):
        path = str(files("tzdata") / "zoneinfo" / "Europe" / "Amsterdam")
        with system_tz(path):
            tz = get_system_tz()
            assert tz.key is None
            assert datetime(2024, 7, 1, tzinfo=tz).utcoffset() == timedelta(
                hours=2
            )

    @pytest.mark.parametrize(
        "path, expect",
        [
            ("/usr/share/zoneinfo/Europe/Paris", "Europe/Paris"),
            ("/usr/share/zoneinfo.default/Asia/Tokyo", "Asia/Tokyo"),
            ("/var/db/timezone/zoneinfo/UTC", "UTC"),
            ("/etc/localtime", None),
            ("/usr/share/zoneinfo/", None),
        ],
    )
    def test_tzid_from_path(self, path, expect):
        assert tzid_from_path(path) == expect


CET_RULES = "CET-1CEST,M3.5.0,M10.5.0/3"


class TestPosixTz:

    @pytest.mark.parametrize(
        "s, january, july",
        [
            (CET_RULES, 3600, 7200),
            ("UTC0", 0, 0),
            ("EST5EDT,M3.2.0,M11.1.0", -5 * 3600, -4 * 3600),
            # southern hemisphere: DST spans the new year
            ("AEST-10AEDT,M10.1.0,M4.1.0/3", 11 * 3600, 10 * 3600),
            ("<+0330>-3:30", 12600, 12600),
            # day of year rules
            ("XXX3YYY,J60,300", -3 * 3600, -2 * 3600),
            ("XXX3YYY,59,J300", -3 * 3600, -2 * 3600),
        ],
    )
    def test_offsets(self, s, january, july):
        tz = PosixTz(s)
        for month, offset in ((1, january), (7, july)):
            assert datetime(2024, month, 15, tzinfo=tz).utcoffset() == (
                timedelta(seconds=offset)
            )

    def test_ambiguity(self):
        tz = PosixTz(CET_RULES)
        assert ambiguity_for_local(
            datetime(2024, 3, 31, 2, 30), tz
        ) == Gap(3600, 7200)
        assert ambiguity_for_local(
            datetime(2024, 10, 27, 2, 30), tz
        ) == Fold(7200, 3600)
        assert ambiguity_for_local(
            datetime(2024, 10, 27, 3, 0), tz
        ) == Unambiguous(3600)

    def test_from_utc_in_fold(self):
        tz = PosixTz(CET_RULES)
        first = datetime(2024, 10, 27, 0, 30, tzinfo=timezone.utc)
        second = datetime(2024, 10, 27, 1, 30, tzinfo=timezone.utc)
        assert first.astimezone(tz).isoformat() == "2024-10-27T02:30:00+02:00"
        assert second.astimezone(tz).isoformat() == "2024-10-27T02:30:00+01:00"
        assert second.astimezone(tz).fold == 1

    def test_tzname(self):
        tz = PosixTz(CET_RULES)
        assert datetime(2024, 1, 1, tzinfo=tz).tzname() == "CET"
        assert datetime(2024, 7, 1, tzinfo=tz).tzname() == "CEST"
        assert datetime(2024, 1, 1, tzinfo=PosixTz("<-03>3")).tzname() == (
            "-03"
        )

    @given(datetimes(datetime(1997, 1, 1), datetime(2100, 1, 1)))
    def test_same_as_iana_zone(self, dt):
        posix = PosixTz(CET_RULES)
        amsterdam = ZoneInfo("Europe/Amsterdam")
        utc = dt.replace(tzinfo=timezone.utc)
        assert (
            utc.astimezone(posix).utcoffset()
            == utc.astimezone(amsterdam).utcoffset()
        )
        assert ambiguity_for_local(dt, posix) == ambiguity_for_local(
            dt, amsterdam
        )

    @pytest.mark.parametrize(
        "s",
        [
            "",
            "FOO",
            "1T",
            "<>3",
            "CÉT-1",
            "FOO+01:60",
            "FOO24",
            "FOO-27:00",
            "FOO+01:30M",
            "EST5EDT",
            "FOO+01:30BAR,M13.2.1,M1.1.1",
            "FOO+01:30BAR,M12.6.1,M1.1.1",
            "FOO+01:30BAR,M12.2.7,M1.1.1",
            "FOO+01:30BAR,M12.0.2,M1.1.1",
            "FOO+01:30BAR,J366,M1.1.1",
            "FOO+01:30BAR,J0,M1.1.1",
            "FOO+01:30BAR,366,M1.1.1",
            "FOO+01:30BAR,M3.2.1,M1.1.1,",
            # the default DST offset would be 24 hours
            "FOO-23BAR,M3.2.1,M1.1.1",
        ],
    )
    def test_invalid(self, s):
        with pytest.raises(ValueError):
            PosixTz(s)

    def test_pickle_and_equality(self):
        tz = PosixTz(CET_RULES)
        assert pickle.loads(pickle.dumps(tz)) == tz
        assert tz == PosixTz("CET-1:00CEST-2,M3.5.0/2,M10.5.0/3")
        assert tz != PosixTz("UTC0")
        assert hash(tz) == hash(PosixTz(CET_RULES))

    def test_accepted_as_zone(self):
        assert as_tzinfo(PosixTz("UTC0")) == PosixTz("UTC0")
        assert tz_key(PosixTz("UTC0")) is None


class TestPosixSystemTz:

    @pytest.mark.parametrize(
        "s, offset", [(CET_RULES, 7200), ("UTC0", 0)]
    )
    def test_detected(self, s, offset):
        with system_tz(s):
            tz = get_system_tz()
            assert tz == PosixTz(s)
            assert datetime(2024, 7, 1, tzinfo=tz).utcoffset() == timedelta(
                seconds=offset
            )

    def test_key_wins_over_posix(self):
        # a valid key and a valid POSIX string at once
        with system_tz("EST5EDT"):
            assert get_system_tz().key == "EST5EDT"

    def test_neither(self):
        with pytest.raises(TimeZoneNotFoundError, match="neither"):
            with system_tz("Foo/Bar5"):
                pass
