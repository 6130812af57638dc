import logging
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from hypothesis import given
from hypothesis.strategies import datetimes, integers, sampled_from

from dtkit import (
    SHORT_DATE_FORMATS,
    STRATEGIES,
    DtError,
    OffsetConflict,
    ResolverConfig,
    UnparseableDatetime,
    ZonedValue,
    from_unix_seconds,
    now,
    parse_span,
    resolve,
    utcnow,
)

from .common import CHICAGO, chicago_config, frozen_clock, system_tz

CONFIG = chicago_config()


def test_strategy_order():
    assert [name for name, _ in STRATEGIES] == [
        "short_date:short_date",
        "short_date:short_date_usa_2year",
        "short_date:short_date_usa_4year",
        "zoned",
        "catalog:iso8601_strict",
        "catalog:iso8601_strict_fractional",
        "catalog:rfc2822",
        "catalog:git_rfc2822",
        "catalog:gitoxide",
        "catalog:gitlog_default",
        "timestamp",
        "datetime",
        "date",
        "time",
    ]


class TestTiers:

    @pytest.mark.parametrize(
        "s, expect",
        [
            # short dates: midnight in the system zone
            ("2017-08-25", "2017-08-25T00:00:00-05:00[America/Chicago]"),
            ("2018-7-9", "2018-07-09T00:00:00-05:00[America/Chicago]"),
            ("7/9/24", "2024-07-09T00:00:00-05:00[America/Chicago]"),
            ("7/9/2024", "2024-07-09T00:00:00-05:00[America/Chicago]"),
            ("1/15/2024", "2024-01-15T00:00:00-06:00[America/Chicago]"),
            # offsets and zone annotations
            (
                "2022-08-17T21:43:13+08:00",
                "2022-08-17T21:43:13+08:00[+08:00]",
            ),
            (
                "2024-07-01T12:00:00[Europe/Paris]",
                "2024-07-01T12:00:00+02:00[Europe/Paris]",
            ),
            (
                "2024-07-01T12:00:00Z[Europe/Paris]",
                "2024-07-01T14:00:00+02:00[Europe/Paris]",
            ),
            (
                "2024-07-01T12:00:00[-05:00]",
                "2024-07-01T12:00:00-05:00[-05:00]",
            ),
            (
                "2024-07-01[Asia/Tokyo]",
                "2024-07-01T00:00:00+09:00[Asia/Tokyo]",
            ),
            # the catalog
            (
                "Thu, 18 Aug 2022 12:45:06 +0800",
                "2022-08-18T12:45:06+08:00[+08:00]",
            ),
            (
                "Thu Sep 4 10:45:06 2022 -0400",
                "2022-09-04T10:45:06-04:00[-04:00]",
            ),
            # timestamps, read in the system zone
            ("@0", "1969-12-31T18:00:00-06:00[America/Chicago]"),
            (
                "@1720539000.25",
                "2024-07-09T10:30:00.25-05:00[America/Chicago]",
            ),
            (
                "2024-07-09T15:30:00Z",
                "2024-07-09T10:30:00-05:00[America/Chicago]",
            ),
            # civil datetimes and dates, in the system zone
            (
                "2017-08-25T12:00:00",
                "2017-08-25T12:00:00-05:00[America/Chicago]",
            ),
            (
                "2017-08-25 12:00:00.5",
                "2017-08-25T12:00:00.5-05:00[America/Chicago]",
            ),
            ("20170825", "2017-08-25T00:00:00-05:00[America/Chicago]"),
            # a time of day, on the clock's date
            ("10:45", "2024-07-09T10:45:00-05:00[America/Chicago]"),
            (
                "23:59:59.5",
                "2024-07-09T23:59:59.5-05:00[America/Chicago]",
            ),
        ],
    )
    def test_resolves(self, s, expect):
        assert resolve(s, CONFIG).format_iso() == expect

    def test_surrounding_whitespace_is_ignored(self):
        assert resolve("  2017-08-25\n", CONFIG).exact_eq(
            resolve("2017-08-25", CONFIG)
        )

    def test_fixed_offset_has_no_zone_id(self):
        z = resolve("2022-08-17T21:43:13+08:00", CONFIG)
        assert z.tz is None
        assert z.is_fixed_offset

    def test_date_in_gap_is_shifted(self):
        # midnight doesn't exist in Havana on DST start
        z = resolve("2024-03-10[America/Havana]", CONFIG)
        assert z.format_iso() == "2024-03-10T01:00:00-04:00[America/Havana]"


class TestOffsetConflict:

    # 01:30 occurs twice in Chicago on this date
    FOLD = "2024-11-03T01:30:00-06:00[America/Chicago]"
    MISMATCH = "2024-07-01T12:00:00+02:00[America/Chicago]"

    def test_valid_offset_kept_in_fold(self):
        z = resolve(self.FOLD, CONFIG)
        assert z.format_iso() == self.FOLD

    def test_prefer_zone_ignores_offset(self):
        config = chicago_config(offset_conflict=OffsetConflict.PREFER_ZONE)
        z = resolve(self.FOLD, config)
        assert z.format_iso() == "2024-11-03T01:30:00-05:00[America/Chicago]"

    def test_prefer_offset_falls_back_to_zone(self, caplog):
        caplog.set_level(logging.DEBUG, logger="dtkit")
        z = resolve(self.MISMATCH, CONFIG)
        assert z.format_iso() == "2024-07-01T12:00:00-05:00[America/Chicago]"
        assert "is not used by America/Chicago" in caplog.text

    def test_reject(self):
        config = chicago_config(offset_conflict="reject")
        assert config.offset_conflict is OffsetConflict.REJECT
        with pytest.raises(UnparseableDatetime) as e:
            resolve(self.MISMATCH, config)
        assert dict(e.value.attempts)["zoned"] == (
            "Offset +02:00 is not valid in timezone 'America/Chicago'"
        )

    def test_reject_still_accepts_valid_offsets(self):
        config = chicago_config(offset_conflict=OffsetConflict.REJECT)
        assert resolve(self.FOLD, config).format_iso() == self.FOLD

    def test_critical_annotation_rejects(self):
        with pytest.raises(UnparseableDatetime):
            resolve("2024-07-01T12:00:00+02:00[!America/Chicago]", CONFIG)

    def test_gap_offset_is_never_valid(self):
        z = resolve("2024-03-10T02:30:00-06:00[America/Chicago]", CONFIG)
        assert z.format_iso() == "2024-03-10T03:30:00-05:00[America/Chicago]"


class TestUnparseable:

    def test_lists_every_attempt(self):
        with pytest.raises(UnparseableDatetime) as e:
            resolve("not a date", CONFIG)
        assert e.value.input == "not a date"
        assert [name for name, _ in e.value.attempts] == [
            name for name, _ in STRATEGIES
        ]
        assert "not a date" in str(e.value)
        assert "  zoned: " in e.value.explain()

    def test_each_template_is_tried_once(self):
        with pytest.raises(UnparseableDatetime) as e:
            resolve("not a date", CONFIG)
        tried = [name.split(":")[-1] for name, _ in e.value.attempts]
        templates = [n for n in tried if n.startswith("short_date")]
        assert templates == [fmt.name for fmt in SHORT_DATE_FORMATS]

    @pytest.mark.parametrize("s", ["", "   "])
    def test_empty(self, s):
        with pytest.raises(UnparseableDatetime, match="Could not parse"):
            resolve(s, CONFIG)

    @pytest.mark.parametrize(
        "s",
        [
            "2024",
            "2023-02-30",
            "25:00",
            "2024-07-01T12:00:00[Mars/Olympus]",
            "Thu, 18 Aug 2022",
            "@1e9",
        ],
    )
    def test_invalid(self, s):
        with pytest.raises(UnparseableDatetime):
            resolve(s, CONFIG)

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            resolve("someday", CONFIG)
        assert issubclass(UnparseableDatetime, DtError)


def test_logs_the_winning_strategy(caplog):
    caplog.set_level(logging.DEBUG, logger="dtkit")
    resolve("7/9/24", CONFIG)
    assert "short_date:short_date_usa_2year" in caplog.text
    assert "rejected" in caplog.text


class TestScenarios:

    def test_add_a_day_to_a_date(self):
        z = resolve("2017-08-25", CONFIG).add(parse_span("1d"))
        assert z.format_iso() == "2017-08-26T00:00:00-05:00[America/Chicago]"

    def test_add_an_hour_to_a_datetime(self):
        z = resolve("2017-08-25T12:00:00", CONFIG).add(parse_span("T1h"))
        assert z.format_iso() == "2017-08-25T13:00:00-05:00[America/Chicago]"


ZONES = [
    "UTC",
    "America/Chicago",
    "Europe/Amsterdam",
    "Asia/Kolkata",
    "Australia/Lord_Howe",
    timezone(timedelta(hours=5, minutes=30)),
    timezone(timedelta(hours=-3)),
]


@given(
    datetimes(
        min_value=datetime(1900, 1, 1), max_value=datetime(2100, 1, 1)
    ),
    integers(0, 999_999_999),
    sampled_from(ZONES),
)
def test_format_iso_resolves_to_the_same_value(dt, nanos, tz):
    z = ZonedValue(
        dt.year,
        dt.month,
        dt.day,
        dt.hour,
        dt.minute,
        dt.second,
        nanosecond=nanos,
        tz=tz,
    )
    assert resolve(z.format_iso(), CONFIG).exact_eq(z)


class TestConfig:

    def test_system_tz_is_normalized(self):
        assert CONFIG.system_tz == ZoneInfo(CHICAGO)

    def test_invalid_policy(self):
        with pytest.raises(ValueError):
            ResolverConfig("UTC", offset_conflict="whatever")

    def test_from_environment(self):
        with system_tz("Europe/Amsterdam"):
            config = ResolverConfig.from_environment()
            assert config.system_tz.key == "Europe/Amsterdam"
            z = resolve("2024-07-01", config)
        assert z.format_iso() == "2024-07-01T00:00:00+02:00[Europe/Amsterdam]"

    def test_default_config_reads_the_system_zone(self):
        with system_tz("Asia/Tokyo"):
            z = resolve("2024-07-01")
        assert z.tz == "Asia/Tokyo"

    @pytest.mark.parametrize(
        "s, expect",
        [
            ("2024-01-01", "2024-01-01T00:00:00+01:00[+01:00]"),
            ("2024-07-01 12:00", "2024-07-01T12:00:00+02:00[+02:00]"),
            ("@1719835200", "2024-07-01T14:00:00+02:00[+02:00]"),
        ],
    )
    def test_system_zone_from_posix_tz_string(self, s, expect):
        with system_tz("CET-1CEST,M3.5.0,M10.5.0/3"):
            assert resolve(s).format_iso() == expect
            assert not now().is_fixed_offset


class TestNow:

    def test_now(self):
        assert now(CONFIG).format_iso() == (
            "2024-07-09T10:30:00-05:00[America/Chicago]"
        )

    def test_utcnow(self):
        assert utcnow(CONFIG).format_iso() == "2024-07-09T15:30:00+00:00[UTC]"

    def test_now_is_one_instant(self):
        assert now(CONFIG) == utcnow(CONFIG)

    def test_from_unix_seconds(self):
        assert (
            from_unix_seconds(0, utc=True).format_iso()
            == "1970-01-01T00:00:00+00:00[UTC]"
        )
        assert (
            from_unix_seconds(0, config=CONFIG).format_iso()
            == "1969-12-31T18:00:00-06:00[America/Chicago]"
        )

    def test_from_unix_seconds_requires_int(self):
        with pytest.raises(TypeError):
            from_unix_seconds(1.5, utc=True)  # type: ignore[arg-type]

    def test_clock_is_not_compared(self):
        other = ResolverConfig(CHICAGO)
        assert other == CONFIG
        assert CONFIG.clock is frozen_clock
