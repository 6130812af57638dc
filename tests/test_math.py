from datetime import date

import pytest
from hypothesis import given
from hypothesis.strategies import dates, integers

from dtkit._math import (
    add_months,
    days_in_month,
    is_leap,
    months_between,
    round_half_expand,
)


@pytest.mark.parametrize(
    "year, leap", [(2024, True), (2023, False), (1900, False), (2000, True)]
)
def test_is_leap(year, leap):
    assert is_leap(year) is leap


def test_days_in_month():
    assert days_in_month(2024, 2) == 29
    assert days_in_month(2023, 2) == 28
    assert days_in_month(2023, 12) == 31


class TestAddMonths:

    def test_clamps(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2024, 5, 31), -1) == date(2024, 4, 30)

    def test_year_boundaries(self):
        assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)
        assert add_months(date(2024, 1, 15), -13) == date(2022, 12, 15)

    @pytest.mark.parametrize(
        "d, months", [(date(9999, 12, 1), 1), (date(1, 1, 1), -1)]
    )
    def test_overflow(self, d, months):
        with pytest.raises(OverflowError):
            add_months(d, months)


class TestMonthsBetween:

    @pytest.mark.parametrize(
        "start, end, expect",
        [
            (date(2019, 5, 10), date(2024, 8, 6), 62),
            (date(2019, 5, 10), date(2024, 8, 10), 63),
            (date(2024, 1, 31), date(2024, 2, 29), 1),
            (date(2024, 1, 31), date(2024, 2, 28), 0),
            (date(2024, 3, 31), date(2024, 2, 29), -1),
            (date(2024, 3, 15), date(2024, 2, 16), 0),
        ],
    )
    def test_examples(self, start, end, expect):
        assert months_between(start, end) == expect

    @given(
        dates(min_value=date(1900, 1, 1), max_value=date(2100, 1, 1)),
        dates(min_value=date(1900, 1, 1), max_value=date(2100, 1, 1)),
    )
    def test_never_passes_the_end(self, start, end):
        shifted = add_months(start, months_between(start, end))
        if end >= start:
            assert start <= shifted <= end
        else:
            assert end <= shifted <= start


@pytest.mark.parametrize(
    "value, increment, expect",
    [
        (149, 100, 100),
        (150, 100, 200),
        (-150, 100, -200),
        (-149, 100, -100),
        (0, 100, 0),
        (300, 100, 300),
    ],
)
def test_round_half_expand(value, increment, expect):
    assert round_half_expand(value, increment) == expect


@given(integers(-(10**12), 10**12), integers(1, 10**6))
def test_round_half_expand_is_symmetric(value, increment):
    assert round_half_expand(-value, increment) == -round_half_expand(
        value, increment
    )
