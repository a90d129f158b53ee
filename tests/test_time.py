"""Tests for true solar time correction and the double-hour mapping."""

import math

import pytest

from ziwei_models import CorrectedTime
from ziwei_time import (
    convert_to_true_solar_time,
    equation_of_time,
    hour_to_time_index,
    julian_day_number,
)

EXPECTED_INDEX = [0, 1, 1, 2, 2, 3, 3, 4, 4, 5, 5, 6, 6, 7, 7, 8, 8, 9, 9, 10, 10, 11, 11, 0]


# ── Double hours ──

@pytest.mark.parametrize("hour", range(24))
def test_time_index_for_every_hour(hour):
    assert hour_to_time_index(hour) == EXPECTED_INDEX[hour]


def test_zi_hour_wraps_midnight():
    assert hour_to_time_index(23) == hour_to_time_index(0) == 0


def test_time_index_monotonic_until_wrap():
    indices = [hour_to_time_index(h) for h in range(1, 23)]
    assert indices == sorted(indices)
    assert all(0 <= i <= 11 for i in indices)


@pytest.mark.parametrize(
    "value, expected",
    [(-5, 0), (30, 0), (2.7, 1), (13.2, 7), ("x", 0), (None, 0), (math.nan, 0), (math.inf, 0)],
)
def test_time_index_coerces_bad_input(value, expected):
    assert hour_to_time_index(value) == expected


# ── Julian day / equation of time ──

def test_julian_day_number_known_epochs():
    assert julian_day_number(2000, 1, 1) == 2451545
    assert julian_day_number(1858, 11, 17) == 2400001
    # January/February count as months 13/14 of the previous year
    assert julian_day_number(2000, 3, 1) - julian_day_number(2000, 2, 28) == 2


def test_equation_of_time_extremes():
    # early November the sun runs about 16 minutes fast, mid February 14 slow
    assert 15.5 < equation_of_time(julian_day_number(2024, 11, 3)) < 17.0
    assert -15.0 < equation_of_time(julian_day_number(2024, 2, 11)) < -13.5


@pytest.mark.parametrize(
    "ymd, minutes",
    [((2024, 11, 3), 16.43), ((2024, 2, 11), -14.22), ((2024, 7, 26), -6.54), ((2024, 5, 14), 3.65)],
)
def test_equation_of_time_matches_almanac(ymd, minutes):
    assert equation_of_time(julian_day_number(*ymd)) == pytest.approx(minutes, abs=0.3)


@pytest.mark.parametrize("date_str", ["2024-04-15", "2024-06-13", "2024-09-01", "2024-12-25"])
def test_zero_longitude_is_near_identity_when_eot_vanishes(date_str):
    corrected = convert_to_true_solar_time(12, 30, 0.0, date_str)
    assert abs((corrected.hour * 60 + corrected.minute) - (12 * 60 + 30)) <= 2


# ── True solar time ──

def test_beijing_longitude_shifts_clock_back():
    # 12:00 + 16.4 min EoT - 465.6 min for 116.4074°
    corrected = convert_to_true_solar_time(12, 0, 116.4074, "2024-11-03")
    assert corrected.hour == 4
    assert 28 <= corrected.minute <= 32


def test_negative_minutes_wrap_into_previous_day():
    # 00:00 + 16.4 min EoT - 360 min
    corrected = convert_to_true_solar_time(0, 0, 90.0, "2024-11-03")
    assert corrected.hour == 18


def test_unpadded_dates_are_accepted():
    assert convert_to_true_solar_time(8, 0, 10.0, "2000-8-6") == convert_to_true_solar_time(
        8, 0, 10.0, "2000-08-06"
    )


@pytest.mark.parametrize("longitude", [-180.0, -90.5, 0.0, 45.25, 180.0])
@pytest.mark.parametrize("date_str", ["1900-01-01", "1985-06-15", "2000-08-16", "2100-12-31"])
def test_result_always_valid_clock_time(longitude, date_str):
    for hour in (0, 7, 12, 23):
        corrected = convert_to_true_solar_time(hour, 59, longitude, date_str)
        assert 0 <= corrected.hour <= 23
        assert 0 <= corrected.minute <= 59
        assert isinstance(corrected.hour, int)
        assert isinstance(corrected.minute, int)


@pytest.mark.parametrize(
    "longitude, date_str",
    [(116.4, "not-a-date"), (116.4, "2000-02-30"), (math.nan, "2000-08-16"), (math.inf, "2000-08-16")],
)
def test_failure_falls_back_to_clock_time(capsys, longitude, date_str):
    assert convert_to_true_solar_time(5, 30, longitude, date_str) == CorrectedTime(hour=5, minute=30)
    assert "[ziwei]" in capsys.readouterr().err
