from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from typhoon_ace.processing.climatology import (
    NON_LEAP_CUMULATIVE,
    BaselineRange,
    ace_daily_climatology,
    ace_ytd_climatology,
    category_days_climatology,
    normalized_day_index,
    normalized_labels,
    normalized_length,
)
from typhoon_ace.processing.normalize import Fix
from typhoon_ace.processing.tracks import TrackStore


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def fix(time, wind, storm_id=None) -> Fix:
    return Fix(season=time.year, time=time, lat=15.0, lon=140.0, wind_kt=wind,
               pres_hpa=None, name="TEST", storm_id=storm_id or f"WP01{time.year}")


def test_normalized_length() -> None:
    assert normalized_length(2, 29) == NON_LEAP_CUMULATIVE[1] + 29 == 60
    assert normalized_length(2, 28) == 59
    assert normalized_length(1, 1) == 1
    assert normalized_length(12, 31) == 365


def test_normalized_day_index_drops_feb_29() -> None:
    assert normalized_day_index(utc(2024, 2, 28)) == 58
    assert normalized_day_index(utc(2024, 2, 29)) is None
    assert normalized_day_index(utc(2024, 3, 1)) == 59
    assert normalized_day_index(utc(2023, 3, 1)) == 59
    assert normalized_day_index(utc(2024, 12, 31)) == 364


def test_normalized_labels() -> None:
    labels = normalized_labels(60)
    assert labels[0] == "01-01"
    assert labels[58] == "02-28"
    assert labels[59] == "03-01"


def test_daily_climatology_excludes_leap_day() -> None:
    store = TrackStore([
        fix(utc(2024, 2, 28, 0), 50),
        fix(utc(2024, 2, 29, 0), 100),
        fix(utc(2024, 2, 29, 6), 100),
        fix(utc(2024, 3, 1, 0), 50),
        fix(utc(2023, 3, 1, 0), 50),
    ])
    climo = ace_daily_climatology(store, 2, 29, BaselineRange(2023, 2024))
    assert len(climo.average_daily) == 60
    assert len(climo.labels) == 60
    assert climo.years_used == 2
    # Feb 28 from 2024; Mar 1 from 2023 only, whose Feb 29 cutoff rolls to Mar 1
    assert climo.average_daily[58] == 0.1       # 0.25 / 2
    assert climo.average_daily[59] == 0.1       # 0.25 / 2, 2024's Mar 1 is past its cutoff
    # no leap-day ACE anywhere
    assert climo.average_cumulative[-1] == 0.3  # (0.125 + 0.125) rounded once


def test_daily_climatology_full_leap_year() -> None:
    store = TrackStore([fix(utc(2024, 3, 1, 0), 50), fix(utc(2023, 3, 1, 0), 50)])
    climo = ace_daily_climatology(store, 3, 1, BaselineRange(2023, 2024))
    assert len(climo.average_daily) == 60
    assert climo.average_daily[59] == 0.3       # both years line up on slot 59
    assert sum(climo.average_daily[:59]) == 0.0


def test_years_without_data_are_skipped() -> None:
    store = TrackStore([
        fix(utc(2022, 8, 1, 0), 30),   # has rows but contributes no ACE
        fix(utc(2024, 8, 1, 0), 60),
    ])
    climo = ace_ytd_climatology(store, 12, 31, BaselineRange(2020, 2024))
    assert climo.years_used == 2
    assert climo.average == 0.2                 # 0.36 / 2 = 0.18
    assert climo.average_cumulative[6] == 0.0
    assert climo.average_cumulative[7] == 0.2


def test_ytd_climatology_applies_cutoff_per_year() -> None:
    store = TrackStore([
        fix(utc(2023, 7, 1, 0), 50),
        fix(utc(2023, 9, 1, 0), 100),
        fix(utc(2024, 7, 1, 0), 50),
    ])
    climo = ace_ytd_climatology(store, 7, 31, BaselineRange(2023, 2024))
    assert climo.years_used == 2
    assert climo.average == 0.3                 # 0.25 in both years
    assert climo.baseline.to_dict(climo.years_used) == {"start": 2023, "end": 2024, "years": 2}


def test_ytd_climatology_with_no_years() -> None:
    climo = ace_ytd_climatology(TrackStore([]), 7, 31, BaselineRange(1950, 1951))
    assert climo.years_used == 0
    assert climo.average == 0.0
    assert climo.average_cumulative == [0.0] * 12


def test_category_days_climatology() -> None:
    store = TrackStore([
        fix(utc(2023, 8, 1, 0), 40),
        fix(utc(2023, 8, 1, 6), 40),
        fix(utc(2024, 8, 1, 0), 70),
    ])
    climo = category_days_climatology(store, BaselineRange(2023, 2024))
    assert climo.years_used == 2
    assert climo.average["TS"] == pytest.approx(0.3)    # 12 h / 24 / 2 = 0.25
    assert climo.average["TY"] == pytest.approx(0.1)    # 6 h / 24 / 2 = 0.125

    early = category_days_climatology(store, BaselineRange(2023, 2024), cutoff=date(2024, 7, 31))
    assert early.average["TS"] == 0.0
    assert early.years_used == 2
