from __future__ import annotations

from datetime import date, datetime, timezone

from typhoon_ace.processing.aggregation import (
    bulletin_overview,
    cutoff_summary,
    daily_summary,
    percent_of,
    season_summary,
)
from typhoon_ace.processing.climatology import BaselineRange
from typhoon_ace.processing.normalize import BulletinStorm, Fix
from typhoon_ace.processing.tracks import TrackStore, group_by_storm


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def scenario_fixes():
    """One named storm: 00Z 40 kt inside PAR, 06Z 60 kt outside, 15Z 80 kt off-synoptic"""
    return [
        Fix(2024, utc(2024, 7, 1, 0), 15.0, 125.0, 40, 995, "BRAVO", "WP022024"),
        Fix(2024, utc(2024, 7, 1, 6), 16.0, 140.0, 60, 980, "BRAVO", "WP022024"),
        Fix(2024, utc(2024, 7, 1, 15), 17.0, 141.0, 80, 960, "BRAVO", "WP022024"),
    ]


def test_end_to_end_season_summary() -> None:
    fixes = scenario_fixes()
    store = TrackStore(fixes)
    summary = season_summary(
        store.tracks_for_season(2024), 2024, store, BaselineRange(2024, 2024),
        generated_at=utc(2024, 12, 31),
    )
    assert summary["ace"]["monthly"][6] == 0.5
    assert summary["ace"]["total"] == 0.5
    assert summary["as_of"] == "2024-12-31T00:00:00Z"

    storm = summary["storms"][0]
    assert storm["id"] == "WP022024"
    assert storm["max_wind"] == 80
    assert storm["min_pres"] == 960
    assert storm["ace"] == 0.5
    assert storm["par_entry"] == "2024-07-01T00:00:00Z"

    assert summary["par"] == {"monthly": [0] * 6 + [1] + [0] * 5, "total": 1}
    assert summary["storms_by_month"][6] == 1
    assert summary["category_days_climo"]["baseline"] == {"start": 2024, "end": 2024, "years": 1}
    assert summary["category_days"] == summary["category_days_climo"]["average"]


def test_season_summary_orderings() -> None:
    fixes = scenario_fixes() + [
        Fix(2024, utc(2024, 9, 1, 0), 15.0, 150.0, 120, 920, "LATE", "WP152024"),
    ]
    store = TrackStore(fixes)
    summary = season_summary(store.tracks_for_season(2024), 2024, store, BaselineRange(2024, 2024))
    assert [s["id"] for s in summary["storms"]] == ["WP022024", "WP152024"]
    assert [s["id"] for s in summary["top_storms"]] == ["WP152024", "WP022024"]


def test_cutoff_summary() -> None:
    archive = TrackStore([
        Fix(2023, utc(2023, 7, 1, 0), 15.0, 130.0, 100, None, "A", "WP012023"),
        Fix(2024, utc(2024, 7, 1, 0), 15.0, 130.0, 100, None, "B", "WP012024"),
    ])
    current = group_by_storm([Fix(2025, utc(2025, 7, 1, 0), 15.0, 130.0, 50, None, "C", "WP012025")])
    out = cutoff_summary(current, 2025, date(2025, 7, 31), archive, BaselineRange(2023, 2024))
    assert out["as_of"] == "2025-07-31"
    assert out["cutoff_utc"] == "2025-07-31T23:59:59.999999Z"
    assert out["current"] == 0.3
    assert out["average"] == 1.0
    assert out["pct_of_average"] == 30
    assert out["monthly"]["current_cum"][6] == 0.3
    assert out["monthly"]["average_cum"][6] == 1.0
    assert out["baseline"]["years"] == 2


def test_daily_summary_axes() -> None:
    archive = TrackStore([Fix(2023, utc(2023, 1, 2, 0), 15.0, 130.0, 50, None, "A", "WP012023")])
    current = group_by_storm([Fix(2024, utc(2024, 1, 2, 0), 15.0, 130.0, 60, None, "B", "WP012024")])
    out = daily_summary(current, 2024, date(2024, 3, 1), archive, BaselineRange(2023, 2023))
    assert len(out["labels"]) == 61           # leap year, Jan 1..Mar 1
    assert len(out["climo_labels"]) == 60     # normalized axis
    assert out["current"]["daily"][1] == 0.4
    assert out["current"]["total"] == 0.4
    assert out["average"]["daily"][1] == 0.3
    assert out["average"]["cum"][-1] == 0.3


def test_percent_of() -> None:
    assert percent_of(5.0, 10.0) == 50
    assert percent_of(1.0, 8.0) == 13         # 12.5 rounds half up
    assert percent_of(3.0, 0.0) is None


def test_bulletin_overview_skips_invests() -> None:
    fixes = [Fix(2025, utc(2025, 8, 1, 0), 15.0, 130.0, 50, 990, "KAJIKI", "WP182025")]
    storms = [
        BulletinStorm(id="WP182025", number=18, season=2025, name="KAJIKI", fixes=fixes),
        BulletinStorm(id="WP912025", number=91, season=2025, fixes=[]),
    ]
    overview = bulletin_overview(storms)
    assert [s["id"] for s in overview] == ["WP182025"]
    assert overview[0]["ace"] == 0.3
    assert overview[0]["points"][0]["t"] == "2025-08-01T00:00:00Z"


def test_cutoff_summary_moves_cutoff_into_season() -> None:
    archive = TrackStore([Fix(2019, utc(2019, 6, 1, 0), 15.0, 130.0, 50, None, "A", "WP012019")])
    current = group_by_storm([
        Fix(2020, utc(2020, 6, 1, 0), 15.0, 130.0, 50, None, "B", "WP012020"),
        Fix(2020, utc(2020, 9, 1, 0), 15.0, 130.0, 100, None, "B", "WP012020"),
    ])
    out = cutoff_summary(current, 2020, date(2026, 7, 1), archive, BaselineRange(2019, 2019))
    assert out["cutoff_utc"] == "2020-07-01T23:59:59.999999Z"
    assert out["current"] == 0.3
    assert out["pct_of_average"] == 100
