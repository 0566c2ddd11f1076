"""
Aggregation Facade

Combines track-store views and metrics into the JSON-shaped summaries served
by the API: season summary, cutoff (year-to-date) summary and daily summary.
The current season's tracks and the climatology store are passed in
separately so the current season may come from bulletins while baselines
always come from the archive.
"""

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .climatology import (
    BaselineRange,
    ace_daily_climatology,
    ace_ytd_climatology,
    category_days_climatology,
)
from .metrics import (
    ace_by_month,
    ace_daily,
    ace_for_storm,
    ace_year_to_date,
    category_days,
    cutoff_in_year,
    isoformat_utc,
    par_monthly_entries,
    storm_summaries,
    storms_formed_by_month,
    top_storms,
)
from .normalize import BulletinStorm, Fix, is_invest
from .tracks import TrackMap, TrackStore

DEFAULT_TOP_STORMS = 10


def percent_of(current: float, average: float) -> Optional[int]:
    """Whole-number percentage of average, None when the average is zero"""
    if not average or average <= 0:
        return None
    ratio = Decimal(repr(current / average * 100))
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _now_iso(generated_at: Optional[datetime]) -> str:
    return isoformat_utc(generated_at or datetime.now(timezone.utc))


def season_summary(tracks: TrackMap, year: int, climo_store: TrackStore,
                   baseline: BaselineRange = BaselineRange(),
                   cutoff: Optional[date] = None,
                   top_n: int = DEFAULT_TOP_STORMS,
                   generated_at: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Full season summary.

    Args:
        tracks: The season's tracks (archive or bulletin)
        year: Season year
        climo_store: Archive store used for the category-days baseline
        baseline: Baseline years
        cutoff: Optional as-of date limiting ACE and category-days
        top_n: Number of storms in the ACE ranking
        generated_at: Timestamp reported as as_of (defaults to now)

    Returns:
        JSON-ready dictionary
    """
    ace = ace_by_month(tracks, year, cutoff)
    climo = category_days_climatology(climo_store, baseline, cutoff)
    par = par_monthly_entries(tracks, year)
    storms = storm_summaries(tracks, year)

    return {
        "year": year,
        "as_of": _now_iso(generated_at),
        "cutoff": cutoff.isoformat() if cutoff else None,
        "ace": {"total": ace.total, "monthly": ace.monthly},
        "category_days": category_days(tracks, year, cutoff),
        "category_days_climo": {
            "average": climo.average,
            "baseline": baseline.to_dict(climo.years_used),
        },
        "par": {"monthly": par.monthly, "total": par.total},
        "storms_by_month": storms_formed_by_month(tracks, year),
        "storms": [s.to_dict() for s in storms],
        "top_storms": [s.to_dict() for s in top_storms(storms, top_n)],
    }


def cutoff_summary(tracks: TrackMap, year: int, cutoff: date, climo_store: TrackStore,
                   baseline: BaselineRange = BaselineRange()) -> Dict[str, Any]:
    """Year-to-date ACE through the cutoff compared with the baseline average"""
    current = ace_year_to_date(tracks, year, cutoff)
    climo = ace_ytd_climatology(climo_store, cutoff.month, cutoff.day, baseline)

    return {
        "year": year,
        "as_of": cutoff.isoformat(),
        "cutoff_utc": cutoff_in_year(year, cutoff).isoformat().replace("+00:00", "Z"),
        "baseline": baseline.to_dict(climo.years_used),
        "current": current.total,
        "average": climo.average,
        "pct_of_average": percent_of(current.total, climo.average),
        "monthly": {
            "current_cum": current.cumulative_monthly,
            "average_cum": climo.average_cumulative,
        },
    }


def daily_summary(tracks: TrackMap, year: int, end: date, climo_store: TrackStore,
                  baseline: BaselineRange = BaselineRange()) -> Dict[str, Any]:
    """Daily and cumulative ACE from Jan 1 through end, with the daily baseline"""
    current = ace_daily(tracks, year, end)
    climo = ace_daily_climatology(climo_store, end.month, end.day, baseline)

    return {
        "year": year,
        "as_of": end.isoformat(),
        "baseline": baseline.to_dict(climo.years_used),
        "labels": current.labels,
        "climo_labels": climo.labels,
        "current": {
            "daily": current.daily,
            "cum": current.cumulative,
            "total": current.total,
        },
        "average": {
            "daily": climo.average_daily,
            "cum": climo.average_cumulative,
        },
    }


def track_points(track: Sequence[Fix]) -> List[Dict[str, Any]]:
    """Serialize a track for map display"""
    return [
        {
            "t": isoformat_utc(fix.time),
            "lat": fix.lat,
            "lon": fix.lon,
            "wind": fix.wind_kt,
            "pres": fix.pres_hpa,
        }
        for fix in track
    ]


def bulletin_overview(storms: Iterable[BulletinStorm]) -> List[Dict[str, Any]]:
    """Per-bulletin ACE and raw points, invests excluded"""
    overview = []
    for storm in storms:
        if is_invest(storm.number):
            continue
        overview.append({
            "id": storm.id,
            "number": storm.number,
            "year": storm.season,
            "name": storm.name,
            "ace": ace_for_storm(storm.fixes),
            "points": track_points(storm.fixes),
        })
    return overview
