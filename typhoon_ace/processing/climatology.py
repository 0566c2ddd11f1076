"""
Climatology Baselines

Multi-year averages of the seasonal metrics, each year evaluated against
the same month/day cutoff. Years with no fixes at all are skipped; every
other year counts toward the average even when it contributes nothing.

Daily baselines use a normalized 365-day axis: Feb 29 fixes are dropped and
later leap-year days shift back one slot, so day N means the same calendar
day in every year.
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

import numpy as np

from .metrics import (
    CATEGORIES,
    DateLike,
    ace_contribution,
    ace_monthly_raw,
    category_hours,
    end_of_day_utc,
    day_in_year,
    round1,
    season_fixes,
)
from .tracks import TrackStore

DEFAULT_BASELINE_START = 1950
DEFAULT_BASELINE_END = 2024

# Days before the first of each month in a non-leap year
NON_LEAP_CUMULATIVE = [0, 31, 59, 90, 120, 151, 181, 212, 243, 273, 304, 334]

# Synthetic non-leap year used for MM-DD axis labels
LABEL_YEAR = 2001


@dataclass(frozen=True)
class BaselineRange:
    """Inclusive range of years averaged into a baseline"""
    start: int = DEFAULT_BASELINE_START
    end: int = DEFAULT_BASELINE_END

    def years(self) -> range:
        return range(self.start, self.end + 1)

    def to_dict(self, years_used: int) -> Dict[str, int]:
        return {"start": self.start, "end": self.end, "years": years_used}


@dataclass
class YtdClimatology:
    average: float
    average_cumulative: List[float]
    years_used: int
    baseline: BaselineRange


@dataclass
class CategoryClimatology:
    average: Dict[str, float]
    years_used: int
    baseline: BaselineRange


@dataclass
class DailyClimatology:
    labels: List[str]
    average_daily: List[float]
    average_cumulative: List[float]
    years_used: int
    baseline: BaselineRange


def normalized_length(month: int, day: int) -> int:
    """Length of the normalized axis from Jan 1 through month/day inclusive (1..365)"""
    return NON_LEAP_CUMULATIVE[month - 1] + day


def normalized_day_index(moment: datetime) -> Optional[int]:
    """
    0-based day of year with Feb 29 removed.

    Returns None for Feb 29 so those fixes never land in a daily bucket.
    """
    index = moment.timetuple().tm_yday - 1
    if not calendar.isleap(moment.year):
        return index
    if moment.month == 2 and moment.day == 29:
        return None
    if moment.month > 2:
        return index - 1
    return index


def normalized_labels(length: int) -> List[str]:
    start = date(LABEL_YEAR, 1, 1)
    return [(start + timedelta(days=i)).strftime("%m-%d") for i in range(length)]


def ace_ytd_climatology(store: TrackStore, month: int, day: int,
                        baseline: BaselineRange = BaselineRange()) -> YtdClimatology:
    """
    Average year-to-date ACE through month/day across the baseline years.

    Args:
        store: Archive track store
        month: Cutoff month (1-12)
        day: Cutoff day of month
        baseline: Years to average

    Returns:
        YtdClimatology with the average total and average monthly cumulative curve
    """
    sum_cumulative = np.zeros(12)
    years_used = 0

    for year in baseline.years():
        tracks = store.tracks_for_season(year)
        if not tracks:
            continue
        limit = end_of_day_utc(day_in_year(year, month, day))
        sum_cumulative += np.cumsum(ace_monthly_raw(tracks, year, limit))
        years_used += 1

    if not years_used:
        return YtdClimatology(0.0, [0.0] * 12, 0, baseline)

    average_cumulative = sum_cumulative / years_used
    return YtdClimatology(
        average=round1(average_cumulative[-1]),
        average_cumulative=[round1(v) for v in average_cumulative],
        years_used=years_used,
        baseline=baseline,
    )


def category_days_climatology(store: TrackStore,
                              baseline: BaselineRange = BaselineRange(),
                              cutoff: Optional[DateLike] = None) -> CategoryClimatology:
    """Average category-days per season, optionally through the cutoff's month/day"""
    sums = {category: 0.0 for category in CATEGORIES}
    years_used = 0

    for year in baseline.years():
        tracks = store.tracks_for_season(year)
        if not tracks:
            continue
        for category, hours in category_hours(tracks, year, cutoff).items():
            sums[category] += hours
        years_used += 1

    if not years_used:
        return CategoryClimatology({c: 0.0 for c in CATEGORIES}, 0, baseline)

    return CategoryClimatology(
        average={c: round1(sums[c] / 24 / years_used) for c in CATEGORIES},
        years_used=years_used,
        baseline=baseline,
    )


def ace_daily_climatology(store: TrackStore, month: int, day: int,
                          baseline: BaselineRange = BaselineRange()) -> DailyClimatology:
    """Average daily and cumulative ACE on the normalized axis through month/day"""
    length = normalized_length(month, day)
    sum_daily = np.zeros(length)
    years_used = 0

    for year in baseline.years():
        tracks = store.tracks_for_season(year)
        if not tracks:
            continue
        limit = end_of_day_utc(day_in_year(year, month, day))
        for fix in season_fixes(tracks, year):
            if fix.time > limit:
                continue
            ace = ace_contribution(fix)
            if not ace:
                continue
            index = normalized_day_index(fix.time)
            if index is not None and 0 <= index < length:
                sum_daily[index] += ace
        years_used += 1

    average = sum_daily / years_used if years_used else sum_daily
    return DailyClimatology(
        labels=normalized_labels(length),
        average_daily=[round1(v) for v in average],
        average_cumulative=[round1(v) for v in np.cumsum(average)],
        years_used=years_used,
        baseline=baseline,
    )
