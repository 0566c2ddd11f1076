"""
Seasonal Metrics Module

Accumulated Cyclone Energy (ACE), category-days, PAR entry statistics and
storm summaries computed over per-storm tracks.

ACE rules:
- only synoptic fixes (00/06/12/18 UTC) count
- winds are rounded to the nearest 5 kt before thresholding and squaring
- a fix contributes wind^2 / 10000 when its rounded wind is >= 35 kt
- sums are kept at full precision and rounded to one decimal once, at the end
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterator, List, Optional, Sequence, Union

import numpy as np

from .geometry import is_inside_region
from .normalize import Fix
from .tracks import Track, TrackMap

ACE_WIND_THRESHOLD = 35
SYNOPTIC_HOURS = frozenset((0, 6, 12, 18))
FINAL_FIX_HOURS = 6
MAX_INTERVAL_HOURS = 12
CATEGORIES = ("TD", "TS", "STS", "TY", "STY")

DateLike = Union[date, datetime]


# ============================================================================
# Helpers
# ============================================================================

def round5(wind: Optional[float]) -> Optional[int]:
    """Round a wind speed to the nearest 5 kt, ties upward"""
    if wind is None:
        return None
    return int(math.floor(float(wind) / 5 + 0.5)) * 5


def round1(value: float) -> float:
    """Round half-up to one decimal"""
    return float(Decimal(repr(float(value))).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def is_synoptic(moment: datetime) -> bool:
    return moment.hour in SYNOPTIC_HOURS


def ace_from_wind(wind_kt: float) -> float:
    return (wind_kt * wind_kt) / 10000.0


def ace_contribution(fix: Fix) -> float:
    """ACE contributed by one fix (0 for non-synoptic or sub-threshold fixes)"""
    if not is_synoptic(fix.time):
        return 0.0
    wind = round5(fix.wind_kt)
    if wind is None or wind < ACE_WIND_THRESHOLD:
        return 0.0
    return ace_from_wind(wind)


def _to_utc_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def end_of_day_utc(value: DateLike) -> datetime:
    """Last representable instant of the value's UTC calendar day"""
    d = _to_utc_date(value)
    return datetime(d.year, d.month, d.day, 23, 59, 59, 999999, tzinfo=timezone.utc)


def day_in_year(year: int, month: int, day: int) -> date:
    """
    Calendar date for month/day in the given year. A day past the end of the
    month rolls into the next one (Feb 29 in a non-leap year -> Mar 1).
    """
    return date(int(year), month, 1) + timedelta(days=day - 1)


def cutoff_in_year(year: int, reference: DateLike) -> datetime:
    """End of day on the reference's month/day, moved into the given year"""
    ref = _to_utc_date(reference)
    return end_of_day_utc(day_in_year(year, ref.month, ref.day))


def season_limit(year: Optional[int], cutoff: Optional[DateLike]) -> Optional[datetime]:
    """Cutoff instant for a season: the cutoff's month/day moved into year"""
    if cutoff is None:
        return None
    if year is None:
        return end_of_day_utc(cutoff)
    return cutoff_in_year(year, cutoff)


def season_fixes(tracks: TrackMap, year: Optional[int]) -> Iterator[Fix]:
    for track in tracks.values():
        for fix in track:
            if year is None or fix.season == int(year):
                yield fix


def season_tracks(tracks: TrackMap, year: Optional[int]) -> Iterator[Track]:
    """Tracks whose first fix belongs to the season"""
    for track in tracks.values():
        if not track:
            continue
        if year is None or track[0].season == int(year):
            yield track


# ============================================================================
# ACE
# ============================================================================

@dataclass
class AceTotals:
    monthly: List[float]
    total: float


@dataclass
class YearToDate:
    total: float
    cumulative_monthly: List[float]


@dataclass
class DailySeries:
    labels: List[str]
    daily: List[float]
    cumulative: List[float]
    total: float


def ace_monthly_raw(tracks: TrackMap, year: Optional[int],
                    limit: Optional[datetime] = None) -> np.ndarray:
    """Unrounded ACE per UTC month for fixes at or before limit"""
    monthly = np.zeros(12)
    for fix in season_fixes(tracks, year):
        if limit is not None and fix.time > limit:
            continue
        ace = ace_contribution(fix)
        if ace:
            monthly[fix.time.month - 1] += ace
    return monthly


def ace_by_month(tracks: TrackMap, year: Optional[int],
                 cutoff: Optional[DateLike] = None) -> AceTotals:
    """
    Monthly and seasonal ACE.

    Args:
        tracks: Storm tracks
        year: Season to include (None for all fixes)
        cutoff: Optional as-of date; only its month/day matter, and fixes
            after the end of that day in the season year are excluded

    Returns:
        AceTotals with 12 rounded month buckets and the rounded total
    """
    limit = season_limit(year, cutoff)
    monthly = ace_monthly_raw(tracks, year, limit)
    return AceTotals(
        monthly=[round1(v) for v in monthly],
        total=round1(monthly.sum()),
    )


def ace_for_storm(track: Sequence[Fix]) -> float:
    """Rounded ACE of one storm"""
    return round1(sum(ace_contribution(fix) for fix in track))


def ace_year_to_date(tracks: TrackMap, year: int, as_of: DateLike) -> YearToDate:
    """ACE from season start through the as-of month/day, with monthly cumulative curve"""
    monthly = ace_monthly_raw(tracks, year, season_limit(year, as_of))
    running = np.cumsum(monthly)
    return YearToDate(
        total=round1(monthly.sum()),
        cumulative_monthly=[round1(v) for v in running],
    )


def ace_daily(tracks: TrackMap, year: int, as_of: DateLike) -> DailySeries:
    """Per-day ACE from Jan 1 through the as-of month/day of the season"""
    year = int(year)
    start = date(year, 1, 1)
    ref = _to_utc_date(as_of)
    end = day_in_year(year, ref.month, ref.day)
    n_days = (end - start).days + 1
    limit = end_of_day_utc(end)

    daily = np.zeros(n_days)
    for fix in season_fixes(tracks, year):
        if fix.time > limit:
            continue
        ace = ace_contribution(fix)
        if not ace:
            continue
        index = (fix.time.date() - start).days
        if 0 <= index < n_days:
            daily[index] += ace

    running = np.cumsum(daily)
    cumulative = [round1(v) for v in running]
    return DailySeries(
        labels=[(start + timedelta(days=i)).isoformat() for i in range(n_days)],
        daily=[round1(v) for v in daily],
        cumulative=cumulative,
        total=cumulative[-1] if cumulative else 0.0,
    )


# ============================================================================
# Category days
# ============================================================================

def classify_wind(wind_kt: Optional[float]) -> Optional[str]:
    """Classify a 1-minute sustained wind (kt) into a category"""
    if wind_kt is None:
        return None
    if wind_kt < 34:
        return "TD"
    if wind_kt < 48:
        return "TS"
    if wind_kt < 64:
        return "STS"
    if wind_kt < 130:
        return "TY"
    return "STY"


def category_hours(tracks: TrackMap, year: Optional[int],
                   cutoff: Optional[DateLike] = None) -> Dict[str, float]:
    """Unrounded hours spent in each category"""
    hours = {category: 0.0 for category in CATEGORIES}
    limit = season_limit(year, cutoff)

    for track in season_tracks(tracks, year):
        for i, fix in enumerate(track):
            start = fix.time
            if i + 1 < len(track):
                end = track[i + 1].time
            else:
                end = start + timedelta(hours=FINAL_FIX_HOURS)

            if limit is not None:
                if start > limit:
                    continue
                if end > limit:
                    end = limit

            span = (end - start).total_seconds() / 3600
            if span <= 0:
                continue
            span = min(span, MAX_INTERVAL_HOURS)

            category = classify_wind(fix.wind_kt)
            if category is not None:
                hours[category] += span
    return hours


def category_days(tracks: TrackMap, year: Optional[int],
                  cutoff: Optional[DateLike] = None) -> Dict[str, float]:
    """
    Days spent in each category (TD, TS, STS, TY, STY).

    Each fix owns the interval up to the next fix (6 h for the last one),
    capped at 12 h. With a cutoff, intervals are truncated at the end of the
    cutoff's month/day within the season year.
    """
    hours = category_hours(tracks, year, cutoff)
    return {category: round1(value / 24) for category, value in hours.items()}


# ============================================================================
# PAR entries, formation, storm summaries
# ============================================================================

@dataclass
class RegionEntries:
    monthly: List[int]
    total: int


def first_region_entry(track: Sequence[Fix]) -> Optional[datetime]:
    """Time of the earliest fix inside PAR"""
    for fix in track:
        if is_inside_region(fix.lat, fix.lon):
            return fix.time
    return None


def par_monthly_entries(tracks: TrackMap, year: Optional[int]) -> RegionEntries:
    """Count storms by the UTC month they first entered PAR"""
    monthly = [0] * 12
    total = 0
    for track in season_tracks(tracks, year):
        entry = first_region_entry(track)
        if entry is not None:
            monthly[entry.month - 1] += 1
            total += 1
    return RegionEntries(monthly=monthly, total=total)


def storms_formed_by_month(tracks: TrackMap, year: Optional[int]) -> List[int]:
    """Count storms by the UTC month of their first fix"""
    monthly = [0] * 12
    for track in season_tracks(tracks, year):
        monthly[track[0].time.month - 1] += 1
    return monthly


def isoformat_utc(moment: Optional[datetime]) -> Optional[str]:
    if moment is None:
        return None
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class StormSummary:
    """Per-storm summary row"""
    id: str
    name: str
    start: datetime
    end: datetime
    max_wind: int
    min_pres: Optional[float]
    ace: float
    par_entry: Optional[datetime] = None
    points: int = field(default=0)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "start": isoformat_utc(self.start),
            "end": isoformat_utc(self.end),
            "max_wind": self.max_wind,
            "min_pres": self.min_pres,
            "ace": self.ace,
            "par_entry": isoformat_utc(self.par_entry),
            "points": self.points,
        }


def summarize_storm(storm_id: str, track: Sequence[Fix]) -> StormSummary:
    """Peak wind (all fixes, rounded to 5 kt), minimum pressure, ACE and PAR entry"""
    max_wind = 0
    min_pres = None
    for fix in track:
        wind = round5(fix.wind_kt if fix.wind_kt is not None else 0)
        if wind > max_wind:
            max_wind = wind
        if fix.pres_hpa is not None and fix.pres_hpa > 0:
            min_pres = fix.pres_hpa if min_pres is None else min(min_pres, fix.pres_hpa)

    return StormSummary(
        id=storm_id,
        name=track[0].name,
        start=track[0].time,
        end=track[-1].time,
        max_wind=max_wind,
        min_pres=min_pres,
        ace=ace_for_storm(track),
        par_entry=first_region_entry(track),
        points=len(track),
    )


def storm_summaries(tracks: TrackMap, year: Optional[int]) -> List[StormSummary]:
    """Summaries of the season's storms, ordered by start time"""
    summaries = [
        summarize_storm(storm_id, track)
        for storm_id, track in tracks.items()
        if track and (year is None or track[0].season == int(year))
    ]
    summaries.sort(key=lambda s: s.start)
    return summaries


def top_storms(summaries: Sequence[StormSummary], limit: Optional[int] = None) -> List[StormSummary]:
    """Summaries ordered by ACE, highest first (ties keep start order)"""
    ranked = sorted(summaries, key=lambda s: s.ace, reverse=True)
    return ranked[:limit] if limit is not None else ranked
