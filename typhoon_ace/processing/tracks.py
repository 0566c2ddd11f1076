"""
Track Store

Groups normalized fixes into time-sorted per-storm tracks, for all seasons
or for one season. A store is built once per archive snapshot and never
patched; reloading builds a new one.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from .normalize import Fix

Track = Tuple[Fix, ...]
TrackMap = Dict[str, Track]


def group_by_storm(fixes: Iterable[Fix], year: Optional[int] = None) -> TrackMap:
    """
    Group fixes by storm_id, sorted by time.

    Args:
        fixes: Normalized fixes
        year: If given, keep only fixes whose season matches

    Returns:
        Mapping of storm_id to its time-sorted track
    """
    grouped: Dict[str, list] = {}
    for fix in fixes:
        if year is not None and fix.season != int(year):
            continue
        grouped.setdefault(fix.storm_id, []).append(fix)
    return {
        storm_id: tuple(sorted(points, key=lambda f: f.time))
        for storm_id, points in grouped.items()
    }


class TrackStore:
    """Read-only view over one normalized fix set"""

    def __init__(self, fixes: Iterable[Fix]):
        self.fixes: Tuple[Fix, ...] = tuple(fixes)
        self._all = group_by_storm(self.fixes)
        self._by_season: Dict[int, TrackMap] = {}

    def __len__(self) -> int:
        return len(self.fixes)

    def all_tracks(self) -> TrackMap:
        """All storms across every season"""
        return self._all

    def tracks_for_season(self, year: int) -> TrackMap:
        """Storms restricted to fixes of one season, cached per year"""
        year = int(year)
        if year not in self._by_season:
            self._by_season[year] = group_by_storm(self.fixes, year)
        return self._by_season[year]

    def seasons(self) -> list:
        """Seasons present in the store, newest first"""
        return sorted({fix.season for fix in self.fixes}, reverse=True)

    def track(self, storm_id: str) -> Track:
        return self._all.get(storm_id, ())


@dataclass(frozen=True)
class ArchiveSnapshot:
    """A track store paired with the source version it was built from"""
    source_version: int
    source_path: str
    store: TrackStore = field(compare=False)
