"""
Typhoon ACE Processing Module

Fix normalization, track grouping, metrics and climatology for tropical
cyclone track data.
"""

from .geometry import is_inside_region
from .normalize import Fix, BulletinStorm, normalize_archive_rows, parse_bulletin_text
from .tracks import TrackStore, ArchiveSnapshot, group_by_storm
from .climatology import BaselineRange
from .aggregation import season_summary, cutoff_summary, daily_summary

__all__ = [
    "is_inside_region",
    "Fix",
    "BulletinStorm",
    "normalize_archive_rows",
    "parse_bulletin_text",
    "TrackStore",
    "ArchiveSnapshot",
    "group_by_storm",
    "BaselineRange",
    "season_summary",
    "cutoff_summary",
    "daily_summary",
]
