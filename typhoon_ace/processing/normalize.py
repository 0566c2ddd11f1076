"""
Fix Normalization Module

Turns raw best-track archive rows (IBTrACS) and forecast-agency b-deck
bulletin lines into a single Fix representation, then resolves storm
identities and collapses duplicate fixes.

Data Sources:
- IBTrACS: https://www.ncei.noaa.gov/products/international-best-track-archive
- JTWC b-decks (ATCF best track format), mirrored by UCAR/RAL
"""

import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from dateutil import parser as dateparser

UNNAMED = "UNNAMED"
EXCLUDED_NATURES = ("DS", "ET")  # dissipating, extratropical
SEGMENT_GAP_HOURS = 24
INVEST_RANGE = range(90, 100)

SPREADSHEET_EPOCH = datetime(1899, 12, 30, tzinfo=timezone.utc)

# Two fallback defaults differing in year, month and day; a lenient parse
# that fills any date part from its default disagrees between them
_PARSE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))

# Accepted textual timestamp encodings, tried in order (all read as UTC)
ARCHIVE_TIME_FORMATS = [
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y%m%d%H",
    "%m/%d/%Y %H:%M",
    "%d/%m/%Y %H:%M",
]

_NUMERIC_RE = re.compile(r"^-?\d+(\.\d+)?$")
_LAT_RE = re.compile(r"^(\d+)(\d)([NS])$", re.IGNORECASE)
_LON_RE = re.compile(r"^(\d+)(\d)([EW])$", re.IGNORECASE)


@dataclass(frozen=True)
class RawFix:
    """A parsed archive observation before storm identity is resolved"""
    season: int
    time: datetime
    lat: Optional[float]
    lon: Optional[float]
    wind_kt: Optional[float]
    pres_hpa: Optional[float]
    name: str = UNNAMED
    external_id: str = ""


@dataclass(frozen=True)
class Fix:
    """A single observation of one storm at one instant"""
    season: int
    time: datetime
    lat: Optional[float]
    lon: Optional[float]
    wind_kt: Optional[float]
    pres_hpa: Optional[float]
    name: str
    storm_id: str


@dataclass
class BulletinStorm:
    """One storm's b-deck bulletin for a season"""
    id: str
    number: int
    season: int
    name: str = UNNAMED
    fixes: List[Fix] = field(default_factory=list)


def sanitize_csv_value(value: Any, max_length: int = 100) -> str:
    """
    Clean a free-text archive cell.

    Args:
        value: The raw cell value
        max_length: Maximum allowed length

    Returns:
        Stripped string with control characters removed
    """
    if value is None:
        return ""
    value = str(value).strip()
    if len(value) > max_length:
        value = value[:max_length]
    return re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", value)


def parse_number(value: Any) -> Optional[float]:
    """Safely parse a float; blanks and garbage become None"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def spreadsheet_serial_to_datetime(serial: float) -> datetime:
    """Convert a spreadsheet date serial (epoch 1899-12-30) to UTC, to the second"""
    seconds = round(serial * 86400)
    return SPREADSHEET_EPOCH + timedelta(seconds=seconds)


def parse_archive_time(value: Any) -> Optional[datetime]:
    """
    Parse an archive timestamp cell into an aware UTC datetime.

    Accepts native datetimes, spreadsheet serial numbers and the textual
    encodings in ARCHIVE_TIME_FORMATS, falling back to a lenient parse.
    Returns None when nothing matches.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, (int, float)):
        try:
            return spreadsheet_serial_to_datetime(float(value))
        except (OverflowError, ValueError):
            return None

    text = str(value).strip()
    if not text:
        return None

    for fmt in ARCHIVE_TIME_FORMATS:
        try:
            return _as_utc(datetime.strptime(text, fmt))
        except ValueError:
            continue

    if _NUMERIC_RE.match(text):
        try:
            return spreadsheet_serial_to_datetime(float(text))
        except (OverflowError, ValueError):
            return None

    try:
        first, second = (dateparser.parse(text, default=d) for d in _PARSE_DEFAULTS)
    except (ValueError, OverflowError):
        return None
    if first != second:
        return None  # incomplete date
    return _as_utc(first)


def _first_present(row: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = row.get(key)
        if value is not None and str(value).strip() != "":
            return value
    return None


def archive_row_to_raw(row: Mapping[str, Any], basin: str = "WP") -> Optional[RawFix]:
    """
    Parse one archive row. Returns None for rows that are outside the basin,
    dissipating/extratropical, or lack a valid timestamp.
    """
    time = parse_archive_time(row.get("ISO_TIME"))
    if time is None:
        return None

    row_basin = sanitize_csv_value(row.get("BASIN"), max_length=10)
    nature = sanitize_csv_value(row.get("NATURE"), max_length=10)
    if row_basin != basin or nature in EXCLUDED_NATURES:
        return None

    season = parse_number(row.get("SEASON"))
    pressure = parse_number(row.get("USA_PRES"))
    if pressure is not None and pressure <= 0:
        pressure = None

    atcf_id = sanitize_csv_value(row.get("USA_ATCF_ID"), max_length=50)
    sid = sanitize_csv_value(row.get("SID"), max_length=50)

    return RawFix(
        season=int(season) if season is not None else 0,
        time=time,
        lat=parse_number(_first_present(row, "USA_LAT", "LAT")),
        lon=parse_number(_first_present(row, "USA_LON", "LON")),
        wind_kt=parse_number(row.get("USA_WIND")),
        pres_hpa=pressure,
        name=sanitize_csv_value(row.get("NAME")) or UNNAMED,
        external_id=atcf_id or sid,
    )


def _segment_id(name: str, season: int, segment: Sequence[RawFix]) -> str:
    for raw in segment:
        if raw.external_id:
            return raw.external_id
    return f"{name}_{season}_{segment[0].time:%Y%m%d%H}"


def _majority_external_id(members: Sequence[RawFix]) -> Optional[str]:
    counts = Counter(raw.external_id for raw in members if raw.external_id)
    if not counts:
        return None
    # Counter keeps first-encountered order among equal counts
    return counts.most_common(1)[0][0]


def split_by_gap(members: Sequence[RawFix],
                 max_gap_hours: float = SEGMENT_GAP_HOURS) -> List[List[RawFix]]:
    """Split time-sorted fixes wherever consecutive fixes are more than max_gap_hours apart"""
    max_gap = timedelta(hours=max_gap_hours)
    segments: List[List[RawFix]] = []
    for raw in members:
        if segments and raw.time - segments[-1][-1].time <= max_gap:
            segments[-1].append(raw)
        else:
            segments.append([raw])
    return segments


def _to_fix(raw: RawFix, storm_id: str) -> Fix:
    return Fix(
        season=raw.season,
        time=raw.time,
        lat=raw.lat,
        lon=raw.lon,
        wind_kt=raw.wind_kt,
        pres_hpa=raw.pres_hpa,
        name=raw.name,
        storm_id=storm_id,
    )


def resolve_storm_identities(raw_fixes: Iterable[RawFix]) -> List[Fix]:
    """
    Assign a canonical storm_id to every raw fix.

    Fixes are grouped by (uppercased name, season). A named group carrying
    any external id takes the most frequent one for all of its fixes.
    Unnamed groups, and named groups without ids, are split into segments
    at gaps longer than SEGMENT_GAP_HOURS; each segment becomes its own storm.
    """
    groups: Dict[Tuple[str, int], List[RawFix]] = {}
    for raw in raw_fixes:
        groups.setdefault((raw.name.upper(), raw.season), []).append(raw)

    resolved: List[Fix] = []
    for (name, season), members in groups.items():
        # Vote over row order, segment over time order
        canonical = _majority_external_id(members) if name != UNNAMED else None
        members = sorted(members, key=lambda r: r.time)
        if canonical:
            resolved.extend(_to_fix(raw, canonical) for raw in members)
            continue

        for segment in split_by_gap(members):
            segment_id = _segment_id(name, season, segment)
            resolved.extend(_to_fix(raw, segment_id) for raw in segment)

    return resolved


def drop_duplicate_fixes(fixes: Iterable[Fix]) -> List[Fix]:
    """Keep the first fix for each (storm_id, time) pair"""
    seen = set()
    kept = []
    for fix in fixes:
        key = (fix.storm_id, fix.time)
        if key in seen:
            continue
        seen.add(key)
        kept.append(fix)
    return kept


def normalize_archive_rows(rows: Iterable[Mapping[str, Any]], basin: str = "WP") -> List[Fix]:
    """Full archive normalization: parse, filter, resolve identities, dedupe"""
    raw_fixes = []
    for row in rows:
        try:
            raw = archive_row_to_raw(row, basin=basin)
        except (TypeError, ValueError, OverflowError):
            continue  # Skip malformed rows
        if raw is not None:
            raw_fixes.append(raw)
    return drop_duplicate_fixes(resolve_storm_identities(raw_fixes))


# ----------------------------------------------------------------------------
# b-deck bulletins
# ----------------------------------------------------------------------------

def is_invest(number: int) -> bool:
    """Invest disturbances are numbered 90-99"""
    return number in INVEST_RANGE


def bulletin_storm_id(basin: str, number: int, year: int) -> str:
    return f"{basin}{number:02d}{year}"


def parse_ymdh(token: str) -> Optional[datetime]:
    """Parse a YYYYMMDDHH token as UTC"""
    text = str(token).strip()
    if not re.fullmatch(r"\d{10}", text):
        return None
    try:
        return datetime.strptime(text, "%Y%m%d%H").replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def _parse_tenths(token: str, pattern: "re.Pattern", negative: str) -> Optional[float]:
    match = pattern.match(str(token).strip())
    if not match:
        return None
    degrees = int(match.group(1)) + int(match.group(2)) / 10
    return -degrees if match.group(3).upper() == negative else degrees


def parse_bulletin_lat(token: str) -> Optional[float]:
    """'272N' -> 27.2, '093S' -> -9.3"""
    return _parse_tenths(token, _LAT_RE, "S")


def parse_bulletin_lon(token: str) -> Optional[float]:
    """'1276E' -> 127.6, '1567W' -> -156.7"""
    return _parse_tenths(token, _LON_RE, "W")


def _parse_int(token: str) -> Optional[int]:
    number = parse_number(token)
    return int(number) if number is not None else None


def parse_bulletin_line(line: str, basin: str = "WP") -> Optional[Dict[str, Any]]:
    """
    Parse one comma-delimited b-deck line.

    Columns used: 0 basin, 1 number, 2 YYYYMMDDHH, 6 lat, 7 lon,
    8 wind (kt), 9 pressure (hPa), 27 storm name. Returns None when the
    line is for another basin or has no valid time or position.
    """
    if not line or not line.startswith(basin):
        return None
    cols = [c.strip() for c in line.split(",")]
    if len(cols) < 8:
        return None

    time = parse_ymdh(cols[2])
    lat = parse_bulletin_lat(cols[6])
    lon = parse_bulletin_lon(cols[7])
    if time is None or lat is None or lon is None:
        return None

    wind = _parse_int(cols[8]) if len(cols) > 8 else None
    pres = _parse_int(cols[9]) if len(cols) > 9 else None
    if pres is not None and pres <= 0:
        pres = None
    name = cols[27] if len(cols) > 27 else ""

    return {"time": time, "lat": lat, "lon": lon, "wind": wind, "pres": pres, "name": name}


def parse_bulletin_text(text: str, number: int, year: int, basin: str = "WP") -> BulletinStorm:
    """
    Parse a whole b-deck file into a BulletinStorm.

    The latest non-empty storm name in the file names the whole track.
    Repeated lines for the same time (one per wind-radii threshold) collapse
    to the first.
    """
    storm_id = bulletin_storm_id(basin, number, year)
    points = []
    for line in text.splitlines():
        point = parse_bulletin_line(line, basin=basin)
        if point is not None:
            points.append(point)

    points.sort(key=lambda p: p["time"])
    name = UNNAMED
    for point in points:
        if point["name"]:
            name = point["name"]

    fixes = [
        Fix(
            season=int(year),
            time=p["time"],
            lat=p["lat"],
            lon=p["lon"],
            wind_kt=p["wind"],
            pres_hpa=p["pres"],
            name=name,
            storm_id=storm_id,
        )
        for p in points
    ]
    return BulletinStorm(
        id=storm_id,
        number=int(number),
        season=int(year),
        name=name,
        fixes=drop_duplicate_fixes(fixes),
    )


def bulletin_fixes(storms: Iterable[BulletinStorm]) -> List[Fix]:
    """Flatten bulletin storms into fixes, skipping invests"""
    fixes: List[Fix] = []
    for storm in storms:
        if is_invest(storm.number):
            continue
        fixes.extend(storm.fixes)
    return fixes
