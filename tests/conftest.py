from __future__ import annotations

import csv
from pathlib import Path

import pytest

ARCHIVE_COLUMNS = [
    "SID", "SEASON", "BASIN", "NAME", "ISO_TIME", "NATURE", "LAT", "LON",
    "USA_ATCF_ID", "USA_LAT", "USA_LON", "USA_WIND", "USA_PRES",
]
UNITS_ROW = {
    "SID": "", "SEASON": "Year", "BASIN": "", "NAME": "", "ISO_TIME": "", "NATURE": "",
    "LAT": "degrees_north", "LON": "degrees_east", "USA_ATCF_ID": "", "USA_LAT": "degrees_north",
    "USA_LON": "degrees_east", "USA_WIND": "kts", "USA_PRES": "mb",
}


def archive_row(sid, season, name, iso_time, lat, lon, wind, pres="", atcf="", basin="WP", nature="TS"):
    return {
        "SID": sid, "SEASON": season, "BASIN": basin, "NAME": name, "ISO_TIME": iso_time,
        "NATURE": nature, "LAT": lat, "LON": lon, "USA_ATCF_ID": atcf, "USA_LAT": lat,
        "USA_LON": lon, "USA_WIND": wind, "USA_PRES": pres,
    }


SAMPLE_ROWS = [
    # 2023: one typhoon, 4 synoptic fixes at 50 kt -> ACE 1.0
    archive_row("2023220N15130", 2023, "ALPHA", "2023-08-08 00:00:00", 15.0, 130.0, 50, 985, "WP012023"),
    archive_row("2023220N15130", 2023, "ALPHA", "2023-08-08 06:00:00", 15.5, 129.0, 50, 984, "WP012023"),
    archive_row("2023220N15130", 2023, "ALPHA", "2023-08-08 12:00:00", 16.0, 128.0, 50, 983, "WP012023"),
    archive_row("2023220N15130", 2023, "ALPHA", "2023-08-08 18:00:00", 16.5, 127.0, 50, 982, "WP012023"),
    # 2024: named storm, the third fix is off-synoptic
    archive_row("2024183N15125", 2024, "BRAVO", "2024-07-01 00:00:00", 15.0, 125.0, 40, 995, "WP022024"),
    archive_row("2024183N15125", 2024, "BRAVO", "2024-07-01 06:00:00", 16.0, 140.0, 60, 980, "WP022024"),
    archive_row("2024183N15125", 2024, "BRAVO", "2024-07-01 15:00:00", 17.0, 141.0, 80, 960, "WP022024"),
    # 2024: unnamed disturbances 30 h apart, no ids
    archive_row("", 2024, "", "2024-08-01 00:00:00", 10.0, 150.0, 25, 1004),
    archive_row("", 2024, "", "2024-08-02 06:00:00", 12.0, 160.0, 30, 1002),
    # filtered out: other basin, extratropical
    archive_row("2024183N15250", 2024, "CARLOTTA", "2024-07-01 00:00:00", 15.0, -110.0, 90, basin="EP"),
    archive_row("2024183N15125", 2024, "BRAVO", "2024-07-02 00:00:00", 30.0, 145.0, 45, nature="ET"),
]


def write_archive(path: Path, rows) -> Path:
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=ARCHIVE_COLUMNS)
        writer.writeheader()
        writer.writerow(UNITS_ROW)
        for row in rows:
            writer.writerow(row)
    return path


@pytest.fixture
def archive_path(tmp_path) -> Path:
    return write_archive(tmp_path / "ibtracs.csv", SAMPLE_ROWS)
