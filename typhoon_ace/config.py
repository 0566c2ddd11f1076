"""
Runtime configuration read from environment variables.
"""

import os
from datetime import datetime, timezone
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", BASE_DIR / "data"))

# Archive files looked up in DATA_DIR, in order of preference
ARCHIVE_CANDIDATES = ["ibtracs1.csv", "ibtracs.csv", "ibtracs.xlsx"]


def resolve_ibtracs_path() -> Path:
    """IBTRACS_PATH if set, else the first existing candidate (default target even if missing)"""
    override = os.getenv("IBTRACS_PATH")
    if override:
        return Path(override)
    for candidate in ARCHIVE_CANDIDATES:
        path = DATA_DIR / candidate
        if path.exists():
            return path
    return DATA_DIR / ARCHIVE_CANDIDATES[0]


IBTRACS_PATH = resolve_ibtracs_path()
BASIN = os.getenv("BASIN", "WP")
DEFAULT_YEAR = int(os.getenv("DEFAULT_YEAR", datetime.now(timezone.utc).year))

BASELINE_START = int(os.getenv("BASELINE_START", 1950))
BASELINE_END = int(os.getenv("BASELINE_END", 2024))

# Seasons from this year on are read from live b-deck bulletins
BULLETIN_SINCE_YEAR = int(os.getenv("BULLETIN_SINCE_YEAR", 2025))
UCAR_BASE = os.getenv("UCAR_BASE", "https://hurricanes.ral.ucar.edu/repository/data/bdecks_open")
MAX_STORM_NUMBER = int(os.getenv("MAX_STORM_NUMBER", 60))
FETCH_BATCH_SIZE = 8
FETCH_TIMEOUT_SECONDS = 6.0

IBTRACS_WP_URL = (
    "https://www.ncei.noaa.gov/data/international-best-track-archive-for-climate-stewardship-ibtracs"
    "/v04r01/access/csv/ibtracs.WP.list.v04r01.csv"
)

ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "").split(",") if os.getenv("ALLOWED_ORIGINS") else [
    "http://localhost:3000",
    "http://localhost:4001",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:4001",
    "http://127.0.0.1:5173",
]
