"""
Typhoon ACE - FastAPI backend

Serves Western Pacific season metrics:
- Monthly and seasonal ACE, category-days and PAR entries
- Year-to-date and daily ACE against a multi-year climatology
- Storm lists and tracks from IBTrACS or live JTWC b-decks
"""

import logging
import re
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import FastAPI, HTTPException, Path, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError, field_validator

from .. import __version__
from ..config import (
    ALLOWED_ORIGINS,
    BASELINE_END,
    BASELINE_START,
    BULLETIN_SINCE_YEAR,
    DEFAULT_YEAR,
    MAX_STORM_NUMBER,
)
from ..processing.aggregation import (
    DEFAULT_TOP_STORMS,
    bulletin_overview,
    cutoff_summary,
    daily_summary,
    season_summary,
    track_points,
)
from ..processing.climatology import BaselineRange
from ..processing.metrics import storm_summaries
from ..processing.tracks import TrackMap
from .bulletins import bulletin_tracks, fetch_active_bulletins, fetch_bulletin_storm
from .storms import ArchiveNotFoundError, initialize_storm_data, storm_manager

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Typhoon ACE API",
    description="Western Pacific tropical cyclone season metrics: ACE, category-days and PAR entries",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

BULLETIN_ID_RE = re.compile(r"^[A-Z]{2}(\d{2})(\d{4})$")


# ============================================================================
# Pydantic Models
# ============================================================================

class BaselineQuery(BaseModel):
    """Inclusive climatology baseline years"""
    start: int = Field(BASELINE_START, ge=1800, le=2100, description="First baseline year")
    end: int = Field(BASELINE_END, ge=1800, le=2100, description="Last baseline year")

    @field_validator("end")
    @classmethod
    def end_not_before_start(cls, value: int, info) -> int:
        start = info.data.get("start")
        if start is not None and value < start:
            raise ValueError("base_end must not be earlier than base_start")
        return value

    def to_range(self) -> BaselineRange:
        return BaselineRange(start=self.start, end=self.end)


class ErrorResponse(BaseModel):
    """Standard error response"""
    error: str
    detail: str
    status_code: int


def parse_baseline(base_start: int, base_end: int) -> BaselineRange:
    try:
        return BaselineQuery(start=base_start, end=base_end).to_range()
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors()[0]["msg"])


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def uses_bulletins(year: int) -> bool:
    return year >= BULLETIN_SINCE_YEAR


async def tracks_for_season(year: int) -> TrackMap:
    """Live bulletins for recent seasons, the archive otherwise"""
    if uses_bulletins(year):
        return bulletin_tracks(await fetch_active_bulletins(year, MAX_STORM_NUMBER))
    return storm_manager.store().tracks_for_season(year)


# ============================================================================
# Exception Handlers
# ============================================================================

@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Custom HTTP exception handler with consistent format"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "HTTPException",
            "detail": exc.detail,
            "status_code": exc.status_code
        }
    )


@app.exception_handler(ArchiveNotFoundError)
async def archive_not_found_handler(request, exc: ArchiveNotFoundError):
    """The archive is required for every metric"""
    logger.error(str(exc))
    return JSONResponse(
        status_code=500,
        content={
            "error": "ArchiveNotFoundError",
            "detail": str(exc),
            "status_code": 500
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle unexpected errors"""
    logger.exception("Unhandled error")
    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "detail": str(exc),
            "status_code": 500
        }
    )


@app.on_event("startup")
async def load_storm_data():
    """Load the archive on startup"""
    initialize_storm_data()


# ============================================================================
# API Endpoints
# ============================================================================

@app.get("/", tags=["General"])
async def root():
    """API root endpoint"""
    return {
        "message": "Typhoon ACE API",
        "version": __version__,
        "documentation": "/docs",
        "endpoints": {
            "health": "/api/health",
            "summary": "/api/summary",
            "ace_cutoff": "/api/ace/cutoff",
            "ace_daily": "/api/ace/daily",
            "storms": "/api/storms",
            "track": "/api/storms/{storm_id}/track",
            "bdecks": "/api/current/bdecks",
        }
    }


@app.get("/api/health", tags=["General"])
async def health():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": __version__,
        "ibtracs": "loaded" if storm_manager.loaded else "unloaded",
        "path": str(storm_manager.filepath),
    }


@app.get("/api/reload", tags=["General"])
async def reload_archive():
    """Rebuild the archive snapshot from disk"""
    snapshot = storm_manager.reload()
    return {
        "reloaded": True,
        "source_version": snapshot.source_version,
        "fixes": len(snapshot.store),
        "storms": len(snapshot.store.all_tracks()),
    }


@app.get("/api/summary", tags=["Season"])
async def get_summary(
    year: int = Query(DEFAULT_YEAR, description="Season year"),
    base_start: int = Query(BASELINE_START, description="First climatology year"),
    base_end: int = Query(BASELINE_END, description="Last climatology year"),
    cutoff: Optional[date] = Query(None, description="Optional as-of date (YYYY-MM-DD)"),
    top: int = Query(DEFAULT_TOP_STORMS, ge=1, le=100, description="Storms in the ACE ranking"),
):
    """
    Season summary: ACE by month, category-days against climatology,
    PAR entries, storms formed by month and per-storm summaries.
    """
    baseline = parse_baseline(base_start, base_end)
    climo_store = storm_manager.store()
    tracks = await tracks_for_season(year)
    return season_summary(tracks, year, climo_store, baseline, cutoff=cutoff, top_n=top)


@app.get("/api/ace/cutoff", tags=["ACE"])
async def get_ace_cutoff(
    year: int = Query(DEFAULT_YEAR, description="Season year"),
    cutoff: Optional[date] = Query(None, description="As-of date (defaults to today, UTC)"),
    base_start: int = Query(BASELINE_START),
    base_end: int = Query(BASELINE_END),
):
    """Year-to-date ACE through the cutoff versus the climatological average"""
    baseline = parse_baseline(base_start, base_end)
    cutoff = cutoff or today_utc()
    climo_store = storm_manager.store()
    tracks = await tracks_for_season(year)
    return cutoff_summary(tracks, year, cutoff, climo_store, baseline)


@app.get("/api/ace/daily", tags=["ACE"])
async def get_ace_daily(
    year: int = Query(DEFAULT_YEAR, description="Season year"),
    end: Optional[date] = Query(None, description="Last day of the series (defaults to today, UTC)"),
    base_start: int = Query(BASELINE_START),
    base_end: int = Query(BASELINE_END),
):
    """Daily and cumulative ACE from Jan 1, with the daily climatology"""
    baseline = parse_baseline(base_start, base_end)
    end = end or today_utc()
    climo_store = storm_manager.store()
    tracks = await tracks_for_season(year)
    return daily_summary(tracks, year, end, climo_store, baseline)


@app.get("/api/storms", tags=["Storms"])
async def get_storms(year: int = Query(DEFAULT_YEAR, description="Season year")):
    """All storms of a season, ordered by start time"""
    tracks = await tracks_for_season(year)
    storms = [s.to_dict() for s in storm_summaries(tracks, year)]
    return {"year": year, "count": len(storms), "storms": storms}


@app.get("/api/storms/{storm_id}/track", tags=["Storms"])
async def get_storm_track(
    storm_id: str = Path(..., description="Storm id, e.g. 'WP122024'"),
    year: int = Query(DEFAULT_YEAR, description="Season year"),
):
    """Track points of one storm"""
    if uses_bulletins(year):
        match = BULLETIN_ID_RE.match(storm_id)
        if match and int(match.group(2)) == year:
            storm = await fetch_bulletin_storm(year, int(match.group(1)))
            if storm is not None:
                return {"id": storm_id, "year": year, "points": track_points(storm.fixes)}

    track = [fix for fix in storm_manager.store().track(storm_id) if fix.season == year]
    if not track:
        raise HTTPException(status_code=404, detail=f"Storm {storm_id} not found for {year}")
    return {"id": storm_id, "year": year, "points": track_points(track)}


@app.get("/api/current/bdecks", tags=["Storms"])
async def get_current_bdecks(
    year: int = Query(DEFAULT_YEAR, description="Season year"),
    max_number: int = Query(MAX_STORM_NUMBER, ge=1, le=99, alias="max",
                            description="Highest storm number to probe"),
):
    """Live b-deck bulletins with per-storm ACE"""
    storms = await fetch_active_bulletins(year, max_number)
    return {"year": year, "storms": bulletin_overview(storms)}


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=4001)
