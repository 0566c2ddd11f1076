"""
Live b-deck bulletins

Probes the UCAR/RAL mirror of open JTWC b-decks for one season. Files are
named b{basin}{NN}{YYYY}.dat; a missing file means that storm number is not
active. Fetches run in small concurrent batches and a failure for one number
never aborts its siblings. No retries.
"""

import asyncio
import logging
from typing import List, Optional

import aiohttp

from ..config import BASIN, FETCH_BATCH_SIZE, FETCH_TIMEOUT_SECONDS, MAX_STORM_NUMBER, UCAR_BASE
from ..processing.normalize import BulletinStorm, bulletin_fixes, is_invest, parse_bulletin_text
from ..processing.tracks import TrackMap, group_by_storm

logger = logging.getLogger(__name__)


def bulletin_url(year: int, number: int, base_url: str = UCAR_BASE, basin: str = BASIN) -> str:
    return f"{base_url}/{year}/b{basin.lower()}{number:02d}{year}.dat"


async def _fetch_text(session: aiohttp.ClientSession, url: str) -> Optional[str]:
    """Body of url with undecodable bytes replaced, or None for any non-200 response"""
    timeout = aiohttp.ClientTimeout(total=FETCH_TIMEOUT_SECONDS)
    async with session.get(url, timeout=timeout) as response:
        if response.status != 200:
            return None
        return await response.text(errors="replace")


async def _fetch_storm(session: aiohttp.ClientSession, year: int, number: int,
                       base_url: str, basin: str) -> Optional[BulletinStorm]:
    url = bulletin_url(year, number, base_url, basin)
    try:
        text = await _fetch_text(session, url)
    except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError) as e:
        logger.debug(f"Skipping {url}: {e!r}")
        return None
    if text is None:
        return None
    storm = parse_bulletin_text(text, number, year, basin=basin)
    return storm if storm.fixes else None


async def fetch_active_bulletins(year: int, max_number: int = MAX_STORM_NUMBER,
                                 base_url: str = UCAR_BASE, basin: str = BASIN) -> List[BulletinStorm]:
    """
    Fetch every published bulletin numbered 1..max_number for a season.

    Args:
        year: Season year
        max_number: Highest storm number to probe
        base_url: Mirror root
        basin: Basin prefix

    Returns:
        Storms with at least one valid fix, sorted by number, invests excluded
    """
    numbers = [n for n in range(1, max_number + 1) if not is_invest(n)]
    storms: List[BulletinStorm] = []

    async with aiohttp.ClientSession() as session:
        for i in range(0, len(numbers), FETCH_BATCH_SIZE):
            batch = numbers[i:i + FETCH_BATCH_SIZE]
            results = await asyncio.gather(
                *(_fetch_storm(session, year, n, base_url, basin) for n in batch)
            )
            storms.extend(storm for storm in results if storm is not None)

    storms.sort(key=lambda s: s.number)
    logger.info(f"Found {len(storms)} active bulletins for {year}")
    return storms


async def fetch_bulletin_storm(year: int, number: int, base_url: str = UCAR_BASE,
                               basin: str = BASIN) -> Optional[BulletinStorm]:
    """Fetch a single storm's bulletin, None if it is not published"""
    async with aiohttp.ClientSession() as session:
        return await _fetch_storm(session, year, number, base_url, basin)


def bulletin_tracks(storms: List[BulletinStorm]) -> TrackMap:
    """Convert bulletin storms to the track map shape used by the metrics"""
    return group_by_storm(bulletin_fixes(storms))
