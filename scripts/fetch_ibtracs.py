#!/usr/bin/env python3
"""
Fetch the IBTrACS Western Pacific archive for Typhoon ACE

Downloads the WP best-track CSV into the data directory and, optionally,
reports how many fixes and storms survive normalization.

Data Source: NOAA IBTrACS v04r01
https://www.ncei.noaa.gov/products/international-best-track-archive

Usage:
    python fetch_ibtracs.py [--output PATH] [--url URL] [--check]
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import httpx

from typhoon_ace.config import DATA_DIR, IBTRACS_WP_URL

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_PATH = DATA_DIR / "ibtracs1.csv"


def download_file(url: str, output_path: Path, timeout: float = 300.0,
                  client: Optional[httpx.Client] = None) -> bool:
    """Stream a file from URL to the specified path."""
    owns_client = client is None
    client = client or httpx.Client(timeout=timeout, follow_redirects=True)
    partial_path = output_path.with_suffix(output_path.suffix + ".part")
    try:
        logger.info(f"Downloading: {url}")
        output_path.parent.mkdir(parents=True, exist_ok=True)
        size = 0
        with client.stream("GET", url) as response:
            response.raise_for_status()
            with open(partial_path, 'wb') as f:
                for chunk in response.iter_bytes():
                    f.write(chunk)
                    size += len(chunk)
        partial_path.replace(output_path)
        logger.info(f"Downloaded {size / 1024 / 1024:.2f} MB to {output_path}")
        return True
    except httpx.HTTPError as e:
        logger.error(f"HTTP error downloading {url}: {e}")
        partial_path.unlink(missing_ok=True)
        return False
    finally:
        if owns_client:
            client.close()


def check_archive(path: Path) -> None:
    """Log how many fixes and storms the archive yields after normalization"""
    from typhoon_ace.api.storms import StormDataManager

    snapshot = StormDataManager(path).load()
    seasons = snapshot.store.seasons()
    logger.info(f"Fixes: {len(snapshot.store)}")
    logger.info(f"Storms: {len(snapshot.store.all_tracks())}")
    if seasons:
        logger.info(f"Seasons: {seasons[-1]}-{seasons[0]}")


def main():
    parser = argparse.ArgumentParser(
        description="Fetch the IBTrACS Western Pacific archive for Typhoon ACE"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT_PATH,
        help="Where to write the CSV"
    )
    parser.add_argument(
        "--url",
        default=IBTRACS_WP_URL,
        help="Archive URL"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=300.0,
        help="Download timeout in seconds"
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Normalize the downloaded archive and report counts"
    )

    args = parser.parse_args()

    if not download_file(args.url, args.output, timeout=args.timeout):
        sys.exit(1)

    if args.check:
        check_archive(args.output)


if __name__ == "__main__":
    main()
