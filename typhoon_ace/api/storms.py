"""
Historical Storm Data Module
Loads the IBTrACS best-track archive and serves read-only track snapshots

Data Source: NOAA IBTrACS (International Best Track Archive for Climate Stewardship)
https://www.ncei.noaa.gov/products/international-best-track-archive
"""

import csv
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from openpyxl import load_workbook

from ..config import BASIN, IBTRACS_PATH
from ..processing.normalize import normalize_archive_rows
from ..processing.tracks import ArchiveSnapshot, TrackStore

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ArchiveNotFoundError(FileNotFoundError):
    """The configured best-track archive file does not exist"""


def _read_csv_rows(filepath: Path) -> List[Dict[str, Any]]:
    with open(filepath, "r", encoding="utf-8", errors="replace", newline="") as f:
        return list(csv.DictReader(f))


def _read_xlsx_rows(filepath: Path) -> List[Dict[str, Any]]:
    workbook = load_workbook(filepath, read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        columns = [str(c).strip() if c is not None else "" for c in header]
        return [dict(zip(columns, values)) for values in rows]
    finally:
        workbook.close()


def load_archive_rows(filepath: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Read every row of an IBTrACS CSV or XLSX file.

    Args:
        filepath: Path to the archive

    Returns:
        Rows as column-name dictionaries

    Raises:
        ArchiveNotFoundError: If the file does not exist
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise ArchiveNotFoundError(f"IBTrACS file not found at: {filepath}")

    if filepath.suffix.lower() in (".xlsx", ".xlsm"):
        return _read_xlsx_rows(filepath)
    return _read_csv_rows(filepath)


class StormDataManager:
    """Owns the current archive snapshot, rebuilding it when the file changes"""

    def __init__(self, filepath: Union[str, Path] = IBTRACS_PATH, basin: str = BASIN):
        self.filepath = Path(filepath)
        self.basin = basin
        self._snapshot: Optional[ArchiveSnapshot] = None

    @property
    def loaded(self) -> bool:
        return self._snapshot is not None

    def _source_version(self) -> int:
        try:
            return self.filepath.stat().st_mtime_ns
        except FileNotFoundError:
            raise ArchiveNotFoundError(f"IBTrACS file not found at: {self.filepath}") from None

    def load(self) -> ArchiveSnapshot:
        """Build a fresh snapshot from the archive and make it current"""
        version = self._source_version()
        rows = load_archive_rows(self.filepath)
        fixes = normalize_archive_rows(rows, basin=self.basin)
        snapshot = ArchiveSnapshot(
            source_version=version,
            source_path=str(self.filepath),
            store=TrackStore(fixes),
        )
        self._snapshot = snapshot
        logger.info(
            f"Loaded {len(fixes)} fixes ({len(snapshot.store.all_tracks())} storms) "
            f"from {self.filepath}"
        )
        return snapshot

    def current(self) -> ArchiveSnapshot:
        """The current snapshot, reloaded if the archive's modification time changed"""
        version = self._source_version()
        snapshot = self._snapshot
        if snapshot is None or snapshot.source_version != version:
            return self.load()
        return snapshot

    def reload(self) -> ArchiveSnapshot:
        """Rebuild unconditionally"""
        return self.load()

    def store(self) -> TrackStore:
        return self.current().store


# Global instance
storm_manager = StormDataManager()


def initialize_storm_data() -> bool:
    """Load the archive on startup; a missing file is reported, not raised"""
    try:
        storm_manager.current()
        return True
    except ArchiveNotFoundError as e:
        logger.error(str(e))
        return False
