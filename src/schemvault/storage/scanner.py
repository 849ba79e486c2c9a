# src/schemvault/storage/scanner.py
"""
Turns a project folder into one `LoadOutcome` per sheet.

Every `<name>.dgm` file is a sheet. Next to it there may be an automatically
saved `<name>.dgmauto`, and in `backup/` older revisions. The scanner loads
what it can and classifies each sheet; it never asks the user anything and
never writes. Deciding between conflicting copies is the reconciler's job.
"""
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Optional

from ..backup.naming import latest_backup_of
from ..canvas.differ import layout_equal
from ..constants import AUTOSAVE_EXTENSION, DEFAULT_LAYOUT_TOLERANCE, SHEET_EXTENSION
from ..data_structures import (
    Loaded,
    LoadedFromBackupOnly,
    LoadOutcome,
    NeedsReconciliation,
    Sheet,
)
from .codec import SheetCodec
from .exceptions import SheetLoadError

logger = logging.getLogger(__name__)


@dataclass
class ProjectScan:
    """
    Result of scanning a project folder.

    Attributes:
        outcomes: One outcome per sheet that could be loaded from some copy,
                  in file-name order.
        failures: Sheets for which no copy could be loaded.
    """
    outcomes: List[LoadOutcome] = field(default_factory=list)
    failures: List[SheetLoadError] = field(default_factory=list)


def autosave_path(sheet_path: Path) -> Path:
    return Path(sheet_path).with_suffix(AUTOSAVE_EXTENSION)


def sheet_files(project_path: Path) -> List[Path]:
    """The primary sheet files of a project folder, sorted by name."""
    return sorted(p for p in Path(project_path).glob(f"*{SHEET_EXTENSION}") if p.is_file())


class ProjectScanner:
    """Loads every sheet of a project folder through a `SheetCodec`."""

    def __init__(self, codec: Optional[SheetCodec] = None, tolerance: float = DEFAULT_LAYOUT_TOLERANCE):
        self.codec = codec or SheetCodec()
        self.tolerance = tolerance

    def scan(self, project_path) -> ProjectScan:
        project_path = Path(project_path)
        logger.info(f"Scanning project folder {project_path}")
        result = ProjectScan()
        for path in sheet_files(project_path):
            try:
                result.outcomes.append(self.scan_sheet(path))
            except SheetLoadError as e:
                logger.error(f"No usable copy of sheet '{path.stem}': {e}")
                result.failures.append(e)
        logger.info(f"Scan found {len(result.outcomes)} sheet(s), {len(result.failures)} unreadable.")
        return result

    def scan_sheet(self, path: Path) -> LoadOutcome:
        """
        Classifies one sheet file.

        Raises:
            SheetLoadError: neither the primary file, its autosave, nor its latest
                backup could be loaded. The primary file's error is raised.
        """
        name = path.stem
        try:
            saved = self.codec.load(path)
        except SheetLoadError as primary_error:
            logger.warning(f"Primary file of sheet '{name}' failed to load: {primary_error}")
            fallback = self._load_fallback(path, name)
            if fallback is None:
                raise
            return LoadedFromBackupOnly(fallback)

        auto = self._try_load_autosave(path, name)
        if auto is None or layout_equal(saved.canvas, auto.canvas, self.tolerance):
            return Loaded(saved)
        return NeedsReconciliation(saved=saved, candidate=auto)

    def _try_load_autosave(self, path: Path, name: str) -> Optional[Sheet]:
        auto_path = autosave_path(path)
        if not auto_path.exists():
            return None
        try:
            # The autosave stands in for the primary file, so it takes its identity.
            return replace(self.codec.load(auto_path, name=name), file_path=path)
        except SheetLoadError as e:
            logger.warning(f"Ignoring unreadable autosave of sheet '{name}': {e}")
            return None

    def _load_fallback(self, path: Path, name: str) -> Optional[Sheet]:
        auto = self._try_load_autosave(path, name)
        if auto is not None:
            return auto
        backup_path = latest_backup_of(path)
        if backup_path is None:
            return None
        try:
            sheet = self.codec.load(backup_path, name=name)
        except SheetLoadError as e:
            logger.warning(f"Latest backup of sheet '{name}' is unreadable too: {e}")
            return None
        logger.warning(f"Recovered sheet '{name}' from backup {backup_path.name}")
        return replace(sheet, file_path=path)


def scan_project(project_path, codec: Optional[SheetCodec] = None) -> ProjectScan:
    """Convenience wrapper around `ProjectScanner.scan`."""
    return ProjectScanner(codec).scan(project_path)
