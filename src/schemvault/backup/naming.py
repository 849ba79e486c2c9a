# src/schemvault/backup/naming.py
"""
Backup file naming.

Backups of `<dir>/<base>.dgm` live in `<dir>/backup/` and are named

    {base}-{sequence:03d}-{MM-DD-YYYY}-{HH}h-{MM}m.dgm

The sequence number is the only ordering key. It is never stored anywhere
else: the next number is always derived from the names currently in the
backup directory, so any number of processes or sessions agree on it without
sharing state.
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from ..constants import BACKUP_DIR_NAME, SHEET_EXTENSION

logger = logging.getLogger(__name__)

# Locale-independent replacement for the editor's short-date suffix.
TIMESTAMP_SUFFIX_FORMAT = "%m-%d-%Y-%Hh-%Mm"
SEQUENCE_WIDTH = 3


@dataclass(frozen=True)
class BackupFileInfo:
    """A backup file found in a backup directory."""
    sequence: int
    file_name: str
    written_at: Optional[datetime] = None


def backup_directory(sheet_path: Path) -> Path:
    """The backup directory belonging to a sheet file."""
    return Path(sheet_path).parent / BACKUP_DIR_NAME


def base_name(sheet_path: Path) -> str:
    """The sheet file name without directory and extension."""
    return Path(sheet_path).stem


def format_backup_filename(base: str, sequence: int, when: datetime, extension: str = SHEET_EXTENSION) -> str:
    if sequence < 0:
        raise ValueError(f"Backup sequence numbers are non-negative, got {sequence}.")
    suffix = when.strftime(TIMESTAMP_SUFFIX_FORMAT)
    return f"{base}-{sequence:0{SEQUENCE_WIDTH}d}-{suffix}{extension}"


def _backup_pattern(base: str, extension: str) -> "re.Pattern":
    # Sequence numbers are padded to three digits but may grow beyond 999.
    return re.compile(
        rf"^{re.escape(base)}-(\d{{{SEQUENCE_WIDTH},}})-(\d{{2}}-\d{{2}}-\d{{4}}-\d{{2}}h-\d{{2}}m){re.escape(extension)}$"
    )


def parse_backup_filename(file_name: str, base: str, extension: str = SHEET_EXTENSION) -> Optional[BackupFileInfo]:
    """The backup info encoded in `file_name`, or None if it is not a backup of `base`."""
    match = _backup_pattern(base, extension).match(file_name)
    if not match:
        return None
    try:
        written_at = datetime.strptime(match.group(2), TIMESTAMP_SUFFIX_FORMAT)
    except ValueError:
        # Matches the shape but not a real date (e.g. month 13).
        written_at = None
    return BackupFileInfo(sequence=int(match.group(1)), file_name=file_name, written_at=written_at)


def latest_backup(file_names: Iterable[str], base: str, extension: str = SHEET_EXTENSION) -> Optional[BackupFileInfo]:
    """
    The highest-numbered backup of `base` in a directory listing, or None.
    Pure function of the listing; unrelated files are ignored.
    """
    candidates = (parse_backup_filename(name, base, extension) for name in file_names)
    found = [info for info in candidates if info is not None]
    if not found:
        return None
    # Two files can share a sequence number when removing a superseded file
    # failed; the more recently written one wins.
    return max(found, key=lambda info: (info.sequence, info.written_at or datetime.min, info.file_name))


def next_sequence(file_names: Iterable[str], base: str, extension: str = SHEET_EXTENSION) -> int:
    latest = latest_backup(file_names, base, extension)
    return 0 if latest is None else latest.sequence + 1


def list_directory(directory: Path) -> list:
    """File names in `directory`; empty when it does not exist."""
    if not directory.is_dir():
        return []
    return sorted(entry.name for entry in directory.iterdir() if entry.is_file())


def backup_extension(sheet_path: Path) -> str:
    """Extension used for the backups of a sheet file; suffix-less files get the sheet extension."""
    return Path(sheet_path).suffix or SHEET_EXTENSION


def find_latest_backup(sheet_path: Path) -> Optional[BackupFileInfo]:
    """The highest-numbered backup of a sheet file on disk, or None."""
    return latest_backup(
        list_directory(backup_directory(sheet_path)), base_name(sheet_path), backup_extension(sheet_path)
    )


def backup_path_for(sheet_path: Path, sequence: int, when: datetime) -> Path:
    """Where backup number `sequence` of a sheet file, written at `when`, is stored."""
    file_name = format_backup_filename(base_name(sheet_path), sequence, when, backup_extension(sheet_path))
    return backup_directory(sheet_path) / file_name


def latest_backup_of(sheet_path: Path) -> Optional[Path]:
    """Path of the most recent backup of a sheet file, or None."""
    latest = find_latest_backup(sheet_path)
    return backup_directory(sheet_path) / latest.file_name if latest else None
