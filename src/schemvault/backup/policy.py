# src/schemvault/backup/policy.py
"""
Decides when a sheet deserves a new backup revision.

Writing a backup on every save would flood the backup folder with near-copies;
never writing one would lose history. The policy compares the sheet with its
latest backup and:

- skips the write when nothing but layout changed;
- overwrites the latest backup for a small, recent change;
- starts a new revision when the change is large, the latest backup is old,
  the interface (ports) changed, or the latest backup cannot be read.

A new revision is always fully written before the file it supersedes is
removed, so there is never a moment with no valid backup on disk.
"""
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Optional

from ..canvas.differ import layout_equal, quantify_changes
from ..constants import DEFAULT_LAYOUT_TOLERANCE
from ..data_structures import Sheet
from ..storage.codec import SheetCodec
from ..storage.exceptions import SheetLoadError
from .naming import backup_directory, backup_path_for, find_latest_backup

logger = logging.getLogger(__name__)


class BackupAction(Enum):
    """What to do with a sheet's backup directory."""
    WRITE_NEW = auto()         # Write a new revision with the next sequence number.
    OVERWRITE_LATEST = auto()  # Replace the latest revision, keeping its sequence number.
    SKIP = auto()              # No meaningful change since the latest revision.


@dataclass(frozen=True)
class BackupDecision:
    """
    The outcome of `RetentionPolicy.decide`.

    Attributes:
        action: The action to take.
        sequence: Sequence number the next backup file is written under.
                  None for SKIP.
        previous_path: The latest existing backup file, if any.
        reason: Short human-readable explanation, used for logging.
    """
    action: BackupAction
    sequence: Optional[int]
    previous_path: Optional[Path]
    reason: str


class RetentionPolicy:
    """
    Backup retention for individual sheets.

    Args:
        codec: Used to read the latest backup and write new ones.
        tolerance: Positional tolerance passed to `layout_equal`.
        clock: Returns the current time; the time of a backup write is both
               stored in the file and encoded in its name.
    """

    def __init__(
        self,
        codec: Optional[SheetCodec] = None,
        tolerance: float = DEFAULT_LAYOUT_TOLERANCE,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.codec = codec or SheetCodec()
        self.tolerance = tolerance
        self.clock = clock

    def decide(self, current: Sheet, change_threshold: int, age_threshold: timedelta) -> BackupDecision:
        """
        Chooses the backup action for `current` without touching the disk
        other than reading the backup directory and the latest backup.
        """
        latest = find_latest_backup(current.file_path)
        if latest is None:
            return BackupDecision(BackupAction.WRITE_NEW, 0, None, "no existing backup")

        previous_path = backup_directory(current.file_path) / latest.file_name
        next_seq = latest.sequence + 1
        try:
            previous = self.codec.load(previous_path)
        except SheetLoadError as e:
            # The previous revision cannot be verified; keep it and start a new one.
            logger.error(f"Could not read latest backup of sheet '{current.name}' at {previous_path}: {e}")
            return BackupDecision(BackupAction.WRITE_NEW, next_seq, previous_path, "latest backup unreadable")

        if previous.signature != current.signature:
            # Interface history must survive: dependents are matched against it.
            return BackupDecision(BackupAction.WRITE_NEW, next_seq, previous_path, "interface changed")

        if layout_equal(current.canvas, previous.canvas, self.tolerance):
            return BackupDecision(BackupAction.SKIP, None, previous_path, "no circuit change")

        changes = quantify_changes(previous.canvas, current.canvas)
        elapsed = current.timestamp - previous.timestamp
        if elapsed > age_threshold or changes.total > change_threshold:
            return BackupDecision(
                BackupAction.WRITE_NEW, next_seq, previous_path,
                f"{changes.total} change(s), {elapsed} since latest backup",
            )
        return BackupDecision(
            BackupAction.OVERWRITE_LATEST, latest.sequence, previous_path,
            f"small recent change ({changes.total} change(s))",
        )

    def execute(self, current: Sheet, decision: BackupDecision) -> Optional[Path]:
        """
        Carries out `decision` for `current` and returns the path written, or
        None for SKIP.

        Raises:
            SheetWriteError: the new backup could not be written. Nothing has
                been removed in that case.
        """
        if decision.action is BackupAction.SKIP:
            logger.debug(f"Backup of sheet '{current.name}' skipped: {decision.reason}.")
            return None

        now = self.clock()
        path = backup_path_for(current.file_path, decision.sequence, now)
        self.codec.write(path, replace(current, timestamp=now, file_path=path))
        logger.info(f"Backup of sheet '{current.name}' written to {path.name} ({decision.reason}).")

        if (
            decision.action is BackupAction.OVERWRITE_LATEST
            and decision.previous_path is not None
            and decision.previous_path != path
        ):
            self._remove_superseded(decision.previous_path)
        return path

    def backup(self, current: Sheet, change_threshold: int, age_threshold: timedelta) -> Optional[Path]:
        """Decides and executes in one call."""
        decision = self.decide(current, change_threshold, age_threshold)
        logger.debug(f"Backup decision for sheet '{current.name}': {decision.action.name} ({decision.reason}).")
        return self.execute(current, decision)

    @staticmethod
    def _remove_superseded(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            # The replacement is already on disk under the same sequence number,
            # and naming.latest_backup prefers it, so a stale file is harmless.
            logger.error(f"Could not remove superseded backup {path}: {e}")
