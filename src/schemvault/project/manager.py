# src/schemvault/project/manager.py
"""
Defines the ProjectManager, the single entry point the editor uses to create,
open, save, rename and delete sheets.

Architectural Role:
The manager owns no state of its own. Every operation takes the current
`Project` value and returns the updated one, performing the matching file
operations through the `SheetCodec` and the `RetentionPolicy`. Which copy of
a conflicting sheet to keep is never decided here: opening a project returns a
`LoadReconciler` that the caller drives.

Error handling follows one rule: refuse before touching anything (name
validation, sheet-in-use checks), and once files are being written, surface
`SheetWriteError` to the caller rather than retrying.
"""
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from ..backup.policy import RetentionPolicy
from ..config import RetentionConfig
from ..constants import DEFAULT_SHEET_NAME, PROJECT_EXTENSION, SHEET_EXTENSION
from ..data_structures import CanvasState, ComponentRecord, CustomKind, Project, Sheet, WaveInfo
from ..interface.dependents import (
    DependentPropagator,
    DependentsInfo,
    NoDependents,
    NoOpPropagator,
    SingleSignature,
    affected_sheets,
    find_dependents,
)
from ..interface.signature import SignatureComparison, compare_signatures, port_entries_from_canvas
from ..reconcile.reconciler import DecisionRequest, LoadReconciler, Ready
from ..storage.codec import SheetCodec
from ..storage.exceptions import SheetLoadError, SheetWriteError
from ..storage.scanner import ProjectScanner, autosave_path
from .exceptions import InvalidSheetNameError, SheetInUseError, SheetNotFoundError
from .naming import validate_sheet_name
from .viewer import NoTraceViewer, TraceViewer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveResult:
    """
    Outcome of saving the open sheet.

    Attributes:
        project: The project holding the saved sheet.
        sheet: The sheet as written to its primary file.
        backup_path: The backup file written, or None if the policy skipped it.
        interface_change: How the sheet's ports changed, or None if they did not.
        dependents: The instances of the sheet in other sheets, reported only
                    when its interface changed.
        backup_error: Set when the primary file was saved but the backup failed.
    """
    project: Project
    sheet: Sheet
    backup_path: Optional[Path] = None
    interface_change: Optional[SignatureComparison] = None
    dependents: Optional[DependentsInfo] = None
    backup_error: Optional[SheetWriteError] = None


class ProjectManager:
    """
    Project and sheet lifecycle operations.

    Args:
        codec: Reads and writes sheet files.
        config: Retention thresholds.
        viewer: Consulted before deleting or renaming a sheet.
        propagator: Extension point used by `check_dependents`.
        clock: Source of save timestamps.
    """

    def __init__(
        self,
        codec: Optional[SheetCodec] = None,
        config: Optional[RetentionConfig] = None,
        viewer: Optional[TraceViewer] = None,
        propagator: Optional[DependentPropagator] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.codec = codec or SheetCodec()
        self.config = config or RetentionConfig()
        self.clock = clock
        self.policy = RetentionPolicy(self.codec, self.config.layout_tolerance, clock)
        self.scanner = ProjectScanner(self.codec, self.config.layout_tolerance)
        self.viewer = viewer or NoTraceViewer()
        self.propagator = propagator or NoOpPropagator()

    # --- Creating and opening ---

    def create_project(self, project_path) -> Project:
        """
        Creates a new project folder holding an empty project marker file and
        an empty `main` sheet.

        Raises:
            SheetWriteError: the folder exists already or cannot be created.
        """
        project_path = Path(project_path)
        marker = project_path / f"{project_path.name}{PROJECT_EXTENSION}"
        try:
            project_path.mkdir(parents=True, exist_ok=False)
            marker.write_text("", encoding="utf-8")
        except OSError as e:
            raise SheetWriteError(details=f"Could not create a folder for the project: {e}", file_path=project_path) from e
        sheet = self._create_empty_sheet(project_path, DEFAULT_SHEET_NAME)
        logger.info(f"Created project {project_path}")
        return Project(project_path, sheet.name, {sheet.name: sheet})

    def begin_open(self, project_path) -> LoadReconciler:
        """Scans `project_path` and returns a reconciler for its sheets."""
        scan = self.scanner.scan(project_path)
        warnings = [f"Sheet file '{e.file_path.name}' could not be loaded and was skipped." for e in scan.failures]
        return LoadReconciler(
            scan.outcomes, codec=self.codec, policy=self.policy, config=self.config,
            clock=self.clock, warnings=warnings,
        )

    def finish_open(self, project_path, ready: Ready) -> Project:
        """Builds the opened project from a finished reconciliation."""
        project_path = Path(project_path)
        sheets: Dict[str, Sheet] = {s.name: s for s in ready.sheets}
        open_name = ready.open_sheet_name
        if not sheets:
            logger.warning(f"No sheet of {project_path} could be loaded; creating an empty '{DEFAULT_SHEET_NAME}'.")
            sheet = self._create_empty_sheet(project_path, DEFAULT_SHEET_NAME)
            sheets, open_name = {sheet.name: sheet}, sheet.name
        logger.info(f"Opened project {project_path} with {len(sheets)} sheet(s); showing '{open_name}'.")
        return Project(project_path, open_name, sheets)

    def open_project(self, project_path, decide: Callable[[DecisionRequest], bool]) -> Project:
        """Opens a project, asking `decide` about every conflicting sheet."""
        ready = self.begin_open(project_path).run(decide)
        return self.finish_open(project_path, ready)

    # --- Editing ---

    def add_sheet(self, project: Project, name: str) -> Project:
        """
        Creates an empty sheet and makes it the open one.

        Raises:
            InvalidSheetNameError: `name` is taken or not a valid sheet name.
        """
        if problem := validate_sheet_name(name, project):
            raise InvalidSheetNameError(name, problem)
        sheet = self._create_empty_sheet(project.project_path, name.lower())
        return replace(project.with_sheet(sheet), open_sheet_name=sheet.name)

    def update_from_canvas(self, project: Project, canvas: CanvasState) -> Project:
        """
        Replaces the open sheet's content with `canvas` in memory, first
        backing up the version being replaced. An empty canvas is taken to mean
        the canvas has not been populated yet and leaves the project unchanged.
        """
        if canvas.is_empty():
            return project
        previous = project.open_sheet
        try:
            self.policy.backup(previous, self.config.switch_change_threshold, self.config.switch_age_threshold)
        except SheetWriteError as e:
            # A failed backup never blocks the in-memory update.
            logger.error(f"Could not back up sheet '{previous.name}' before updating it: {e}")
        return project.with_sheet(previous.with_canvas(canvas))

    def save_open_sheet(
        self, project: Project, canvas: CanvasState, wave_info: Optional[WaveInfo] = None
    ) -> SaveResult:
        """
        Saves `canvas` as the open sheet: writes the primary file, removes the
        stale autosave, applies the retention policy, and reports dependents
        if the ports changed since the sheet was last written to disk. The
        in-memory open sheet may already hold edits from `update_from_canvas`,
        so the comparison is made against the primary file.

        Raises:
            SheetWriteError: the primary file could not be written. The project
                is unchanged in that case.
        """
        previous = project.open_sheet
        persisted = self._persisted_version(previous)
        sheet = replace(
            previous.with_canvas(canvas),
            timestamp=self.clock(),
            wave_info=wave_info if wave_info is not None else previous.wave_info,
        )
        self.codec.write(sheet.file_path, sheet)
        self._remove_autosave(sheet.file_path)
        logger.info(f"Saved sheet '{sheet.name}' to {sheet.file_path}")
        updated = project.with_sheet(sheet)

        backup_path, backup_error = None, None
        try:
            backup_path = self.policy.backup(
                sheet, self.config.save_change_threshold, self.config.save_age_threshold
            )
        except SheetWriteError as e:
            logger.error(f"Sheet '{sheet.name}' saved, but its backup failed: {e}")
            backup_error = e

        interface_change, dependents = None, None
        if persisted.signature != sheet.signature:
            interface_change = compare_signatures(
                port_entries_from_canvas(persisted.canvas), port_entries_from_canvas(sheet.canvas)
            )
            dependents = find_dependents(updated, sheet.name)
            if not isinstance(dependents, NoDependents):
                logger.warning(f"Ports of sheet '{sheet.name}' changed; instances in other sheets may need updating.")

        return SaveResult(
            project=updated, sheet=sheet, backup_path=backup_path,
            interface_change=interface_change, dependents=dependents, backup_error=backup_error,
        )

    def open_sheet(
        self, project: Project, name: str, canvas: CanvasState
    ) -> Tuple[Project, Optional[SaveResult]]:
        """
        Saves the open sheet from `canvas`, then switches to sheet `name`.

        Returns the switched project and the result of the save, so callers can
        act on an interface change of the sheet being left. The result is None
        when `canvas` is empty and nothing was saved.
        """
        if name not in project.sheets:
            raise SheetNotFoundError(name)
        project = self.update_from_canvas(project, canvas)
        saved = None
        if not canvas.is_empty():
            saved = self.save_open_sheet(project, canvas)
            project = saved.project
        return replace(project, open_sheet_name=name), saved

    def rename_sheet(self, project: Project, old_name: str, new_name: str) -> Project:
        """
        Renames a sheet, its files, and every custom-component reference to it
        in other sheets, then re-saves every sheet.

        Raises:
            SheetNotFoundError, SheetInUseError, InvalidSheetNameError: nothing
                was changed.
            SheetWriteError: renaming or re-saving a file failed.
        """
        if old_name not in project.sheets:
            raise SheetNotFoundError(old_name)
        if self.viewer.is_active_on(old_name):
            raise SheetInUseError(old_name, "rename")
        if problem := validate_sheet_name(new_name, project):
            raise InvalidSheetNameError(new_name, problem)
        new_name = new_name.lower()

        old_sheet = project.sheets[old_name]
        new_path = old_sheet.file_path.with_name(f"{new_name}{SHEET_EXTENSION}")
        try:
            if old_sheet.file_path.exists():
                old_sheet.file_path.rename(new_path)
        except OSError as e:
            raise SheetWriteError(details=f"Could not rename sheet file: {e}", file_path=old_sheet.file_path) from e
        self._remove_autosave(old_sheet.file_path)

        sheets: Dict[str, Sheet] = {}
        for name, sheet in project.sheets.items():
            if name == old_name:
                renamed = replace(sheet, name=new_name, file_path=new_path)
                sheets[new_name] = replace(renamed, canvas=rename_references(renamed.canvas, old_name, new_name))
            else:
                sheets[name] = replace(sheet, canvas=rename_references(sheet.canvas, old_name, new_name))

        open_name = new_name if project.open_sheet_name == old_name else project.open_sheet_name
        renamed_project = Project(project.project_path, open_name, sheets)
        self.save_all(renamed_project)
        logger.info(f"Renamed sheet '{old_name}' to '{new_name}'.")
        return renamed_project

    def delete_sheet(self, project: Project, name: str) -> Project:
        """
        Deletes a sheet and its autosave. A project is never left without a
        sheet: deleting the last one creates an empty `main`.

        Raises:
            SheetNotFoundError, SheetInUseError: nothing was changed.
            SheetWriteError: a file could not be removed.
        """
        if name not in project.sheets:
            raise SheetNotFoundError(name)
        if self.viewer.is_active_on(name):
            raise SheetInUseError(name, "delete")

        if embedders := affected_sheets(project, name):
            logger.warning(f"Deleting sheet '{name}' which is still used by: {sorted(embedders)}")

        sheet = project.sheets[name]
        try:
            sheet.file_path.unlink(missing_ok=True)
        except OSError as e:
            raise SheetWriteError(details=f"Could not delete sheet file: {e}", file_path=sheet.file_path) from e
        self._remove_autosave(sheet.file_path)
        logger.info(f"Deleted sheet '{name}'.")

        remaining = {n: s for n, s in project.sheets.items() if n != name}
        if not remaining:
            main = self._create_empty_sheet(project.project_path, DEFAULT_SHEET_NAME)
            remaining = {main.name: main}
        open_name = project.open_sheet_name if project.open_sheet_name in remaining else next(iter(remaining))
        return Project(project.project_path, open_name, remaining)

    def save_all(self, project: Project) -> None:
        """Writes every sheet to its primary file and removes their autosaves."""
        for sheet in project.sheets.values():
            self.codec.write(sheet.file_path, sheet)
            self._remove_autosave(sheet.file_path)

    # --- Dependents ---

    def check_dependents(
        self, project: Project, propagator: Optional[DependentPropagator] = None
    ) -> Tuple[DependentsInfo, Project]:
        """
        Reports the instances of the open sheet in other sheets. When they all
        share one interface, they are handed to the propagator and any sheets it
        returns are saved and put into the project.
        """
        info = find_dependents(project, project.open_sheet_name)
        if not isinstance(info, SingleSignature):
            return info, project
        updated = (propagator or self.propagator).propagate(project, info.signature, info.instances)
        for sheet in updated.values():
            self.codec.write(sheet.file_path, sheet)
            project = project.with_sheet(sheet)
        return info, project

    # --- Helpers ---

    def _create_empty_sheet(self, project_path: Path, name: str) -> Sheet:
        sheet = Sheet(
            name=name,
            file_path=Path(project_path) / f"{name}{SHEET_EXTENSION}",
            timestamp=self.clock(),
        )
        self.codec.write(sheet.file_path, sheet)
        return sheet

    def _persisted_version(self, sheet: Sheet) -> Sheet:
        """The sheet as last written to its primary file, or `sheet` itself if that file cannot be read."""
        try:
            return self.codec.load(sheet.file_path, name=sheet.name)
        except SheetLoadError as e:
            logger.warning(f"Could not read saved copy of sheet '{sheet.name}'; comparing ports with the open sheet: {e}")
            return sheet

    @staticmethod
    def _remove_autosave(sheet_path: Path) -> None:
        auto = autosave_path(sheet_path)
        try:
            auto.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove stale autosave {auto}: {e}")


def rename_references(canvas: CanvasState, old_name: str, new_name: str) -> CanvasState:
    """`canvas` with every custom component of `old_name` pointing at `new_name`."""
    def rename(comp: ComponentRecord) -> ComponentRecord:
        if isinstance(comp.kind, CustomKind) and comp.kind.name == old_name:
            return replace(comp, kind=replace(comp.kind, name=new_name))
        return comp

    if not any(isinstance(c.kind, CustomKind) and c.kind.name == old_name for c in canvas.components):
        return canvas
    return replace(canvas, components=tuple(rename(c) for c in canvas.components))
