# src/schemvault/data_structures.py
# Required for forward references in type hints.
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

# A port signature entry as stored on a sheet or embedded in a custom component.
LabelWidth = Tuple[str, int]
Point = Tuple[float, float]


class IODirection(Enum):
    """Direction of a sheet port, as seen by a sheet that embeds it."""
    INPUT = "Input"
    OUTPUT = "Output"

    def __str__(self):
        return self.value


# --- Component kinds (closed sum type) ---

@dataclass(frozen=True)
class InputKind:
    """An input port of the sheet, `width` bits wide."""
    width: int


@dataclass(frozen=True)
class OutputKind:
    """An output port of the sheet, `width` bits wide."""
    width: int


@dataclass(frozen=True)
class CustomKind:
    """
    A placed instance of another sheet. The port lists are a snapshot of the
    referenced sheet's interface taken when the instance was placed, and can
    go stale when that sheet's ports change.
    """
    name: str
    input_labels: Tuple[LabelWidth, ...] = ()
    output_labels: Tuple[LabelWidth, ...] = ()

    @property
    def signature(self) -> Tuple[Tuple[LabelWidth, ...], Tuple[LabelWidth, ...]]:
        return self.input_labels, self.output_labels


@dataclass(frozen=True)
class OtherKind:
    """Any built-in component (gates, muxes, registers...) identified by its type name."""
    name: str = ""


ComponentKind = Union[InputKind, OutputKind, CustomKind, OtherKind]


@dataclass(frozen=True)
class ComponentRecord:
    """A component placed on a canvas. `position` is layout-only."""
    id: str
    kind: ComponentKind
    label: str
    position: Point = (0.0, 0.0)


@dataclass(frozen=True)
class ConnectionRecord:
    """A wire between two component ports. `vertices` is layout-only routing."""
    id: str
    source: str
    target: str
    vertices: Tuple[Point, ...] = ()


@dataclass(frozen=True)
class CanvasState:
    """
    The structural content of a sheet. Order is preserved for stable file
    output, but all comparisons treat both collections as sets.
    """
    components: Tuple[ComponentRecord, ...] = ()
    connections: Tuple[ConnectionRecord, ...] = ()

    def is_empty(self) -> bool:
        return not self.components and not self.connections


@dataclass(frozen=True)
class PortEntry:
    """
    One entry of a sheet's interface signature. `id` is the id of the Input or
    Output component that defines the port, when known; it lets a renamed port
    be recognised as the same port.
    """
    direction: IODirection
    label: str
    width: int
    id: Optional[str] = None

    @property
    def key(self) -> Tuple[IODirection, str]:
        return self.direction, self.label


# Saved waveform-viewer settings for a sheet. Opaque to the persistence layer.
WaveInfo = Dict[str, Any]


@dataclass(frozen=True)
class Sheet:
    """
    One named design unit: its canvas content, interface and file location.
    Instances are immutable; every save or reconcile step produces a new one.

    The port lists are always derived from `canvas` and cannot be passed in,
    so two sheets with the same canvas always have the same signature.
    """
    name: str
    file_path: Path
    timestamp: datetime
    canvas: CanvasState = field(default_factory=CanvasState)
    wave_info: Optional[WaveInfo] = field(default=None, compare=False)
    input_labels: Tuple[LabelWidth, ...] = field(default=(), init=False)
    output_labels: Tuple[LabelWidth, ...] = field(default=(), init=False)

    def __post_init__(self):
        # Imported here to avoid a cycle: interface.signature depends on this module.
        from .interface.signature import parse_canvas_signature
        inputs, outputs = parse_canvas_signature(self.canvas)
        object.__setattr__(self, "input_labels", inputs)
        object.__setattr__(self, "output_labels", outputs)

    @property
    def signature(self) -> Tuple[Tuple[LabelWidth, ...], Tuple[LabelWidth, ...]]:
        return self.input_labels, self.output_labels

    def with_canvas(self, canvas: CanvasState) -> Sheet:
        """Returns a copy holding `canvas`; the interface follows it."""
        return replace(self, canvas=canvas)


@dataclass(frozen=True)
class Project:
    """
    An open project: a folder of sheets, one of which is shown on the canvas.

    Invariants: `sheets` is never empty, and `open_sheet_name` names one of them.
    """
    project_path: Path
    open_sheet_name: str
    sheets: Dict[str, Sheet]

    def __post_init__(self):
        if not self.sheets:
            raise ValueError("A project must contain at least one sheet.")
        if self.open_sheet_name not in self.sheets:
            raise ValueError(
                f"Open sheet '{self.open_sheet_name}' is not one of the project sheets: {sorted(self.sheets)}"
            )

    @property
    def open_sheet(self) -> Sheet:
        return self.sheets[self.open_sheet_name]

    def get_sheet(self, name: str) -> Optional[Sheet]:
        return self.sheets.get(name)

    def sheet_names(self) -> List[str]:
        return list(self.sheets)

    def with_sheet(self, sheet: Sheet) -> Project:
        """Returns a copy with `sheet` added or replacing the sheet of the same name."""
        sheets = dict(self.sheets)
        sheets[sheet.name] = sheet
        return replace(self, sheets=sheets)


# --- Load outcomes (closed sum type), one per sheet found in a project folder ---

@dataclass(frozen=True)
class Loaded:
    """The primary file loaded and no conflicting autosave exists."""
    sheet: Sheet


@dataclass(frozen=True)
class LoadedFromBackupOnly:
    """The primary file failed to load; `sheet` comes from the autosave or the latest backup."""
    sheet: Sheet


@dataclass(frozen=True)
class NeedsReconciliation:
    """Both the primary file and its autosave loaded, and they differ."""
    saved: Sheet
    candidate: Sheet


LoadOutcome = Union[Loaded, LoadedFromBackupOnly, NeedsReconciliation]
