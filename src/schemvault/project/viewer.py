# src/schemvault/project/viewer.py
from typing import Protocol, runtime_checkable


@runtime_checkable
class TraceViewer(Protocol):
    """
    The waveform/trace viewer, seen from the persistence layer. While it is
    active on a sheet, that sheet must not be deleted or renamed.
    """
    def is_active_on(self, sheet_name: str) -> bool:
        ...


class NoTraceViewer:
    """Used when no viewer is attached; never blocks an operation."""

    def is_active_on(self, sheet_name: str) -> bool:
        return False
