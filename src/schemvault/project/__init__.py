"""
Exposes the public interface of the project package.
"""
from .exceptions import InvalidSheetNameError, SheetInUseError, SheetNotFoundError
from .naming import validate_sheet_name
from .viewer import NoTraceViewer, TraceViewer
from .manager import ProjectManager, SaveResult, rename_references

__all__ = [
    # Operations
    "ProjectManager", "SaveResult", "rename_references", "validate_sheet_name",
    # Trace viewer guard
    "TraceViewer", "NoTraceViewer",
    # Errors
    "InvalidSheetNameError", "SheetInUseError", "SheetNotFoundError",
]
