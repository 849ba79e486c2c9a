"""
Exposes the public interface of the storage package.
"""
from .exceptions import SheetLoadError, SheetWriteError
from .codec import SheetCodec
from .scanner import ProjectScan, ProjectScanner, autosave_path, scan_project, sheet_files

__all__ = [
    "SheetCodec",
    "SheetLoadError",
    "SheetWriteError",
    "ProjectScan",
    "ProjectScanner",
    "autosave_path",
    "scan_project",
    "sheet_files",
]
