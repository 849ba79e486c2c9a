# src/schemvault/storage/exceptions.py
"""
Defines the diagnosable exceptions raised when reading or writing sheet files.

`SheetLoadError` covers every way a file can fail to become a `Sheet`: missing,
unreadable, not YAML, or not matching the sheet schema. `SheetWriteError` wraps
any file-system error raised while persisting. Both carry the path involved so
that callers processing many sheets can report each failure individually.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass(frozen=True)
class SheetLoadError(DiagnosableError):
    """A sheet file could not be read or decoded."""
    details: str
    file_path: Path
    schema_errors: Optional[Dict[str, Any]] = None

    def __str__(self):
        return f"Could not load sheet file '{self.file_path}': {self.details}"

    def get_diagnostic_report(self) -> str:
        details = self.details
        if self.schema_errors:
            error_lines = "\n".join(
                f"  - Field '{field}': {messages}" for field, messages in sorted(self.schema_errors.items())
            )
            details = f"{details}\n\n{error_lines}"
        return format_diagnostic_report(
            error_type="Sheet Load Error",
            details=details,
            suggestion=(
                "Check that the file exists and is readable. If it is corrupt, restore the most "
                "recent revision from the sheet's 'backup' folder."
            ),
            context={'file_path': self.file_path}
        )


@dataclass(frozen=True)
class SheetWriteError(DiagnosableError):
    """A sheet file could not be written or removed."""
    details: str
    file_path: Path

    def __str__(self):
        return f"Could not write sheet file '{self.file_path}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Sheet Write Error",
            details=self.details,
            suggestion=(
                "Check free disk space and write permissions for the project folder. "
                "The in-memory sheet is unchanged; save again once the problem is fixed."
            ),
            context={'file_path': self.file_path}
        )
