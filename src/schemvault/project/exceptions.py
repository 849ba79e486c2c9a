# src/schemvault/project/exceptions.py
"""
Defines the diagnosable exceptions for project-level sheet operations.

These errors are raised before any file or project state is touched: an
operation that raises one of them has had no effect.
"""
from dataclasses import dataclass

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass()
class SheetInUseError(DiagnosableError):
    """
    A sheet cannot be deleted or renamed while the waveform/trace viewer is
    showing a simulation of it.
    """
    sheet_name: str
    operation: str

    def __str__(self):
        return f"Cannot {self.operation} sheet '{self.sheet_name}' while the trace viewer is using it."

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Sheet In Use",
            details=str(self),
            suggestion=f"Close the trace viewer, then {self.operation} the sheet again.",
            context={'sheet': self.sheet_name}
        )


@dataclass()
class InvalidSheetNameError(DiagnosableError):
    """A proposed sheet name is already taken or not a valid file name."""
    name: str
    reason: str

    def __str__(self):
        return f"Invalid sheet name '{self.name}': {self.reason}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Invalid Sheet Name",
            details=self.reason,
            suggestion="Sheet names are alphanumeric (spaces allowed inside), must not start with a digit, and must be unique in the project.",
            context={'user_input': self.name}
        )


@dataclass()
class SheetNotFoundError(DiagnosableError):
    """An operation named a sheet that is not part of the project."""
    sheet_name: str

    def __str__(self):
        return f"Sheet '{self.sheet_name}' is not part of the project."

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Sheet Not Found",
            details=str(self),
            suggestion="Reopen the project to refresh its list of sheets.",
            context={'sheet': self.sheet_name}
        )
