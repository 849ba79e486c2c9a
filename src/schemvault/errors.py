# src/schemvault/errors.py
"""
Exception roots shared by every schemvault package, and the text layout used
when a failure is shown to the person whose files are affected.
"""
from abc import abstractmethod
from typing import Any, Dict, Optional, Protocol, runtime_checkable


class SchemVaultError(Exception):
    """Root of every error schemvault raises on purpose."""


class FrameworkLogicError(SchemVaultError):
    """
    The calling code broke a usage contract, for example resuming a reconciler
    that is not waiting for a decision. The sheet files are not at fault.
    """


@runtime_checkable
class Diagnosable(Protocol):
    """Anything that can describe itself as a user-readable report."""

    def get_diagnostic_report(self) -> str:
        ...


class DiagnosableError(SchemVaultError, Diagnosable):
    """
    Base for errors about a user's sheets, names or settings. The editor shows
    `get_diagnostic_report()` without needing to know which subclass it caught.
    """

    @abstractmethod
    def get_diagnostic_report(self) -> str:
        raise NotImplementedError


# Context keys printed in the report header, in this order.
_CONTEXT_FIELDS = (
    ("sheet", "Sheet"),
    ("file_path", "File"),
    ("user_input", "Entered"),
)
_RULE = "-" * 72


def format_diagnostic_report(
    error_type: str,
    details: str,
    suggestion: str,
    context: Optional[Dict[str, Any]] = None,
) -> str:
    """Lays out an error report; empty context values and an empty suggestion are left out."""
    context = context or {}
    lines = ["", _RULE, f"schemvault | {error_type}"]
    for key, title in _CONTEXT_FIELDS:
        value = context.get(key)
        if value:
            lines.append(f"  {title + ':':<9} {value}")
    lines.append(_RULE)
    lines.extend(details.splitlines())
    if suggestion:
        lines.append("")
        lines.append("What to do:")
        lines.extend(f"  {line}" for line in suggestion.splitlines())
    lines.append(_RULE)
    return "\n".join(lines)
