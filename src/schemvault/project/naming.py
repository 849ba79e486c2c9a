# src/schemvault/project/naming.py
from typing import Optional

from ..data_structures import Project


def validate_sheet_name(name: str, project: Optional[Project] = None) -> Optional[str]:
    """
    Returns a message explaining why `name` cannot be used for a new or
    renamed sheet, or None if it can. Names are compared case-insensitively
    because sheet files may live on a case-insensitive file system.
    """
    if not name:
        return "The name cannot be empty."
    if project is not None and name.lower() in {existing.lower() for existing in project.sheets}:
        return "This sheet already exists."
    if name.startswith(" ") or name.endswith(" "):
        return "The name cannot start or end with a space."
    if "." in name:
        return "The name cannot contain a file suffix."
    if not all(c.isalnum() or c == " " for c in name):
        return "The name must be alphanumeric."
    if name[0].isdigit():
        return "The name must not start with a digit."
    return None
