"""
Exposes the public interface of the backup package.
"""
from .naming import (
    BackupFileInfo,
    backup_directory,
    format_backup_filename,
    latest_backup,
    backup_path_for,
    find_latest_backup,
    latest_backup_of,
    next_sequence,
    parse_backup_filename,
)
from .policy import BackupAction, BackupDecision, RetentionPolicy

__all__ = [
    # Naming
    "BackupFileInfo",
    "backup_directory",
    "format_backup_filename",
    "latest_backup",
    "backup_path_for",
    "find_latest_backup",
    "latest_backup_of",
    "next_sequence",
    "parse_backup_filename",
    # Policy
    "BackupAction",
    "BackupDecision",
    "RetentionPolicy",
]
