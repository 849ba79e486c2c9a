# src/schemvault/__init__.py
import logging
from .log_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)
logger.info("SchemVault package initialized.")

from .data_structures import (
    CanvasState, ComponentRecord, ConnectionRecord,
    InputKind, OutputKind, CustomKind, OtherKind,
    IODirection, PortEntry, Sheet, Project,
    Loaded, LoadedFromBackupOnly, NeedsReconciliation,
)
from .config import RetentionConfig, ConfigParsingError, load_retention_config, parse_retention_config
from .canvas import ChangeCount, layout_equal, quantify_changes
from .interface import compare_signatures, find_dependents, affected_sheets
from .storage import SheetCodec, ProjectScanner, scan_project
from .backup import RetentionPolicy, BackupAction, BackupDecision
from .reconcile import LoadReconciler, DecisionRequest, Ready
from .project import ProjectManager, SaveResult, validate_sheet_name
from .errors import SchemVaultError, DiagnosableError, FrameworkLogicError
from .storage import SheetLoadError, SheetWriteError
from .project import InvalidSheetNameError, SheetInUseError, SheetNotFoundError

__all__ = [
    # Data Structures
    "CanvasState", "ComponentRecord", "ConnectionRecord",
    "InputKind", "OutputKind", "CustomKind", "OtherKind",
    "IODirection", "PortEntry", "Sheet", "Project",
    "Loaded", "LoadedFromBackupOnly", "NeedsReconciliation",
    # Configuration
    "RetentionConfig", "ConfigParsingError", "load_retention_config", "parse_retention_config",
    # Canvas diffing
    "ChangeCount", "layout_equal", "quantify_changes",
    # Interface analysis
    "compare_signatures", "find_dependents", "affected_sheets",
    # Storage
    "SheetCodec", "ProjectScanner", "scan_project",
    # Backups
    "RetentionPolicy", "BackupAction", "BackupDecision",
    # Load reconciliation
    "LoadReconciler", "DecisionRequest", "Ready",
    # Project operations
    "ProjectManager", "SaveResult", "validate_sheet_name",
    # Top-Level Errors (Actionable Diagnostics)
    "SchemVaultError", "DiagnosableError", "FrameworkLogicError",
    "SheetLoadError", "SheetWriteError",
    "InvalidSheetNameError", "SheetInUseError", "SheetNotFoundError",
]
