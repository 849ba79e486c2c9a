# src/schemvault/config.py
import logging
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional

import cerberus
import yaml

from .constants import DEFAULT_LAYOUT_TOLERANCE
from .errors import DiagnosableError, format_diagnostic_report

logger = logging.getLogger(__name__)


class ConfigParsingError(DiagnosableError):
    """Raised when a retention configuration is missing, malformed or out of range."""

    def __init__(self, details: str, source: Optional[Path] = None):
        self.details = details
        self.source = source
        super().__init__(f"Invalid retention configuration: {details}")

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Retention Configuration Error",
            details=self.details,
            suggestion=(
                "Thresholds must be non-negative: change counts as integers, ages in hours, "
                "and the layout tolerance as a positive number."
            ),
            context={'file_path': self.source}
        )


@dataclass(frozen=True)
class RetentionConfig:
    """
    Thresholds that drive the backup retention policy.

    The "save" pair applies when the user saves the open sheet; the "switch"
    pair applies when the in-memory sheet is replaced (switching sheets,
    resolving an autosave conflict), where any circuit change is worth keeping.
    """
    save_change_threshold: int = 4
    save_age_threshold: timedelta = timedelta(hours=1)
    switch_change_threshold: int = 0
    switch_age_threshold: timedelta = timedelta(hours=1)
    layout_tolerance: float = DEFAULT_LAYOUT_TOLERANCE


_CONFIG_SCHEMA = {
    "save_change_threshold": {"type": "integer", "min": 0},
    "save_age_hours": {"type": "number", "min": 0},
    "switch_change_threshold": {"type": "integer", "min": 0},
    "switch_age_hours": {"type": "number", "min": 0},
    "layout_tolerance": {"type": "number", "min": 0, "forbidden": [0]},
}


def parse_retention_config(raw_config: Optional[Dict[str, Any]]) -> RetentionConfig:
    """
    Builds a `RetentionConfig` from a raw mapping. Missing keys keep their
    defaults; ages are given in (possibly fractional) hours.
    """
    if raw_config is None:
        return RetentionConfig()
    if not isinstance(raw_config, dict):
        raise ConfigParsingError(
            f"The retention configuration must be a mapping, got {type(raw_config).__name__}."
        )
    if not raw_config:
        return RetentionConfig()
    validator = cerberus.Validator(_CONFIG_SCHEMA)
    validator.allow_unknown = False
    if not validator.validate(raw_config):
        errors = "; ".join(f"'{k}': {v[0]}" for k, v in sorted(validator.errors.items()))
        raise ConfigParsingError(errors)

    defaults = RetentionConfig()
    doc = validator.document
    config = RetentionConfig(
        save_change_threshold=doc.get("save_change_threshold", defaults.save_change_threshold),
        save_age_threshold=(
            timedelta(hours=doc["save_age_hours"]) if "save_age_hours" in doc else defaults.save_age_threshold
        ),
        switch_change_threshold=doc.get("switch_change_threshold", defaults.switch_change_threshold),
        switch_age_threshold=(
            timedelta(hours=doc["switch_age_hours"]) if "switch_age_hours" in doc else defaults.switch_age_threshold
        ),
        layout_tolerance=float(doc.get("layout_tolerance", defaults.layout_tolerance)),
    )
    logger.debug(f"Retention configuration: {config}")
    return config


def load_retention_config(path) -> RetentionConfig:
    """Reads a retention configuration from a YAML file."""
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except OSError as e:
        raise ConfigParsingError(f"Could not read configuration file: {e}", source=path) from e
    except yaml.YAMLError as e:
        raise ConfigParsingError(f"Invalid YAML syntax: {e}", source=path) from e
    if content is not None and not isinstance(content, dict):
        raise ConfigParsingError("The root of the configuration file must be a mapping.", source=path)
    try:
        return parse_retention_config(content)
    except ConfigParsingError as e:
        raise ConfigParsingError(e.details, source=path) from e
