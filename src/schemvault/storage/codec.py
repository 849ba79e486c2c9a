# src/schemvault/storage/codec.py
"""
Reads and writes sheet files.

A sheet file is a YAML mapping holding the canvas (components and
connections), the time it was written and, optionally, the waveform viewer
settings. Loaded documents are validated against a Cerberus schema before any
object is built from them, so a `Sheet` coming out of this module is always
well-formed.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import cerberus
import yaml

from ..data_structures import (
    CanvasState,
    ComponentKind,
    ComponentRecord,
    ConnectionRecord,
    CustomKind,
    InputKind,
    OtherKind,
    OutputKind,
    Sheet,
)
from .exceptions import SheetLoadError, SheetWriteError

logger = logging.getLogger(__name__)


class SheetCodec:
    """Converts between `Sheet` objects and their YAML files."""

    _point_rule = {"type": "list", "minlength": 2, "maxlength": 2, "schema": {"type": "number"}}
    _label_width_rule = {
        "type": "list", "minlength": 2, "maxlength": 2,
        "items": [{"type": "string"}, {"type": "integer", "min": 1}],
    }

    _kind_schema = {
        "oneof_schema": [
            {"type": {"type": "string", "required": True, "allowed": ["Input", "Output"]},
             "width": {"type": "integer", "required": True, "min": 1}},
            {"type": {"type": "string", "required": True, "allowed": ["Custom"]},
             "name": {"type": "string", "required": True, "empty": False},
             "input_labels": {"type": "list", "default": [], "schema": _label_width_rule},
             "output_labels": {"type": "list", "default": [], "schema": _label_width_rule}},
            {"type": {"type": "string", "required": True, "allowed": ["Other"]},
             "name": {"type": "string", "default": ""}},
        ]
    }

    _schema = {
        "timestamp": {"type": ["string", "datetime"], "required": False},
        "components": {
            "type": "list", "default": [],
            "schema": {"type": "dict", "schema": {
                "id": {"type": "string", "required": True, "empty": False},
                "kind": {"type": "dict", "required": True, **_kind_schema},
                "label": {"type": "string", "default": ""},
                "position": {**_point_rule, "default": [0, 0]},
            }},
        },
        "connections": {
            "type": "list", "default": [],
            "schema": {"type": "dict", "schema": {
                "id": {"type": "string", "required": True, "empty": False},
                "source": {"type": "string", "required": True},
                "target": {"type": "string", "required": True},
                "vertices": {"type": "list", "default": [], "schema": _point_rule},
            }},
        },
        "wave_info": {"type": "dict", "required": False, "nullable": True},
    }

    def __init__(self):
        self._validator = cerberus.Validator(self._schema)
        self._validator.allow_unknown = False

    # --- Loading ---

    def load(self, path, name: Optional[str] = None) -> Sheet:
        """
        Loads the sheet stored at `path`. The sheet is named after the file stem
        unless `name` is given.

        Raises:
            SheetLoadError: the file is missing, unreadable, or not a valid sheet.
        """
        path = Path(path)
        content = self._load_yaml(path)
        if not self._validator.validate(content):
            raise SheetLoadError(
                details="The file does not match the sheet format.",
                file_path=path,
                schema_errors=self._validator.errors,
            )
        document = self._validator.document

        canvas = CanvasState(
            components=tuple(self._component_from_dict(c) for c in document.get("components", [])),
            connections=tuple(self._connection_from_dict(c) for c in document.get("connections", [])),
        )
        sheet = Sheet(
            name=name or path.stem,
            file_path=path,
            timestamp=self._read_timestamp(document.get("timestamp"), path),
            canvas=canvas,
            wave_info=document.get("wave_info"),
        )
        logger.debug(f"Loaded sheet '{sheet.name}' from {path} ({len(canvas.components)} components).")
        return sheet

    def _load_yaml(self, path: Path) -> Dict[str, Any]:
        if not path.is_file():
            raise SheetLoadError(details=f"Sheet file not found at path: {path}", file_path=path)
        try:
            with path.open("r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except OSError as e:
            raise SheetLoadError(details=f"Could not read file: {e}", file_path=path) from e
        except yaml.YAMLError as e:
            raise SheetLoadError(details=f"Invalid YAML syntax: {e}", file_path=path) from e
        if content is None:
            # An empty file is an empty sheet, as created for a new project.
            return {}
        if not isinstance(content, dict):
            raise SheetLoadError(details="The root of a sheet file must be a mapping.", file_path=path)
        return content

    @staticmethod
    def _read_timestamp(raw, path: Path) -> datetime:
        # Hand-edited files may carry an unquoted timestamp, which YAML already parses.
        if isinstance(raw, datetime):
            return raw
        if raw:
            try:
                return datetime.fromisoformat(raw)
            except ValueError as e:
                raise SheetLoadError(details=f"Invalid timestamp '{raw}': {e}", file_path=path) from e
        return datetime.fromtimestamp(path.stat().st_mtime)

    @staticmethod
    def _kind_from_dict(raw: Dict[str, Any]) -> ComponentKind:
        kind_type = raw["type"]
        if kind_type == "Input":
            return InputKind(raw["width"])
        if kind_type == "Output":
            return OutputKind(raw["width"])
        if kind_type == "Custom":
            return CustomKind(
                name=raw["name"],
                input_labels=tuple((label, width) for label, width in raw.get("input_labels", [])),
                output_labels=tuple((label, width) for label, width in raw.get("output_labels", [])),
            )
        return OtherKind(raw.get("name", ""))

    def _component_from_dict(self, raw: Dict[str, Any]) -> ComponentRecord:
        x, y = raw.get("position", (0, 0))
        return ComponentRecord(
            id=raw["id"],
            kind=self._kind_from_dict(raw["kind"]),
            label=raw.get("label", ""),
            position=(float(x), float(y)),
        )

    @staticmethod
    def _connection_from_dict(raw: Dict[str, Any]) -> ConnectionRecord:
        return ConnectionRecord(
            id=raw["id"],
            source=raw["source"],
            target=raw["target"],
            vertices=tuple((float(x), float(y)) for x, y in raw.get("vertices", [])),
        )

    # --- Writing ---

    def write(self, path, sheet: Sheet) -> None:
        """
        Writes `sheet` to `path`, creating the parent directory if needed.
        The sheet's own `file_path` is not consulted.

        Raises:
            SheetWriteError: on any file-system error.
        """
        path = Path(path)
        document = self.to_document(sheet)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as f:
                yaml.safe_dump(document, f, sort_keys=False)
        except OSError as e:
            raise SheetWriteError(details=str(e), file_path=path) from e
        logger.debug(f"Wrote sheet '{sheet.name}' to {path}.")

    def to_document(self, sheet: Sheet) -> Dict[str, Any]:
        """The plain-data YAML document for `sheet`."""
        document: Dict[str, Any] = {
            "timestamp": sheet.timestamp.isoformat(),
            "components": [self._component_to_dict(c) for c in sheet.canvas.components],
            "connections": [self._connection_to_dict(c) for c in sheet.canvas.connections],
        }
        if sheet.wave_info is not None:
            document["wave_info"] = sheet.wave_info
        return document

    @staticmethod
    def _kind_to_dict(kind: ComponentKind) -> Dict[str, Any]:
        if isinstance(kind, InputKind):
            return {"type": "Input", "width": kind.width}
        if isinstance(kind, OutputKind):
            return {"type": "Output", "width": kind.width}
        if isinstance(kind, CustomKind):
            return {
                "type": "Custom",
                "name": kind.name,
                "input_labels": [[label, width] for label, width in kind.input_labels],
                "output_labels": [[label, width] for label, width in kind.output_labels],
            }
        return {"type": "Other", "name": kind.name}

    def _component_to_dict(self, comp: ComponentRecord) -> Dict[str, Any]:
        return {
            "id": comp.id,
            "kind": self._kind_to_dict(comp.kind),
            "label": comp.label,
            "position": [comp.position[0], comp.position[1]],
        }

    @staticmethod
    def _connection_to_dict(conn: ConnectionRecord) -> Dict[str, Any]:
        return {
            "id": conn.id,
            "source": conn.source,
            "target": conn.target,
            "vertices": [[x, y] for x, y in conn.vertices],
        }
