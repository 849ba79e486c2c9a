# tests/conftest.py
"""
Shared fixtures and canvas builders for the SchemVault test suite.

Builders produce the smallest records a test needs: ports, built-in gates,
custom-component instances and wires. Sheets are written to real files under
`tmp_path` so that the codec, the backup directory scan and the scanner are
exercised exactly as in the editor.
"""
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from schemvault.constants import SHEET_EXTENSION
from schemvault.data_structures import (
    CanvasState,
    ComponentRecord,
    ConnectionRecord,
    CustomKind,
    InputKind,
    OtherKind,
    OutputKind,
    Sheet,
)
from schemvault.storage.codec import SheetCodec

T0 = datetime(2026, 3, 2, 9, 15)


# --- Canvas builders ---

def inp(comp_id, label, width=1, position=(0.0, 0.0)):
    return ComponentRecord(comp_id, InputKind(width), label, position)


def out(comp_id, label, width=1, position=(0.0, 0.0)):
    return ComponentRecord(comp_id, OutputKind(width), label, position)


def gate(comp_id, name="And", position=(0.0, 0.0)):
    return ComponentRecord(comp_id, OtherKind(name), "", position)


def custom(comp_id, sheet_name, inputs=(), outputs=(), position=(0.0, 0.0)):
    return ComponentRecord(comp_id, CustomKind(sheet_name, tuple(inputs), tuple(outputs)), sheet_name.upper(), position)


def wire(conn_id, source, target, vertices=()):
    return ConnectionRecord(conn_id, source, target, tuple(vertices))


def canvas_of(*records):
    """Builds a canvas from a mix of component and connection records."""
    return CanvasState(
        components=tuple(r for r in records if isinstance(r, ComponentRecord)),
        connections=tuple(r for r in records if isinstance(r, ConnectionRecord)),
    )


def half_adder():
    """A small but complete circuit used as the baseline in many tests."""
    return canvas_of(
        inp("i1", "A", position=(10.0, 10.0)),
        inp("i2", "B", position=(10.0, 50.0)),
        gate("g1", "Xor", position=(60.0, 20.0)),
        gate("g2", "And", position=(60.0, 60.0)),
        out("o1", "S", position=(120.0, 20.0)),
        out("o2", "C", position=(120.0, 60.0)),
        wire("w1", "i1.0", "g1.0", [(30.0, 10.0)]),
        wire("w2", "i2.0", "g1.1"),
        wire("w3", "i1.0", "g2.0"),
        wire("w4", "i2.0", "g2.1"),
        wire("w5", "g1.0", "o1.0"),
        wire("w6", "g2.0", "o2.0"),
    )


class FakeClock:
    """A controllable replacement for `datetime.now`."""

    def __init__(self, start=T0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


# --- Fixtures ---

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def codec():
    return SheetCodec()


@pytest.fixture
def project_dir(tmp_path):
    path = tmp_path / "adder"
    path.mkdir()
    return path


@pytest.fixture
def make_sheet(project_dir):
    """Factory for in-memory sheets located in `project_dir`."""
    def _make(name="main", canvas=None, timestamp=T0, directory: Path = None):
        sheet = Sheet(
            name=name,
            file_path=(directory or project_dir) / f"{name}{SHEET_EXTENSION}",
            timestamp=timestamp,
        )
        return sheet.with_canvas(canvas if canvas is not None else CanvasState())
    return _make


@pytest.fixture
def write_sheet(codec, make_sheet):
    """Factory that builds a sheet and writes it to its primary file."""
    def _write(name="main", canvas=None, timestamp=T0, path: Path = None):
        sheet = make_sheet(name, canvas, timestamp)
        codec.write(path or sheet.file_path, sheet)
        return sheet
    return _write
