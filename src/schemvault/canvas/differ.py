# src/schemvault/canvas/differ.py
"""
Structural comparison of two canvas states.

Positions of components and routing vertices of connections only affect how a
sheet is drawn, so every comparison here first strips them ("layout
reduction"). What remains is the circuit itself: component ids, kinds and
labels, and which ports are wired together. A component whose id changes
counts as a change even when the resulting topology is identical.
"""
import logging
from dataclasses import replace
from typing import Dict, FrozenSet, Iterable, NamedTuple

import numpy as np

from ..constants import DEFAULT_LAYOUT_TOLERANCE
from ..data_structures import CanvasState, ComponentRecord, ConnectionRecord

logger = logging.getLogger(__name__)


class ChangeCount(NamedTuple):
    """Number of components and of connections present in only one of two canvases."""
    components: int
    connections: int

    @property
    def total(self) -> int:
        return self.components + self.connections


def reduce_component(component: ComponentRecord) -> ComponentRecord:
    """Drops the layout-only position of a component."""
    return replace(component, position=(0.0, 0.0))


def reduce_connection(connection: ConnectionRecord) -> ConnectionRecord:
    """Drops the layout-only routing vertices of a connection."""
    return replace(connection, vertices=())


def _reduced_set(items: Iterable, reducer) -> FrozenSet:
    return frozenset(reducer(item) for item in items)


def quantify_changes(a: CanvasState, b: CanvasState) -> ChangeCount:
    """
    Counts the components and connections that differ between two canvases,
    ignoring layout. The count is the size of the symmetric difference of the
    reduced sets, so a modified component counts twice (old and new form).

    `quantify_changes(a, b) == (0, 0)` exactly when `a` and `b` are layout-equal,
    and the result does not depend on argument order.
    """
    comps_a = _reduced_set(a.components, reduce_component)
    comps_b = _reduced_set(b.components, reduce_component)
    conns_a = _reduced_set(a.connections, reduce_connection)
    conns_b = _reduced_set(b.connections, reduce_connection)
    changes = ChangeCount(len(comps_a ^ comps_b), len(conns_a ^ conns_b))
    logger.debug(f"Canvas diff: {changes.components} component and {changes.connections} connection change(s).")
    return changes


def _components_within_tolerance(a: CanvasState, b: CanvasState, tolerance: float) -> bool:
    positions_b: Dict[str, tuple] = {c.id: c.position for c in b.components}
    pairs = [(c.position, positions_b[c.id]) for c in a.components if c.id in positions_b]
    if not pairs:
        return True
    old = np.array([p for p, _ in pairs], dtype=float)
    new = np.array([q for _, q in pairs], dtype=float)
    return bool(np.all(np.abs(old - new) < tolerance))


def _connections_within_tolerance(a: CanvasState, b: CanvasState, tolerance: float) -> bool:
    vertices_b = {c.id: c.vertices for c in b.connections}
    for conn in a.connections:
        other = vertices_b.get(conn.id)
        if other is None:
            continue
        # A re-routed wire with a different number of bends is a deliberate edit.
        if len(conn.vertices) != len(other):
            return False
        if not conn.vertices:
            continue
        displacement = np.abs(np.array(conn.vertices, dtype=float) - np.array(other, dtype=float))
        if not np.all(displacement < tolerance):
            return False
    return True


def layout_equal(a: CanvasState, b: CanvasState, tolerance: float = DEFAULT_LAYOUT_TOLERANCE) -> bool:
    """
    True when the two canvases are structurally identical and every component
    and wire vertex moved by less than `tolerance` along each axis.

    The default tolerance is very large, so in practice only changes to the
    circuit itself or to the number of bends in a wire make canvases unequal.
    """
    if quantify_changes(a, b).total != 0:
        return False
    return _components_within_tolerance(a, b, tolerance) and _connections_within_tolerance(a, b, tolerance)
