# src/schemvault/interface/signature.py
"""
Matching of a sheet's port list across two revisions.

When the Input/Output components of a sheet change, every sheet that embeds it
as a custom component holds a stale copy of its interface. This module works
out, port by port, how the old interface maps onto the new one so the caller
can tell which instances still connect cleanly.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple, Union

from ..data_structures import (
    CanvasState,
    InputKind,
    IODirection,
    LabelWidth,
    OutputKind,
    PortEntry,
)

logger = logging.getLogger(__name__)

PortKey = Tuple[IODirection, str]


# --- Match outcomes (closed sum type) ---

@dataclass(frozen=True)
class Identity:
    """Same direction, label and width."""
    rank = 1


@dataclass(frozen=True)
class WidthChanged:
    """Same direction and label; the port is now `new_width` bits wide."""
    new_width: int
    rank = 2


@dataclass(frozen=True)
class LabelChanged:
    """The defining component is the same, but it was relabelled."""
    new_label: str
    new_width: int
    rank = 3


@dataclass(frozen=True)
class Removed:
    """The port exists only in the old revision."""
    rank = 4


@dataclass(frozen=True)
class Added:
    """The port exists only in the new revision."""
    rank = 4


MatchOutcome = Union[Identity, WidthChanged, LabelChanged, Removed, Added]


@dataclass(frozen=True)
class SignatureComparison:
    """
    Result of comparing two interface revisions.

    Attributes:
        common: Ports keyed in both revisions, with their outcome, most specific
                match first (Identity, then WidthChanged, then LabelChanged).
        diffs: Keys present in only one revision.
        outcomes: Every key seen, with the outcome used for it. Where both
                  directions of matching produced an outcome for a key, the
                  old-to-new one is kept.
    """
    common: List[Tuple[PortKey, MatchOutcome]]
    diffs: FrozenSet[PortKey]
    outcomes: Dict[PortKey, MatchOutcome] = field(default_factory=dict)

    @property
    def is_unchanged(self) -> bool:
        return not self.diffs and all(isinstance(o, Identity) for _, o in self.common)


def _match_one(port: PortEntry, candidates: Sequence[PortEntry]) -> Optional[MatchOutcome]:
    """Best match of `port` among `candidates`, in order of preference, or None."""
    same_direction = [c for c in candidates if c.direction == port.direction]
    for candidate in same_direction:
        if candidate.label == port.label and candidate.width == port.width:
            return Identity()
    for candidate in same_direction:
        if candidate.label == port.label:
            return WidthChanged(candidate.width)
    if port.id is not None:
        for candidate in same_direction:
            if candidate.id == port.id and candidate.label != port.label:
                return LabelChanged(candidate.label, candidate.width)
    return None


def _match_all(
    ports: Sequence[PortEntry], others: Sequence[PortEntry], unmatched: MatchOutcome
) -> Dict[PortKey, MatchOutcome]:
    return {
        port.key: _match_one(port, others) or unmatched
        for port in ports
    }


def match_ports(old_ports: Sequence[PortEntry], new_ports: Sequence[PortEntry]) -> Dict[PortKey, MatchOutcome]:
    """
    Classifies each port of `old_ports` against `new_ports`.

    Ports with no counterpart in `new_ports` are `Removed`. Ports present only in
    `new_ports` do not appear here; see `compare_signatures` for the two-sided view.
    """
    return _match_all(old_ports, new_ports, Removed())


def _key_sort(key: PortKey):
    direction, label = key
    return (0 if direction == IODirection.INPUT else 1, label)


def compare_signatures(old_ports: Sequence[PortEntry], new_ports: Sequence[PortEntry]) -> SignatureComparison:
    """
    Compares two interface revisions from both sides.

    Old ports are matched against new ones and new against old, independently.
    A key produced by both passes is common; a key produced by only one pass
    (a removed, added or relabelled port) is a diff.
    """
    forward = match_ports(old_ports, new_ports)
    backward = _match_all(new_ports, old_ports, Added())

    outcomes: Dict[PortKey, MatchOutcome] = dict(backward)
    outcomes.update(forward)

    forward_keys, backward_keys = set(forward), set(backward)
    common_keys = sorted(forward_keys & backward_keys, key=_key_sort)
    # sorted() is stable, so equal ranks stay in key order.
    common = sorted(((k, outcomes[k]) for k in common_keys), key=lambda item: item[1].rank)
    diffs = frozenset(forward_keys ^ backward_keys)

    logger.debug(f"Signature comparison: {len(common)} common port(s), {len(diffs)} unmatched port(s).")
    return SignatureComparison(common=common, diffs=diffs, outcomes=outcomes)


# --- Signatures as stored on sheets ---

def port_entries_from_canvas(canvas: CanvasState) -> List[PortEntry]:
    """The ports a canvas defines, ordered by direction, label and id."""
    entries = []
    for comp in canvas.components:
        if isinstance(comp.kind, InputKind):
            entries.append(PortEntry(IODirection.INPUT, comp.label, comp.kind.width, comp.id))
        elif isinstance(comp.kind, OutputKind):
            entries.append(PortEntry(IODirection.OUTPUT, comp.label, comp.kind.width, comp.id))
    entries.sort(key=lambda e: (_key_sort(e.key), e.id or ""))
    return entries


def parse_canvas_signature(canvas: CanvasState) -> Tuple[Tuple[LabelWidth, ...], Tuple[LabelWidth, ...]]:
    """
    Extracts the (input labels, output labels) signature a sheet exposes to
    sheets embedding it. Ordering is by label so that moving port components
    around does not change the signature.
    """
    entries = port_entries_from_canvas(canvas)
    inputs = tuple((e.label, e.width) for e in entries if e.direction == IODirection.INPUT)
    outputs = tuple((e.label, e.width) for e in entries if e.direction == IODirection.OUTPUT)
    return inputs, outputs


def port_entries_from_labels(
    input_labels: Sequence[LabelWidth], output_labels: Sequence[LabelWidth]
) -> List[PortEntry]:
    """Port entries for a stored signature, which carries no component ids."""
    return (
        [PortEntry(IODirection.INPUT, label, width) for label, width in input_labels]
        + [PortEntry(IODirection.OUTPUT, label, width) for label, width in output_labels]
    )
