# src/schemvault/interface/dependents.py
"""
Finds the custom-component instances of a sheet placed in other sheets.

After a sheet's interface changes, its embedded instances elsewhere in the
project may expect the old ports. The analysis here only reports; rewriting
the dependent instances is delegated to a `DependentPropagator`.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Protocol, Set, Tuple, Union

import networkx as nx

from ..data_structures import CustomKind, LabelWidth, Project, Sheet

logger = logging.getLogger(__name__)

# Input labels, output labels. Both sorted, so that instances placed from
# revisions that differ only in port order are grouped together.
Signature = Tuple[Tuple[LabelWidth, ...], Tuple[LabelWidth, ...]]


@dataclass(frozen=True)
class DependentInstance:
    """One placement of the analysed sheet inside `owner_sheet`."""
    owner_sheet: str
    component_id: str
    kind: CustomKind

    @property
    def signature(self) -> Signature:
        return normalise_signature(self.kind.input_labels, self.kind.output_labels)


# --- DependentsInfo (closed sum type) ---

@dataclass(frozen=True)
class NoDependents:
    """No sheet embeds the analysed sheet."""


@dataclass(frozen=True)
class SingleSignature:
    """All instances were placed with the same interface."""
    signature: Signature
    instances: Tuple[DependentInstance, ...]


@dataclass(frozen=True)
class MixedSignatures:
    """
    Instances disagree on the interface. Only a per-owner count is reported,
    in order of first appearance.
    """
    per_owner_counts: Tuple[Tuple[str, int], ...]


DependentsInfo = Union[NoDependents, SingleSignature, MixedSignatures]


def normalise_signature(inputs, outputs) -> Signature:
    return tuple(sorted(inputs)), tuple(sorted(outputs))


def find_instances(project: Project, target_sheet_name: str) -> List[DependentInstance]:
    """Every custom component referencing `target_sheet_name`, in project sheet order."""
    instances = []
    for sheet in project.sheets.values():
        for comp in sheet.canvas.components:
            if isinstance(comp.kind, CustomKind) and comp.kind.name == target_sheet_name:
                instances.append(DependentInstance(sheet.name, comp.id, comp.kind))
    return instances


def find_dependents(project: Project, target_sheet_name: str) -> DependentsInfo:
    """
    Groups the instances of `target_sheet_name` by the interface they were
    placed with. Never modifies the project.
    """
    instances = find_instances(project, target_sheet_name)
    if not instances:
        logger.debug(f"Sheet '{target_sheet_name}' has no dependent instances.")
        return NoDependents()

    signatures = {inst.signature for inst in instances}
    if len(signatures) == 1:
        (signature,) = signatures
        logger.debug(f"Sheet '{target_sheet_name}' has {len(instances)} dependent instance(s) with one signature.")
        return SingleSignature(signature=signature, instances=tuple(instances))

    counts = Counter(inst.owner_sheet for inst in instances)
    owners = list(dict.fromkeys(inst.owner_sheet for inst in instances))
    logger.info(
        f"Sheet '{target_sheet_name}' is embedded with {len(signatures)} different interfaces "
        f"across {len(owners)} sheet(s)."
    )
    return MixedSignatures(per_owner_counts=tuple((owner, counts[owner]) for owner in owners))


# --- Project-wide dependency graph ---

def build_dependency_graph(project: Project) -> nx.DiGraph:
    """
    Directed graph of sheet embedding. An edge `owner -> referenced` means
    `owner` contains at least one instance of `referenced`. References to sheets
    that are not in the project are kept as nodes flagged `missing=True`.
    """
    graph = nx.DiGraph()
    for name in project.sheets:
        graph.add_node(name, missing=False)
    for sheet in project.sheets.values():
        for comp in sheet.canvas.components:
            if isinstance(comp.kind, CustomKind):
                if comp.kind.name not in graph:
                    graph.add_node(comp.kind.name, missing=True)
                if graph.has_edge(sheet.name, comp.kind.name):
                    graph.edges[sheet.name, comp.kind.name]["count"] += 1
                else:
                    graph.add_edge(sheet.name, comp.kind.name, count=1)
    return graph


def affected_sheets(project: Project, sheet_name: str) -> Set[str]:
    """Every sheet that embeds `sheet_name`, directly or through other sheets."""
    graph = build_dependency_graph(project)
    if sheet_name not in graph:
        return set()
    return set(nx.ancestors(graph, sheet_name))


# --- Propagation extension point ---

class DependentPropagator(Protocol):
    """
    Rewrites dependent instances after an interface change.

    Implementations receive the interface the instances currently expect and
    the instances themselves, and return the owner sheets they changed, keyed
    by sheet name. Sheets not returned are left untouched.
    """
    def propagate(
        self, project: Project, signature: Signature, instances: Tuple[DependentInstance, ...]
    ) -> Dict[str, Sheet]:
        ...


class NoOpPropagator:
    """Default propagator: performs no rewrite."""

    def propagate(
        self, project: Project, signature: Signature, instances: Tuple[DependentInstance, ...]
    ) -> Dict[str, Sheet]:
        owners = sorted({inst.owner_sheet for inst in instances})
        logger.warning(
            f"Updating dependent instances is not implemented; {len(instances)} instance(s) in {owners} left unchanged."
        )
        return {}
