"""
Exposes the public interface of the interface-analysis package.
"""
from .signature import (
    Added,
    Identity,
    LabelChanged,
    MatchOutcome,
    PortKey,
    Removed,
    SignatureComparison,
    WidthChanged,
    compare_signatures,
    match_ports,
    parse_canvas_signature,
    port_entries_from_canvas,
    port_entries_from_labels,
)
from .dependents import (
    DependentInstance,
    DependentPropagator,
    DependentsInfo,
    MixedSignatures,
    NoDependents,
    NoOpPropagator,
    SingleSignature,
    affected_sheets,
    build_dependency_graph,
    find_dependents,
    find_instances,
)

__all__ = [
    # Port matching
    "Added", "Identity", "LabelChanged", "MatchOutcome", "PortKey", "Removed",
    "SignatureComparison", "WidthChanged",
    "compare_signatures", "match_ports",
    "parse_canvas_signature", "port_entries_from_canvas", "port_entries_from_labels",
    # Dependents
    "DependentInstance", "DependentPropagator", "DependentsInfo",
    "MixedSignatures", "NoDependents", "NoOpPropagator", "SingleSignature",
    "affected_sheets", "build_dependency_graph", "find_dependents", "find_instances",
]
