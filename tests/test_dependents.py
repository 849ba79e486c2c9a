# tests/test_dependents.py
import logging

import pytest

from schemvault.data_structures import Project
from schemvault.interface import (
    MixedSignatures,
    NoDependents,
    NoOpPropagator,
    SingleSignature,
    affected_sheets,
    build_dependency_graph,
    find_dependents,
)

from conftest import canvas_of, custom, gate, inp, out

ADDER_PORTS = ((("A", 1), ("B", 1)), (("S", 1),))


@pytest.fixture
def make_project(make_sheet, project_dir):
    def _make(**canvases):
        sheets = {name: make_sheet(name, canvas) for name, canvas in canvases.items()}
        return Project(project_dir, next(iter(sheets)), sheets)
    return _make


class TestFindDependents:
    """Grouping the placements of a sheet by the interface they were placed with."""

    def test_sheet_nobody_uses(self, make_project):
        project = make_project(main=canvas_of(gate("g1")), adder=canvas_of(inp("i1", "A")))
        assert find_dependents(project, "adder") == NoDependents()

    def test_all_instances_share_one_signature(self, make_project):
        project = make_project(
            main=canvas_of(custom("u1", "adder", *ADDER_PORTS), custom("u2", "adder", *ADDER_PORTS)),
            alu=canvas_of(custom("u3", "adder", *ADDER_PORTS), custom("m1", "mux")),
            adder=canvas_of(inp("i1", "A"), inp("i2", "B"), out("o1", "S")),
        )
        info = find_dependents(project, "adder")
        assert isinstance(info, SingleSignature)
        assert info.signature == ADDER_PORTS
        assert [(i.owner_sheet, i.component_id) for i in info.instances] == [
            ("main", "u1"), ("main", "u2"), ("alu", "u3"),
        ]

    def test_port_order_does_not_split_groups(self, make_project):
        reordered = ((("B", 1), ("A", 1)), (("S", 1),))
        project = make_project(
            main=canvas_of(custom("u1", "adder", *ADDER_PORTS), custom("u2", "adder", *reordered)),
        )
        assert isinstance(find_dependents(project, "adder"), SingleSignature)

    def test_mixed_signatures_report_counts_per_owner(self, make_project):
        widened = ((("A", 4), ("B", 4)), (("S", 4),))
        project = make_project(
            main=canvas_of(custom("u1", "adder", *ADDER_PORTS), custom("u2", "adder", *widened)),
            alu=canvas_of(custom("u3", "adder", *widened)),
        )
        info = find_dependents(project, "adder")
        assert info == MixedSignatures(per_owner_counts=(("main", 2), ("alu", 1)))

    def test_analysis_never_modifies_project(self, make_project):
        project = make_project(main=canvas_of(custom("u1", "adder", *ADDER_PORTS)))
        before = dict(project.sheets)
        find_dependents(project, "adder")
        assert project.sheets == before


class TestDependencyGraph:
    """Project-wide embedding graph built with networkx."""

    def test_edges_count_instances(self, make_project):
        project = make_project(
            main=canvas_of(custom("u1", "alu"), custom("u2", "adder"), custom("u3", "adder")),
            alu=canvas_of(custom("u4", "adder")),
            adder=canvas_of(gate("g1")),
        )
        graph = build_dependency_graph(project)
        assert graph.edges["main", "adder"]["count"] == 2
        assert graph.edges["alu", "adder"]["count"] == 1
        assert not graph.nodes["adder"]["missing"]

    def test_references_to_unknown_sheets_are_flagged(self, make_project):
        graph = build_dependency_graph(make_project(main=canvas_of(custom("u1", "ghost"))))
        assert graph.nodes["ghost"]["missing"]

    def test_affected_sheets_are_transitive(self, make_project):
        project = make_project(
            main=canvas_of(custom("u1", "alu")),
            alu=canvas_of(custom("u2", "adder")),
            adder=canvas_of(gate("g1")),
            spare=canvas_of(gate("g2")),
        )
        assert affected_sheets(project, "adder") == {"alu", "main"}
        assert affected_sheets(project, "main") == set()
        assert affected_sheets(project, "nonexistent") == set()


class TestNoOpPropagator:
    def test_returns_no_sheets_and_warns(self, make_project, caplog):
        project = make_project(main=canvas_of(custom("u1", "adder", *ADDER_PORTS)))
        info = find_dependents(project, "adder")
        with caplog.at_level(logging.WARNING):
            updated = NoOpPropagator().propagate(project, info.signature, info.instances)
        assert updated == {}
        assert "not implemented" in caplog.text
