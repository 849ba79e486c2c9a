# tests/test_reconciler.py
import logging
from dataclasses import replace
from datetime import timedelta
from pathlib import Path

import pytest

from schemvault.backup import backup_directory
from schemvault.backup.naming import list_directory
from schemvault.data_structures import CanvasState, Loaded, LoadedFromBackupOnly, NeedsReconciliation
from schemvault.errors import FrameworkLogicError
from schemvault.reconcile import AwaitingDecision, DecisionRequest, LoadReconciler, Ready, choose_initial_sheet
from schemvault.storage.exceptions import SheetWriteError

from conftest import T0, canvas_of, gate, half_adder


@pytest.fixture
def reconciler_for(codec, clock):
    def _make(outcomes, **kwargs):
        return LoadReconciler(outcomes, codec=codec, clock=clock, **kwargs)
    return _make


@pytest.fixture
def conflict(make_sheet):
    """A saved sheet and an autosave with one extra gate."""
    def _make(name):
        saved = make_sheet(name, half_adder())
        candidate = saved.with_canvas(CanvasState(saved.canvas.components + (gate("g9"),), saved.canvas.connections))
        return NeedsReconciliation(saved=saved, candidate=candidate)
    return _make


class TestReconcilerWithoutConflicts:
    """Projects whose sheets all loaded cleanly."""

    def test_no_decision_is_requested(self, reconciler_for, make_sheet):
        outcomes = [Loaded(make_sheet("alu")), Loaded(make_sheet("main"))]
        reconciler = reconciler_for(outcomes)
        result = reconciler.step()
        assert isinstance(result, Ready)
        assert [s.name for s in result.sheets] == ["alu", "main"]
        assert reconciler.pending_request is None
        assert reconciler.state is result

    def test_backup_only_sheets_produce_warnings(self, reconciler_for, make_sheet, caplog):
        reconciler = reconciler_for([LoadedFromBackupOnly(make_sheet("alu"))], warnings=["skipped 'x.dgm'"])
        with caplog.at_level(logging.WARNING):
            result = reconciler.step()
        assert [s.name for s in result.sheets] == ["alu"]
        assert result.warnings[0] == "skipped 'x.dgm'"
        assert "most recent backup" in result.warnings[1]
        assert "most recent backup" in caplog.text

    def test_empty_project(self, reconciler_for):
        result = reconciler_for([]).step()
        assert result == Ready(sheets=(), open_sheet_name=None)

    def test_most_recent_sheet_is_opened(self, reconciler_for, make_sheet):
        outcomes = [
            Loaded(make_sheet("alu", timestamp=T0)),
            Loaded(make_sheet("main", timestamp=T0 + timedelta(hours=2))),
            Loaded(make_sheet("mux", timestamp=T0 + timedelta(hours=1))),
        ]
        assert reconciler_for(outcomes).step().open_sheet_name == "main"

    def test_ties_open_the_first_sheet(self, make_sheet):
        sheets = [make_sheet("b"), make_sheet("a"), make_sheet("c")]
        assert choose_initial_sheet(sheets) == "b"
        assert choose_initial_sheet([]) is None


class TestReconcilerDecisions:
    """Suspension on conflicting autosaves and resumption with the user's choice."""

    def test_requests_are_issued_one_at_a_time_in_order(self, reconciler_for, conflict, make_sheet):
        outcomes = [conflict("alu"), Loaded(make_sheet("main")), conflict("mux")]
        reconciler = reconciler_for(outcomes)

        first = reconciler.step()
        assert isinstance(first, DecisionRequest)
        assert first.sheet_name == "alu"
        assert first.changes == (1, 0)
        assert first.has_circuit_changes
        assert isinstance(reconciler.state, AwaitingDecision)
        # Asking again does not skip ahead.
        assert reconciler.step() is first
        assert reconciler.pending_request is first

        second = reconciler.resume(use_candidate=True)
        assert isinstance(second, DecisionRequest)
        assert second.sheet_name == "mux"

        result = reconciler.resume(use_candidate=False)
        assert isinstance(result, Ready)
        assert [s.name for s in result.sheets] == ["alu", "main", "mux"]

    def test_chosen_copy_is_persisted_with_fresh_timestamp(self, reconciler_for, conflict, codec, clock):
        clock.advance(minutes=5)
        outcome = conflict("alu")
        result = reconciler_for([outcome]).run(lambda request: True)

        (chosen,) = result.sheets
        assert chosen.canvas == outcome.candidate.canvas
        assert chosen.timestamp == clock.now
        on_disk = codec.load(outcome.saved.file_path)
        assert on_disk.canvas == outcome.candidate.canvas
        assert result.open_sheet_name == "alu"

    def test_changed_choice_is_backed_up(self, reconciler_for, conflict):
        outcome = conflict("alu")
        reconciler_for([outcome]).run(lambda request: False)
        assert len(list_directory(backup_directory(outcome.saved.file_path))) == 1

    def test_choice_without_circuit_changes_is_not_backed_up(self, reconciler_for, make_sheet):
        saved = make_sheet("alu", canvas_of(gate("g1", position=(0.0, 0.0))))
        candidate = saved.with_canvas(canvas_of(gate("g1", position=(40.0, 0.0))))
        reconciler = reconciler_for([NeedsReconciliation(saved, candidate)])

        request = reconciler.step()
        assert not request.has_circuit_changes
        reconciler.resume(True)
        assert not backup_directory(saved.file_path).exists()

    def test_resume_without_pending_request_is_a_logic_error(self, reconciler_for, make_sheet):
        reconciler = reconciler_for([Loaded(make_sheet("alu"))])
        with pytest.raises(FrameworkLogicError, match="Pending"):
            reconciler.resume(True)
        reconciler.step()
        with pytest.raises(FrameworkLogicError, match="Ready"):
            reconciler.resume(True)

    def test_write_failure_keeps_saved_copy_and_continues(self, reconciler_for, conflict, codec, monkeypatch):
        def failing_write(path, sheet):
            raise SheetWriteError(details="read-only file system", file_path=Path(path))

        monkeypatch.setattr(codec, "write", failing_write)
        first, second = conflict("alu"), conflict("mux")
        result = reconciler_for([first, second]).run(lambda request: True)

        assert result.sheets == (first.saved, second.saved)
        assert len(result.failures) == 2
        assert all(isinstance(f, SheetWriteError) for f in result.failures)

    def test_backup_failure_keeps_chosen_copy(self, reconciler_for, conflict, codec, monkeypatch):
        real_write = codec.write

        def write_primary_only(path, sheet):
            if "backup" in Path(path).parts:
                raise SheetWriteError(details="quota exceeded", file_path=Path(path))
            real_write(path, sheet)

        monkeypatch.setattr(codec, "write", write_primary_only)
        outcome = conflict("alu")
        result = reconciler_for([outcome]).run(lambda request: True)

        (chosen,) = result.sheets
        assert chosen.canvas == outcome.candidate.canvas
        (failure,) = result.failures
        assert "quota exceeded" in str(failure)

    def test_decisions_see_change_magnitude(self, reconciler_for, conflict):
        seen = []

        def decide(request):
            seen.append((request.sheet_name, request.changes.total))
            return False

        reconciler_for([conflict("alu"), conflict("mux")]).run(decide)
        assert seen == [("alu", 1), ("mux", 1)]

    def test_saved_copy_keeps_its_content(self, reconciler_for, conflict):
        outcome = conflict("alu")
        result = reconciler_for([outcome]).run(lambda request: False)
        assert result.sheets[0] == replace(outcome.saved, timestamp=result.sheets[0].timestamp)
