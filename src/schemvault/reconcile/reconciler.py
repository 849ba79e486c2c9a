# src/schemvault/reconcile/reconciler.py
"""
Resolves the sheets of a project being opened.

The reconciler walks the scanner's outcomes in order. Most sheets are simply
collected. A sheet whose autosave disagrees with its saved copy needs the
user to pick one, so the reconciler stops there and hands out a
`DecisionRequest`; the caller (any UI) answers it with `resume()`. Only one
request is outstanding at a time, in input order.

    reconciler = LoadReconciler(scan.outcomes)
    result = reconciler.step()
    while isinstance(result, DecisionRequest):
        result = reconciler.resume(ask_user(result))
    # result is Ready
"""
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple, Union

from ..backup.policy import RetentionPolicy
from ..canvas.differ import ChangeCount, quantify_changes
from ..config import RetentionConfig
from ..data_structures import (
    Loaded,
    LoadedFromBackupOnly,
    LoadOutcome,
    NeedsReconciliation,
    Sheet,
)
from ..errors import FrameworkLogicError
from ..storage.codec import SheetCodec
from ..storage.exceptions import SheetWriteError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecisionRequest:
    """
    A question for the user: keep the saved copy of a sheet, or the newer
    automatically saved one? `changes` measures how far apart they are.
    """
    saved: Sheet
    candidate: Sheet
    changes: ChangeCount

    @property
    def sheet_name(self) -> str:
        return self.saved.name

    @property
    def has_circuit_changes(self) -> bool:
        return self.changes.total > 0


# --- Reconciler states ---

@dataclass(frozen=True)
class Pending:
    """Outcomes still to process and the sheets resolved so far."""
    remaining: Tuple[LoadOutcome, ...]
    accumulated: Tuple[Sheet, ...]


@dataclass(frozen=True)
class AwaitingDecision:
    """Suspended on `request`; `remaining` excludes the sheet being decided."""
    request: DecisionRequest
    remaining: Tuple[LoadOutcome, ...]
    accumulated: Tuple[Sheet, ...]


@dataclass(frozen=True)
class Ready:
    """
    Terminal state.

    Attributes:
        sheets: The resolved sheets, in input order.
        open_sheet_name: The most recently modified sheet (first one on ties),
                         or None when there are no sheets.
        warnings: Non-fatal problems to show the user.
        failures: Write errors hit while persisting a user's choice. The batch
                  carried on; each affected sheet kept its saved copy.
    """
    sheets: Tuple[Sheet, ...]
    open_sheet_name: Optional[str]
    warnings: Tuple[str, ...] = ()
    failures: Tuple[SheetWriteError, ...] = ()


ReconcilerState = Union[Pending, AwaitingDecision, Ready]


def choose_initial_sheet(sheets: Iterable[Sheet]) -> Optional[str]:
    """Name of the sheet with the latest timestamp; the first such sheet on ties."""
    sheets = list(sheets)
    if not sheets:
        return None
    return max(sheets, key=lambda s: s.timestamp).name


class LoadReconciler:
    """
    Explicit state machine over a project's load outcomes.

    Args:
        outcomes: Load outcomes in the order decisions should be asked for.
        codec: Writes the chosen copy of a reconciled sheet to its primary file.
        policy: Backs up the chosen copy when it differs from the other one.
        config: Supplies the thresholds used for that backup.
        clock: Time stamped onto the chosen copy.
        warnings: Problems found before reconciliation (e.g. unreadable sheets)
                  to be reported alongside the reconciler's own warnings.
    """

    def __init__(
        self,
        outcomes: Iterable[LoadOutcome],
        codec: Optional[SheetCodec] = None,
        policy: Optional[RetentionPolicy] = None,
        config: Optional[RetentionConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
        warnings: Iterable[str] = (),
    ):
        self.codec = codec or SheetCodec()
        self.config = config or RetentionConfig()
        self.policy = policy or RetentionPolicy(self.codec, self.config.layout_tolerance, clock)
        self.clock = clock
        self._state: ReconcilerState = Pending(tuple(outcomes), ())
        self._warnings: List[str] = list(warnings)
        self._failures: List[SheetWriteError] = []

    @property
    def state(self) -> ReconcilerState:
        return self._state

    @property
    def pending_request(self) -> Optional[DecisionRequest]:
        return self._state.request if isinstance(self._state, AwaitingDecision) else None

    def step(self) -> Union[DecisionRequest, Ready]:
        """
        Advances until a decision is needed or everything is resolved. Calling
        it again while a decision is outstanding returns the same request.
        """
        while isinstance(self._state, Pending):
            self._state = self._advance(self._state)
        if isinstance(self._state, AwaitingDecision):
            return self._state.request
        return self._state

    def resume(self, use_candidate: bool) -> Union[DecisionRequest, Ready]:
        """
        Answers the outstanding decision request and continues with `step()`.

        Raises:
            FrameworkLogicError: no decision is outstanding.
        """
        if not isinstance(self._state, AwaitingDecision):
            raise FrameworkLogicError(
                f"resume() called while the reconciler is in state {type(self._state).__name__}; "
                "call step() and only resume after it returns a DecisionRequest."
            )
        awaiting = self._state
        resolved = self._apply_choice(awaiting.request, use_candidate)
        self._state = Pending(awaiting.remaining, awaiting.accumulated + (resolved,))
        return self.step()

    def run(self, decide: Callable[[DecisionRequest], bool]) -> Ready:
        """Drives the machine to completion, asking `decide` for each conflict."""
        result = self.step()
        while isinstance(result, DecisionRequest):
            result = self.resume(decide(result))
        return result

    # --- Transitions ---

    def _advance(self, state: Pending) -> ReconcilerState:
        if not state.remaining:
            ready = Ready(
                sheets=state.accumulated,
                open_sheet_name=choose_initial_sheet(state.accumulated),
                warnings=tuple(self._warnings),
                failures=tuple(self._failures),
            )
            logger.info(f"Reconciliation complete: {len(ready.sheets)} sheet(s), opening '{ready.open_sheet_name}'.")
            return ready

        outcome, rest = state.remaining[0], state.remaining[1:]
        if isinstance(outcome, Loaded):
            return Pending(rest, state.accumulated + (outcome.sheet,))
        if isinstance(outcome, LoadedFromBackupOnly):
            message = (
                f"Could not load saved sheet '{outcome.sheet.name}' - using the most recent backup instead."
            )
            logger.warning(message)
            self._warnings.append(message)
            return Pending(rest, state.accumulated + (outcome.sheet,))
        if isinstance(outcome, NeedsReconciliation):
            changes = quantify_changes(outcome.saved.canvas, outcome.candidate.canvas)
            request = DecisionRequest(outcome.saved, outcome.candidate, changes)
            logger.info(
                f"Sheet '{request.sheet_name}' has an autosave differing from its saved copy "
                f"({changes.components} component, {changes.connections} connection change(s)); awaiting decision."
            )
            return AwaitingDecision(request, rest, state.accumulated)
        raise FrameworkLogicError(f"Unknown load outcome type: {type(outcome).__name__}")

    def _apply_choice(self, request: DecisionRequest, use_candidate: bool) -> Sheet:
        chosen = replace(request.candidate if use_candidate else request.saved, timestamp=self.clock())
        logger.info(
            f"Keeping the {'autosaved' if use_candidate else 'saved'} copy of sheet '{chosen.name}'."
        )
        try:
            self.codec.write(chosen.file_path, chosen)
        except SheetWriteError as e:
            logger.error(f"Could not persist the chosen copy of sheet '{chosen.name}': {e}")
            self._failures.append(e)
            return request.saved

        if request.has_circuit_changes:
            try:
                self.policy.backup(
                    chosen, self.config.switch_change_threshold, self.config.switch_age_threshold
                )
            except SheetWriteError as e:
                logger.error(f"Could not back up sheet '{chosen.name}': {e}")
                self._failures.append(e)
        return chosen
