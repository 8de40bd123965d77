# -----------------------------------------------------------------------------
# View state: what a presentation layer shows at a cursor position
# Purpose:
#   Derive revealed row digits, active carry marks, highlights and the result
#   digits from a timeline, one entry sub-phase at a time. Everything here is
#   pure: apply() returns a new ViewState, diff() compares two of them.
# -----------------------------------------------------------------------------

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .digits import shift_for
from .timeline import Entry, StepTimeline
from .types import AdditionStep, DividerMarker, MultiplicationStep


class StepPhase(str, Enum):
    HIGHLIGHTING = "highlighting"
    REVEALING = "revealing"
    CLEARED = "cleared"

STEP_PHASES = (StepPhase.HIGHLIGHTING, StepPhase.REVEALING, StepPhase.CLEARED)


def phases_for(entry: Entry) -> Tuple[StepPhase, ...]:
    # Dividers are instantaneous; arithmetic steps go through the staged reveal.
    if isinstance(entry, DividerMarker):
        return (StepPhase.CLEARED,)
    return STEP_PHASES


@dataclass(frozen=True)
class ViewState:
    """
    Snapshot of the worked solution.
    - rows: multiplier index -> revealed digits, most significant first
    - row_shifts: multiplier index -> trailing zero padding for started rows
    - carries: result column -> carry mark currently shown above it
    - highlight: (multiplier_index, multiplicand_index) pair being multiplied
    - highlight_column: column being summed
    - result_digits: revealed result digits, most significant first
    """
    rows: Dict[int, Tuple[int, ...]] = field(default_factory=dict)
    row_shifts: Dict[int, int] = field(default_factory=dict)
    carries: Dict[int, int] = field(default_factory=dict)
    highlight: Optional[Tuple[int, int]] = None
    highlight_column: Optional[int] = None
    result_digits: Tuple[int, ...] = ()
    finished: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": {str(k): list(v) for k, v in self.rows.items()},
            "row_shifts": {str(k): v for k, v in self.row_shifts.items()},
            "carries": {str(k): v for k, v in self.carries.items()},
            "highlight": list(self.highlight) if self.highlight else None,
            "highlight_column": self.highlight_column,
            "result_digits": list(self.result_digits),
            "finished": self.finished,
        }


@dataclass(frozen=True)
class StepDelta:
    # Changes between two consecutive positions, for animating without arithmetic.
    cursor: int
    phase: StepPhase
    kind: str
    revealed_digits: Tuple[Tuple[int, int], ...] = ()   # (multiplier_index, digit)
    result_digit: Optional[int] = None
    carries_set: Dict[int, int] = field(default_factory=dict)
    carries_cleared: Tuple[int, ...] = ()
    highlight: Optional[Tuple[int, int]] = None
    highlight_column: Optional[int] = None
    finished: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cursor": self.cursor,
            "phase": self.phase.value,
            "kind": self.kind,
            "revealed_digits": [list(p) for p in self.revealed_digits],
            "result_digit": self.result_digit,
            "carries_set": {str(k): v for k, v in self.carries_set.items()},
            "carries_cleared": list(self.carries_cleared),
            "highlight": list(self.highlight) if self.highlight else None,
            "highlight_column": self.highlight_column,
            "finished": self.finished,
        }


def _apply_multiplication(view: ViewState, step: MultiplicationStep, phase: StepPhase,
                          timeline: StepTimeline) -> ViewState:
    if phase is StepPhase.HIGHLIGHTING:
        if step.is_flush:
            return view
        return replace(view, highlight=(step.multiplier_index, step.multiplicand_index))
    if phase is StepPhase.REVEALING:
        i = step.multiplier_index
        rows = dict(view.rows)
        rows[i] = (step.display_digit,) + rows.get(i, ())
        shifts = dict(view.row_shifts)
        shifts[i] = shift_for(i, len(timeline.b_digits))
        # Only the carry just produced stays visible; the one consumed goes away.
        carries = {step.column + 1: step.produced_carry} if step.produced_carry else {}
        return replace(view, rows=rows, row_shifts=shifts, carries=carries)
    return replace(view, highlight=None)


def _apply_addition(view: ViewState, step: AdditionStep, phase: StepPhase,
                    timeline: StepTimeline) -> ViewState:
    col = step.column_index
    if phase is StepPhase.HIGHLIGHTING:
        return replace(view, highlight_column=col)
    if phase is StepPhase.REVEALING:
        carries = dict(view.carries)
        if step.produced_carry:
            carries[col + 1] = step.produced_carry
        return replace(view, result_digits=(step.display_digit,) + view.result_digits,
                       carries=carries)
    carries = dict(view.carries)
    carries.pop(col, None)
    if step is timeline.addition_steps[-1]:
        carries = {}
    return replace(view, carries=carries, highlight_column=None)


def _apply_divider(view: ViewState, marker: DividerMarker, timeline: StepTimeline) -> ViewState:
    if marker.phase == "multiplication":
        # Multiplication carries are cleared; the addition phase starts from the
        # expander's outstanding carries rather than a replay of the chain.
        return replace(view, carries=dict(timeline.pending_carries),
                       highlight=None, highlight_column=None)
    return replace(view, carries={}, highlight=None, highlight_column=None, finished=True)


def apply(view: ViewState, entry: Entry, phase: StepPhase, timeline: StepTimeline) -> ViewState:
    """Apply a single sub-phase of one timeline entry."""
    if isinstance(entry, MultiplicationStep):
        return _apply_multiplication(view, entry, phase, timeline)
    if isinstance(entry, AdditionStep):
        return _apply_addition(view, entry, phase, timeline)
    if isinstance(entry, DividerMarker):
        return _apply_divider(view, entry, timeline)
    raise TypeError(f"Unknown timeline entry: {entry!r}")


def apply_through(view: ViewState, entry: Entry, phase: StepPhase, timeline: StepTimeline) -> ViewState:
    # Apply every sub-phase of `entry` up to and including `phase`.
    phases = phases_for(entry)
    if phase not in phases:
        phase = phases[-1]
    for p in phases[:phases.index(phase) + 1]:
        view = apply(view, entry, p, timeline)
    return view


def view_at(timeline: StepTimeline, cursor: int, phase: StepPhase = StepPhase.CLEARED) -> ViewState:
    """
    Fold the timeline from scratch up to `cursor` (0..total_steps). Entries
    before the cursor are fully cleared; the entry at the cursor is applied up
    to `phase`.
    """
    if not 0 <= cursor <= timeline.total_steps:
        raise IndexError(f"cursor {cursor} outside 0..{timeline.total_steps}")
    view = ViewState()
    for k in range(1, cursor + 1):
        view = apply_through(view, timeline.entry(k), phase if k == cursor else StepPhase.CLEARED, timeline)
    return view


def diff(prev: ViewState, cur: ViewState, cursor: int, phase: StepPhase, kind: str) -> StepDelta:
    revealed = tuple(
        (i, digits[0])
        for i, digits in sorted(cur.rows.items())
        if len(digits) > len(prev.rows.get(i, ()))
    )
    result_digit = cur.result_digits[0] if len(cur.result_digits) > len(prev.result_digits) else None
    carries_set = {c: v for c, v in cur.carries.items() if prev.carries.get(c) != v}
    carries_cleared = tuple(sorted(c for c in prev.carries if c not in cur.carries))
    return StepDelta(
        cursor=cursor,
        phase=phase,
        kind=kind,
        revealed_digits=revealed,
        result_digit=result_digit,
        carries_set=carries_set,
        carries_cleared=carries_cleared,
        highlight=cur.highlight,
        highlight_column=cur.highlight_column,
        finished=cur.finished,
    )
