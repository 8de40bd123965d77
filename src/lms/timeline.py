# -----------------------------------------------------------------------------
# Timeline: end-to-end step generation for one (A, B) pair
# Responsibilities:
#   • Validate and digitize both operands (fails before anything is built)
#   • Partial-product rows, digit steps and column-addition steps
#   • Concatenate them with the two phase dividers into one ordered timeline
#   • Check the reconstructed result against A * B computed directly
# -----------------------------------------------------------------------------

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from .column_addition import sum_rows
from .digit_steps import expand
from .digits import Operand, digits_to_int, to_digits
from .partial_products import generate_rows
from .tracer import Tracer
from .types import AdditionStep, DividerMarker, MultiplicationStep

Entry = Union[MultiplicationStep, DividerMarker, AdditionStep]

MULTIPLICATION_DIVIDER = DividerMarker(phase="multiplication")
ADDITION_DIVIDER = DividerMarker(phase="addition")


@dataclass(frozen=True)
class StepTimeline:
    # Immutable, fully derived from (a_digits, b_digits).
    a_digits: Tuple[int, ...]
    b_digits: Tuple[int, ...]
    rows: Tuple[Tuple[int, ...], ...]
    multiplication_steps: Tuple[MultiplicationStep, ...]
    addition_steps: Tuple[AdditionStep, ...]
    pending_carries: Tuple[Tuple[int, int], ...]
    result: int

    @property
    def a(self) -> int:
        return digits_to_int(list(self.a_digits))

    @property
    def b(self) -> int:
        return digits_to_int(list(self.b_digits))

    @property
    def entries(self) -> Tuple[Entry, ...]:
        return (self.multiplication_steps + (MULTIPLICATION_DIVIDER,)
                + self.addition_steps + (ADDITION_DIVIDER,))

    @property
    def total_steps(self) -> int:
        return len(self.multiplication_steps) + 1 + len(self.addition_steps) + 1

    @property
    def row_width(self) -> int:
        # W: longest partial-product row
        return max(len(r) for r in self.rows)

    def result_digits(self) -> List[int]:
        # Display digits of the addition phase, most significant first.
        return [s.display_digit for s in reversed(self.addition_steps)]

    def reconstructed_result(self) -> int:
        return digits_to_int(self.result_digits())

    def entry(self, cursor: int) -> Entry:
        """Entry applied when the cursor moves from cursor-1 to cursor (1-based)."""
        if not 1 <= cursor <= self.total_steps:
            raise IndexError(f"cursor {cursor} outside 1..{self.total_steps}")
        return self.entries[cursor - 1]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "a": self.a,
            "b": self.b,
            "result": self.result,
            "total_steps": self.total_steps,
            "rows": [list(r) for r in self.rows],
            "multiplication_steps": [s.to_dict() for s in self.multiplication_steps],
            "addition_steps": [s.to_dict() for s in self.addition_steps],
            "entries": [e.to_dict() for e in self.entries],
        }


def build_timeline(a: Operand, b: Operand, tracer: Optional[Tracer] = None) -> StepTimeline:
    """
    Generate the complete step timeline for a x b.
    Raises InvalidOperand before any step is produced if either operand is bad;
    raises AssertionError if the reconstructed result disagrees with a * b.
    """
    trace = tracer if tracer is not None else Tracer()
    a_digits = to_digits(a, "multiplicand")
    b_digits = to_digits(b, "multiplier")
    trace.add("operands", {"a": a_digits, "b": b_digits})

    rows = generate_rows(a_digits, b_digits)
    for r in rows:
        trace.add("partial_row", {"digits": r})

    expansion = expand(a_digits, b_digits)
    trace.add("expansion", {
        "steps": len(expansion.steps),
        "flushes": sum(1 for s in expansion.steps if s.is_flush),
        "pending_carries": dict(expansion.pending_carries),
    })

    additions = sum_rows(rows)
    trace.add("addition", {"steps": len(additions), "width": max(len(r) for r in rows)})

    expected = digits_to_int(a_digits) * digits_to_int(b_digits)
    timeline = StepTimeline(
        a_digits=tuple(a_digits),
        b_digits=tuple(b_digits),
        rows=tuple(tuple(r) for r in rows),
        multiplication_steps=expansion.steps,
        addition_steps=additions,
        pending_carries=tuple(sorted(expansion.pending_carries.items())),
        result=expected,
    )
    got = timeline.reconstructed_result()
    trace.add("result_check", {"expected": expected, "reconstructed": got})
    if got != expected:
        raise AssertionError(f"column addition produced {got}, expected {expected}")
    return timeline
