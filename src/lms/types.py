# -----------------------------------------------------------------------------
# Types module: Shared dataclasses for the long multiplication stepper
# Purpose:
#   Define structured, immutable records for the atomic arithmetic steps
#   emitted by the digit expander and the column adder, and the markers that
#   separate the two phases inside a timeline.
# -----------------------------------------------------------------------------

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any, ClassVar, Dict, Tuple

# Sentinel multiplicand index for the carry-flush step that closes a row.
FLUSH = -1

@dataclass(frozen=True)
class MultiplicationStep:
    """
    One elementary digit-by-digit multiplication (or a row's carry flush).
    - multiplier_index: index into B's digits (most-significant first)
    - multiplicand_index: index into A's digits, or FLUSH for the trailing carry
    - product: A[j]*B[i] + used_carry (or the flushed carry itself)
    - used_carry / produced_carry: carry chain within the row
    - display_digit: product % 10, the digit written into the partial product
    - column: absolute result column the digit lands in (0 = ones)
    """
    kind: ClassVar[str] = "multiplication"

    multiplier_index: int
    multiplicand_index: int
    product: int
    used_carry: int
    produced_carry: int
    display_digit: int
    column: int

    @property
    def is_flush(self) -> bool:
        return self.multiplicand_index == FLUSH

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, **asdict(self)}

@dataclass(frozen=True)
class AdditionStep:
    """
    One column of the partial-product summation.
    addends holds exactly the row digits whose shifted column equals
    column_index, in row order; it is empty for the final carry flush.
    """
    kind: ClassVar[str] = "addition"

    column_index: int
    addends: Tuple[int, ...]
    used_carry: int
    sum: int
    display_digit: int
    produced_carry: int

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["addends"] = list(self.addends)
        return {"kind": self.kind, **d}

@dataclass(frozen=True)
class DividerMarker:
    # Horizontal rule drawn after a phase ("multiplication" | "addition").
    kind: ClassVar[str] = "divider"

    phase: str

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "phase": self.phase}

@dataclass(frozen=True)
class Expansion:
    """
    Fold result of the digit expander: the ordered steps plus the carries
    still outstanding after the last emitted step of every row, keyed by the
    result column they would be added to. A complete expansion always flushes,
    so pending_carries is empty; the sequencer seeds the addition view from it
    instead of replaying the carry chain.
    """
    steps: Tuple[MultiplicationStep, ...]
    pending_carries: Dict[int, int] = field(default_factory=dict)
