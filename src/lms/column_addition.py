# -----------------------------------------------------------------------------
# Column addition
# Goal: Sum the right-aligned partial-product rows column by column, from the
#       ones column leftward, emitting one AdditionStep per column and a final
#       carry-flush step when the last column overflows.
# -----------------------------------------------------------------------------

from __future__ import annotations
from typing import List, Tuple

from .digits import column_of
from .types import AdditionStep

def _column_digit(row: List[int], column: int) -> int:
    # Digit of a right-aligned row at an absolute column.
    index = len(row) - 1 - column
    if not 0 <= index < len(row):
        raise IndexError(f"column {column} outside row of length {len(row)}")
    if column_of(index, len(row)) != column:
        raise AssertionError(f"row index {index} does not map to column {column}")
    return row[index]

def sum_rows(rows: List[List[int]]) -> Tuple[AdditionStep, ...]:
    """
    Column-wise summation of partial products.
    - W = longest row; columns 0..W-1 each yield exactly one step, even when no
      row reaches that column.
    - Rows shorter than a column simply contribute no addend.
    - A carry left after column W-1 is flushed at column W with no addends.
    """
    if not rows:
        return ()
    width = max(len(r) for r in rows)
    steps: List[AdditionStep] = []
    carry = 0

    for col in range(width):
        addends = tuple(_column_digit(r, col) for r in rows if col < len(r))
        total = sum(addends) + carry
        steps.append(AdditionStep(
            column_index=col,
            addends=addends,
            used_carry=carry,
            sum=total,
            display_digit=total % 10,
            produced_carry=total // 10,
        ))
        carry = total // 10

    if carry > 0:
        steps.append(AdditionStep(
            column_index=width,
            addends=(),
            used_carry=carry,
            sum=carry,
            display_digit=carry,
            produced_carry=0,
        ))

    return tuple(steps)
