# -----------------------------------------------------------------------------
# Digit step expander
# Purpose:
#   Unroll the partial-product computation into one record per elementary
#   digit-by-digit multiplication, plus a carry-flush record for every row
#   that overflows. Order is pencil-and-paper order: rightmost multiplier
#   digit first, and within a row rightmost multiplicand digit first.
# -----------------------------------------------------------------------------

from __future__ import annotations
from typing import Dict, List

from .digits import column_of, shift_for
from .types import FLUSH, Expansion, MultiplicationStep

def expand(a_digits: List[int], b_digits: List[int]) -> Expansion:
    """
    Produce the ordered MultiplicationSteps for A x B.

    Each step records the carry it consumed and the carry it produced, so a
    narrator can show the chain without recomputing it. A row ending with a
    non-zero carry gets a flush step (multiplicand_index = FLUSH) with
    used_carry = 0 and product = display_digit = the outstanding carry.

    The returned Expansion also carries the fold result: carries left
    outstanding per row after its last step, keyed by target column.
    """
    n, m = len(a_digits), len(b_digits)
    steps: List[MultiplicationStep] = []
    pending: Dict[int, int] = {}

    for i in range(m - 1, -1, -1):
        shift = shift_for(i, m)
        carry = 0
        for j in range(n - 1, -1, -1):
            product = a_digits[j] * b_digits[i] + carry
            steps.append(MultiplicationStep(
                multiplier_index=i,
                multiplicand_index=j,
                product=product,
                used_carry=carry,
                produced_carry=product // 10,
                display_digit=product % 10,
                column=column_of(j, n, shift),
            ))
            carry = product // 10

        if carry > 0:
            steps.append(MultiplicationStep(
                multiplier_index=i,
                multiplicand_index=FLUSH,
                product=carry,
                used_carry=0,
                produced_carry=0,
                display_digit=carry,
                column=column_of(FLUSH, n, shift),
            ))

        last = steps[-1]
        if last.produced_carry:
            pending[last.column + 1] = last.produced_carry

    return Expansion(steps=tuple(steps), pending_carries=pending)
