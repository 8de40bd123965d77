# -----------------------------------------------------------------------------
# Partial product rows
# Goal: For every multiplier digit (rightmost first), compute A * digit as a
#       digit row, widened by a leading carry when needed and right-padded
#       with zeros for place value.
# -----------------------------------------------------------------------------

from __future__ import annotations
from typing import List

from .digits import shift_for

def generate_row(a_digits: List[int], multiplier_digit: int, shift: int) -> List[int]:
    """
    Multiply every digit of A by a single multiplier digit.
    - Walks A from least to most significant, carrying p // 10 leftward.
    - A leftover carry becomes one extra leading digit (9 x 9 -> [8, 1]).
    - `shift` trailing zeros are appended.
    A zero multiplier digit yields len(A) zeros (plus padding); the row is kept.
    """
    row: List[int] = []
    carry = 0
    for d in reversed(a_digits):
        p = d * multiplier_digit + carry
        row.insert(0, p % 10)
        carry = p // 10
    if carry > 0:
        row.insert(0, carry)
    return row + [0] * shift

def generate_rows(a_digits: List[int], b_digits: List[int]) -> List[List[int]]:
    # Rows in processing order: rightmost multiplier digit (shift 0) first.
    m = len(b_digits)
    return [generate_row(a_digits, b_digits[i], shift_for(i, m)) for i in range(m - 1, -1, -1)]
