# -----------------------------------------------------------------------------
# Digit extraction & place-value mapping
# Purpose:
#   Turn operands (int or decimal text) into digit lists, most-significant
#   first, and map (row, digit index) coordinates onto absolute result
#   columns.
# Safety:
#   - Raises InvalidOperand on empty text, non-digit characters, negative or
#     non-integer values. Nothing malformed ever reaches the step generators.
# -----------------------------------------------------------------------------

from __future__ import annotations
from typing import List, Union

Operand = Union[int, str]

_DIGITS = "0123456789"

class InvalidOperand(ValueError): pass

def to_digits(value: Operand, name: str = "operand") -> List[int]:
    """
    Parse an operand into its decimal digits, most-significant first.
    - int: must be >= 0 (bool is rejected even though it subclasses int)
    - str: ASCII digits only; leading zeros are normalized away ("007" -> [7])
    """
    if isinstance(value, bool):
        raise InvalidOperand(f"{name} must be an integer, got bool")
    if isinstance(value, int):
        if value < 0:
            raise InvalidOperand(f"{name} must be non-negative, got {value}")
        text = str(value)
    elif isinstance(value, str):
        text = value
    else:
        raise InvalidOperand(f"{name} must be int or str, got {type(value).__name__}")

    if not text:
        raise InvalidOperand(f"{name} is empty")
    bad = [ch for ch in text if ch not in _DIGITS]
    if bad:
        raise InvalidOperand(f"{name} contains non-digit characters: {''.join(bad)!r}")

    text = text.lstrip("0") or "0"
    return [_DIGITS.index(ch) for ch in text]

def shift_for(multiplier_index: int, multiplier_len: int) -> int:
    # Place-value shift (trailing zeros) of the row for B[multiplier_index].
    return multiplier_len - 1 - multiplier_index

def column_of(index: int, length: int, shift: int = 0) -> int:
    """
    Absolute result column (0 = ones) of digit `index` in a sequence of
    `length` digits whose least-significant digit sits at column `shift`.
    index == -1 (the flush sentinel) maps one column left of the leading digit.
    This is the only place the row/column coordinate systems meet.
    """
    return length - 1 - index + shift

def digits_to_int(digits: List[int]) -> int:
    n = 0
    for d in digits:
        n = n * 10 + d
    return n
