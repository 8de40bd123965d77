import pytest
from lms.digits import InvalidOperand, column_of, shift_for, to_digits
from lms.partial_products import generate_row, generate_rows
from lms.digit_steps import expand
from lms.column_addition import _column_digit, sum_rows
from lms.types import FLUSH

def _fields(step):
    return (step.multiplier_index, step.multiplicand_index, step.product,
            step.used_carry, step.produced_carry, step.display_digit)

# ---------------- digits ----------------

def test_to_digits_int_and_text():
    assert to_digits(2345) == [2, 3, 4, 5]
    assert to_digits("2345") == [2, 3, 4, 5]
    assert to_digits(0) == [0]
    assert to_digits("0") == [0]

def test_to_digits_strips_leading_zeros():
    assert to_digits("007") == [7]
    assert to_digits("000") == [0]

@pytest.mark.parametrize("bad", ["", "12a", " 12", "1.5", "-3", -3, 1.5, None, True, [1, 2]])
def test_to_digits_rejects_malformed(bad):
    with pytest.raises(InvalidOperand):
        to_digits(bad)

def test_column_mapping():
    # ones digit of an unshifted row sits in column 0
    assert column_of(2, 3) == 0
    assert column_of(0, 3) == 2
    # flush sentinel lands one column left of the leading digit
    assert column_of(FLUSH, 2, shift=1) == 3
    assert shift_for(0, 3) == 2
    assert shift_for(2, 3) == 0

# ---------------- partial products ----------------

def test_generate_row_widens_on_carry():
    assert generate_row([9], 9, 0) == [8, 1]
    assert generate_row([2, 3], 5, 0) == [1, 1, 5]

def test_generate_row_pads_for_place_value():
    assert generate_row([2, 3], 4, 1) == [9, 2, 0]
    assert generate_row([1, 2], 3, 3) == [3, 6, 0, 0, 0]

def test_generate_row_zero_multiplier_digit_kept():
    assert generate_row([4, 5, 6], 0, 2) == [0, 0, 0, 0, 0]

def test_generate_rows_order_and_count():
    rows = generate_rows([2, 3], [4, 5])
    assert rows == [[1, 1, 5], [9, 2, 0]]
    assert len(generate_rows([1, 0], [1, 0, 7])) == 3

# ---------------- digit steps ----------------

def test_expand_23_by_45():
    exp = expand([2, 3], [4, 5])
    assert [_fields(s) for s in exp.steps] == [
        (1, 1, 15, 0, 1, 5),
        (1, 0, 11, 1, 1, 1),
        (1, FLUSH, 1, 0, 0, 1),
        (0, 1, 12, 0, 1, 2),
        (0, 0, 9, 1, 0, 9),
    ]
    assert [s.column for s in exp.steps] == [0, 1, 2, 1, 2]
    assert exp.pending_carries == {}

def test_expand_single_digit_overflow():
    exp = expand([9], [9])
    assert [_fields(s) for s in exp.steps] == [
        (0, 0, 81, 0, 8, 1),
        (0, FLUSH, 8, 0, 0, 8),
    ]
    assert exp.steps[1].is_flush
    assert not exp.steps[0].is_flush

def test_expand_zero_multiplier_row_has_no_flush():
    exp = expand([9, 9], [0])
    assert [s.display_digit for s in exp.steps] == [0, 0]
    assert all(s.produced_carry == 0 for s in exp.steps)

# ---------------- column addition ----------------

def test_sum_rows_23_by_45():
    steps = sum_rows([[1, 1, 5], [9, 2, 0]])
    assert [(s.column_index, s.addends, s.used_carry, s.sum, s.display_digit, s.produced_carry)
            for s in steps] == [
        (0, (5, 0), 0, 5, 5, 0),
        (1, (1, 2), 0, 3, 3, 0),
        (2, (1, 9), 0, 10, 0, 1),
        (3, (), 1, 1, 1, 0),
    ]

def test_sum_rows_short_rows_contribute_nothing():
    steps = sum_rows([[5], [1, 2, 0, 0]])
    assert [s.addends for s in steps] == [(5, 0), (0,), (2,), (1,)]
    assert [s.display_digit for s in reversed(steps)] == [1, 2, 0, 5]

def test_sum_rows_three_rows_overlap():
    # 99 x 999: three rows share columns 2 and 3
    rows = generate_rows([9, 9], [9, 9, 9])
    steps = sum_rows(rows)
    col2 = steps[2]
    assert col2.addends == (8, 9, 1)
    assert col2.sum == 8 + 9 + 1 + col2.used_carry
    assert int("".join(str(s.display_digit) for s in reversed(steps))) == 99 * 999

def test_sum_rows_final_carry_flush():
    # 9 x 19: rows [8, 1] and [9, 0]; the tens column overflows
    steps = sum_rows(generate_rows([9], [1, 9]))
    assert steps[-1].column_index == 2
    assert steps[-1].addends == ()
    assert steps[-1].display_digit == 1
    assert [s.column_index for s in steps] == [0, 1, 2]

def test_sum_rows_empty():
    assert sum_rows([]) == ()

def test_column_digit_outside_row():
    assert _column_digit([1, 2], 0) == 2
    with pytest.raises(IndexError):
        _column_digit([1, 2], 5)
