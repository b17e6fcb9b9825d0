import struct
from datetime import datetime, timedelta

import pytest

from tally.matrix import Matrix, format_f32, format_relative_row, format_row

BASE = datetime(2020, 1, 1)


def _f32(value):
    return struct.unpack("<f", struct.pack("<f", value))[0]


def test_empty_matrix():
    matrix = Matrix(2)
    assert len(matrix) == 0
    assert matrix.last() is None
    assert list(matrix) == []
    assert matrix.width() == 2


def test_push_and_iterate_in_order():
    matrix = Matrix(2)
    matrix.push(BASE, [1, 0])
    matrix.push(BASE + timedelta(days=1), [2, 3])
    assert len(matrix) == 2
    assert list(matrix) == [(BASE, (1, 0)), (BASE + timedelta(days=1), (2, 3))]
    assert matrix.last() == (BASE + timedelta(days=1), (2, 3))


def test_pushed_rows_are_copied():
    matrix = Matrix(1)
    values = [4]
    matrix.push(BASE, values)
    values[0] = 5
    assert matrix.last()[1] == (4,)


def test_format_row_debug_list():
    assert format_row([1, 2, 3]) == "[1, 2, 3]"
    assert format_row([]) == "[]"


def test_format_f32_simple_values():
    assert format_f32(0.5) == "0.5"
    assert format_f32(1.0) == "1"
    assert format_f32(0.0) == "0"


@pytest.mark.parametrize("value", [1 / 3, 0.1, 2 / 7, 123.456, 1e-7, 3e10, 0.015625])
def test_format_f32_round_trips(value):
    text = format_f32(value)
    assert "e" not in text
    assert _f32(float(text)) == _f32(value)


def test_format_f32_is_shortest():
    text = format_f32(0.1)
    assert _f32(float(text)) == _f32(0.1)
    assert len(text) == len(str(0.1))


def test_relative_row_fractions():
    assert format_relative_row([1, 2], 4) == "[0.25, 0.5]"
    assert format_relative_row([4], 4) == "[1.0]"


@pytest.mark.parametrize("numerator,denominator", [(1, 3), (2, 7), (5, 11)])
def test_relative_row_round_trips(numerator, denominator):
    text = format_relative_row([numerator], denominator)
    inner = text[1:-1]
    assert _f32(float(inner)) == _f32(_f32(numerator) / _f32(denominator))


def test_relative_row_zero_numerator():
    assert format_relative_row([0, 0], 5) == "[0.0, 0.0]"