"""Time series of per-query counts, and their textual rendering."""

from __future__ import annotations

import math
import struct
from collections.abc import Iterable, Iterator, Sequence
from datetime import datetime
from decimal import Decimal

__all__ = ["Matrix", "format_f32", "format_row", "format_relative_row"]


class Matrix:
    """Rows of ``(timestamp, counts)`` with one count per query."""

    def __init__(self, queries: int) -> None:
        self._queries = queries
        self._rows: list[tuple[datetime, tuple[int, ...]]] = []

    def width(self) -> int:
        return self._queries

    def push(self, timestamp: datetime, data: Iterable[int]) -> None:
        self._rows.append((timestamp, tuple(data)))

    def last(self) -> tuple[datetime, tuple[int, ...]] | None:
        return self._rows[-1] if self._rows else None

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[tuple[datetime, tuple[int, ...]]]:
        return iter(self._rows)


def _to_f32(value: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _shortest_decimal(value: float) -> Decimal:
    """The shortest decimal that reads back as the same single-precision value."""
    for precision in range(9):
        text = f"{value:.{precision}e}"
        if _to_f32(float(text)) == value:
            return Decimal(text).normalize()
    return Decimal(repr(value)).normalize()


def _special(value: float) -> str | None:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return None


def format_f32(value: float) -> str:
    """Render as a single-precision float: shortest digits, never an exponent."""
    value = _to_f32(value)
    special = _special(value)
    if special is not None:
        return special
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"
    return format(_shortest_decimal(value), "f")


_DEBUG_LOW = _to_f32(1e-4)
_DEBUG_HIGH = _to_f32(1e16)


def _format_f32_debug(value: float) -> str:
    value = _to_f32(value)
    special = _special(value)
    if special is not None:
        return special
    if value == 0:
        return "-0.0" if math.copysign(1.0, value) < 0 else "0.0"
    if _DEBUG_LOW <= abs(value) < _DEBUG_HIGH:
        text = format_f32(value)
        return text if "." in text else text + ".0"
    shortest = _shortest_decimal(value)
    sign, digits, _exponent = shortest.as_tuple()
    mantissa = str(digits[0])
    if len(digits) > 1:
        mantissa += "." + "".join(str(digit) for digit in digits[1:])
    prefix = "-" if sign else ""
    return f"{prefix}{mantissa}e{shortest.adjusted()}"


def _divide_f32(numerator: int, denominator: int) -> float:
    top = _to_f32(float(numerator))
    bottom = _to_f32(float(denominator))
    if bottom == 0:
        if top == 0:
            return math.nan
        return math.copysign(math.inf, top)
    return _to_f32(top / bottom)


def format_row(data: Sequence[int]) -> str:
    """Render counts as a bracketed, comma separated list."""
    return "[" + ", ".join(str(value) for value in data) + "]"


def format_relative_row(data: Sequence[int], total: int) -> str:
    """Render each count divided by ``total`` as a single-precision fraction."""
    return "[" + ", ".join(_format_f32_debug(_divide_f32(value, total)) for value in data) + "]"