"""Graph data for the HTML chart of dependency counts over time."""

from __future__ import annotations

import math
import struct
from collections.abc import Sequence
from datetime import datetime

from .matrix import Matrix, format_f32
from .timestamp import from_timestamp, millis, seconds, subsec_nanos
from .total import Total

__all__ = ["graph_title", "format_fraction", "format_point", "graph_data"]

_NONZERO_DIGITS = frozenset("123456789")


def _to_f32(value: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def graph_title(title: str | None, transitive: bool, relative: bool) -> str:
    """The given title, or a default describing what is counted."""
    if title is not None:
        return title
    if relative:
        if transitive:
            return "fraction of crates.io depending transitively"
        return "fraction of crates.io depending directly"
    if transitive:
        return "number of crates depending transitively"
    return "number of crates depending directly"


def format_fraction(fraction: float) -> str:
    """Single-precision rendering kept to four significant digits, trailing zeros dropped."""
    text = format_f32(fraction)
    first = next((i for i, ch in enumerate(text) if ch in _NONZERO_DIGITS), None)
    if first is not None:
        text = text[: first + 4]
    last = max((i for i, ch in enumerate(text) if ch in _NONZERO_DIGITS), default=None)
    if last is not None:
        text = text[: last + 1]
    return text


def format_point(timestamp: datetime, value: int, total: Total | None) -> str:
    """One data point line: milliseconds since the epoch and the count or fraction."""
    if total is None:
        edges = str(value)
    else:
        count = total.eval(timestamp)
        if count == 0:
            edges = "0"
        else:
            edges = format_fraction(_to_f32(float(value)) / _to_f32(float(count)))
    return f'        {{"time":{millis(timestamp)}, "edges":{edges}}},\n'


def graph_data(
    results: Matrix,
    labels: Sequence[str],
    total: Total | None,
    current: datetime,
) -> str:
    """The series of every query, one per label, as a JavaScript array literal.

    Each series starts with a zero point just before its first nonzero value,
    skips repeated values, and is extended to ``current``.
    """
    last = results.last()
    if last is None:
        raise ValueError("no results to graph")
    last_timestamp, last_row = last

    parts = ["[\n"]
    for i, label in enumerate(labels):
        parts.append(f'      {{"name":"{label}", "values":[\n')
        prev: int | None = None
        for timestamp, row in results:
            value = row[i]
            if prev is None:
                if value == 0:
                    continue
                secs = seconds(timestamp)
                if subsec_nanos(timestamp) == 0:
                    secs -= 1
                parts.append(format_point(from_timestamp(secs, 0), 0, total))
            elif prev == value:
                continue
            parts.append(format_point(timestamp, value, total))
            prev = value
        if last_timestamp < current:
            parts.append(format_point(current, last_row[i], total))
        parts.append("      ]},\n")
    parts.append("    ]")
    return "".join(parts)