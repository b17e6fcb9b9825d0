"""Naive UTC timestamps as ``datetime`` values, with epoch arithmetic."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

__all__ = [
    "minimum",
    "now",
    "seconds",
    "millis",
    "subsec_nanos",
    "from_timestamp",
    "format_debug",
]

_EPOCH = datetime(1970, 1, 1)
_NANOS_PER_SECOND = 1_000_000_000


def minimum() -> datetime:
    """The earliest timestamp: the Unix epoch."""
    return _EPOCH


def now() -> datetime:
    """The current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def seconds(moment: datetime) -> int:
    """Whole seconds since the epoch, rounded toward negative infinity."""
    return (moment - _EPOCH) // timedelta(seconds=1)


def millis(moment: datetime) -> int:
    """Whole milliseconds since the epoch, rounded toward negative infinity."""
    return (moment - _EPOCH) // timedelta(milliseconds=1)


def subsec_nanos(moment: datetime) -> int:
    """Nanoseconds past the last whole second."""
    return moment.microsecond * 1000


def from_timestamp(secs: int, nanos: int) -> datetime:
    """The moment ``secs`` seconds plus ``nanos`` nanoseconds after the epoch."""
    if not 0 <= nanos < _NANOS_PER_SECOND:
        raise ValueError(f"invalid nanosecond count {nanos}")
    try:
        return _EPOCH + timedelta(seconds=secs, microseconds=nanos // 1000)
    except OverflowError as err:
        raise ValueError(f"timestamp out of range: {secs}") from err


def format_debug(moment: datetime) -> str:
    """ISO-like rendering: date ``T`` time, with only as many fraction digits as needed."""
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    nanos = subsec_nanos(moment)
    if nanos == 0:
        return text
    if nanos % 1_000_000 == 0:
        return f"{text}.{nanos // 1_000_000:03d}"
    if nanos % 1000 == 0:
        return f"{text}.{nanos // 1000:06d}"
    return f"{text}.{nanos:09d}"