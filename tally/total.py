"""Number of crates that existed at a given time."""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable
from datetime import datetime

from .model import Release

__all__ = ["Total"]


class Total:
    """Creation times of each crate's first release, for counting crates over time.

    The releases must be sorted by creation time.
    """

    def __init__(self, releases: Iterable[Release]) -> None:
        seen: set[int] = set()
        self._times: list[datetime] = []
        for release in releases:
            if release.crate_id not in seen:
                seen.add(release.crate_id)
                self._times.append(release.created_at)

    def eval(self, time: datetime) -> int:
        """How many crates had been published at or before ``time``."""
        return bisect_right(self._times, time)