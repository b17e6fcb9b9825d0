from datetime import datetime, timedelta

from tally.model import Release
from tally.total import Total
from tally.version import parse_version

T0 = datetime(2018, 1, 1)
T1 = T0 + timedelta(days=1)
T2 = T0 + timedelta(days=2)
T3 = T0 + timedelta(days=3)


def _release(release_id, crate_id, created_at):
    return Release(
        id=release_id,
        crate_id=crate_id,
        num=parse_version("1.0.0"),
        created_at=created_at,
    )


def _total():
    return Total(
        [
            _release(1, 1, T0),
            _release(2, 2, T1),
            _release(3, 1, T2),
            _release(4, 3, T3),
        ]
    )


def test_before_first_release_is_zero():
    assert _total().eval(T0 - timedelta(seconds=1)) == 0


def test_exact_time_counts_the_crate():
    total = _total()
    assert total.eval(T0) == 1
    assert total.eval(T1) == 2


def test_repeat_release_of_same_crate_not_counted():
    total = _total()
    assert total.eval(T2) == 2
    assert total.eval(T1 + timedelta(hours=12)) == 2


def test_after_all_counts_distinct_crates():
    total = _total()
    assert total.eval(T3) == 3
    assert total.eval(T3 + timedelta(days=365)) == 3


def test_empty_releases():
    assert Total([]).eval(T0) == 0


def test_monotonic_over_time():
    total = _total()
    times = [T0 + timedelta(hours=hours) for hours in range(-5, 100, 5)]
    counts = [total.eval(moment) for moment in times]
    assert counts == sorted(counts)
    assert counts[-1] == 3