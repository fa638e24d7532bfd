"""Property test: histogram, quartile and outlier-trim invariants."""

from datetime import date

from hypothesis import given, settings, strategies as st

from journal_analytics.analytics.distribution import histogram, quartiles, remove_outliers
from journal_analytics.core.enums import Direction
from journal_analytics.core.models import Trade

finite = st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False)


def _trades(rs: list[float]) -> list[Trade]:
    return [
        Trade(
            trade_id=f"p{i}",
            symbol="EURUSD",
            direction=Direction.LONG,
            entry_date=date(2024, 1, 1),
            r_multiple=r,
        )
        for i, r in enumerate(rs)
    ]


@given(values=st.lists(finite, max_size=200))
@settings(max_examples=200)
def test_histogram_counts_every_value(values):
    """Out-of-domain values are clamped, so no value is lost."""
    buckets = histogram(values, (-3.0, 5.0), 0.5)
    assert len(buckets) == 16
    assert sum(b.count for b in buckets) == len(values)


@given(values=st.lists(finite, min_size=1, max_size=200))
@settings(max_examples=200)
def test_quartiles_are_ordered(values):
    q = quartiles(values)
    assert q.min <= q.q1 <= q.median <= q.q3 <= q.max
    assert q.min == min(values)
    assert q.max == max(values)


@given(rs=st.lists(finite, max_size=9))
def test_trim_is_identity_below_floor(rs):
    trades = _trades(rs)
    assert remove_outliers(trades) == trades


@given(rs=st.lists(finite, min_size=10, max_size=120))
@settings(max_examples=200)
def test_trim_keeps_an_ordered_subset(rs):
    trades = _trades(rs)
    kept = remove_outliers(trades)
    ids = [t.trade_id for t in trades]
    positions = [ids.index(t.trade_id) for t in kept]
    assert positions == sorted(positions)
    assert 0 < len(kept) <= len(trades)
    # Kept values never exceed the input range
    assert all(min(rs) <= t.r_multiple <= max(rs) for t in kept)
