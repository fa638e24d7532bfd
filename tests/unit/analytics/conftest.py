"""Shared fixtures for analytics tests."""

import itertools
from datetime import date, datetime, time, timedelta

import pytest

from journal_analytics.core.models import Confluence, Rubric, Rule, Trade
from journal_analytics.core.enums import RuleType


def build_trade(
    trade_id: str = "t1",
    r: float | None = None,
    *,
    pnl: float | None = None,
    day: date = date(2024, 1, 2),
    entry_time: time | None = time(9, 30),
    hold: int | None = 30,
    **fields,
) -> Trade:
    """Build a trade journaled R-first (stored R, no prices).

    ``hold`` is minutes from entry to exit; ``None`` leaves the trade
    without an exit.  ``pnl`` defaults to 100 per R.
    """
    data = {
        "trade_id": trade_id,
        "symbol": "EURUSD",
        "direction": "long",
        "entry_date": day,
        "entry_time": entry_time,
        "r_multiple": r,
        "pnl": pnl if pnl is not None else (r or 0.0) * 100,
    }
    if hold is not None:
        start = datetime.combine(day, entry_time or time.min)
        end = start + timedelta(minutes=hold)
        data["exit_date"] = end.date()
        data["exit_time"] = end.time() if entry_time is not None else None
    data.update(fields)
    return Trade(**data)


@pytest.fixture
def make_trade():
    """Factory fixture; trade ids are assigned sequentially."""
    ids = itertools.count(1)

    def _make(r=None, **kwargs):
        kwargs.setdefault("trade_id", f"t{next(ids)}")
        return build_trade(r=r, **kwargs)

    return _make


@pytest.fixture
def make_series(make_trade):
    """Trades with the given R values on consecutive days from 2024-01-01."""

    def _make(rs, start: date = date(2024, 1, 1), **kwargs):
        return [
            make_trade(r, day=start + timedelta(days=i), **kwargs)
            for i, r in enumerate(rs)
        ]

    return _make


@pytest.fixture
def playbook_parts():
    rules = [
        Rule(id="trend", type=RuleType.MUST, weight=2.0),
        Rule(id="session", type=RuleType.SHOULD, weight=1.0),
        Rule(id="news", type=RuleType.OPTIONAL, weight=1.0),
    ]
    confluences = [
        Confluence(id="fvg", weight=1.0, primary=True),
        Confluence(id="ob", weight=1.0),
    ]
    return rules, confluences


@pytest.fixture
def rubric():
    return Rubric()
