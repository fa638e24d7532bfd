"""Tests for scope filtering."""

from datetime import date

from journal_analytics.analytics.filters import (
    TradeFilters,
    prior_period_range,
    select_trades_in_scope,
)
from journal_analytics.core.enums import Session


class TestSelectTradesInScope:
    def test_no_filters(self, make_series):
        trades = make_series([1.0, 2.0])
        assert select_trades_in_scope(trades) == trades
        assert select_trades_in_scope(trades, TradeFilters()) == trades

    def test_date_range_inclusive(self, make_series):
        trades = make_series([1.0, 2.0, 3.0, 4.0])
        f = TradeFilters(date_from=date(2024, 1, 2), date_to=date(2024, 1, 3))
        assert [t.r_multiple for t in select_trades_in_scope(trades, f)] == [2.0, 3.0]

    def test_account_all_disables_filter(self, make_trade):
        trades = [make_trade(1.0, account_id="a1"), make_trade(1.0, account_id="a2")]
        assert len(select_trades_in_scope(trades, TradeFilters(account_id="a1"))) == 1
        assert len(select_trades_in_scope(trades, TradeFilters(account_id="all"))) == 2

    def test_symbols_and_playbook(self, make_trade):
        trades = [
            make_trade(1.0, symbol="EURUSD", playbook_id="pb1"),
            make_trade(1.0, symbol="GBPUSD", playbook_id="pb1"),
            make_trade(1.0, symbol="EURUSD", playbook_id="pb2"),
        ]
        f = TradeFilters(symbols=["EURUSD"], playbook_id="pb1")
        assert [t.trade_id for t in select_trades_in_scope(trades, f)] == [trades[0].trade_id]

    def test_untagged_trades_pass_session_filter(self, make_trade):
        trades = [
            make_trade(1.0, session="london"),
            make_trade(1.0, session="asia"),
            make_trade(1.0),
        ]
        f = TradeFilters(sessions=[Session.LONDON])
        kept = select_trades_in_scope(trades, f)
        assert [t.trade_id for t in kept] == [trades[0].trade_id, trades[2].trade_id]


def test_prior_period_range():
    assert prior_period_range(date(2024, 2, 1), date(2024, 2, 29)) == (
        date(2024, 1, 3),
        date(2024, 1, 31),
    )
    assert prior_period_range(date(2024, 3, 10), date(2024, 3, 10)) == (
        date(2024, 3, 9),
        date(2024, 3, 9),
    )
