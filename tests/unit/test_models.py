"""Tests for the immutable input models."""

from datetime import date, datetime, time

import pytest
from pydantic import ValidationError

from journal_analytics.core.enums import Session
from journal_analytics.core.models import Confluence, Rubric, Rule, Trade


def _trade(**kw) -> Trade:
    data = {"trade_id": "m1", "symbol": "NAS100", "direction": "long", "entry_date": date(2024, 5, 6)}
    data.update(kw)
    return Trade(**data)


class TestTrade:
    def test_frozen(self):
        trade = _trade()
        with pytest.raises(ValidationError):
            trade.pnl = 10.0

    def test_optional_fields_are_none(self):
        trade = _trade()
        assert trade.exit_date is None
        assert trade.r_multiple is None
        assert trade.pnl == 0.0

    @pytest.mark.parametrize("raw", ["NY", "new_york", " New_York "])
    def test_session_aliases(self, raw):
        assert _trade(session=raw).session == Session.NY

    def test_blank_session_is_none(self):
        assert _trade(session="").session is None

    def test_unknown_session_rejected(self):
        with pytest.raises(ValidationError):
            _trade(session="sydney")

    @pytest.mark.parametrize("field", ["r_multiple", "pnl", "entry_price"])
    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_numbers_rejected(self, field, value):
        with pytest.raises(ValidationError):
            _trade(**{field: value})

    @pytest.mark.parametrize("bucket, expected", [("A2", Session.ASIA), ("L1", Session.LONDON), ("NY3", Session.NY)])
    def test_resolved_session_from_bucket(self, bucket, expected):
        assert _trade(session_hour=bucket).resolved_session == expected

    def test_close_date_and_timestamp(self):
        open_trade = _trade(entry_time=time(14, 0))
        assert open_trade.close_date == date(2024, 5, 6)
        assert open_trade.close_timestamp == datetime(2024, 5, 6, 14, 0)
        closed = _trade(exit_date=date(2024, 5, 7), exit_time=time(9, 15))
        assert closed.close_date == date(2024, 5, 7)
        assert closed.close_timestamp == datetime(2024, 5, 7, 9, 15)


class TestPlaybookModels:
    def test_weight_must_be_positive(self):
        with pytest.raises(ValidationError):
            Rule(id="r", weight=0)
        with pytest.raises(ValidationError):
            Confluence(id="c", weight=-1)

    def test_rubric_defaults(self):
        rubric = Rubric()
        assert (rubric.weight_rules, rubric.weight_confluences, rubric.must_rule_penalty) == (0.6, 0.4, 0.4)
        assert rubric.grade_cutoffs["B"] == 0.8

    def test_rubric_construction_does_not_validate(self):
        assert Rubric(weight_rules=0.9, weight_confluences=0.9).weight_rules == 0.9
