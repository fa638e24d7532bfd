"""Tests for the click command-line front end."""

import json
import logging
from datetime import date, timedelta

import pytest
from click.testing import CliRunner

from journal_analytics.cli import main


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def trades_file(tmp_path):
    start = date(2024, 1, 1)
    rows = [
        {
            "trade_id": f"c{i}",
            "symbol": "EURUSD" if i % 2 else "GBPUSD",
            "direction": "long",
            "entry_date": (start + timedelta(days=i)).isoformat(),
            "entry_time": "09:30:00",
            "exit_date": (start + timedelta(days=i)).isoformat(),
            "exit_time": "10:15:00",
            "r_multiple": r,
            "pnl": r * 100,
            "account_id": "acc1",
        }
        for i, r in enumerate([2.0, -1.0, 3.0, -1.0, 1.0])
    ]
    path = tmp_path / "trades.json"
    path.write_text(json.dumps(rows))
    return str(path)


@pytest.fixture
def playbook_file(tmp_path):
    def _write(rubric=None):
        data = {
            "id": "pb1",
            "name": "London open",
            "rules": [{"id": "trend", "type": "must", "weight": 1.0}],
            "confluences": [{"id": "fvg", "weight": 1.0, "primary": True}],
        }
        if rubric is not None:
            data["rubric"] = rubric
        path = tmp_path / "playbook.json"
        path.write_text(json.dumps(data))
        return str(path)

    return _write


def _invoke(runner, *args):
    return runner.invoke(main, ["--log-level", "WARNING", *args])


class TestAnalyticsCommands:
    def test_kpis(self, runner, trades_file):
        result = _invoke(runner, "kpis", trades_file)
        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["n"] == 5
        assert payload["net_r"] == 4.0
        assert payload["profit_factor"] == {"kind": "finite", "value": 3.0}

    def test_kpis_date_scope(self, runner, trades_file):
        result = _invoke(runner, "kpis", trades_file, "--from", "2024-01-03")
        payload = json.loads(result.output)
        assert payload["n"] == 3

    def test_kpis_convention(self, runner, trades_file):
        result = _invoke(runner, "kpis", trades_file, "--convention", "pnl_sign")
        assert json.loads(result.output)["wins"] == 3

    def test_breakdown(self, runner, trades_file):
        result = _invoke(runner, "breakdown", trades_file, "--by", "symbol")
        payload = json.loads(result.output)
        assert set(payload) == {"EURUSD", "GBPUSD"}
        assert payload["GBPUSD"]["n"] == 3
        assert payload["GBPUSD"]["exploratory"] is True

    def test_histogram(self, runner, trades_file):
        result = _invoke(runner, "histogram", trades_file, "--metric", "hold")
        payload = json.loads(result.output)
        assert len(payload["buckets"]) == 16
        assert payload["quartiles"]["median"] == 45

    def test_streaks(self, runner, trades_file):
        result = _invoke(runner, "streaks", trades_file, "--as-of", "2024-01-10")
        payload = json.loads(result.output)
        assert payload["current_streak"] == 1
        assert payload["current_streak_type"] == "win"
        assert payload["days_since_last_trade"] == 5

    def test_equity(self, runner, trades_file):
        result = _invoke(runner, "equity", trades_file)
        payload = json.loads(result.output)
        assert len(payload["curve"]) == 5
        assert payload["monthly"][0]["month"] == "2024-01"

    def test_insights_placeholder(self, runner, trades_file):
        result = _invoke(runner, "insights", trades_file)
        payload = json.loads(result.output)
        assert payload[0]["category"] == "insufficient_data"

    def test_trim_outliers_below_floor_is_noop(self, runner, trades_file):
        result = _invoke(runner, "kpis", trades_file, "--trim-outliers")
        assert json.loads(result.output)["n"] == 5

    def test_bad_trade_file(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("[{\"trade_id\": 1}]")
        result = _invoke(runner, "kpis", str(path))
        assert result.exit_code == 1


class TestPlaybookCommands:
    def test_score(self, runner, playbook_file):
        result = _invoke(runner, "score", playbook_file(), "--confluence", "fvg")
        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        # rules 0%, confluences 100%: 0.4 - 0.4 penalty
        assert payload["score"] == 0.0
        assert payload["grade"] == "F"
        assert payload["parts"]["missed_must"] is True
        assert payload["explanation"][-1] == "Score 0.00 -> grade F"

    def test_score_perfect(self, runner, playbook_file):
        result = _invoke(runner, "score", playbook_file(), "--rule", "trend", "--confluence", "fvg")
        assert json.loads(result.output)["grade"] == "A+"

    def test_score_invalidated(self, runner, playbook_file):
        result = _invoke(
            runner, "score", playbook_file(), "--rule", "trend", "--invalidation", "news"
        )
        assert json.loads(result.output)["parts"]["has_invalidations"] is True

    def test_validate_rubric(self, runner, playbook_file):
        ok = _invoke(runner, "validate-rubric", playbook_file())
        assert ok.exit_code == 0
        assert json.loads(ok.output) == {"playbook": "pb1", "valid": True}

        bad = _invoke(
            runner, "validate-rubric",
            playbook_file({"weight_rules": 0.5, "weight_confluences": 0.2}),
        )
        assert bad.exit_code == 1


class TestErrorReporting:
    def test_negative_hold_time_is_reported(self, runner, tmp_path):
        path = tmp_path / "corrupt.json"
        path.write_text(json.dumps([{
            "trade_id": "bad",
            "symbol": "EURUSD",
            "direction": "long",
            "entry_date": "2024-01-02",
            "entry_time": "10:00:00",
            "exit_date": "2024-01-02",
            "exit_time": "09:00:00",
            "r_multiple": 1.0,
        }]))
        for command in ("kpis", "breakdown"):
            result = _invoke(runner, command, str(path))
            assert result.exit_code == 1, command
            assert isinstance(result.exception, SystemExit)
            assert "negative hold time" in result.output

    def test_non_finite_r_is_an_import_error(self, runner, tmp_path):
        path = tmp_path / "nan.csv"
        path.write_text("trade_id,symbol,direction,entry_date,r_multiple\nn1,EURUSD,long,2024-01-02,nan\n")
        result = _invoke(runner, "kpis", str(path))
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)

    @pytest.mark.parametrize("command", ["score", "validate-rubric"])
    def test_invalid_playbook_is_reported(self, runner, tmp_path, command):
        path = tmp_path / "playbook.json"
        path.write_text(json.dumps({"id": "pb", "rules": [{"id": "r", "weight": -1}]}))
        result = _invoke(runner, command, str(path))
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "not a valid playbook" in result.output

    def test_malformed_playbook_json_is_reported(self, runner, tmp_path):
        path = tmp_path / "playbook.json"
        path.write_text("{not json")
        result = _invoke(runner, "validate-rubric", str(path))
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
