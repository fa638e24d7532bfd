"""Daily streaks, drawdown runs and recovery time.

Trades are first rolled up into one ``DailyAggregate`` per calendar day
(the close date, i.e. exit date or entry date).  Every streak works on the
sign of the daily P&L: a positive day extends a win run, a negative day
extends a loss run, and a flat day breaks both.

Usage::

    report = detect_streaks(trades, as_of=date.today())
    print(report.current_streak, report.current_streak_type)
    print(report.best_win_streak, report.best_win_streak_dates)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from ..core.enums import StreakType
from ..core.models import Trade
from .metrics import resolve_r

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailyAggregate:
    day: date
    total_pnl: float = 0.0
    total_r: float = 0.0
    trade_count: int = 0
    win_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day.isoformat(),
            "total_pnl": self.total_pnl,
            "total_r": self.total_r,
            "trade_count": self.trade_count,
            "win_count": self.win_count,
        }


@dataclass(frozen=True)
class DateSpan:
    start: date
    end: date

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass(frozen=True)
class RecoveryCycle:
    """One peak -> trough -> back-to-peak cycle of cumulative daily P&L."""

    peak: float
    trough: float
    trough_day: date
    recovery_day: date
    days: int  # trading days from trough to recovery

    def to_dict(self) -> dict[str, Any]:
        return {
            "peak": self.peak,
            "trough": self.trough,
            "trough_day": self.trough_day.isoformat(),
            "recovery_day": self.recovery_day.isoformat(),
            "days": self.days,
        }


@dataclass(frozen=True)
class StreakReport:
    current_streak: int = 0
    current_streak_type: StreakType = StreakType.NONE
    best_win_streak: int = 0
    best_win_streak_dates: DateSpan | None = None
    longest_drawdown: int = 0
    longest_drawdown_dates: DateSpan | None = None
    days_to_recover: int = 0
    recovery_cycles: list[RecoveryCycle] = field(default_factory=list)
    trading_days: int = 0
    green_day_pct: float = 0.0
    best_day: DailyAggregate | None = None
    worst_day: DailyAggregate | None = None
    days_since_last_trade: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_streak": self.current_streak,
            "current_streak_type": self.current_streak_type.value,
            "best_win_streak": self.best_win_streak,
            "best_win_streak_dates": (
                self.best_win_streak_dates.to_dict() if self.best_win_streak_dates else None
            ),
            "longest_drawdown": self.longest_drawdown,
            "longest_drawdown_dates": (
                self.longest_drawdown_dates.to_dict() if self.longest_drawdown_dates else None
            ),
            "days_to_recover": self.days_to_recover,
            "recovery_cycles": [c.to_dict() for c in self.recovery_cycles],
            "trading_days": self.trading_days,
            "green_day_pct": self.green_day_pct,
            "best_day": self.best_day.to_dict() if self.best_day else None,
            "worst_day": self.worst_day.to_dict() if self.worst_day else None,
            "days_since_last_trade": self.days_since_last_trade,
        }


# ------------------------------------------------------------------ #
# Daily rollup                                                         #
# ------------------------------------------------------------------ #

def daily_aggregates(trades: Iterable[Trade]) -> list[DailyAggregate]:
    """One aggregate per close date, ascending."""
    buckets: dict[date, dict[str, float]] = {}
    for t in trades:
        b = buckets.setdefault(
            t.close_date, {"pnl": 0.0, "r": 0.0, "n": 0, "wins": 0}
        )
        b["pnl"] += t.pnl
        b["r"] += resolve_r(t) or 0.0
        b["n"] += 1
        if t.pnl > 0:
            b["wins"] += 1

    return [
        DailyAggregate(
            day=day,
            total_pnl=b["pnl"],
            total_r=b["r"],
            trade_count=int(b["n"]),
            win_count=int(b["wins"]),
        )
        for day, b in sorted(buckets.items())
    ]


def _sign(value: float) -> int:
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def _current_streak(days: Sequence[DailyAggregate]) -> tuple[int, StreakType]:
    last = _sign(days[-1].total_pnl)
    if last == 0:
        return 0, StreakType.NONE
    count = 0
    for d in reversed(days):
        if _sign(d.total_pnl) != last:
            break
        count += 1
    return count, StreakType.WIN if last > 0 else StreakType.LOSS


def _longest_run(
    days: Sequence[DailyAggregate], sign: int
) -> tuple[int, DateSpan | None]:
    """Longest run of consecutive days whose P&L has ``sign``.

    Ties keep the earliest run.
    """
    best = 0
    span: DateSpan | None = None
    run = 0
    run_start: date | None = None
    for d in days:
        if _sign(d.total_pnl) == sign:
            if run == 0:
                run_start = d.day
            run += 1
            if run > best:
                best = run
                span = DateSpan(run_start, d.day)  # type: ignore[arg-type]
        else:
            run = 0
    return best, span


def _recovery_cycles(days: Sequence[DailyAggregate]) -> list[RecoveryCycle]:
    """Walk cumulative P&L and record each trough-to-peak recovery.

    The trough is the deepest point below the running peak.  Recovery is
    the first day cumulative P&L gets back to that peak; it is checked
    before a new high moves the peak, so a day that overshoots the old
    peak still closes the cycle.
    """
    cycles: list[RecoveryCycle] = []
    cumulative = 0.0
    peak = 0.0
    trough = 0.0
    trough_idx: int | None = None

    for idx, d in enumerate(days):
        cumulative += d.total_pnl

        if trough_idx is not None and cumulative >= peak:
            cycles.append(RecoveryCycle(
                peak=peak,
                trough=trough,
                trough_day=days[trough_idx].day,
                recovery_day=d.day,
                days=idx - trough_idx,
            ))
            trough = cumulative
            trough_idx = None

        if cumulative > peak:
            peak = cumulative
            trough = cumulative
        elif peak - cumulative > peak - trough:
            trough = cumulative
            trough_idx = idx
    return cycles


# ------------------------------------------------------------------ #
# Public API                                                           #
# ------------------------------------------------------------------ #

def detect_streaks(
    trades: Iterable[Trade],
    *,
    as_of: date | None = None,
    daily: Sequence[DailyAggregate] | None = None,
) -> StreakReport:
    """Streak and recovery report over daily P&L.

    Parameters
    ----------
    trades : Iterable[Trade]
        Trade set already filtered to the caller's scope.
    as_of : date, optional
        Reference date for ``days_since_last_trade``.  Left ``None`` the
        field is ``None``; the engine never reads the clock.
    daily : Sequence[DailyAggregate], optional
        Pre-computed daily rollup to reuse instead of re-deriving it.
    """
    days = list(daily) if daily is not None else daily_aggregates(trades)
    if not days:
        return StreakReport()

    current, current_type = _current_streak(days)
    best_win, best_win_span = _longest_run(days, 1)
    longest_dd, dd_span = _longest_run(days, -1)
    cycles = _recovery_cycles(days)
    green = sum(1 for d in days if d.total_pnl > 0)

    since = (as_of - days[-1].day).days if as_of is not None else None

    logger.debug(
        "Streaks: days=%d current=%d(%s) best_win=%d longest_dd=%d cycles=%d",
        len(days), current, current_type.value, best_win, longest_dd, len(cycles),
    )
    return StreakReport(
        current_streak=current,
        current_streak_type=current_type,
        best_win_streak=best_win,
        best_win_streak_dates=best_win_span,
        longest_drawdown=longest_dd,
        longest_drawdown_dates=dd_span,
        days_to_recover=cycles[-1].days if cycles else 0,
        recovery_cycles=cycles,
        trading_days=len(days),
        green_day_pct=green / len(days) * 100,
        best_day=max(days, key=lambda d: d.total_pnl),
        worst_day=min(days, key=lambda d: d.total_pnl),
        days_since_last_trade=since,
    )
