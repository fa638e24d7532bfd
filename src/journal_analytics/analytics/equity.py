"""Equity curve, drawdown periods and monthly performance.

The curve is R-based: each day's summed R is converted to currency at a
fixed ``risk_per_r_pct`` of the *starting* balance, so the curve shows
what a constant-risk trader would have made regardless of the position
sizes actually used.

Usage::

    curve = equity_curve(trades, config=EquityConfig(starting_balance=25_000))
    periods = drawdown_periods(curve)
    months = monthly_performance(trades)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any

from ..core.config import EquityConfig
from ..core.models import Trade
from ..core.ratio import Ratio
from .aggregate import aggregate
from .grouping import month_key
from .streaks import daily_aggregates


@dataclass(frozen=True)
class EquityPoint:
    day: date
    equity: float
    drawdown: float
    drawdown_pct: float
    cumulative_trades: int
    daily_return_pct: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day.isoformat(),
            "equity": self.equity,
            "drawdown": self.drawdown,
            "drawdown_pct": self.drawdown_pct,
            "cumulative_trades": self.cumulative_trades,
            "daily_return_pct": self.daily_return_pct,
        }


@dataclass(frozen=True)
class DrawdownPeriod:
    start: date
    end: date
    depth: float
    depth_pct: float
    duration_days: int
    recovery: date | None = None  # None while still under water

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "depth": self.depth,
            "depth_pct": self.depth_pct,
            "duration_days": self.duration_days,
            "recovery": self.recovery.isoformat() if self.recovery else None,
        }


@dataclass(frozen=True)
class MonthlyPerformance:
    month: str  # "YYYY-MM"
    trades: int
    pnl: float
    net_r: float
    win_rate: float
    profit_factor: Ratio
    avg_r: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "month": self.month,
            "trades": self.trades,
            "pnl": self.pnl,
            "net_r": self.net_r,
            "win_rate": self.win_rate,
            "profit_factor": self.profit_factor.to_dict(),
            "avg_r": self.avg_r,
        }


def equity_curve(
    trades: Iterable[Trade], *, config: EquityConfig | None = None
) -> list[EquityPoint]:
    """One point per trading day, ascending."""
    cfg = config or EquityConfig()
    risk_per_r = cfg.starting_balance * cfg.risk_per_r_pct

    equity = cfg.starting_balance
    peak = equity
    count = 0
    points = []
    for day in daily_aggregates(trades):
        prev = equity
        equity += day.total_r * risk_per_r
        count += day.trade_count
        peak = max(peak, equity)
        drawdown = peak - equity
        points.append(EquityPoint(
            day=day.day,
            equity=equity,
            drawdown=drawdown,
            drawdown_pct=drawdown / peak * 100 if peak > 0 else 0.0,
            cumulative_trades=count,
            daily_return_pct=(equity - prev) / prev * 100 if prev > 0 else 0.0,
        ))
    return points


def drawdown_periods(curve: Sequence[EquityPoint]) -> list[DrawdownPeriod]:
    """Every under-water stretch of the curve.

    A period opens on the first day below the running peak and closes on
    the day equity gets back to it.  A period still open at the end of the
    curve has ``recovery=None``.
    """
    periods: list[DrawdownPeriod] = []
    start: EquityPoint | None = None
    depth = 0.0
    depth_pct = 0.0

    for point in curve:
        if point.drawdown > 0:
            if start is None:
                start = point
                depth, depth_pct = point.drawdown, point.drawdown_pct
            elif point.drawdown > depth:
                depth, depth_pct = point.drawdown, point.drawdown_pct
        elif start is not None:
            periods.append(DrawdownPeriod(
                start=start.day,
                end=point.day,
                depth=depth,
                depth_pct=depth_pct,
                duration_days=(point.day - start.day).days,
                recovery=point.day,
            ))
            start = None

    if start is not None:
        last = curve[-1]
        periods.append(DrawdownPeriod(
            start=start.day,
            end=last.day,
            depth=depth,
            depth_pct=depth_pct,
            duration_days=(last.day - start.day).days,
        ))
    return periods


def monthly_performance(trades: Iterable[Trade]) -> list[MonthlyPerformance]:
    """KPI row per calendar month of the close date, ascending."""
    months: dict[str, list[Trade]] = {}
    for t in trades:
        months.setdefault(month_key(t), []).append(t)

    rows = []
    for month in sorted(months):
        members = months[month]
        kpis = aggregate(members)
        rows.append(MonthlyPerformance(
            month=month,
            trades=len(members),
            pnl=kpis.total_pnl,
            net_r=kpis.net_r,
            win_rate=kpis.win_rate,
            profit_factor=kpis.profit_factor,
            avg_r=kpis.avg_r,
        ))
    return rows
