"""Rollup KPIs over a trade set.

Computes win rate, profit factor, expectancy, net R, max drawdown, a
Sharpe-like ratio and recovery factor.  Every field of the empty-input
snapshot is defined (zeros and ``UNDEFINED`` ratios), never NaN.

Win / loss classification follows a caller-selected convention:

    Convention   Win          Loss          Breakeven
    ──────────────────────────────────────────────────
    r_sign       R > 0        R < 0         R == 0
    r_band       R > band     R < -band     |R| <= band
    pnl_sign     P&L > 0      P&L < 0       P&L == 0

Breakeven trades drop out of the win/loss counts but remain in the
profit-factor sums, net R and the expectancy denominator.

Usage::

    snap = aggregate(trades)
    print(snap.win_rate, snap.expectancy_r)
    if snap.no_losses:
        print("profit factor undefined: no losing R")
"""

from __future__ import annotations

import logging
import math
import statistics
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..core.config import BREAKEVEN_BAND_R
from ..core.enums import WinConvention
from ..core.models import Trade
from ..core.ratio import Ratio
from .metrics import hold_minutes, net_pnl, resolve_r, total_fees

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KPISnapshot:
    """Rollup performance metrics for one trade set."""

    n: int = 0
    wins: int = 0
    losses: int = 0
    breakevens: int = 0
    win_rate: float = 0.0  # percent
    profit_factor: Ratio = field(default_factory=Ratio.undefined)
    expectancy_r: float = 0.0
    net_r: float = 0.0
    avg_win_r: float = 0.0
    avg_loss_r: float = 0.0  # signed mean, <= 0
    largest_win_r: float = 0.0
    largest_loss_r: float = 0.0
    max_drawdown_r: float = 0.0
    max_drawdown_currency: float = 0.0
    sharpe_like: float = 0.0
    sortino_like: float = 0.0
    recovery_factor: Ratio = field(default_factory=lambda: Ratio.finite(0.0))
    total_pnl: float = 0.0
    total_fees: float = 0.0
    net_pnl: float = 0.0
    avg_hold_minutes: float | None = None

    @property
    def no_losses(self) -> bool:
        """True when there is winning R but no losing R to divide by."""
        return self.profit_factor.is_infinite

    @property
    def avg_r(self) -> float:
        return self.net_r / self.n if self.n else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "n": self.n,
            "wins": self.wins,
            "losses": self.losses,
            "breakevens": self.breakevens,
            "win_rate": self.win_rate,
            "profit_factor": self.profit_factor.to_dict(),
            "no_losses": self.no_losses,
            "expectancy_r": self.expectancy_r,
            "net_r": self.net_r,
            "avg_r": self.avg_r,
            "avg_win_r": self.avg_win_r,
            "avg_loss_r": self.avg_loss_r,
            "largest_win_r": self.largest_win_r,
            "largest_loss_r": self.largest_loss_r,
            "max_drawdown_r": self.max_drawdown_r,
            "max_drawdown_currency": self.max_drawdown_currency,
            "sharpe_like": self.sharpe_like,
            "sortino_like": self.sortino_like,
            "recovery_factor": self.recovery_factor.to_dict(),
            "total_pnl": self.total_pnl,
            "total_fees": self.total_fees,
            "net_pnl": self.net_pnl,
            "avg_hold_minutes": self.avg_hold_minutes,
        }


# ------------------------------------------------------------------ #
# Helpers                                                              #
# ------------------------------------------------------------------ #

def chronological(trades: Iterable[Trade]) -> list[Trade]:
    """Trades ordered by close timestamp; ties keep input order."""
    return sorted(trades, key=lambda t: t.close_timestamp)


def max_drawdown(values: Iterable[float]) -> float:
    """Largest peak-to-trough decline of the running sum.

    The running peak starts at 0, so an opening loss counts as drawdown.
    """
    running = 0.0
    peak = 0.0
    worst = 0.0
    for v in values:
        running += v
        if running > peak:
            peak = running
        dd = peak - running
        if dd > worst:
            worst = dd
    return worst


def _sharpe_like(rs: Sequence[float]) -> float:
    if not rs:
        return 0.0
    stdev = statistics.pstdev(rs)
    if stdev == 0:
        return 0.0
    return statistics.fmean(rs) / stdev


def _sortino_like(rs: Sequence[float]) -> float:
    downside = [r for r in rs if r < 0]
    if not downside:
        return 0.0
    dev = math.sqrt(sum(r * r for r in downside) / len(downside))
    if dev == 0:
        return 0.0
    return statistics.fmean(rs) / dev


def _classify(
    trade: Trade, r: float, convention: WinConvention, band: float
) -> int:
    """+1 win, -1 loss, 0 breakeven."""
    if convention == WinConvention.PNL_SIGN:
        value, edge = trade.pnl, 0.0
    elif convention == WinConvention.R_BAND:
        value, edge = r, band
    else:
        value, edge = r, 0.0
    if value > edge:
        return 1
    if value < -edge:
        return -1
    return 0


# ------------------------------------------------------------------ #
# Aggregate                                                            #
# ------------------------------------------------------------------ #

def aggregate(
    trades: Iterable[Trade],
    *,
    convention: WinConvention = WinConvention.R_SIGN,
    breakeven_band: float = BREAKEVEN_BAND_R,
) -> KPISnapshot:
    """Compute the KPI snapshot for ``trades``.

    R-based fields use only trades with a resolvable R (``n`` counts
    those); currency fields use every trade.
    """
    ordered = chronological(trades)

    total_pnl = sum((t.pnl for t in ordered), 0.0)
    fees = sum((total_fees(t) for t in ordered), 0.0)
    net = sum((net_pnl(t) for t in ordered), 0.0)
    dd_currency = max_drawdown(t.pnl for t in ordered)
    holds = [m for m in (hold_minutes(t) for t in ordered) if m is not None]
    avg_hold = statistics.fmean(holds) if holds else None

    scored = [(t, r) for t in ordered if (r := resolve_r(t)) is not None]
    n = len(scored)
    if n == 0:
        return KPISnapshot(
            max_drawdown_currency=dd_currency,
            total_pnl=total_pnl,
            total_fees=fees,
            net_pnl=net,
            avg_hold_minutes=avg_hold,
        )

    rs = [r for _, r in scored]
    win_rs: list[float] = []
    loss_rs: list[float] = []
    breakevens = 0
    for trade, r in scored:
        outcome = _classify(trade, r, convention, breakeven_band)
        if outcome > 0:
            win_rs.append(r)
        elif outcome < 0:
            loss_rs.append(r)
        else:
            breakevens += 1

    win_rate = len(win_rs) / n * 100
    avg_win = statistics.fmean(win_rs) if win_rs else 0.0
    avg_loss = statistics.fmean(loss_rs) if loss_rs else 0.0
    p = win_rate / 100
    expectancy = p * avg_win - (1 - p) * abs(avg_loss)

    gross_win = sum((r for r in rs if r > 0), 0.0)
    gross_loss = abs(sum((r for r in rs if r < 0), 0.0))
    net_r = sum(rs, 0.0)
    dd_r = max_drawdown(rs)

    return KPISnapshot(
        n=n,
        wins=len(win_rs),
        losses=len(loss_rs),
        breakevens=breakevens,
        win_rate=win_rate,
        profit_factor=Ratio.of(gross_win, gross_loss),
        expectancy_r=expectancy,
        net_r=net_r,
        avg_win_r=avg_win,
        avg_loss_r=avg_loss,
        largest_win_r=max(rs) if max(rs) > 0 else 0.0,
        largest_loss_r=min(rs) if min(rs) < 0 else 0.0,
        max_drawdown_r=dd_r,
        max_drawdown_currency=dd_currency,
        sharpe_like=_sharpe_like(rs),
        sortino_like=_sortino_like(rs),
        recovery_factor=Ratio.of(net_r, dd_r, when_empty=Ratio.finite(0.0)),
        total_pnl=total_pnl,
        total_fees=fees,
        net_pnl=net,
        avg_hold_minutes=avg_hold,
    )
