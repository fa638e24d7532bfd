"""Per-trade derived values — R-multiple, fees, net P&L, hold time.

Every other analytics module reads trades through these functions.  A
value that cannot be derived (missing price, zero-risk stop, missing exit)
comes back as ``None`` rather than raising.  The one exception is a
negative hold time, which means the input data is corrupt.
"""

from __future__ import annotations

import logging
import math

from ..core.config import BREAKEVEN_BAND_R
from ..core.enums import Direction, TradeResult
from ..core.errors import NegativeHoldTimeError
from ..core.models import Trade

logger = logging.getLogger(__name__)


def r_multiple(trade: Trade) -> float | None:
    """Price-derived R-multiple, signed by direction.

    ``((exit - entry) / |entry - stop|) * (+1 long | -1 short)``.
    ``None`` when any of the three prices is missing or the stop sits on
    the entry price.
    """
    entry, stop, exit_ = trade.entry_price, trade.stop_price, trade.exit_price
    if entry is None or stop is None or exit_ is None:
        return None
    risk = abs(entry - stop)
    if risk == 0:
        return None
    sign = 1.0 if trade.direction == Direction.LONG else -1.0
    return ((exit_ - entry) / risk) * sign


def resolve_r(trade: Trade) -> float | None:
    """R used by aggregate calculations.

    Prices win when all three are present (a zero-risk stop stays
    ``None``).  Trades journaled R-first, without prices, fall back to
    the stored ``r_multiple``.
    """
    if (
        trade.entry_price is not None
        and trade.stop_price is not None
        and trade.exit_price is not None
    ):
        return r_multiple(trade)
    return trade.r_multiple


def total_fees(trade: Trade) -> float:
    """Commission + swap + slippage, absent components counting as 0."""
    return (trade.commission or 0.0) + (trade.swap or 0.0) + (trade.slippage or 0.0)


def gross_pnl(trade: Trade) -> float:
    return trade.pnl


def net_pnl(trade: Trade) -> float:
    """Gross P&L minus total fees."""
    return trade.pnl - total_fees(trade)


def hold_minutes(trade: Trade) -> int | None:
    """Whole minutes between entry and exit, floored.

    ``None`` without an exit date, or when only one side carries a time
    of day (a date alone cannot be compared with a timestamp).

    Raises
    ------
    NegativeHoldTimeError
        If the exit timestamp precedes the entry timestamp.
    """
    exit_ts = trade.exit_timestamp
    if exit_ts is None:
        return None
    if (trade.entry_time is None) != (trade.exit_time is None):
        return None
    minutes = math.floor((exit_ts - trade.entry_timestamp).total_seconds() / 60)
    if minutes < 0:
        logger.warning(
            "Negative hold time: trade=%s minutes=%d", trade.trade_id, minutes
        )
        raise NegativeHoldTimeError(trade.trade_id, minutes)
    return minutes


def classify_result(
    trade: Trade, *, band: float = BREAKEVEN_BAND_R
) -> TradeResult:
    """Winner / loser / breakeven with a symmetric breakeven band in R.

    Trades without a resolvable R are reported as breakeven.
    """
    r = resolve_r(trade)
    if r is None:
        return TradeResult.BREAKEVEN
    if r > band:
        return TradeResult.WINNER
    if r < -band:
        return TradeResult.LOSER
    return TradeResult.BREAKEVEN


def r_from_pips(
    pips: float | None, stop_pips: float | None, risk_r: float = 1.0
) -> float | None:
    """Realized R from realized pips over the planned stop distance."""
    if pips is None or stop_pips is None or stop_pips == 0:
        return None
    return (pips / stop_pips) * risk_r


def planned_rr(target_pips: float | None, stop_pips: float | None) -> float | None:
    """Planned reward:risk from target and stop distances."""
    if target_pips is None or stop_pips is None or stop_pips == 0:
        return None
    return abs(target_pips) / abs(stop_pips)


# Names used by callers that mirror the external interface
compute_r_multiple = r_multiple
compute_fees = total_fees
compute_net_pnl = net_pnl
compute_hold_minutes = hold_minutes
