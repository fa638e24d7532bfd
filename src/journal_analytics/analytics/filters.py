"""Scope filtering applied before any analytics call.

The engine itself assumes its input is already scoped; these helpers do
the scoping for callers (the CLI, or a service reading a whole journal).
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta

from pydantic import BaseModel, Field

from ..core.enums import Session
from ..core.models import Trade

ALL = "all"


class TradeFilters(BaseModel):
    """Optional scope constraints; an unset field does not filter."""

    model_config = {"frozen": True}

    date_from: date | None = None
    date_to: date | None = None
    account_id: str | None = None  # "all" disables the filter
    symbols: list[str] = Field(default_factory=list)
    sessions: list[Session] = Field(default_factory=list)
    playbook_id: str | None = None  # "all" disables the filter


def _in_scope(trade: Trade, f: TradeFilters) -> bool:
    closed = trade.close_date
    if f.date_from is not None and closed < f.date_from:
        return False
    if f.date_to is not None and closed > f.date_to:
        return False
    if f.account_id and f.account_id != ALL and trade.account_id != f.account_id:
        return False
    if f.symbols and trade.symbol not in f.symbols:
        return False
    # Untagged trades are kept when filtering by session
    session = trade.resolved_session
    if f.sessions and session is not None and session not in f.sessions:
        return False
    if f.playbook_id and f.playbook_id != ALL and trade.playbook_id != f.playbook_id:
        return False
    return True


def select_trades_in_scope(
    trades: Iterable[Trade], filters: TradeFilters | None = None
) -> list[Trade]:
    """Trades matching every set constraint of ``filters``, in input order."""
    if filters is None:
        return list(trades)
    return [t for t in trades if _in_scope(t, filters)]


def prior_period_range(date_from: date, date_to: date) -> tuple[date, date]:
    """The period of equal length ending the day before ``date_from``."""
    prior_to = date_from - timedelta(days=1)
    return prior_to - (date_to - date_from), prior_to
