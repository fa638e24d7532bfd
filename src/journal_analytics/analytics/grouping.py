"""Partitioned KPIs — performance broken down by a trade attribute.

Answers questions like "Am I better in the London session?" or "Which
symbol carries my expectancy?".  Each partition gets the full
``KPISnapshot`` plus its size; partitions under the exploratory sample
floor are flagged so presentation code can grey them out.

    Key            Partition value
    ─────────────────────────────────────────────
    day_of_week    Sun..Sat of the close date
    hour           entry hour (exit hour if no entry time)
    hour_session   "<session>:<HH>"
    session        asia / london / ny
    symbol         trade symbol
    strategy       strategy name
    playbook       playbook id
    setup_grade    letter grade recorded at entry
    month          "YYYY-MM" of the close date

Trades without a key value or without a resolvable R are left out.

Usage::

    rows = group_by(trades, GroupKey.SESSION)
    print(rows["london"].kpis.expectancy_r, rows["london"].exploratory)
"""

from __future__ import annotations

import logging
import statistics
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from ..core.config import MIN_SAMPLE_EXPLORATORY, ClassificationConfig
from ..core.enums import GroupKey
from ..core.models import Trade
from .aggregate import KPISnapshot, aggregate
from .metrics import resolve_r

logger = logging.getLogger(__name__)

DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

KeyFunc = Callable[[Trade], "str | None"]


@dataclass(frozen=True)
class GroupStats:
    """KPIs for one partition."""

    key: str
    n: int
    kpis: KPISnapshot
    exploratory: bool
    avg_setup_score: float | None = None

    @property
    def expectancy_r(self) -> float:
        return self.kpis.expectancy_r

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "n": self.n,
            "exploratory": self.exploratory,
            "avg_setup_score": self.avg_setup_score,
            **self.kpis.to_dict(),
        }


# ------------------------------------------------------------------ #
# Key functions                                                        #
# ------------------------------------------------------------------ #

def day_of_week_key(trade: Trade) -> str:
    # date.weekday() is 0=Monday; shift so index 0 is Sunday
    return DAY_NAMES[(trade.close_date.weekday() + 1) % 7]


def trade_hour(trade: Trade) -> int | None:
    if trade.entry_time is not None:
        return trade.entry_time.hour
    if trade.exit_time is not None:
        return trade.exit_time.hour
    return None


def hour_key(trade: Trade) -> str | None:
    hour = trade_hour(trade)
    return f"{hour:02d}" if hour is not None else None


def session_key(trade: Trade) -> str | None:
    session = trade.resolved_session
    return session.value if session is not None else None


def hour_session_key(trade: Trade) -> str | None:
    session = session_key(trade)
    hour = trade_hour(trade)
    if session is None or hour is None:
        return None
    return f"{session}:{hour:02d}"


def month_key(trade: Trade) -> str:
    return trade.close_date.strftime("%Y-%m")


KEY_FUNCS: dict[GroupKey, KeyFunc] = {
    GroupKey.DAY_OF_WEEK: day_of_week_key,
    GroupKey.HOUR: hour_key,
    GroupKey.HOUR_SESSION: hour_session_key,
    GroupKey.SESSION: session_key,
    GroupKey.SYMBOL: lambda t: t.symbol,
    GroupKey.STRATEGY: lambda t: t.strategy,
    GroupKey.PLAYBOOK: lambda t: t.playbook_id,
    GroupKey.SETUP_GRADE: lambda t: t.setup_grade,
    GroupKey.MONTH: month_key,
}


def _resolve_key(key: GroupKey | str | KeyFunc) -> KeyFunc:
    if callable(key):
        return key
    return KEY_FUNCS[GroupKey(key)]


# ------------------------------------------------------------------ #
# Group by                                                             #
# ------------------------------------------------------------------ #

def group_by(
    trades: Iterable[Trade],
    key: GroupKey | str | KeyFunc,
    *,
    min_sample: int = MIN_SAMPLE_EXPLORATORY,
    classification: ClassificationConfig | None = None,
) -> dict[str, GroupStats]:
    """Aggregate each partition of ``trades`` under ``key``.

    Parameters
    ----------
    key : GroupKey | str | callable
        A built-in key or any ``Trade -> str | None`` function.
    min_sample : int
        Partitions with fewer trades are marked ``exploratory``.

    Returns
    -------
    dict
        Partition value -> ``GroupStats``, in order of first appearance.
        Empty partitions never appear.
    """
    key_func = _resolve_key(key)
    cls_cfg = classification or ClassificationConfig()

    partitions: dict[str, list[Trade]] = {}
    for t in trades:
        value = key_func(t)
        if value is None or resolve_r(t) is None:
            continue
        partitions.setdefault(str(value), []).append(t)

    result: dict[str, GroupStats] = {}
    for value, members in partitions.items():
        scores = [t.setup_score for t in members if t.setup_score is not None]
        kpis = aggregate(
            members,
            convention=cls_cfg.win_convention,
            breakeven_band=cls_cfg.breakeven_band_r,
        )
        result[value] = GroupStats(
            key=value,
            n=kpis.n,
            kpis=kpis,
            exploratory=kpis.n < min_sample,
            avg_setup_score=statistics.fmean(scores) if scores else None,
        )

    logger.debug(
        "group_by %s: %d partitions (%d exploratory)",
        getattr(key, "value", key), len(result),
        sum(1 for g in result.values() if g.exploratory),
    )
    return result
