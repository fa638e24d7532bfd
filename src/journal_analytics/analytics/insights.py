"""Automatic insights — the one or two things worth telling the trader.

Scans four breakdowns (entry hour, day of week, symbol, strategy) for
partitions that clear both a minimum sample size and a minimum effect
size, scores each candidate by ``|expectancy| * n`` and keeps the top
``max_insights``.

    Candidate       Min n   Condition
    ─────────────────────────────────────────
    best hour       15      expectancy >  0.20R
    worst hour      15      expectancy < -0.20R
    worst day       15      expectancy < -0.15R
    best symbol     15      expectancy >  0.25R
    worst strategy  20      expectancy < -0.10R

Below ``MIN_TRADES_FOR_INSIGHTS`` total trades nothing is computed and a
single placeholder insight is returned.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from ..core.config import InsightThresholds, SampleThresholds
from ..core.enums import GroupKey, InsightCategory, InsightTone
from ..core.models import Trade
from .grouping import GroupStats, group_by

logger = logging.getLogger(__name__)

INSUFFICIENT_DATA_TEXT = "Collecting data... Insights available after {n}+ trades"


@dataclass(frozen=True)
class Insight:
    text: str
    category: InsightCategory
    tone: InsightTone
    score: float = 0.0
    key: str | None = None
    expectancy_r: float | None = None
    n: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "category": self.category.value,
            "tone": self.tone.value,
            "score": self.score,
            "key": self.key,
            "expectancy_r": self.expectancy_r,
            "n": self.n,
        }


def _signed(value: float) -> str:
    return f"+{value:.2f}" if value > 0 else f"{value:.2f}"


def _eligible(groups: dict[str, GroupStats], min_n: int) -> list[GroupStats]:
    return [g for g in groups.values() if g.n >= min_n]


def _best(groups: list[GroupStats]) -> GroupStats | None:
    # Ties keep the first partition seen
    best = None
    for g in groups:
        if best is None or g.expectancy_r > best.expectancy_r:
            best = g
    return best


def _worst(groups: list[GroupStats]) -> GroupStats | None:
    worst = None
    for g in groups:
        if worst is None or g.expectancy_r < worst.expectancy_r:
            worst = g
    return worst


def _make(
    group: GroupStats,
    category: InsightCategory,
    tone: InsightTone,
    render: Callable[[GroupStats], str],
) -> Insight:
    return Insight(
        text=render(group),
        category=category,
        tone=tone,
        score=abs(group.expectancy_r) * group.n,
        key=group.key,
        expectancy_r=group.expectancy_r,
        n=group.n,
    )


def auto_insights(
    trades: Sequence[Trade],
    *,
    samples: SampleThresholds | None = None,
    thresholds: InsightThresholds | None = None,
) -> list[Insight]:
    """Top-ranked insights for ``trades``, best first."""
    samples = samples or SampleThresholds()
    thresholds = thresholds or InsightThresholds()

    if len(trades) < samples.insight_total:
        logger.debug(
            "Insights gated: %d trades < %d", len(trades), samples.insight_total
        )
        return [Insight(
            text=INSUFFICIENT_DATA_TEXT.format(n=samples.insight_total),
            category=InsightCategory.INSUFFICIENT_DATA,
            tone=InsightTone.NEUTRAL,
        )]

    candidates: list[Insight] = []

    hours = _eligible(group_by(trades, GroupKey.HOUR), samples.insight_hour)
    best_hour = _best(hours)
    if best_hour is not None and best_hour.expectancy_r > thresholds.best_hour:
        candidates.append(_make(
            best_hour, InsightCategory.HOUR, InsightTone.POSITIVE,
            lambda g: f"Best hour: {g.key}:00 ({_signed(g.expectancy_r)}R, n={g.n})",
        ))
    worst_hour = _worst(hours)
    if worst_hour is not None and worst_hour.expectancy_r < -thresholds.worst_hour:
        candidates.append(_make(
            worst_hour, InsightCategory.HOUR, InsightTone.NEGATIVE,
            lambda g: f"Avoid hour: {g.key}:00 ({g.expectancy_r:.2f}R, n={g.n})",
        ))

    days = _eligible(group_by(trades, GroupKey.DAY_OF_WEEK), samples.insight_day)
    worst_day = _worst(days)
    if worst_day is not None and worst_day.expectancy_r < -thresholds.worst_day:
        candidates.append(_make(
            worst_day, InsightCategory.DAY_OF_WEEK, InsightTone.NEGATIVE,
            lambda g: f"Avoid {g.key} ({g.expectancy_r:.2f}R, n={g.n})",
        ))

    symbols = _eligible(group_by(trades, GroupKey.SYMBOL), samples.insight_symbol)
    best_symbol = _best(symbols)
    if best_symbol is not None and best_symbol.expectancy_r > thresholds.best_symbol:
        candidates.append(_make(
            best_symbol, InsightCategory.SYMBOL, InsightTone.POSITIVE,
            lambda g: f"Best symbol: {g.key} ({_signed(g.expectancy_r)}R, n={g.n})",
        ))

    strategies = _eligible(
        group_by(trades, GroupKey.STRATEGY), samples.insight_strategy
    )
    worst_strategy = _worst(strategies)
    if (
        worst_strategy is not None
        and worst_strategy.expectancy_r < -thresholds.worst_strategy
    ):
        candidates.append(_make(
            worst_strategy, InsightCategory.STRATEGY, InsightTone.NEGATIVE,
            lambda g: f"Review strategy: {g.key} ({g.expectancy_r:.2f}R, n={g.n})",
        ))

    # sorted() is stable, so equal scores keep candidate order
    ranked = sorted(candidates, key=lambda i: i.score, reverse=True)
    logger.debug(
        "Insights: %d candidates, keeping %d",
        len(candidates), min(len(candidates), thresholds.max_insights),
    )
    return ranked[: thresholds.max_insights]
