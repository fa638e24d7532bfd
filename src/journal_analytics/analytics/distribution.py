"""Distributions — histograms, quartile / box-plot statistics, outlier trim.

Histograms use fixed-width bins over a fixed domain per metric.  Values
outside the domain are clamped into the nearest edge bucket, so bucket
counts always sum to the number of values passed in.

    Metric   Values          Domain        Bin
    ─────────────────────────────────────────────
    r        R-multiple      [-5, +5]      0.5
    mae      |MAE| in R      [0, 5]        0.25
    mfe      |MFE| in R      [0, 5]        0.25
    hold     minutes held    [0, 240]      15

Usage::

    buckets = metric_histogram(trades, Metric.R)
    stats = quartile_stats(trades, Metric.R)
    core = remove_outliers(trades)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any

from ..core.config import MIN_TRADES_FOR_OUTLIER_TRIM, OUTLIER_TAIL_PCT, HistogramConfig
from ..core.enums import Metric
from ..core.errors import UnknownMetricError
from ..core.models import Trade
from .metrics import hold_minutes, resolve_r

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistogramBucket:
    """One histogram bin.

    ``lower`` is inclusive; ``upper`` is exclusive except on the last bin.
    """

    lower: float
    upper: float
    count: int
    label: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "lower": self.lower,
            "upper": self.upper,
            "count": self.count,
            "label": self.label,
        }


@dataclass(frozen=True)
class QuartileStats:
    min: float = 0.0
    q1: float = 0.0
    median: float = 0.0
    q3: float = 0.0
    max: float = 0.0

    @property
    def iqr(self) -> float:
        return self.q3 - self.q1

    def to_dict(self) -> dict[str, float]:
        return {
            "min": self.min,
            "q1": self.q1,
            "median": self.median,
            "q3": self.q3,
            "max": self.max,
        }


@dataclass(frozen=True)
class BoxPlotBand:
    """P&L quartiles for trades whose hold time falls in one band."""

    label: str
    min_minutes: float
    max_minutes: float | None
    count: int
    stats: QuartileStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "min_minutes": self.min_minutes,
            "max_minutes": self.max_minutes,
            "count": self.count,
            **self.stats.to_dict(),
        }


@dataclass(frozen=True)
class ScatterPoint:
    r: float
    hold_minutes: int
    close_date: date
    symbol: str
    playbook_id: str | None = None


# ------------------------------------------------------------------ #
# Histogram                                                            #
# ------------------------------------------------------------------ #

def _edge(value: float) -> str:
    return f"{value:g}"


def histogram(
    values: Iterable[float],
    domain: tuple[float, float],
    bin_size: float,
) -> list[HistogramBucket]:
    """Fixed-width histogram over ``domain``.

    Out-of-domain values land in the first or last bucket.
    """
    lo, hi = domain
    if bin_size <= 0 or hi <= lo:
        raise ValueError(f"invalid histogram domain {domain!r} / bin size {bin_size!r}")
    n_bins = max(1, round((hi - lo) / bin_size))

    counts = [0] * n_bins
    for v in values:
        idx = math.floor((v - lo) / bin_size)
        counts[min(n_bins - 1, max(0, idx))] += 1

    buckets = []
    for i, count in enumerate(counts):
        lower = lo + i * bin_size
        upper = hi if i == n_bins - 1 else lo + (i + 1) * bin_size
        buckets.append(HistogramBucket(
            lower=lower,
            upper=upper,
            count=count,
            label=f"{_edge(lower)} to {_edge(upper)}",
        ))
    return buckets


def _abs_or_none(value: float | None) -> float | None:
    return abs(value) if value is not None else None


_EXTRACTORS: dict[Metric, Callable[[Trade], float | None]] = {
    Metric.R: resolve_r,
    Metric.MAE: lambda t: _abs_or_none(t.mae_r),
    Metric.MFE: lambda t: _abs_or_none(t.mfe_r),
    Metric.HOLD: hold_minutes,
}


def metric_values(trades: Iterable[Trade], metric: Metric | str) -> list[float]:
    """Extract the defined values of ``metric``, skipping ``None``."""
    try:
        extract = _EXTRACTORS[Metric(metric)]
    except ValueError as exc:
        raise UnknownMetricError(f"Unknown metric: {metric!r}") from exc
    return [v for v in (extract(t) for t in trades) if v is not None]


def _default_domain(metric: Metric, cfg: HistogramConfig) -> tuple[tuple[float, float], float]:
    if metric == Metric.R:
        return cfg.r_domain, cfg.r_bin_size
    if metric == Metric.HOLD:
        return cfg.hold_domain, cfg.hold_bin_size
    return cfg.excursion_domain, cfg.excursion_bin_size


def metric_histogram(
    trades: Iterable[Trade],
    metric: Metric | str,
    domain_override: tuple[float, float] | None = None,
    *,
    bin_size: float | None = None,
    config: HistogramConfig | None = None,
) -> list[HistogramBucket]:
    """Histogram of one per-trade metric over its fixed domain."""
    cfg = config or HistogramConfig()
    values = metric_values(trades, metric)
    domain, default_bin = _default_domain(Metric(metric), cfg)
    return histogram(
        values,
        domain if domain_override is None else domain_override,
        default_bin if bin_size is None else bin_size,
    )


# Hold-time bands: upper edge inclusive
_HOLD_BANDS: list[tuple[str, float, float]] = [
    ("≤5m", 0, 5),
    ("5-15m", 5, 15),
    ("15-60m", 15, 60),
    ("1-4h", 60, 240),
    (">4h", 240, math.inf),
]


def hold_time_bands(trades: Iterable[Trade]) -> list[HistogramBucket]:
    """Count trades into the coarse hold-time bands shown on dashboards."""
    counts = [0] * len(_HOLD_BANDS)
    for minutes in metric_values(trades, Metric.HOLD):
        for i, (_, _, upper) in enumerate(_HOLD_BANDS):
            if minutes <= upper:
                counts[i] += 1
                break
    return [
        HistogramBucket(lower=lo, upper=hi, count=c, label=label)
        for (label, lo, hi), c in zip(_HOLD_BANDS, counts)
    ]


# ------------------------------------------------------------------ #
# Quartiles                                                            #
# ------------------------------------------------------------------ #

def _median_sorted(values: Sequence[float]) -> float:
    n = len(values)
    mid = n // 2
    if n % 2 == 0:
        return (values[mid - 1] + values[mid]) / 2
    return values[mid]


def quartiles(values: Iterable[float]) -> QuartileStats:
    """Five-number summary using the median-of-halves rule.

    The median element of an odd-length sample is excluded from both
    halves.  An empty input yields all zeros.
    """
    ordered = sorted(values)
    n = len(ordered)
    if n == 0:
        return QuartileStats()

    median = _median_sorted(ordered)
    lower = ordered[: n // 2]
    upper = ordered[n // 2:] if n % 2 == 0 else ordered[n // 2 + 1:]
    return QuartileStats(
        min=ordered[0],
        q1=_median_sorted(lower) if lower else median,
        median=median,
        q3=_median_sorted(upper) if upper else median,
        max=ordered[-1],
    )


def quartile_stats(trades: Iterable[Trade], metric: Metric | str) -> QuartileStats:
    return quartiles(metric_values(trades, metric))


_BOX_BANDS: list[tuple[str, float, float | None]] = [
    ("<1m", 0, 1),
    ("1-5m", 1, 5),
    ("5-15m", 5, 15),
    ("15-30m", 15, 30),
    (">30m", 30, None),
]


def pnl_by_hold_band(trades: Iterable[Trade]) -> list[BoxPlotBand]:
    """P&L box-plot statistics per hold-duration band.

    Bands are open on the left and closed on the right, so a trade held
    exactly 0 minutes is not counted.
    """
    timed = [(t, m) for t in trades if (m := hold_minutes(t)) is not None]
    bands = []
    for label, lo, hi in _BOX_BANDS:
        pnls = [
            t.pnl for t, m in timed
            if m > lo and (hi is None or m <= hi)
        ]
        bands.append(BoxPlotBand(
            label=label,
            min_minutes=lo,
            max_minutes=hi,
            count=len(pnls),
            stats=quartiles(pnls),
        ))
    return bands


def hold_vs_r(trades: Iterable[Trade]) -> list[ScatterPoint]:
    """Hold time against R for every trade that has both."""
    points = []
    for t in trades:
        r = resolve_r(t)
        if r is None:
            continue
        minutes = hold_minutes(t)
        if minutes is None:
            continue
        points.append(ScatterPoint(
            r=r,
            hold_minutes=minutes,
            close_date=t.close_date,
            symbol=t.symbol,
            playbook_id=t.playbook_id,
        ))
    return points


# ------------------------------------------------------------------ #
# Outliers                                                             #
# ------------------------------------------------------------------ #

def remove_outliers(
    trades: Sequence[Trade],
    *,
    tail_pct: float = OUTLIER_TAIL_PCT,
    min_sample: int = MIN_TRADES_FOR_OUTLIER_TRIM,
) -> list[Trade]:
    """Drop the R-multiple tails by index.

    With fewer than ``min_sample`` valid R values the input is returned
    unchanged.  Otherwise the bounds are the sorted R values at indices
    ``floor(n * tail_pct)`` and ``ceil(n * (1 - tail_pct)) - 1``, and only
    trades whose R lies within them (inclusive) are kept, in input order.
    Trades without an R are dropped once trimming applies.
    """
    scored = [(t, r) for t in trades if (r := resolve_r(t)) is not None]
    n = len(scored)
    if n < min_sample:
        logger.debug("Outlier trim skipped: %d valid R < %d", n, min_sample)
        return list(trades)

    rs = sorted(r for _, r in scored)
    # Rounded before floor/ceil so float noise in n * pct cannot shift an index
    lower = rs[math.floor(round(n * tail_pct, 9))]
    upper = rs[math.ceil(round(n * (1 - tail_pct), 9)) - 1]
    kept = [t for t, r in scored if lower <= r <= upper]
    logger.debug(
        "Outlier trim: kept %d of %d trades, bounds=[%.4f, %.4f]",
        len(kept), len(trades), lower, upper,
    )
    return kept


trim_outliers = remove_outliers
