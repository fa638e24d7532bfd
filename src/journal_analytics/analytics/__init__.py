"""Trading performance analytics — pure functions over journal trades.

Key components
--------------
**Per-trade**

metrics         R-multiple, fees, net P&L, hold time
distribution    Histograms, quartiles, P&L box plots, outlier trim

**Rollups**

aggregate       KPI snapshot (win rate, profit factor, expectancy, drawdown)
grouping        KPIs partitioned by hour, day, session, symbol, ...
streaks         Daily win/loss streaks and recovery time
equity          Constant-risk equity curve and drawdown periods
insights        The top one or two findings worth surfacing

**Playbooks**

compliance      Setup scoring against a playbook rubric

**Scope & IO**

filters         Date / account / symbol / session / playbook scoping
trade_io        JSON / CSV import and export
"""

from .aggregate import KPISnapshot, aggregate, max_drawdown
from .compliance import (
    ScoreParts,
    ScoreResult,
    default_rubric,
    explain,
    grade_for,
    score_playbook,
    score_setup,
    validate_rubric,
)
from .distribution import (
    BoxPlotBand,
    HistogramBucket,
    QuartileStats,
    ScatterPoint,
    histogram,
    hold_time_bands,
    hold_vs_r,
    metric_histogram,
    pnl_by_hold_band,
    quartile_stats,
    quartiles,
    remove_outliers,
    trim_outliers,
)
from .equity import (
    DrawdownPeriod,
    EquityPoint,
    MonthlyPerformance,
    drawdown_periods,
    equity_curve,
    monthly_performance,
)
from .filters import TradeFilters, prior_period_range, select_trades_in_scope
from .grouping import GroupStats, group_by
from .insights import Insight, auto_insights
from .metrics import (
    classify_result,
    compute_fees,
    compute_hold_minutes,
    compute_net_pnl,
    compute_r_multiple,
    hold_minutes,
    net_pnl,
    r_multiple,
    resolve_r,
    total_fees,
)
from .streaks import DailyAggregate, StreakReport, daily_aggregates, detect_streaks
from .trade_io import TradeExporter, load_trades, load_trades_csv, load_trades_json

__all__ = [
    "BoxPlotBand",
    "DailyAggregate",
    "DrawdownPeriod",
    "EquityPoint",
    "GroupStats",
    "HistogramBucket",
    "Insight",
    "KPISnapshot",
    "MonthlyPerformance",
    "QuartileStats",
    "ScatterPoint",
    "ScoreParts",
    "ScoreResult",
    "StreakReport",
    "TradeExporter",
    "TradeFilters",
    "aggregate",
    "auto_insights",
    "classify_result",
    "compute_fees",
    "compute_hold_minutes",
    "compute_net_pnl",
    "compute_r_multiple",
    "daily_aggregates",
    "default_rubric",
    "detect_streaks",
    "drawdown_periods",
    "equity_curve",
    "explain",
    "grade_for",
    "group_by",
    "histogram",
    "hold_minutes",
    "hold_time_bands",
    "hold_vs_r",
    "load_trades",
    "load_trades_csv",
    "load_trades_json",
    "max_drawdown",
    "metric_histogram",
    "monthly_performance",
    "net_pnl",
    "pnl_by_hold_band",
    "prior_period_range",
    "quartile_stats",
    "quartiles",
    "r_multiple",
    "remove_outliers",
    "resolve_r",
    "score_playbook",
    "score_setup",
    "select_trades_in_scope",
    "total_fees",
    "trim_outliers",
    "validate_rubric",
]
