"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.

The minimum-sample and effect-size thresholds live here as named
constants so the statistical gating policy is auditable in one place.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from .enums import WinConvention


# ---------------------------------------------------------------------------
# Gating constants
# ---------------------------------------------------------------------------

MIN_SAMPLE_EXPLORATORY = 10       # Breakdown partitions below this are exploratory
MIN_SAMPLE_INSIGHT = 15           # Generic insight partition floor
MIN_SAMPLE_INSIGHT_HOUR = 15
MIN_SAMPLE_INSIGHT_DAY = 15
MIN_SAMPLE_INSIGHT_SYMBOL = 15
MIN_SAMPLE_INSIGHT_STRATEGY = 20
MIN_TRADES_FOR_INSIGHTS = 15      # Below this, only a placeholder is emitted
MIN_TRADES_FOR_OUTLIER_TRIM = 10  # Hard floor for percentile trimming

OUTLIER_TAIL_PCT = 0.025
BREAKEVEN_BAND_R = 0.1
RUBRIC_WEIGHT_TOLERANCE = 0.01
PRIMARY_WEIGHT_MULTIPLIER = 1.2

MAX_INSIGHTS = 2


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class SampleThresholds(BaseModel):
    exploratory: int = MIN_SAMPLE_EXPLORATORY
    insight_hour: int = MIN_SAMPLE_INSIGHT_HOUR
    insight_day: int = MIN_SAMPLE_INSIGHT_DAY
    insight_symbol: int = MIN_SAMPLE_INSIGHT_SYMBOL
    insight_strategy: int = MIN_SAMPLE_INSIGHT_STRATEGY
    insight_total: int = MIN_TRADES_FOR_INSIGHTS
    outlier_trim: int = MIN_TRADES_FOR_OUTLIER_TRIM


class InsightThresholds(BaseModel):
    """Minimum expectancy magnitude (R) for an insight to be emitted."""

    best_hour: float = 0.20
    worst_hour: float = 0.20
    worst_day: float = 0.15
    best_symbol: float = 0.25
    worst_strategy: float = 0.10
    max_insights: int = MAX_INSIGHTS


class ClassificationConfig(BaseModel):
    win_convention: WinConvention = WinConvention.R_SIGN
    breakeven_band_r: float = BREAKEVEN_BAND_R


class HistogramConfig(BaseModel):
    r_domain: tuple[float, float] = (-5.0, 5.0)
    r_bin_size: float = 0.5
    excursion_domain: tuple[float, float] = (0.0, 5.0)  # |MAE| / |MFE| in R
    excursion_bin_size: float = 0.25
    hold_domain: tuple[float, float] = (0.0, 240.0)  # minutes
    hold_bin_size: float = 15.0


class OutlierConfig(BaseModel):
    tail_pct: float = OUTLIER_TAIL_PCT


class EquityConfig(BaseModel):
    starting_balance: float = 10_000.0
    risk_per_r_pct: float = 0.01  # 1% of starting balance per R


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class AnalyticsSettings(BaseSettings):
    """Top-level engine settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    samples: SampleThresholds = Field(default_factory=SampleThresholds)
    insights: InsightThresholds = Field(default_factory=InsightThresholds)
    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
    histogram: HistogramConfig = Field(default_factory=HistogramConfig)
    outliers: OutlierConfig = Field(default_factory=OutlierConfig)
    equity: EquityConfig = Field(default_factory=EquityConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "JOURNAL_ANALYTICS_", "env_nested_delimiter": "__"}


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> AnalyticsSettings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            import tomli

            with open(path, "rb") as f:
                data = tomli.load(f)

    if overrides:
        data.update(overrides)

    return AnalyticsSettings(**data)
