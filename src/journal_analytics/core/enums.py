"""Enumerations used across the analytics engine."""

from enum import Enum


class Direction(str, Enum):
    LONG = "long"
    SHORT = "short"


class Session(str, Enum):
    """Trading session tag recorded on a trade."""

    ASIA = "asia"
    LONDON = "london"
    NY = "ny"


class RuleType(str, Enum):
    MUST = "must"
    SHOULD = "should"
    OPTIONAL = "optional"


class TradeResult(str, Enum):
    """Winner / loser / breakeven banding of a single trade."""

    WINNER = "winner"
    LOSER = "loser"
    BREAKEVEN = "breakeven"


class WinConvention(str, Enum):
    """How a trade is classified as a win or a loss for KPI counts."""

    R_SIGN = "r_sign"      # R > 0 win, R < 0 loss, R == 0 breakeven
    R_BAND = "r_band"      # |R| <= breakeven band counts as breakeven
    PNL_SIGN = "pnl_sign"  # gross P&L sign decides


class Metric(str, Enum):
    """Per-trade metric extracted for distributions."""

    R = "r"
    MAE = "mae"
    MFE = "mfe"
    HOLD = "hold"


class GroupKey(str, Enum):
    DAY_OF_WEEK = "day_of_week"
    HOUR = "hour"
    HOUR_SESSION = "hour_session"
    SESSION = "session"
    SYMBOL = "symbol"
    STRATEGY = "strategy"
    PLAYBOOK = "playbook"
    SETUP_GRADE = "setup_grade"
    MONTH = "month"


class StreakType(str, Enum):
    WIN = "win"
    LOSS = "loss"
    NONE = "none"


class RatioKind(str, Enum):
    FINITE = "finite"
    UNDEFINED = "undefined"
    POSITIVE_INFINITE = "positive_infinite"


class InsightCategory(str, Enum):
    HOUR = "hour"
    DAY_OF_WEEK = "day_of_week"
    SYMBOL = "symbol"
    STRATEGY = "strategy"
    INSUFFICIENT_DATA = "insufficient_data"


class InsightTone(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
