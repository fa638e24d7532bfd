"""Custom exception hierarchy for the analytics engine."""


class AnalyticsError(Exception):
    """Base exception for all analytics engine errors."""


# --- Configuration ---
class ConfigError(AnalyticsError):
    """Invalid or missing configuration."""


class RubricValidationError(ConfigError):
    """Playbook rubric fails its weight-sum or range checks."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid rubric: {reason}")


# --- Data ---
class DataError(AnalyticsError):
    """Trade input is corrupt or inconsistent."""


class NegativeHoldTimeError(DataError):
    """Exit timestamp precedes entry timestamp."""

    def __init__(self, trade_id: str, minutes: int):
        self.trade_id = trade_id
        self.minutes = minutes
        super().__init__(
            f"Trade {trade_id!r} has negative hold time ({minutes} min): "
            "exit precedes entry"
        )


class UnknownMetricError(AnalyticsError):
    """Requested distribution metric is not supported."""


class TradeImportError(DataError):
    """Trade file could not be parsed into trade records."""
