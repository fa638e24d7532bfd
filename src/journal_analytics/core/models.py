"""Immutable input models for the analytics engine.

These are the canonical records the engine reads.  They are built per
request from whatever store the caller owns and are never mutated: every
optional field is an explicit ``None`` rather than a missing key.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .enums import Direction, RuleType, Session


# ---------------------------------------------------------------------------
# Trade
# ---------------------------------------------------------------------------

_SESSION_ALIASES = {
    "asia": Session.ASIA,
    "london": Session.LONDON,
    "ny": Session.NY,
    "new_york": Session.NY,
    "newyork": Session.NY,
}


class Trade(BaseModel):
    """One closed (or partially recorded) journal trade."""

    model_config = {"frozen": True, "allow_inf_nan": False}

    trade_id: str
    symbol: str
    direction: Direction

    # Prices
    entry_price: float | None = None
    exit_price: float | None = None
    stop_price: float | None = None
    quantity: float | None = None

    # Timing (calendar date + optional time of day)
    entry_date: date
    entry_time: time | None = None
    exit_date: date | None = None
    exit_time: time | None = None

    # P&L in account currency, already normalized upstream
    pnl: float = 0.0
    commission: float | None = None
    swap: float | None = None
    slippage: float | None = None

    # Stored R analytics (R-first workflow)
    r_multiple: float | None = None
    mae_r: float | None = None
    mfe_r: float | None = None

    # Categorization
    account_id: str | None = None
    strategy: str | None = None
    playbook_id: str | None = None
    session: Session | None = None
    session_hour: str | None = None  # e.g. "A1", "L2", "NY3"
    setup_grade: str | None = None
    setup_score: float | None = None

    @field_validator("session", mode="before")
    @classmethod
    def _normalize_session(cls, value: Any) -> Any:
        if value is None or isinstance(value, Session):
            return value
        text = str(value).strip().lower()
        if not text:
            return None
        return _SESSION_ALIASES.get(text, text)

    @property
    def entry_timestamp(self) -> datetime:
        return datetime.combine(self.entry_date, self.entry_time or time.min)

    @property
    def exit_timestamp(self) -> datetime | None:
        if self.exit_date is None:
            return None
        return datetime.combine(self.exit_date, self.exit_time or time.min)

    @property
    def close_date(self) -> date:
        """Calendar date a trade is booked on (exit date, else entry date)."""
        return self.exit_date or self.entry_date

    @property
    def close_timestamp(self) -> datetime:
        return self.exit_timestamp or self.entry_timestamp

    @property
    def resolved_session(self) -> Session | None:
        """Session tag, falling back to the session-hour bucket prefix."""
        if self.session is not None:
            return self.session
        if self.session_hour:
            bucket = self.session_hour.upper()
            if bucket.startswith("NY"):
                return Session.NY
            if bucket.startswith("L"):
                return Session.LONDON
            if bucket.startswith("A"):
                return Session.ASIA
        return None


# ---------------------------------------------------------------------------
# Playbook
# ---------------------------------------------------------------------------

DEFAULT_GRADE_CUTOFFS: dict[str, float] = {
    "A+": 0.95,
    "A": 0.90,
    "B": 0.80,
    "C": 0.70,
    "D": 0.60,
}


class Rule(BaseModel):
    model_config = {"frozen": True}

    id: str
    type: RuleType = RuleType.SHOULD
    weight: float = Field(default=1.0, gt=0)
    label: str = ""


class Confluence(BaseModel):
    model_config = {"frozen": True}

    id: str
    weight: float = Field(default=1.0, gt=0)
    primary: bool = False  # Primary confluences weigh 1.2x
    label: str = ""


class ChecklistItem(BaseModel):
    model_config = {"frozen": True}

    id: str
    weight: float = Field(default=1.0, gt=0)
    primary: bool = False
    label: str = ""


class Rubric(BaseModel):
    """Scoring weights, must-rule penalty and grade cutoffs.

    Construction never rejects inconsistent weights; use
    ``validate_rubric`` when a playbook configuration is saved.
    """

    model_config = {"frozen": True}

    weight_rules: float = 0.6
    weight_confluences: float = 0.4
    weight_checklist: float = 0.0
    must_rule_penalty: float = 0.4
    grade_cutoffs: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_GRADE_CUTOFFS)
    )


class Playbook(BaseModel):
    """A named strategy definition scored at trade-entry time."""

    model_config = {"frozen": True}

    id: str
    name: str = ""
    rules: list[Rule] = Field(default_factory=list)
    confluences: list[Confluence] = Field(default_factory=list)
    checklist: list[ChecklistItem] = Field(default_factory=list)
    rubric: Rubric = Field(default_factory=Rubric)
