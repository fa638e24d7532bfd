"""Trade import / export — JSON and CSV.

Loads journal exports into immutable ``Trade`` records and writes trades
back out with their derived metrics attached, for external analysis and
archival.

Usage::

    trades = load_trades("journal.csv")
    exporter = TradeExporter()
    csv_str = exporter.to_csv(trades)
    json_str = exporter.to_json(trades)
"""

from __future__ import annotations

import csv
import io
import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..core.errors import TradeImportError
from ..core.models import Trade
from .metrics import hold_minutes, net_pnl, resolve_r, total_fees

logger = logging.getLogger(__name__)

# Default CSV columns
_CSV_COLUMNS = [
    "trade_id",
    "account_id",
    "symbol",
    "direction",
    "strategy",
    "playbook_id",
    "session",
    "entry_date",
    "entry_time",
    "exit_date",
    "exit_time",
    "entry_price",
    "exit_price",
    "stop_price",
    "quantity",
    "pnl",
    "total_fees",
    "net_pnl",
    "r_multiple",
    "r_resolved",
    "mae_r",
    "mfe_r",
    "hold_minutes",
    "setup_grade",
    "setup_score",
]


# ------------------------------------------------------------------ #
# Import                                                               #
# ------------------------------------------------------------------ #

def _clean(row: Mapping[str, Any]) -> dict[str, Any]:
    """Drop blank cells so they fall back to the model defaults."""
    return {
        k.strip(): v
        for k, v in row.items()
        if k is not None and v is not None and not (isinstance(v, str) and not v.strip())
    }


def parse_trades(rows: Iterable[Mapping[str, Any]], *, source: str = "<rows>") -> list[Trade]:
    """Validate raw rows into trades.

    Raises
    ------
    TradeImportError
        On the first row that does not validate, naming its position.
    """
    trades = []
    for i, row in enumerate(rows, start=1):
        try:
            trades.append(Trade.model_validate(_clean(row)))
        except ValidationError as exc:
            raise TradeImportError(f"{source}: row {i} is not a valid trade: {exc}") from exc
    logger.info("Loaded %d trades from %s", len(trades), source)
    return trades


def load_trades_json(path: str | Path) -> list[Trade]:
    """Load a JSON array of trade objects (or ``{"trades": [...]}``)."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise TradeImportError(f"{path}: {exc}") from exc
    if isinstance(data, dict):
        data = data.get("trades", [])
    if not isinstance(data, list):
        raise TradeImportError(f"{path}: expected a list of trades")
    return parse_trades(data, source=str(path))


def load_trades_csv(path: str | Path) -> list[Trade]:
    """Load a CSV with a header row naming ``Trade`` fields."""
    path = Path(path)
    try:
        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
    except (OSError, csv.Error) as exc:
        raise TradeImportError(f"{path}: {exc}") from exc
    return parse_trades(rows, source=str(path))


def load_trades(path: str | Path) -> list[Trade]:
    """Load trades, picking the parser from the file extension."""
    path = Path(path)
    if path.suffix.lower() == ".csv":
        return load_trades_csv(path)
    return load_trades_json(path)


# ------------------------------------------------------------------ #
# Export                                                               #
# ------------------------------------------------------------------ #

class TradeExporter:
    """Export trades with derived metrics to CSV/JSON.

    Parameters
    ----------
    decimal_places : int
        Rounding precision for derived numeric fields.  Default 4.
    """

    def __init__(self, *, decimal_places: int = 4) -> None:
        self._dp = decimal_places

    def to_csv(
        self,
        trades: Iterable[Trade],
        *,
        columns: list[str] | None = None,
    ) -> str:
        """Export trades as a CSV string with a header row."""
        cols = columns or _CSV_COLUMNS
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        for trade in trades:
            row = self.trade_to_row(trade)
            writer.writerow({c: "" if row.get(c) is None else row[c] for c in cols})
        return buf.getvalue()

    def to_json(self, trades: Iterable[Trade], *, indent: int = 2) -> str:
        """Export trades as a JSON list of objects."""
        rows = [self.trade_to_row(t) for t in trades]
        return json.dumps(rows, indent=indent, default=str)

    def trade_to_row(self, trade: Trade) -> dict[str, Any]:
        """Flatten a trade plus its derived metrics."""
        row = trade.model_dump(mode="json")
        row.update({
            "r_resolved": self._round(resolve_r(trade)),
            "total_fees": self._round(total_fees(trade)),
            "net_pnl": self._round(net_pnl(trade)),
            "hold_minutes": hold_minutes(trade),
        })
        return row

    def _round(self, value: float | None) -> float | None:
        return round(value, self._dp) if value is not None else None
