"""CLI entry point for the analytics engine."""

from __future__ import annotations

import functools
import json
from datetime import date
from typing import Any

import click

from .core.enums import GroupKey, Metric, WinConvention
from .core.errors import DataError


def _echo(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def _prepare(
    ctx: click.Context,
    trades_path: str,
    *,
    date_from: date | None = None,
    date_to: date | None = None,
    account: str | None = None,
    trim: bool = False,
) -> list:
    """Load, scope and optionally trim the trade file."""
    from .analytics.distribution import remove_outliers
    from .analytics.filters import TradeFilters, select_trades_in_scope
    from .analytics.trade_io import load_trades
    from .core.errors import TradeImportError

    settings = ctx.obj["settings"]
    try:
        trades = load_trades(trades_path)
    except TradeImportError as exc:
        raise click.ClickException(str(exc)) from exc
    trades = select_trades_in_scope(
        trades,
        TradeFilters(date_from=date_from, date_to=date_to, account_id=account),
    )
    if trim:
        trades = remove_outliers(
            trades,
            tail_pct=settings.outliers.tail_pct,
            min_sample=settings.samples.outlier_trim,
        )
    return trades


_scope_options = [
    click.argument("trades_path", type=click.Path(exists=True, dir_okay=False)),
    click.option("--from", "date_from", type=click.DateTime(["%Y-%m-%d"]), default=None,
                 help="First close date (YYYY-MM-DD)"),
    click.option("--to", "date_to", type=click.DateTime(["%Y-%m-%d"]), default=None,
                 help="Last close date (YYYY-MM-DD)"),
    click.option("--account", default=None, help="Account id ('all' for every account)"),
    click.option("--trim-outliers", "trim", is_flag=True,
                 help="Drop the top and bottom 2.5% of trades by R"),
]


def scope_options(func):
    for option in reversed(_scope_options):
        func = option(func)
    return func


def reports_data_errors(func):
    """Turn corrupt-input failures raised by the engine into CLI errors."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DataError as exc:
            raise click.ClickException(str(exc)) from exc

    return wrapper


def _load_playbook(path: str):
    from pydantic import ValidationError

    from .core.models import Playbook

    try:
        with open(path, encoding="utf-8") as f:
            return Playbook.model_validate(json.load(f))
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        raise click.ClickException(f"{path}: not a valid playbook: {exc}") from exc


def _day(value) -> date | None:
    return value.date() if value is not None else None


@click.group()
@click.option("--config", default=None, type=click.Path(dir_okay=False),
              help="Config file path (TOML)")
@click.option("--log-level", default=None, help="Override the configured log level")
@click.pass_context
def main(ctx: click.Context, config: str | None, log_level: str | None) -> None:
    """Trading journal performance analytics."""
    from .core.config import load_settings
    from .observability import bind_run, get_logger, setup_logging

    settings = load_settings(config)
    setup_logging(
        level=log_level or settings.observability.log_level,
        format=settings.observability.log_format,
    )
    bind_run(command=ctx.invoked_subcommand)
    get_logger(__name__).info("run_started", config=config)
    ctx.obj = {"settings": settings}


@main.command()
@scope_options
@click.option("--convention", type=click.Choice([c.value for c in WinConvention]),
              default=None, help="Win/loss classification convention")
@click.pass_context
@reports_data_errors
def kpis(ctx, trades_path, date_from, date_to, account, trim, convention) -> None:
    """Rollup KPIs for a trade file."""
    from .analytics.aggregate import aggregate

    settings = ctx.obj["settings"]
    trades = _prepare(ctx, trades_path, date_from=_day(date_from),
                      date_to=_day(date_to), account=account, trim=trim)
    snap = aggregate(
        trades,
        convention=WinConvention(convention or settings.classification.win_convention),
        breakeven_band=settings.classification.breakeven_band_r,
    )
    _echo(snap.to_dict())


@main.command()
@scope_options
@click.option("--by", "key", type=click.Choice([k.value for k in GroupKey]),
              default=GroupKey.SESSION.value, help="Partition key")
@click.pass_context
@reports_data_errors
def breakdown(ctx, trades_path, date_from, date_to, account, trim, key) -> None:
    """KPIs per partition (session, hour, symbol, ...)."""
    from .analytics.grouping import group_by

    settings = ctx.obj["settings"]
    trades = _prepare(ctx, trades_path, date_from=_day(date_from),
                      date_to=_day(date_to), account=account, trim=trim)
    groups = group_by(
        trades,
        GroupKey(key),
        min_sample=settings.samples.exploratory,
        classification=settings.classification,
    )
    _echo({value: g.to_dict() for value, g in groups.items()})


@main.command()
@scope_options
@click.option("--metric", type=click.Choice([m.value for m in Metric]),
              default=Metric.R.value, help="Per-trade metric")
@click.pass_context
@reports_data_errors
def histogram(ctx, trades_path, date_from, date_to, account, trim, metric) -> None:
    """Histogram and quartiles of one per-trade metric."""
    from .analytics.distribution import metric_histogram, quartile_stats

    settings = ctx.obj["settings"]
    trades = _prepare(ctx, trades_path, date_from=_day(date_from),
                      date_to=_day(date_to), account=account, trim=trim)
    buckets = metric_histogram(trades, Metric(metric), config=settings.histogram)
    _echo({
        "metric": metric,
        "buckets": [b.to_dict() for b in buckets],
        "quartiles": quartile_stats(trades, Metric(metric)).to_dict(),
    })


@main.command()
@scope_options
@click.option("--as-of", type=click.DateTime(["%Y-%m-%d"]), default=None,
              help="Reference date for days-since-last-trade")
@click.pass_context
@reports_data_errors
def streaks(ctx, trades_path, date_from, date_to, account, trim, as_of) -> None:
    """Daily streaks, drawdown runs and recovery time."""
    from .analytics.streaks import detect_streaks

    trades = _prepare(ctx, trades_path, date_from=_day(date_from),
                      date_to=_day(date_to), account=account, trim=trim)
    _echo(detect_streaks(trades, as_of=_day(as_of)).to_dict())


@main.command()
@scope_options
@click.pass_context
@reports_data_errors
def equity(ctx, trades_path, date_from, date_to, account, trim) -> None:
    """Constant-risk equity curve, drawdown periods and monthly rows."""
    from .analytics.equity import drawdown_periods, equity_curve, monthly_performance

    settings = ctx.obj["settings"]
    trades = _prepare(ctx, trades_path, date_from=_day(date_from),
                      date_to=_day(date_to), account=account, trim=trim)
    curve = equity_curve(trades, config=settings.equity)
    _echo({
        "curve": [p.to_dict() for p in curve],
        "drawdowns": [d.to_dict() for d in drawdown_periods(curve)],
        "monthly": [m.to_dict() for m in monthly_performance(trades)],
    })


@main.command()
@scope_options
@click.pass_context
@reports_data_errors
def insights(ctx, trades_path, date_from, date_to, account, trim) -> None:
    """Top insights for a trade file."""
    from .analytics.insights import auto_insights

    settings = ctx.obj["settings"]
    trades = _prepare(ctx, trades_path, date_from=_day(date_from),
                      date_to=_day(date_to), account=account, trim=trim)
    found = auto_insights(
        trades, samples=settings.samples, thresholds=settings.insights
    )
    _echo([i.to_dict() for i in found])


@main.command()
@click.argument("playbook_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--rule", "rules", multiple=True, help="Checked rule id (repeatable)")
@click.option("--confluence", "confluences", multiple=True,
              help="Checked confluence id (repeatable)")
@click.option("--check", "checks", multiple=True,
              help="Checked checklist item id (repeatable)")
@click.option("--invalidation", "invalidations", multiple=True,
              help="Hard invalidation present (repeatable)")
def score(playbook_path, rules, confluences, checks, invalidations) -> None:
    """Score a setup against a playbook JSON file."""
    from .analytics.compliance import explain, score_playbook

    playbook = _load_playbook(playbook_path)
    result = score_playbook(
        playbook,
        rules,
        confluences,
        checklist_checked=checks,
        invalidations=list(invalidations),
    )
    _echo({**result.to_dict(), "explanation": explain(result)})


@main.command("validate-rubric")
@click.argument("playbook_path", type=click.Path(exists=True, dir_okay=False))
def validate_rubric_cmd(playbook_path) -> None:
    """Check a playbook's rubric; exits non-zero when invalid."""
    from .analytics.compliance import validate_rubric
    from .core.errors import RubricValidationError

    playbook = _load_playbook(playbook_path)
    try:
        validate_rubric(playbook.rubric)
    except RubricValidationError as exc:
        raise click.ClickException(exc.reason) from exc
    _echo({"playbook": playbook.id, "valid": True})


if __name__ == "__main__":
    main()
