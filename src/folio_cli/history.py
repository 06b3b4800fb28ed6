"""Ledger and reporting commands."""

from __future__ import annotations

from datetime import UTC, datetime

import typer

from folio_cli._common import build_typer, get_state, load_snapshot, print_output
from folio_core.views import (
    TransactionPeriod,
    asset_comparison,
    capital_trend,
    filter_transactions,
    monthly_profit_loss,
)

app = build_typer("History commands: transactions, trades, capital trend, and per-asset comparisons.")


@app.command("transactions", help="List ledger transactions, optionally limited to the last week or month.")
def transactions(
    ctx: typer.Context,
    period: TransactionPeriod = typer.Option(TransactionPeriod.ALL, "--period", help="Time window."),
    limit: int | None = typer.Option(None, "--limit", min=1, help="Show only the most recent N entries."),
) -> None:
    state = get_state(ctx)
    snapshot = load_snapshot(ctx)
    rows = filter_transactions(snapshot.transactions, period, today=datetime.now(UTC).date())
    if limit is not None:
        rows = rows[-limit:]
    print_output(rows, indent=state.config.output.indent)


@app.command("trades", help="List recorded sub-item purchases.")
def trades(
    ctx: typer.Context,
    key: str | None = typer.Option(None, "--asset", help="Optional asset key filter."),
) -> None:
    state = get_state(ctx)
    snapshot = load_snapshot(ctx)
    rows = [trade for trade in snapshot.trade_history if key is None or trade.asset_key == key]
    print_output(rows, indent=state.config.output.indent)


@app.command("trend", help="Cumulative capital over time from the ledger.")
def trend(ctx: typer.Context) -> None:
    state = get_state(ctx)
    snapshot = load_snapshot(ctx)
    print_output(capital_trend(snapshot.transactions), indent=state.config.output.indent)


@app.command("monthly-pnl", help="Realized profit and loss grouped by month and asset.")
def monthly_pnl(ctx: typer.Context) -> None:
    state = get_state(ctx)
    snapshot = load_snapshot(ctx)
    print_output(monthly_profit_loss(snapshot.transactions), indent=state.config.output.indent)


@app.command("compare", help="Initial versus current value per asset, with liquidated totals.")
def compare(ctx: typer.Context) -> None:
    state = get_state(ctx)
    snapshot = load_snapshot(ctx)
    print_output(asset_comparison(snapshot), indent=state.config.output.indent)
