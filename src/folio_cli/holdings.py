"""Sub-item (holding) commands."""

from __future__ import annotations

import typer

from folio_cli._common import build_typer, get_state, load_snapshot, print_output, run_operation
from folio_core.views import holding_valuations

app = build_typer("Holding commands: named sub-items inside an asset, with quantity and price tracking.")


@app.command("list", help="List holdings with cost basis and unrealized P&L.")
def list_holdings(
    ctx: typer.Context,
    key: str | None = typer.Argument(None, help="Optional asset key filter."),
    tether_rate: float | None = typer.Option(
        None,
        "--tether-rate",
        help="Local-currency price of one USDT (default: allocation.tether_rate).",
    ),
) -> None:
    state = get_state(ctx)
    rate = tether_rate if tether_rate is not None else state.config.allocation.tether_rate
    if rate <= 0:
        raise typer.BadParameter("--tether-rate must be positive")
    snapshot = load_snapshot(ctx)
    print_output(holding_valuations(snapshot, tether_rate=rate, asset_key=key), indent=state.config.output.indent)


@app.command("add", help="Append a named holding to an asset and re-split its value.")
def add(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Asset key."),
    name: str = typer.Argument(..., help="Holding name."),
) -> None:
    run_operation(ctx, "holding.add", lambda engine, state: engine.add_sub_item(state, key, name))


@app.command("remove", help="Remove a holding by index and re-split its asset's value.")
def remove(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Asset key."),
    index: int = typer.Argument(..., help="Zero-based holding index (see `folio holding list`)."),
) -> None:
    run_operation(ctx, "holding.remove", lambda engine, state: engine.remove_sub_item(state, key, index))


@app.command("buy", help="Record a purchase; updates quantity and weighted average price.")
def buy(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Asset key."),
    index: int = typer.Argument(..., help="Zero-based holding index."),
    quantity: float = typer.Argument(..., help="Quantity bought."),
    price: float | None = typer.Option(None, "--price", help="Unit price."),
    total: float | None = typer.Option(None, "--total", help="Total cost; wins over --price when both are given."),
) -> None:
    if price is None and total is None:
        raise typer.BadParameter("provide --price or --total")
    run_operation(
        ctx,
        "holding.buy",
        lambda engine, state: engine.record_sub_item_purchase(
            state, key, index, quantity, unit_price=price, total_cost=total
        ),
    )


@app.command("stats", help="Overwrite a holding's average buy price and quantity.")
def stats(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Asset key."),
    index: int = typer.Argument(..., help="Zero-based holding index."),
    avg: float = typer.Option(..., "--avg", help="Average buy price."),
    qty: float = typer.Option(..., "--qty", help="Quantity held."),
) -> None:
    run_operation(ctx, "holding.stats", lambda engine, state: engine.update_sub_item_stats(state, key, index, avg, qty))


@app.command("price", help="Set a holding's current market price.")
def price(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Asset key."),
    index: int = typer.Argument(..., help="Zero-based holding index."),
    value: float = typer.Argument(..., help="Current unit price."),
) -> None:
    run_operation(ctx, "holding.price", lambda engine, state: engine.update_current_price(state, key, index, value))
