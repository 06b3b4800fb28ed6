"""Capital and allocation commands."""

from __future__ import annotations

import typer

from folio_cli._common import get_state, load_snapshot, print_output, run_operation
from folio_core.allocation import AllocationEngine
from folio_core.models import OperationResult, PortfolioState
from folio_core.views import allocation_summary


def init(
    ctx: typer.Context,
    amount: float = typer.Argument(..., help="Initial capital to allocate."),
) -> None:
    run_operation(ctx, "init", lambda engine, state: engine.set_initial_capital(state, amount))


def show(ctx: typer.Context) -> None:
    state = get_state(ctx)
    snapshot = load_snapshot(ctx)
    print_output(allocation_summary(snapshot), indent=state.config.output.indent)


def add_capital(
    ctx: typer.Context,
    amount: float = typer.Argument(..., help="Amount of new capital."),
) -> None:
    run_operation(ctx, "add-capital", lambda engine, state: engine.add_capital(state, amount))


def set_pct(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Asset key (gold, stock, foreignStock, crypto)."),
    pct: int = typer.Argument(..., help="New target percentage, 0-100."),
) -> None:
    run_operation(ctx, "set-pct", lambda engine, state: engine.update_percentage(state, key, pct))


def adjust(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Asset key."),
    value: float = typer.Argument(..., help="New absolute value of the asset."),
) -> None:
    run_operation(ctx, "adjust", lambda engine, state: engine.adjust_value(state, key, value))


def liquidate(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Asset key."),
    pct: float = typer.Argument(100.0, help="Percentage of the asset's value to sell, (0-100]."),
) -> None:
    run_operation(ctx, "liquidate", lambda engine, state: engine.liquidate(state, key, pct))


def pnl(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Asset key (cash allowed)."),
    amount: float = typer.Argument(..., help="Positive amount; use --loss to record a loss."),
    loss: bool = typer.Option(False, "--loss", help="Record the amount as a loss."),
    percent: bool = typer.Option(False, "--percent", help="Treat AMOUNT as a percentage of the asset's value."),
) -> None:
    if amount < 0:
        raise typer.BadParameter("amount must be positive; pass --loss for losses")

    def operation(engine: AllocationEngine, state: PortfolioState) -> OperationResult:
        signed = -amount if loss else amount
        if percent and key in state.assets:
            signed = state.assets[key].value * signed / 100.0
        return engine.record_profit_loss(state, key, signed)

    run_operation(ctx, "pnl", operation)


def recalc(ctx: typer.Context) -> None:
    run_operation(ctx, "recalc", lambda engine, state: engine.recalculate(state))
