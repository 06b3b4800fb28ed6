"""Root Typer app and command registration."""

from __future__ import annotations

from pathlib import Path

import typer

from folio_cli import backup, history, holdings, portfolio, projection
from folio_cli._common import build_state, build_typer, configure_logging, load_config

app = build_typer(
    """Folio command-line interface for capital allocation, holdings, growth projection, and history.

    Examples:
      folio init 100000000
      folio set-pct crypto 30
      folio holding buy crypto 0 0.5 --price 60000
      folio project run --years 10 --monthly 2000000
    """
)

app.add_typer(holdings.app, name="holding")
app.add_typer(projection.app, name="project")
app.add_typer(history.app, name="history")
app.add_typer(backup.app, name="backup")

app.command("init", help="Allocate the first capital according to the configured percentages.")(portfolio.init)
app.command("show", help="Show the allocation: value, percentage and P&L per asset.")(portfolio.show)
app.command("add-capital", help="Inject new capital: a cash share plus a pro-rata split.")(portfolio.add_capital)
app.command("set-pct", help="Change an asset's target percentage, funded by cash.")(portfolio.set_pct)
app.command("adjust", help="Set an asset's value; the difference is settled against cash.")(portfolio.adjust)
app.command("liquidate", help="Move a percentage of an asset's value into cash.")(portfolio.liquidate)
app.command("pnl", help="Record realized profit or loss on an asset.")(portfolio.pnl)
app.command("recalc", help="Recompute every percentage from current values.")(portfolio.recalc)


@app.callback()
def root(
    ctx: typer.Context,
    config: str | None = typer.Option(
        None,
        "--config",
        help="Path to config.json (default: ~/.config/folio/config.json).",
    ),
) -> None:
    config_path = None if config is None else Path(config)
    cfg = load_config(config_path)
    configure_logging(cfg)
    ctx.obj = build_state(cfg)


def run() -> None:
    app()
