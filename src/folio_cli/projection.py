"""Growth projection commands."""

from __future__ import annotations

import typer

from folio_cli._common import build_typer, get_state, handle_error, load_snapshot, print_output
from folio_core.allocation import require
from folio_core.exceptions import FolioError
from folio_core.models import ProjectionSettings
from folio_core.projection import blended_annual_rate, final_result, project_portfolio

app = build_typer("Growth projection commands: compound the portfolio forward with monthly contributions.")


def _parse_returns(items: list[str]) -> dict[str, float]:
    parsed: dict[str, float] = {}
    for item in items:
        key, sep, raw = item.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"expected KEY=PCT, got '{item}'")
        try:
            parsed[key.strip()] = float(raw)
        except ValueError as exc:
            raise typer.BadParameter(f"expected a number after '=', got '{raw}'") from exc
    return parsed


@app.command("run", help="Project yearly totals from saved settings, with optional overrides.")
def run(
    ctx: typer.Context,
    years: int | None = typer.Option(None, "--years", min=0, help="Projection horizon in years."),
    monthly: float | None = typer.Option(None, "--monthly", help="Monthly contribution in year 1."),
    increase: float | None = typer.Option(None, "--increase", help="Yearly contribution escalation, percent."),
    base: float | None = typer.Option(None, "--base", help="Starting capital (0 uses total capital)."),
    returns: list[str] = typer.Option([], "--return", help="Expected annual return override, KEY=PCT. Repeatable."),
    save: bool = typer.Option(False, "--save", help="Persist the effective settings."),
) -> None:
    state = get_state(ctx)
    snapshot = load_snapshot(ctx)
    saved = snapshot.projection_settings

    overrides: dict[str, object] = {}
    if years is not None:
        overrides["years"] = years
    if monthly is not None:
        overrides["monthly_contribution"] = monthly
    if increase is not None:
        overrides["annual_increase"] = increase
    if base is not None:
        overrides["base_capital"] = base
    if returns:
        overrides["expected_returns"] = {**saved.expected_returns, **_parse_returns(returns)}
    settings = saved.model_copy(update=overrides)

    try:
        if save:
            state.store.save(require(state.engine.save_projection_settings(snapshot, settings)))
        rows = project_portfolio(snapshot, settings)
    except FolioError as exc:
        handle_error(exc)
        return

    asset_values = {key: asset.value for key, asset in snapshot.assets.items()} if snapshot.total_capital > 0 else {}
    print_output(
        {
            "settings": settings,
            "blended_annual_rate": blended_annual_rate(asset_values, settings.expected_returns),
            "years": rows,
            "final": final_result(rows),
            "saved": save,
        },
        indent=state.config.output.indent,
    )


@app.command("settings", help="Show saved projection settings.")
def settings(ctx: typer.Context) -> None:
    state = get_state(ctx)
    snapshot = load_snapshot(ctx)
    print_output(snapshot.projection_settings, indent=state.config.output.indent)


@app.command("reset", help="Restore default projection settings.")
def reset(ctx: typer.Context) -> None:
    state = get_state(ctx)
    snapshot = load_snapshot(ctx)
    try:
        state.store.save(require(state.engine.save_projection_settings(snapshot, ProjectionSettings())))
    except FolioError as exc:
        handle_error(exc)
        return
    print_output({"ok": True, "command": "project.reset"}, indent=state.config.output.indent)
