"""Backup export and import."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import typer

from folio_cli._common import build_typer, get_state, handle_error, print_output
from folio_core.exceptions import FolioError

app = build_typer("Backup commands: export or replace the stored state document.")


@app.command("export", help="Write the current state document to a JSON file.")
def export(
    ctx: typer.Context,
    path: str | None = typer.Argument(
        None,
        help="Target file (default: storage.backup_dir/portfolio-<timestamp>.json).",
    ),
) -> None:
    state = get_state(ctx)
    if path is None:
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
        target = state.config.storage.backup_dir / f"portfolio-{stamp}.json"
    else:
        target = Path(path).expanduser()

    try:
        written = state.store.export_to(target)
    except FolioError as exc:
        handle_error(exc)
        return
    print_output({"ok": True, "command": "backup.export", "path": str(written)}, indent=state.config.output.indent)


@app.command("import", help="Validate a backup file and replace the stored state with it.")
def import_(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Backup file to import."),
) -> None:
    state = get_state(ctx)
    try:
        imported = state.store.import_from(Path(path).expanduser())
    except FolioError as exc:
        handle_error(exc)
        return
    print_output(
        {
            "ok": True,
            "command": "backup.import",
            "total_capital": imported.total_capital,
            "transactions": len(imported.transactions),
        },
        indent=state.config.output.indent,
    )
