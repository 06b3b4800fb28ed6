"""Shared CLI context, rendering, and state-store helpers."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from difflib import get_close_matches
import json
import logging
from typing import Any

import click
import typer
from pydantic import BaseModel
from typer.core import TyperGroup

from folio_core.allocation import AllocationEngine, require
from folio_core.config import AppConfig, load_config
from folio_core.exceptions import ErrorCode, FolioError
from folio_core.models import OperationResult, PortfolioState
from folio_core.store import StateStore

logger = logging.getLogger(__name__)

HELP_CONTEXT_SETTINGS = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 110,
}


@dataclass
class CLIState:
    config: AppConfig
    store: StateStore
    engine: AllocationEngine


class SuggestionGroup(TyperGroup):
    """Click command group that appends close-match suggestions for unknown commands."""

    def resolve_command(
        self,
        ctx: click.Context,
        args: list[str],
    ) -> tuple[str | None, click.Command | None, list[str]]:
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as exc:
            if args:
                attempted = args[0]
                matches = get_close_matches(attempted, list(self.list_commands(ctx)), n=3, cutoff=0.45)
                if matches:
                    exc.message = f"{exc.message}\n\nDid you mean: {', '.join(matches)}"
            raise


def build_typer(help_text: str) -> typer.Typer:
    """Create Typer apps with consistent help ergonomics across command groups."""

    return typer.Typer(
        help=help_text,
        cls=SuggestionGroup,
        no_args_is_help=True,
        rich_markup_mode="markdown",
        context_settings=HELP_CONTEXT_SETTINGS,
    )


def configure_logging(cfg: AppConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, cfg.logging.level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[logging.FileHandler(cfg.logging.log_file, encoding="utf-8")],
        force=True,
    )


def build_state(cfg: AppConfig) -> CLIState:
    return CLIState(
        config=cfg,
        store=StateStore(cfg.storage.state_file),
        engine=AllocationEngine(cfg.allocation),
    )


def get_state(ctx: typer.Context) -> CLIState:
    value = ctx.obj
    if not isinstance(value, CLIState):
        raise RuntimeError("CLI context not initialized")
    return value


def _jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, (list, tuple)):
        return [_jsonable(item) for item in data]
    if isinstance(data, dict):
        return {key: _jsonable(value) for key, value in data.items()}
    return data


def print_output(data: Any, *, indent: int | None = None) -> None:
    separators = None if indent is not None else (",", ":")
    print(json.dumps(_jsonable(data), default=str, ensure_ascii=False, indent=indent, separators=separators))


def handle_error(exc: FolioError) -> None:
    suggestion = exc.suggestion or _default_suggestion(exc.code)
    error_payload = exc.to_error_payload()
    if suggestion and "suggestion" not in error_payload:
        error_payload["suggestion"] = suggestion
    payload = {"ok": False, "error": error_payload}
    print(json.dumps(payload, default=str, ensure_ascii=False, separators=(",", ":")))
    raise typer.Exit(code=exc.exit_code)


def run_operation(
    ctx: typer.Context,
    command: str,
    operation: Callable[[AllocationEngine, PortfolioState], OperationResult],
) -> None:
    """Load the latest snapshot, apply one operation, persist and report."""

    state = get_state(ctx)
    try:
        current = state.store.load()
        result = operation(state.engine, current)
        updated = require(result)
        if updated is not current:
            state.store.save(updated)
        print_output(
            {
                "ok": True,
                "command": command,
                "total_capital": updated.total_capital,
                "details": result.details,
            },
            indent=state.config.output.indent,
        )
    except FolioError as exc:
        logger.warning("command %s failed: %s", command, exc.message)
        handle_error(exc)


def load_snapshot(ctx: typer.Context) -> PortfolioState:
    state = get_state(ctx)
    try:
        return state.store.load()
    except FolioError as exc:
        handle_error(exc)
        raise


def _default_suggestion(code: ErrorCode) -> str | None:
    suggestions = {
        ErrorCode.NOT_INITIALIZED: "Initialize the portfolio first with `folio init AMOUNT`.",
        ErrorCode.ALREADY_INITIALIZED: "Use `folio add-capital AMOUNT` to add money to an existing portfolio.",
        ErrorCode.INVALID_REFERENCE: "Run `folio show` to list asset keys and `folio holding list` for sub-item indexes.",
        ErrorCode.INVALID_ARGS: "Run `folio --help` or `<command> --help` for valid usage.",
        ErrorCode.INSUFFICIENT_VALUE: "Check available cash with `folio show`.",
        ErrorCode.STORAGE_ERROR: "Verify `storage.state_file` in config points to a writable location.",
    }
    return suggestions.get(code)
