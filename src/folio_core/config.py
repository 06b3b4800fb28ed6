"""Folio config loading from config.json plus env overrides."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator


def _env_path(name: str, fallback: Path) -> Path:
    raw = os.environ.get(name, "").strip()
    return Path(raw).expanduser() if raw else fallback.expanduser()


_USER_HOME = Path.home()
_XDG_CONFIG_HOME = _env_path("XDG_CONFIG_HOME", _USER_HOME / ".config")
_XDG_STATE_HOME = _env_path("XDG_STATE_HOME", _USER_HOME / ".local" / "state")
DEFAULT_CONFIG_HOME = _XDG_CONFIG_HOME / "folio"
DEFAULT_STATE_HOME = _XDG_STATE_HOME / "folio"
DEFAULT_FOLIO_CONFIG_JSON = _env_path("FOLIO_CONFIG_JSON", DEFAULT_CONFIG_HOME / "config.json")

SECTIONS = frozenset({"storage", "logging", "allocation", "output"})


class StorageConfig(BaseModel):
    state_file: Path = DEFAULT_STATE_HOME / "portfolio.json"
    backup_dir: Path = DEFAULT_STATE_HOME / "backups"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_file: Path = DEFAULT_STATE_HOME / "folio.log"


class AllocationConfig(BaseModel):
    cash_share_pct: float = 20.0
    tether_rate: float = 1.0

    @field_validator("cash_share_pct")
    @classmethod
    def _validate_cash_share(cls, value: float) -> float:
        if not 0.0 <= value <= 100.0:
            raise ValueError("cash_share_pct must be between 0 and 100")
        return value

    @field_validator("tether_rate")
    @classmethod
    def _validate_tether_rate(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("tether_rate must be positive")
        return value


class OutputConfig(BaseModel):
    indent: int | None = None


class AppConfig(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    allocation: AllocationConfig = Field(default_factory=AllocationConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    def expanded(self) -> "AppConfig":
        clone = self.model_copy(deep=True)
        clone.storage.state_file = clone.storage.state_file.expanduser()
        clone.storage.backup_dir = clone.storage.backup_dir.expanduser()
        clone.logging.log_file = clone.logging.log_file.expanduser()
        return clone

    def ensure_dirs(self) -> None:
        expanded = self.expanded()
        expanded.storage.state_file.parent.mkdir(parents=True, exist_ok=True)
        expanded.storage.backup_dir.mkdir(parents=True, exist_ok=True)
        expanded.logging.log_file.parent.mkdir(parents=True, exist_ok=True)


def _coerce_env_value(value: str) -> Any:
    lower = value.lower()
    if lower in {"true", "false"}:
        return lower == "true"
    if "," in value:
        return [part.strip() for part in value.split(",") if part.strip()]
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        return value


def _read_folio_json(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}

    try:
        loaded = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}

    if isinstance(loaded, dict):
        return loaded
    return {}


def _extract_folio_config(data: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for section in SECTIONS:
        value = data.get(section)
        if isinstance(value, dict):
            out[section] = value
    return out


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    result = dict(data)
    for key, raw in os.environ.items():
        if not key.startswith("FOLIO_"):
            continue
        tokens = key[len("FOLIO_") :].lower().split("_")
        if not tokens:
            continue
        section = tokens[0]
        if section not in SECTIONS or len(tokens) == 1:
            continue
        field = "_".join(tokens[1:])
        section_obj = dict(result.get(section, {}))
        section_obj[field] = _coerce_env_value(raw)
        result[section] = section_obj
    return result


def load_config(path: Path | None = None) -> AppConfig:
    raw = _read_folio_json((path or DEFAULT_FOLIO_CONFIG_JSON).expanduser())
    from_file = _extract_folio_config(raw)
    merged = _apply_env_overrides(from_file)
    cfg = AppConfig.model_validate(merged).expanded()
    cfg.ensure_dirs()
    return cfg
