from __future__ import annotations

import itertools
import os
from datetime import date
from pathlib import Path

import pytest

from folio_core import config as config_module
from folio_core.allocation import AllocationEngine, require
from folio_core.defaults import default_state
from folio_core.models import PortfolioState

TODAY = date(2024, 3, 15)


@pytest.fixture
def fake_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    home.mkdir(parents=True)
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setattr(config_module, "DEFAULT_FOLIO_CONFIG_JSON", home / ".config" / "folio" / "config.json")
    monkeypatch.setenv("FOLIO_STORAGE_STATE_FILE", str(home / ".folio" / "portfolio.json"))
    monkeypatch.setenv("FOLIO_STORAGE_BACKUP_DIR", str(home / ".folio" / "backups"))
    monkeypatch.setenv("FOLIO_LOGGING_LOG_FILE", str(home / ".folio" / "folio.log"))
    return home


@pytest.fixture(autouse=True)
def clear_folio_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ.keys()):
        if key.startswith("FOLIO_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def engine() -> AllocationEngine:
    counter = itertools.count(1)
    return AllocationEngine(today=lambda: TODAY, trade_id=lambda: f"trade-{next(counter)}")


@pytest.fixture
def fresh() -> PortfolioState:
    return default_state()


@pytest.fixture
def funded(engine: AllocationEngine, fresh: PortfolioState) -> PortfolioState:
    return require(engine.set_initial_capital(fresh, 100_000_000))
