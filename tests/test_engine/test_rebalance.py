from __future__ import annotations

import pytest
from pydantic import ValidationError

from folio_core.allocation import AllocationEngine, require
from folio_core.exceptions import ErrorCode
from folio_core.models import PortfolioState, TransactionKind


def test_update_percentage_moves_value_from_cash(engine: AllocationEngine, funded: PortfolioState) -> None:
    state = require(engine.update_percentage(funded, "crypto", 30))

    crypto = state.assets["crypto"]
    assert crypto.percentage == 30
    assert crypto.value == pytest.approx(30_000_000)
    assert crypto.initial_value == pytest.approx(30_000_000)
    assert [sub.value for sub in crypto.sub_items] == pytest.approx([7_500_000] * 4)
    assert state.cash.percentage == 10
    assert state.cash.value == pytest.approx(10_000_000)
    assert state.cash.initial_value == pytest.approx(10_000_000)
    assert state.total_capital == pytest.approx(100_000_000)
    assert state.percentage_sum() == 100
    assert len(state.transactions) == len(funded.transactions)


def test_update_percentage_decrease_returns_value_to_cash(engine: AllocationEngine, funded: PortfolioState) -> None:
    state = require(engine.update_percentage(funded, "gold", 0))

    assert state.assets["gold"].value == pytest.approx(0)
    assert state.cash.percentage == 40
    assert state.cash.value == pytest.approx(40_000_000)


def test_update_percentage_rejects_when_cash_share_is_short(engine: AllocationEngine, funded: PortfolioState) -> None:
    result = engine.update_percentage(funded, "crypto", 50)

    assert result.ok is False
    assert result.code == ErrorCode.INSUFFICIENT_VALUE
    assert result.state is funded


def test_update_percentage_rejects_negative_asset_value(engine: AllocationEngine, funded: PortfolioState) -> None:
    state = require(engine.record_profit_loss(funded, "gold", -15_000_000))
    assert state.assets["gold"].percentage == 6

    result = engine.update_percentage(state, "gold", 0)

    assert result.ok is False
    assert result.code == ErrorCode.INSUFFICIENT_VALUE
    assert result.state is state


@pytest.mark.parametrize(
    ("key", "pct", "code"),
    [
        ("cash", 10, ErrorCode.FORBIDDEN_OPERATION),
        ("bonds", 10, ErrorCode.INVALID_REFERENCE),
        ("gold", 101, ErrorCode.INVALID_ARGS),
        ("gold", -1, ErrorCode.INVALID_ARGS),
    ],
)
def test_update_percentage_rejections(
    engine: AllocationEngine,
    funded: PortfolioState,
    key: str,
    pct: int,
    code: ErrorCode,
) -> None:
    result = engine.update_percentage(funded, key, pct)

    assert result.ok is False
    assert result.code == code
    assert result.state is funded


def test_update_percentage_to_same_value_is_noop(engine: AllocationEngine, funded: PortfolioState) -> None:
    result = engine.update_percentage(funded, "gold", 20)

    assert result.ok is True
    assert result.state is funded


def test_adjust_value_settles_against_cash(engine: AllocationEngine, funded: PortfolioState) -> None:
    state = require(engine.adjust_value(funded, "gold", 25_000_000))

    gold = state.assets["gold"]
    assert gold.value == pytest.approx(25_000_000)
    assert gold.profit_loss == pytest.approx(5_000_000)
    assert gold.percentage == 25
    assert gold.sub_items[0].value == pytest.approx(6_250_000)
    assert state.cash.value == pytest.approx(15_000_000)
    assert state.cash.percentage == 15
    assert state.total_capital == pytest.approx(100_000_000)

    tx = state.transactions[-1]
    assert tx.kind == TransactionKind.MANUAL_ADJUSTMENT
    assert tx.amount == pytest.approx(5_000_000)
    assert tx.asset_key == "gold"
    assert tx.description == "Manual adjustment of Gold"


def test_adjust_value_down_records_absolute_amount(engine: AllocationEngine, funded: PortfolioState) -> None:
    state = require(engine.adjust_value(funded, "gold", 15_000_000))

    assert state.assets["gold"].profit_loss == pytest.approx(-5_000_000)
    assert state.cash.value == pytest.approx(25_000_000)
    assert state.transactions[-1].amount == pytest.approx(5_000_000)


def test_adjust_value_rejects_increase_beyond_cash(engine: AllocationEngine, funded: PortfolioState) -> None:
    result = engine.adjust_value(funded, "gold", 41_000_000)

    assert result.ok is False
    assert result.code == ErrorCode.INSUFFICIENT_VALUE
    assert result.state is funded


@pytest.mark.parametrize(
    ("key", "value", "code"),
    [
        ("gold", -1, ErrorCode.INVALID_ARGS),
        ("cash", 10, ErrorCode.FORBIDDEN_OPERATION),
        ("nope", 10, ErrorCode.INVALID_REFERENCE),
    ],
)
def test_adjust_value_rejections(
    engine: AllocationEngine,
    funded: PortfolioState,
    key: str,
    value: float,
    code: ErrorCode,
) -> None:
    result = engine.adjust_value(funded, key, value)

    assert result.ok is False
    assert result.code == code


def test_adjust_value_requires_initialization(engine: AllocationEngine, fresh: PortfolioState) -> None:
    result = engine.adjust_value(fresh, "gold", 10)

    assert result.code == ErrorCode.NOT_INITIALIZED


def test_adjust_value_unchanged_is_noop(engine: AllocationEngine, funded: PortfolioState) -> None:
    result = engine.adjust_value(funded, "gold", 20_000_000)

    assert result.ok is True
    assert result.state is funded


def test_liquidate_partial_moves_value_to_cash(engine: AllocationEngine, funded: PortfolioState) -> None:
    state = require(engine.liquidate(funded, "gold", 50))

    assert state.assets["gold"].value == pytest.approx(10_000_000)
    assert state.assets["gold"].percentage == 10
    assert state.cash.value == pytest.approx(30_000_000)
    assert state.cash.percentage == 30
    assert state.total_capital == pytest.approx(100_000_000)

    tx = state.transactions[-1]
    assert tx.kind == TransactionKind.LIQUIDATION
    assert tx.amount == pytest.approx(10_000_000)
    assert tx.description == "Liquidated 50% of Gold"


def test_liquidate_full_empties_asset(engine: AllocationEngine, funded: PortfolioState) -> None:
    state = require(engine.liquidate(funded, "gold", 100))

    gold = state.assets["gold"]
    assert gold.value == 0
    assert gold.percentage == 0
    assert all(sub.value == 0 for sub in gold.sub_items)
    assert state.cash.value == pytest.approx(40_000_000)
    assert state.cash.percentage == 40

    again = engine.liquidate(state, "gold", 100)
    assert again.ok is True
    assert again.state is state


@pytest.mark.parametrize(
    ("key", "pct", "code"),
    [
        ("gold", 0, ErrorCode.INVALID_ARGS),
        ("gold", 150, ErrorCode.INVALID_ARGS),
        ("cash", 50, ErrorCode.FORBIDDEN_OPERATION),
        ("silver", 50, ErrorCode.INVALID_REFERENCE),
    ],
)
def test_liquidate_rejections(
    engine: AllocationEngine,
    funded: PortfolioState,
    key: str,
    pct: float,
    code: ErrorCode,
) -> None:
    result = engine.liquidate(funded, key, pct)

    assert result.ok is False
    assert result.code == code


def test_profit_raises_value_and_recalculates(engine: AllocationEngine, funded: PortfolioState) -> None:
    state = require(engine.record_profit_loss(funded, "gold", 5_000_000))

    gold = state.assets["gold"]
    assert gold.value == pytest.approx(25_000_000)
    assert gold.profit_loss == pytest.approx(5_000_000)
    assert gold.percentage == 24
    assert gold.sub_items[0].value == pytest.approx(6_250_000)
    assert state.assets["stock"].percentage == 19
    assert state.cash.percentage == 19
    assert state.total_capital == pytest.approx(105_000_000)
    assert state.transactions[-1].kind == TransactionKind.PROFIT
    assert state.transactions[-1].description == "Profit on Gold"


def test_loss_records_absolute_amount_and_cash_absorbs_rounding(
    engine: AllocationEngine, funded: PortfolioState
) -> None:
    state = require(engine.record_profit_loss(funded, "gold", -15_000_000))

    assert state.assets["gold"].value == pytest.approx(5_000_000)
    assert state.assets["gold"].percentage == 6
    assert state.assets["crypto"].percentage == 24
    assert state.cash.percentage == 22
    assert state.percentage_sum() == 100
    assert state.transactions[-1].kind == TransactionKind.LOSS
    assert state.transactions[-1].amount == pytest.approx(15_000_000)


def test_loss_beyond_value_is_rejected(engine: AllocationEngine, funded: PortfolioState) -> None:
    result = engine.record_profit_loss(funded, "gold", -25_000_000)

    assert result.ok is False
    assert result.code == ErrorCode.INSUFFICIENT_VALUE
    assert result.state is funded


def test_profit_on_cash_is_allowed(engine: AllocationEngine, funded: PortfolioState) -> None:
    state = require(engine.record_profit_loss(funded, "cash", 10_000_000))

    assert state.cash.value == pytest.approx(30_000_000)
    assert state.total_capital == pytest.approx(110_000_000)


def test_profit_loss_rejections(engine: AllocationEngine, fresh: PortfolioState, funded: PortfolioState) -> None:
    assert engine.record_profit_loss(fresh, "gold", 10).code == ErrorCode.NOT_INITIALIZED
    assert engine.record_profit_loss(funded, "oil", 10).code == ErrorCode.INVALID_REFERENCE


def test_recalculate_is_idempotent(engine: AllocationEngine, funded: PortfolioState) -> None:
    state = require(engine.record_profit_loss(funded, "crypto", 7_777_777))
    once = require(engine.recalculate(state))
    twice = require(engine.recalculate(once))

    assert {key: asset.percentage for key, asset in once.assets.items()} == {
        key: asset.percentage for key, asset in twice.assets.items()
    }
    assert once.percentage_sum() == 100


def test_recalculate_with_zero_total_keeps_percentages(engine: AllocationEngine, fresh: PortfolioState) -> None:
    state = require(engine.recalculate(fresh))

    assert [asset.percentage for asset in state.assets.values()] == [20, 20, 20, 20, 20]


def test_operations_never_mutate_their_input(engine: AllocationEngine, funded: PortfolioState) -> None:
    before = funded.model_dump()

    engine.add_capital(funded, 1_000)
    engine.update_percentage(funded, "gold", 30)
    engine.adjust_value(funded, "gold", 1)
    engine.liquidate(funded, "stock", 50)
    engine.record_profit_loss(funded, "crypto", -1)
    engine.record_sub_item_purchase(funded, "crypto", 0, 1, unit_price=10)

    assert funded.model_dump() == before


def test_snapshots_are_frozen(funded: PortfolioState) -> None:
    with pytest.raises(ValidationError):
        funded.assets["gold"].value = 0


def test_zero_profit_loss_is_noop(engine: AllocationEngine, funded: PortfolioState) -> None:
    result = engine.record_profit_loss(funded, "gold", 0)

    assert result.ok is True
    assert result.state is funded


def test_losses_with_empty_cash_keep_percentages_in_range(engine: AllocationEngine, fresh: PortfolioState) -> None:
    assets = dict(fresh.assets)
    for key, pct in {"gold": 3, "stock": 3, "foreignStock": 94, "crypto": 0}.items():
        assets[key] = assets[key].model_copy(update={"percentage": pct})
    state = require(engine.set_initial_capital(fresh.model_copy(update={"assets": assets}), 1000))
    assert state.cash.value == pytest.approx(0)

    state = require(engine.record_profit_loss(state, "gold", -5))
    state = require(engine.record_profit_loss(state, "stock", -5))

    assert state.cash.percentage == 0
    assert state.assets["foreignStock"].percentage == 94
    assert all(0 <= asset.percentage <= 100 for asset in state.assets.values())
    assert state.percentage_sum() == 100
