from __future__ import annotations

import pytest
from pydantic import ValidationError

from folio_core.allocation import AllocationEngine, require
from folio_core.exceptions import ErrorCode
from folio_core.models import PortfolioState, ProjectionSettings, Side


def test_first_purchase_sets_average_and_current_price(engine: AllocationEngine, funded: PortfolioState) -> None:
    result = engine.record_sub_item_purchase(funded, "crypto", 0, 0.5, unit_price=60_000)
    state = require(result)

    bitcoin = state.assets["crypto"].sub_items[0]
    assert bitcoin.quantity == pytest.approx(0.5)
    assert bitcoin.average_buy_price == pytest.approx(60_000)
    assert bitcoin.current_price == pytest.approx(60_000)
    assert state.assets["crypto"].value == funded.assets["crypto"].value
    assert state.total_capital == funded.total_capital

    trade = state.trade_history[-1]
    assert trade.id == "trade-1"
    assert trade.side == Side.BUY
    assert trade.asset_key == "crypto"
    assert trade.asset_name == "Crypto"
    assert trade.sub_item_name == "Bitcoin"
    assert trade.total_cost == pytest.approx(30_000)
    assert result.details["trade_id"] == "trade-1"


def test_second_purchase_uses_weighted_average(engine: AllocationEngine, funded: PortfolioState) -> None:
    state = require(engine.record_sub_item_purchase(funded, "crypto", 0, 0.5, unit_price=60_000))
    state = require(engine.record_sub_item_purchase(state, "crypto", 0, 0.5, total_cost=40_000))

    bitcoin = state.assets["crypto"].sub_items[0]
    assert bitcoin.quantity == pytest.approx(1.0)
    assert bitcoin.average_buy_price == pytest.approx(70_000)
    assert bitcoin.current_price == pytest.approx(60_000)
    assert state.trade_history[-1].unit_price == pytest.approx(80_000)
    assert [trade.id for trade in state.trade_history] == ["trade-1", "trade-2"]


def test_total_cost_wins_over_unit_price(engine: AllocationEngine, funded: PortfolioState) -> None:
    state = require(engine.record_sub_item_purchase(funded, "gold", 1, 2, unit_price=10, total_cost=30))

    trade = state.trade_history[-1]
    assert trade.total_cost == pytest.approx(30)
    assert trade.unit_price == pytest.approx(10)
    assert state.assets["gold"].sub_items[1].average_buy_price == pytest.approx(15)


def test_purchase_allowed_before_initialization(engine: AllocationEngine, fresh: PortfolioState) -> None:
    result = engine.record_sub_item_purchase(fresh, "stock", 2, 100, unit_price=5)

    assert result.ok is True
    assert result.state.assets["stock"].sub_items[2].quantity == 100


@pytest.mark.parametrize(
    ("key", "index", "quantity", "prices", "code"),
    [
        ("crypto", 0, 0, {"unit_price": 10}, ErrorCode.INVALID_ARGS),
        ("crypto", 0, 1, {}, ErrorCode.INVALID_ARGS),
        ("crypto", 9, 1, {"unit_price": 10}, ErrorCode.INVALID_REFERENCE),
        ("crypto", -1, 1, {"unit_price": 10}, ErrorCode.INVALID_REFERENCE),
        ("cash", 0, 1, {"unit_price": 10}, ErrorCode.FORBIDDEN_OPERATION),
        ("bonds", 0, 1, {"unit_price": 10}, ErrorCode.INVALID_REFERENCE),
    ],
)
def test_purchase_rejections(
    engine: AllocationEngine,
    funded: PortfolioState,
    key: str,
    index: int,
    quantity: float,
    prices: dict[str, float],
    code: ErrorCode,
) -> None:
    result = engine.record_sub_item_purchase(funded, key, index, quantity, **prices)

    assert result.ok is False
    assert result.code == code
    assert result.state is funded


def test_update_stats_overwrites_quantity_and_average(engine: AllocationEngine, funded: PortfolioState) -> None:
    state = require(engine.update_sub_item_stats(funded, "foreignStock", 0, 180.5, 12))

    apple = state.assets["foreignStock"].sub_items[0]
    assert apple.average_buy_price == pytest.approx(180.5)
    assert apple.quantity == pytest.approx(12)
    assert apple.current_price == pytest.approx(180.5)
    assert state.trade_history == []


def test_update_stats_rejects_negative_values(engine: AllocationEngine, funded: PortfolioState) -> None:
    result = engine.update_sub_item_stats(funded, "foreignStock", 0, -1, 12)

    assert result.code == ErrorCode.INVALID_ARGS


def test_update_current_price(engine: AllocationEngine, funded: PortfolioState) -> None:
    state = require(engine.update_current_price(funded, "crypto", 1, 3_200))

    assert state.assets["crypto"].sub_items[1].current_price == pytest.approx(3_200)
    assert engine.update_current_price(funded, "crypto", 1, -5).code == ErrorCode.INVALID_ARGS


def test_add_sub_item_resplits_value(engine: AllocationEngine, funded: PortfolioState) -> None:
    state = require(engine.add_sub_item(funded, "crypto", "  Cardano "))

    crypto = state.assets["crypto"]
    assert [sub.name for sub in crypto.sub_items][-1] == "Cardano"
    assert [sub.value for sub in crypto.sub_items] == pytest.approx([4_000_000] * 5)
    assert crypto.value == pytest.approx(20_000_000)


def test_add_sub_item_to_empty_asset_keeps_zero_values(engine: AllocationEngine, fresh: PortfolioState) -> None:
    state = require(engine.add_sub_item(fresh, "gold", "Silver Coin"))

    assert len(state.assets["gold"].sub_items) == 5
    assert all(sub.value == 0 for sub in state.assets["gold"].sub_items)


def test_add_sub_item_rejections(engine: AllocationEngine, funded: PortfolioState) -> None:
    assert engine.add_sub_item(funded, "crypto", "   ").code == ErrorCode.INVALID_ARGS
    assert engine.add_sub_item(funded, "cash", "Wallet").code == ErrorCode.FORBIDDEN_OPERATION
    assert engine.add_sub_item(funded, "art", "Painting").code == ErrorCode.INVALID_REFERENCE


def test_remove_sub_item_resplits_value(engine: AllocationEngine, funded: PortfolioState) -> None:
    state = require(engine.remove_sub_item(funded, "crypto", 0))

    crypto = state.assets["crypto"]
    assert [sub.name for sub in crypto.sub_items] == ["Ethereum", "Tether", "Solana"]
    assert [sub.value for sub in crypto.sub_items] == pytest.approx([20_000_000 / 3] * 3)
    assert engine.remove_sub_item(funded, "crypto", 4).code == ErrorCode.INVALID_REFERENCE


def test_save_projection_settings(engine: AllocationEngine, funded: PortfolioState) -> None:
    settings = ProjectionSettings(years=10, monthly_contribution=2_000_000)
    state = require(engine.save_projection_settings(funded, settings))

    assert state.projection_settings.years == 10
    assert state.projection_settings.monthly_contribution == 2_000_000
    assert state.assets == funded.assets


def test_weighted_average_over_existing_position(engine: AllocationEngine, funded: PortfolioState) -> None:
    state = require(engine.update_sub_item_stats(funded, "stock", 0, 100, 10))
    state = require(engine.record_sub_item_purchase(state, "stock", 0, 10, unit_price=200))

    sub = state.assets["stock"].sub_items[0]
    assert sub.average_buy_price == pytest.approx(150)
    assert sub.quantity == pytest.approx(20)
    assert sub.current_price == pytest.approx(100)


def test_negative_projection_horizon_is_rejected_by_the_model() -> None:
    with pytest.raises(ValidationError):
        ProjectionSettings(years=-1)
