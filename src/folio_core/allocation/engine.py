"""Allocation engine: pure state transitions over a portfolio snapshot."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Any

from folio_core.allocation.rules import clamp_dust, percent_of, recalculate_percentages, split_evenly, total_value
from folio_core.config import AllocationConfig
from folio_core.exceptions import ErrorCode, FolioError
from folio_core.models.ledger import Side, TradeRecord, Transaction, TransactionKind
from folio_core.models.portfolio import CASH_KEY, Asset, PortfolioState, SubItem
from folio_core.models.projection import ProjectionSettings
from folio_core.models.results import OperationResult

logger = logging.getLogger(__name__)


def _utc_today() -> date:
    return datetime.now(UTC).date()


def _new_trade_id() -> str:
    return str(uuid.uuid4())


def require(result: OperationResult) -> PortfolioState:
    """Return the new snapshot, or raise the rejection as a FolioError."""

    if result.ok:
        return result.state
    raise FolioError(
        result.code or ErrorCode.INTERNAL_ERROR,
        "; ".join(result.reasons) or "operation rejected",
        details=result.details,
    )


class AllocationEngine:
    """Every method takes a snapshot and returns an OperationResult.

    Rejections never raise: they carry the untouched input snapshot, a code
    and the reasons. No method mutates its input.
    """

    def __init__(
        self,
        config: AllocationConfig | None = None,
        *,
        today: Callable[[], date] | None = None,
        trade_id: Callable[[], str] | None = None,
    ) -> None:
        self._config = config or AllocationConfig()
        self._today = today or _utc_today
        self._trade_id = trade_id or _new_trade_id

    @property
    def cash_share_pct(self) -> float:
        return self._config.cash_share_pct

    # ------------------------------------------------------------------
    # Result helpers
    # ------------------------------------------------------------------
    def _reject(self, state: PortfolioState, code: ErrorCode, reason: str, **details: Any) -> OperationResult:
        logger.warning("allocation rejected code=%s reason=%s", code.value, reason)
        return OperationResult(ok=False, state=state, reasons=[reason], code=code, details=details)

    def _accept(self, operation: str, state: PortfolioState, **details: Any) -> OperationResult:
        logger.info("allocation applied op=%s total_capital=%.2f", operation, state.total_capital)
        return OperationResult(ok=True, state=state, details=details)

    def _commit(
        self,
        state: PortfolioState,
        assets: dict[str, Asset],
        *,
        transaction: Transaction | None = None,
        trade: TradeRecord | None = None,
        **extra: Any,
    ) -> PortfolioState:
        update: dict[str, Any] = {"assets": assets, "total_capital": total_value(assets), **extra}
        if transaction is not None:
            update["transactions"] = [*state.transactions, transaction]
        if trade is not None:
            update["trade_history"] = [*state.trade_history, trade]
        return state.model_copy(update=update)

    def _transaction(self, kind: TransactionKind, description: str, amount: float, asset_key: str | None) -> Transaction:
        return Transaction(date=self._today(), description=description, amount=amount, kind=kind, asset_key=asset_key)

    def _check_asset(
        self,
        state: PortfolioState,
        key: str,
        *,
        allow_cash: bool = True,
        require_initialized: bool = True,
    ) -> OperationResult | None:
        if require_initialized and not state.is_initialized:
            return self._reject(state, ErrorCode.NOT_INITIALIZED, "portfolio has not been initialized")
        if key not in state.assets:
            return self._reject(state, ErrorCode.INVALID_REFERENCE, f"unknown asset '{key}'", asset_key=key)
        if not allow_cash and key == CASH_KEY:
            return self._reject(state, ErrorCode.FORBIDDEN_OPERATION, "operation is not allowed on cash", asset_key=key)
        return None

    def _check_sub_item(self, state: PortfolioState, key: str, index: int) -> OperationResult | None:
        rejected = self._check_asset(state, key, allow_cash=False, require_initialized=False)
        if rejected is not None:
            return rejected
        count = len(state.assets[key].sub_items)
        if not 0 <= index < count:
            return self._reject(
                state,
                ErrorCode.INVALID_REFERENCE,
                f"sub-item index {index} out of range for '{key}'",
                asset_key=key,
                index=index,
                count=count,
            )
        return None

    # ------------------------------------------------------------------
    # Capital
    # ------------------------------------------------------------------
    def set_initial_capital(self, state: PortfolioState, amount: float) -> OperationResult:
        if state.is_initialized:
            return self._reject(state, ErrorCode.ALREADY_INITIALIZED, "portfolio is already initialized")
        if amount <= 0:
            return self._reject(state, ErrorCode.INVALID_ARGS, "initial capital must be positive", amount=amount)

        allocated_pct = sum(asset.percentage for key, asset in state.assets.items() if key != CASH_KEY)
        if allocated_pct > 100:
            return self._reject(
                state,
                ErrorCode.INVALID_ARGS,
                f"non-cash percentages sum to {allocated_pct}%, above 100%",
                allocated_pct=allocated_pct,
            )

        assets: dict[str, Asset] = {}
        allocated = 0.0
        for key, asset in state.assets.items():
            if key == CASH_KEY:
                continue
            value = percent_of(amount, asset.percentage)
            allocated += value
            assets[key] = split_evenly(asset.model_copy(update={"value": value, "initial_value": value}))

        cash_value = clamp_dust(amount - allocated)
        assets[CASH_KEY] = state.cash.model_copy(
            update={"percentage": 100 - allocated_pct, "value": cash_value, "initial_value": cash_value}
        )
        ordered = {key: assets[key] for key in state.assets}

        transaction = self._transaction(TransactionKind.INITIAL_DEPOSIT, "Initial capital", amount, None)
        new_state = self._commit(state, ordered, transaction=transaction, is_initialized=True)
        return self._accept("set_initial_capital", new_state, amount=amount)

    def add_capital(self, state: PortfolioState, amount: float) -> OperationResult:
        if not state.is_initialized:
            return self._reject(state, ErrorCode.NOT_INITIALIZED, "portfolio has not been initialized")
        if amount <= 0:
            return self._reject(state, ErrorCode.INVALID_ARGS, "capital injection must be positive", amount=amount)

        cash_part = percent_of(amount, self.cash_share_pct)
        investable = amount - cash_part

        # Equals 100 - cash.percentage whenever percentages are closed.
        investable_pct = sum(asset.percentage for key, asset in state.assets.items() if key != CASH_KEY)

        assets = dict(state.assets)
        distributed = 0.0
        if investable_pct > 0:
            for key, asset in state.assets.items():
                if key == CASH_KEY:
                    continue
                share = investable * asset.percentage / investable_pct
                distributed += share
                assets[key] = split_evenly(
                    asset.model_copy(update={"value": asset.value + share, "initial_value": asset.initial_value + share})
                )
        else:
            logger.warning("allocation: no investable percentage, routing %.2f to cash", investable)

        cash_in = cash_part + (investable - distributed)
        cash = state.cash
        assets[CASH_KEY] = cash.model_copy(
            update={"value": cash.value + cash_in, "initial_value": cash.initial_value + cash_in}
        )

        transaction = self._transaction(TransactionKind.CAPITAL_INJECTION, "Capital injection", amount, None)
        new_state = self._commit(state, assets, transaction=transaction)
        return self._accept("add_capital", new_state, amount=amount, cash_part=cash_in, distributed=distributed)

    # ------------------------------------------------------------------
    # Rebalancing
    # ------------------------------------------------------------------
    def update_percentage(self, state: PortfolioState, key: str, new_pct: int) -> OperationResult:
        rejected = self._check_asset(state, key, allow_cash=False, require_initialized=False)
        if rejected is not None:
            return rejected
        if not 0 <= new_pct <= 100:
            return self._reject(state, ErrorCode.INVALID_ARGS, "percentage must be between 0 and 100", percentage=new_pct)

        asset = state.assets[key]
        cash = state.cash
        diff = new_pct - asset.percentage
        if diff == 0:
            return OperationResult(ok=True, state=state)

        if cash.percentage - diff < 0:
            return self._reject(
                state,
                ErrorCode.INSUFFICIENT_VALUE,
                f"cash holds only {cash.percentage}%, cannot move {diff}% into '{key}'",
                asset_key=key,
                cash_percentage=cash.percentage,
            )

        value_change = state.total_capital * diff / 100.0
        new_value = clamp_dust(asset.value + value_change)
        new_cash_value = clamp_dust(cash.value - value_change)
        if new_value < 0 or new_cash_value < 0:
            return self._reject(
                state,
                ErrorCode.INSUFFICIENT_VALUE,
                "rebalancing would drive an asset value below zero",
                asset_key=key,
                value_change=value_change,
            )

        assets = dict(state.assets)
        assets[key] = split_evenly(
            asset.model_copy(
                update={
                    "percentage": new_pct,
                    "value": new_value,
                    "initial_value": asset.initial_value + value_change,
                }
            )
        )
        assets[CASH_KEY] = cash.model_copy(
            update={
                "percentage": cash.percentage - diff,
                "value": new_cash_value,
                "initial_value": cash.initial_value - value_change,
            }
        )
        return self._accept("update_percentage", self._commit(state, assets), asset_key=key, value_change=value_change)

    def adjust_value(self, state: PortfolioState, key: str, new_value: float) -> OperationResult:
        rejected = self._check_asset(state, key, allow_cash=False)
        if rejected is not None:
            return rejected
        if new_value < 0:
            return self._reject(state, ErrorCode.INVALID_ARGS, "asset value cannot be negative", value=new_value)

        asset = state.assets[key]
        cash = state.cash
        diff = new_value - asset.value
        if diff == 0:
            return OperationResult(ok=True, state=state)

        new_cash_value = clamp_dust(cash.value - diff)
        if new_cash_value < 0:
            return self._reject(
                state,
                ErrorCode.INSUFFICIENT_VALUE,
                f"cash cannot cover an increase of {diff:.2f}",
                asset_key=key,
                cash_value=cash.value,
            )

        assets = dict(state.assets)
        assets[key] = asset.model_copy(update={"value": new_value, "profit_loss": asset.profit_loss + diff})
        assets[CASH_KEY] = cash.model_copy(update={"value": new_cash_value})
        assets = recalculate_percentages(assets)
        assets[key] = split_evenly(assets[key])

        transaction = self._transaction(
            TransactionKind.MANUAL_ADJUSTMENT, f"Manual adjustment of {asset.name}", abs(diff), key
        )
        new_state = self._commit(state, assets, transaction=transaction)
        return self._accept("adjust_value", new_state, asset_key=key, diff=diff)

    def liquidate(self, state: PortfolioState, key: str, pct: float) -> OperationResult:
        rejected = self._check_asset(state, key, allow_cash=False)
        if rejected is not None:
            return rejected
        if not 0 < pct <= 100:
            return self._reject(state, ErrorCode.INVALID_ARGS, "liquidation percentage must be in (0, 100]", percentage=pct)

        asset = state.assets[key]
        amount = asset.value if pct == 100 else percent_of(asset.value, pct)
        if amount == 0:
            return OperationResult(ok=True, state=state)

        cash = state.cash
        assets = dict(state.assets)
        assets[key] = split_evenly(asset.model_copy(update={"value": clamp_dust(asset.value - amount)}))
        assets[CASH_KEY] = cash.model_copy(update={"value": cash.value + amount})
        assets = recalculate_percentages(assets)

        transaction = self._transaction(
            TransactionKind.LIQUIDATION, f"Liquidated {pct:g}% of {asset.name}", amount, key
        )
        new_state = self._commit(state, assets, transaction=transaction)
        return self._accept("liquidate", new_state, asset_key=key, amount=amount)

    def record_profit_loss(self, state: PortfolioState, key: str, amount: float) -> OperationResult:
        rejected = self._check_asset(state, key)
        if rejected is not None:
            return rejected
        if amount == 0:
            return OperationResult(ok=True, state=state)

        asset = state.assets[key]
        new_value = clamp_dust(asset.value + amount)
        if new_value < 0:
            return self._reject(
                state,
                ErrorCode.INSUFFICIENT_VALUE,
                f"a loss of {abs(amount):.2f} exceeds the value of '{key}'",
                asset_key=key,
                value=asset.value,
            )

        assets = dict(state.assets)
        assets[key] = split_evenly(
            asset.model_copy(update={"value": new_value, "profit_loss": asset.profit_loss + amount})
        )
        assets = recalculate_percentages(assets)

        if amount >= 0:
            kind, description = TransactionKind.PROFIT, f"Profit on {asset.name}"
        else:
            kind, description = TransactionKind.LOSS, f"Loss on {asset.name}"
        transaction = self._transaction(kind, description, abs(amount), key)
        new_state = self._commit(state, assets, transaction=transaction)
        return self._accept("record_profit_loss", new_state, asset_key=key, amount=amount)

    def recalculate(self, state: PortfolioState) -> OperationResult:
        assets = recalculate_percentages(state.assets)
        return self._accept("recalculate", self._commit(state, assets))

    # ------------------------------------------------------------------
    # Sub-items
    # ------------------------------------------------------------------
    def _replace_sub_item(self, state: PortfolioState, key: str, index: int, sub_item: SubItem) -> dict[str, Asset]:
        asset = state.assets[key]
        sub_items = list(asset.sub_items)
        sub_items[index] = sub_item
        assets = dict(state.assets)
        assets[key] = asset.model_copy(update={"sub_items": sub_items})
        return assets

    def record_sub_item_purchase(
        self,
        state: PortfolioState,
        key: str,
        index: int,
        quantity: float,
        *,
        unit_price: float | None = None,
        total_cost: float | None = None,
    ) -> OperationResult:
        rejected = self._check_sub_item(state, key, index)
        if rejected is not None:
            return rejected
        if quantity <= 0:
            return self._reject(state, ErrorCode.INVALID_ARGS, "purchase quantity must be positive", quantity=quantity)
        unit_price = unit_price or 0.0
        total_cost = total_cost or 0.0
        if unit_price <= 0 and total_cost <= 0:
            return self._reject(state, ErrorCode.INVALID_ARGS, "a positive unit price or total cost is required")

        final_total = total_cost if total_cost > 0 else unit_price * quantity
        final_unit = unit_price if unit_price > 0 else final_total / quantity

        asset = state.assets[key]
        sub_item = asset.sub_items[index]
        new_quantity = sub_item.quantity + quantity
        new_average = (sub_item.average_buy_price * sub_item.quantity + final_total) / new_quantity
        current_price = sub_item.current_price if sub_item.current_price else new_average

        assets = self._replace_sub_item(
            state,
            key,
            index,
            sub_item.model_copy(
                update={"quantity": new_quantity, "average_buy_price": new_average, "current_price": current_price}
            ),
        )
        trade = TradeRecord(
            id=self._trade_id(),
            date=self._today(),
            asset_key=key,
            asset_name=asset.name,
            sub_item_name=sub_item.name,
            side=Side.BUY,
            quantity=quantity,
            unit_price=final_unit,
            total_cost=final_total,
        )
        new_state = self._commit(state, assets, trade=trade)
        return self._accept("record_sub_item_purchase", new_state, asset_key=key, index=index, trade_id=trade.id)

    def update_sub_item_stats(
        self,
        state: PortfolioState,
        key: str,
        index: int,
        average_buy_price: float,
        quantity: float,
    ) -> OperationResult:
        rejected = self._check_sub_item(state, key, index)
        if rejected is not None:
            return rejected
        if average_buy_price < 0 or quantity < 0:
            return self._reject(state, ErrorCode.INVALID_ARGS, "average price and quantity cannot be negative")

        sub_item = state.assets[key].sub_items[index]
        current_price = sub_item.current_price if sub_item.current_price else average_buy_price
        assets = self._replace_sub_item(
            state,
            key,
            index,
            sub_item.model_copy(
                update={"quantity": quantity, "average_buy_price": average_buy_price, "current_price": current_price}
            ),
        )
        return self._accept("update_sub_item_stats", self._commit(state, assets), asset_key=key, index=index)

    def update_current_price(self, state: PortfolioState, key: str, index: int, price: float) -> OperationResult:
        rejected = self._check_sub_item(state, key, index)
        if rejected is not None:
            return rejected
        if price < 0:
            return self._reject(state, ErrorCode.INVALID_ARGS, "price cannot be negative", price=price)

        sub_item = state.assets[key].sub_items[index]
        assets = self._replace_sub_item(state, key, index, sub_item.model_copy(update={"current_price": price}))
        return self._accept("update_current_price", self._commit(state, assets), asset_key=key, index=index)

    def add_sub_item(self, state: PortfolioState, key: str, name: str) -> OperationResult:
        rejected = self._check_asset(state, key, allow_cash=False, require_initialized=False)
        if rejected is not None:
            return rejected
        name = name.strip()
        if not name:
            return self._reject(state, ErrorCode.INVALID_ARGS, "sub-item name cannot be empty")

        asset = state.assets[key]
        updated = asset.model_copy(update={"sub_items": [*asset.sub_items, SubItem(name=name)]})
        if updated.value > 0:
            updated = split_evenly(updated)
        assets = dict(state.assets)
        assets[key] = updated
        return self._accept("add_sub_item", self._commit(state, assets), asset_key=key, name=name)

    def remove_sub_item(self, state: PortfolioState, key: str, index: int) -> OperationResult:
        rejected = self._check_sub_item(state, key, index)
        if rejected is not None:
            return rejected

        asset = state.assets[key]
        sub_items = [sub for position, sub in enumerate(asset.sub_items) if position != index]
        updated = asset.model_copy(update={"sub_items": sub_items})
        if updated.value > 0:
            updated = split_evenly(updated)
        assets = dict(state.assets)
        assets[key] = updated
        return self._accept("remove_sub_item", self._commit(state, assets), asset_key=key, index=index)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------
    def save_projection_settings(self, state: PortfolioState, settings: ProjectionSettings) -> OperationResult:
        return self._accept("save_projection_settings", state.model_copy(update={"projection_settings": settings}))
