"""Read-only projections of a snapshot for rendering layers."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date as dt_date, timedelta
from enum import Enum

from pydantic import BaseModel, Field

from folio_core.models.ledger import Transaction, TransactionKind
from folio_core.models.portfolio import CASH_KEY, PortfolioState

# Assets whose sub-items are priced in USDT and converted at display time.
TETHER_PRICED_ASSETS = frozenset({"crypto", "foreignStock"})

_CAPITAL_INFLOWS = frozenset({TransactionKind.INITIAL_DEPOSIT, TransactionKind.CAPITAL_INJECTION, TransactionKind.PROFIT})


class TransactionPeriod(str, Enum):
    ALL = "all"
    WEEK = "week"
    MONTH = "month"


class AllocationEntry(BaseModel):
    key: str
    name: str
    value: float
    percentage: int
    profit_loss: float
    sub_item_count: int


class AllocationSummary(BaseModel):
    total_capital: float
    is_initialized: bool
    assets: list[AllocationEntry]


class HoldingValuation(BaseModel):
    asset_key: str
    index: int
    name: str
    quantity: float
    average_buy_price: float
    current_price: float | None = None
    price_multiplier: float = 1.0
    cost_basis: float
    market_value: float | None = None
    unrealized_pnl: float | None = None
    pnl_pct: float | None = None


class AssetComparison(BaseModel):
    key: str
    name: str
    initial: float
    liquidated: float
    current: float
    diff: float


class CapitalPoint(BaseModel):
    date: dt_date
    capital: float


class MonthlyProfitLoss(BaseModel):
    month: str
    by_asset: dict[str, float] = Field(default_factory=dict)
    total: float = 0.0


def allocation_summary(state: PortfolioState) -> AllocationSummary:
    return AllocationSummary(
        total_capital=state.total_capital,
        is_initialized=state.is_initialized,
        assets=[
            AllocationEntry(
                key=key,
                name=asset.name,
                value=asset.value,
                percentage=asset.percentage,
                profit_loss=asset.profit_loss,
                sub_item_count=len(asset.sub_items),
            )
            for key, asset in state.assets.items()
        ],
    )


def holding_valuations(
    state: PortfolioState,
    *,
    tether_rate: float = 1.0,
    asset_key: str | None = None,
) -> list[HoldingValuation]:
    rows: list[HoldingValuation] = []
    for key, asset in state.assets.items():
        if asset_key is not None and key != asset_key:
            continue
        multiplier = tether_rate if key in TETHER_PRICED_ASSETS else 1.0
        for index, sub in enumerate(asset.sub_items):
            cost_basis = sub.cost_basis * multiplier
            row = HoldingValuation(
                asset_key=key,
                index=index,
                name=sub.name,
                quantity=sub.quantity,
                average_buy_price=sub.average_buy_price,
                current_price=sub.current_price,
                price_multiplier=multiplier,
                cost_basis=cost_basis,
            )
            if sub.current_price:
                market_value = sub.quantity * sub.current_price * multiplier
                pnl = market_value - cost_basis
                row = row.model_copy(
                    update={
                        "market_value": market_value,
                        "unrealized_pnl": pnl,
                        "pnl_pct": pnl / cost_basis * 100.0 if cost_basis > 0 else None,
                    }
                )
            rows.append(row)
    return rows


def asset_comparison(state: PortfolioState) -> list[AssetComparison]:
    liquidated: dict[str, float] = defaultdict(float)
    for tx in state.transactions:
        if tx.kind == TransactionKind.LIQUIDATION and tx.asset_key:
            liquidated[tx.asset_key] += tx.amount

    return [
        AssetComparison(
            key=key,
            name=asset.name,
            initial=asset.initial_value,
            liquidated=liquidated.get(key, 0.0),
            current=asset.value,
            diff=asset.value - asset.initial_value,
        )
        for key, asset in state.assets.items()
        if key != CASH_KEY
    ]


def capital_trend(transactions: Sequence[Transaction]) -> list[CapitalPoint]:
    points: list[CapitalPoint] = []
    cumulative = 0.0
    for tx in sorted(transactions, key=lambda item: item.date):
        if tx.kind in _CAPITAL_INFLOWS:
            cumulative += tx.amount
        elif tx.kind == TransactionKind.LOSS:
            cumulative -= tx.amount
        points.append(CapitalPoint(date=tx.date, capital=cumulative))
    return points


def monthly_profit_loss(transactions: Iterable[Transaction]) -> list[MonthlyProfitLoss]:
    months: dict[str, dict[str, float]] = defaultdict(lambda: defaultdict(float))
    for tx in transactions:
        if tx.kind not in (TransactionKind.PROFIT, TransactionKind.LOSS):
            continue
        signed = -tx.amount if tx.kind == TransactionKind.LOSS else tx.amount
        months[tx.date.strftime("%Y-%m")][tx.asset_key or "unassigned"] += signed

    return [
        MonthlyProfitLoss(month=month, by_asset=dict(by_asset), total=sum(by_asset.values()))
        for month, by_asset in sorted(months.items())
    ]


def filter_transactions(
    transactions: Sequence[Transaction],
    period: TransactionPeriod,
    *,
    today: dt_date,
) -> list[Transaction]:
    if period == TransactionPeriod.ALL:
        return list(transactions)
    window = timedelta(days=7 if period == TransactionPeriod.WEEK else 30)
    cutoff = today - window
    return [tx for tx in transactions if tx.date >= cutoff]
