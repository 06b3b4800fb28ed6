"""Append-only ledger entries: capital transactions and sub-item trades."""

from __future__ import annotations

from datetime import date as dt_date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TransactionKind(str, Enum):
    INITIAL_DEPOSIT = "initial_deposit"
    CAPITAL_INJECTION = "capital_injection"
    MANUAL_ADJUSTMENT = "manual_adjustment"
    LIQUIDATION = "liquidation"
    PROFIT = "profit"
    LOSS = "loss"
    OTHER = "other"


class Side(str, Enum):
    BUY = "buy"
    SELL = "sell"


class _LedgerModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Transaction(_LedgerModel):
    date: dt_date
    description: str
    amount: float
    kind: TransactionKind = TransactionKind.OTHER
    asset_key: str | None = None


class TradeRecord(_LedgerModel):
    id: str
    date: dt_date
    asset_key: str | None = None
    asset_name: str
    sub_item_name: str
    side: Side = Field(default=Side.BUY, alias="type")
    quantity: float
    unit_price: float
    total_cost: float
