"""Portfolio aggregate: assets, sub-items and the persisted state document."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from folio_core.models.ledger import TradeRecord, Transaction
from folio_core.models.projection import ProjectionSettings

CASH_KEY = "cash"


class DocumentModel(BaseModel):
    """Frozen model serialised with the camelCase field names of the state document."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class SubItem(DocumentModel):
    name: str
    value: float = 0.0
    quantity: float = 0.0
    average_buy_price: float = 0.0
    current_price: float | None = None

    @property
    def cost_basis(self) -> float:
        return self.quantity * self.average_buy_price


class Asset(DocumentModel):
    name: str
    percentage: int = 0
    value: float = 0.0
    initial_value: float = 0.0
    profit_loss: float = 0.0
    sub_items: list[SubItem] = Field(default_factory=list)


class PortfolioState(DocumentModel):
    is_initialized: bool = False
    total_capital: float = 0.0
    assets: dict[str, Asset]
    transactions: list[Transaction] = Field(default_factory=list)
    trade_history: list[TradeRecord] = Field(default_factory=list)
    projection_settings: ProjectionSettings = Field(default_factory=ProjectionSettings)

    @model_validator(mode="after")
    def _require_cash(self) -> "PortfolioState":
        cash = self.assets.get(CASH_KEY)
        if cash is None:
            raise ValueError("portfolio must contain a 'cash' asset")
        if cash.sub_items:
            raise ValueError("the 'cash' asset cannot hold sub-items")
        return self

    @property
    def cash(self) -> Asset:
        return self.assets[CASH_KEY]

    def asset_value_sum(self) -> float:
        return sum(asset.value for asset in self.assets.values())

    def percentage_sum(self) -> int:
        return sum(asset.percentage for asset in self.assets.values())
