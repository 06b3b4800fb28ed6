"""Typed domain models."""

from folio_core.models.ledger import Side, TradeRecord, Transaction, TransactionKind
from folio_core.models.portfolio import CASH_KEY, Asset, PortfolioState, SubItem
from folio_core.models.projection import DEFAULT_EXPECTED_RETURNS, ProjectionSettings, YearlyProjection
from folio_core.models.results import OperationResult

__all__ = [
    "Asset",
    "CASH_KEY",
    "DEFAULT_EXPECTED_RETURNS",
    "OperationResult",
    "PortfolioState",
    "ProjectionSettings",
    "Side",
    "SubItem",
    "TradeRecord",
    "Transaction",
    "TransactionKind",
    "YearlyProjection",
]
