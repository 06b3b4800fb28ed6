"""Onboarding template for a fresh portfolio."""

from __future__ import annotations

from folio_core.models.portfolio import CASH_KEY, Asset, PortfolioState, SubItem
from folio_core.models.projection import ProjectionSettings

DEFAULT_ASSET_LAYOUT: tuple[tuple[str, str, int, tuple[str, ...]], ...] = (
    ("gold", "Gold", 20, ("Emami Coin", "Melted Gold", "Gold Bullion", "Half Coin")),
    ("stock", "Domestic Stocks", 20, ("FEMELI", "FOLAD", "SHEPNA", "VABSADER")),
    ("foreignStock", "Foreign Stocks", 20, ("Apple", "Tesla", "Amazon", "Microsoft")),
    ("crypto", "Crypto", 20, ("Bitcoin", "Ethereum", "Tether", "Solana")),
    (CASH_KEY, "Cash", 20, ()),
)


def default_asset(key: str) -> Asset:
    for asset_key, name, percentage, sub_names in DEFAULT_ASSET_LAYOUT:
        if asset_key == key:
            return Asset(
                name=name,
                percentage=percentage,
                sub_items=[SubItem(name=sub_name) for sub_name in sub_names],
            )
    raise KeyError(key)


def default_state() -> PortfolioState:
    return PortfolioState(
        assets={key: default_asset(key) for key, *_ in DEFAULT_ASSET_LAYOUT},
        projection_settings=ProjectionSettings(),
    )
