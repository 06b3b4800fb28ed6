"""Compound-growth projection with monthly compounding and yearly contribution escalation."""

from __future__ import annotations

from collections.abc import Mapping

from folio_core.models.portfolio import PortfolioState
from folio_core.models.projection import ProjectionSettings, YearlyProjection

MONTHS_PER_YEAR = 12


def blended_annual_rate(asset_values: Mapping[str, float], expected_returns: Mapping[str, float]) -> float:
    """Value-weighted mean of expected annual returns, in percent.

    With no capital to weight by, every configured return counts equally.
    Assets without a configured return contribute 0%.
    """

    total = sum(asset_values.values())
    if total > 0:
        return sum(value / total * expected_returns.get(key, 0.0) for key, value in asset_values.items())
    if not expected_returns:
        return 0.0
    return sum(expected_returns.values()) / len(expected_returns)


def effective_monthly_rate(annual_rate_pct: float) -> float:
    """Monthly rate whose 12-fold compounding reproduces the annual rate exactly."""

    growth = 1.0 + annual_rate_pct / 100.0
    if growth <= 0:
        return -1.0
    return growth ** (1.0 / MONTHS_PER_YEAR) - 1.0


def project(
    base_capital: float,
    asset_values: Mapping[str, float],
    expected_returns: Mapping[str, float],
    years: int,
    monthly_contribution: float,
    annual_increase_pct: float,
) -> list[YearlyProjection]:
    monthly_rate = effective_monthly_rate(blended_annual_rate(asset_values, expected_returns))

    capital = float(base_capital)
    invested = float(base_capital)
    contribution = float(monthly_contribution)
    rows: list[YearlyProjection] = []

    for year in range(1, max(years, 0) + 1):
        for _ in range(MONTHS_PER_YEAR):
            # Contribution lands before the month's interest accrues.
            capital += contribution
            invested += contribution
            capital += capital * monthly_rate

        rows.append(
            YearlyProjection(
                year=year,
                total_value=capital,
                total_invested=invested,
                profit=capital - invested,
                monthly_contribution=contribution,
            )
        )
        contribution *= 1.0 + annual_increase_pct / 100.0

    return rows


def project_portfolio(state: PortfolioState, settings: ProjectionSettings | None = None) -> list[YearlyProjection]:
    """Run the projection against a snapshot; a zero base capital falls back to total capital."""

    settings = settings or state.projection_settings
    base_capital = settings.base_capital or state.total_capital
    asset_values = {key: asset.value for key, asset in state.assets.items()} if state.total_capital > 0 else {}
    return project(
        base_capital=base_capital,
        asset_values=asset_values,
        expected_returns=settings.expected_returns,
        years=settings.years,
        monthly_contribution=settings.monthly_contribution,
        annual_increase_pct=settings.annual_increase,
    )


def final_result(rows: list[YearlyProjection]) -> dict[str, float]:
    if not rows:
        return {"total_value": 0.0, "total_invested": 0.0, "profit": 0.0}
    last = rows[-1]
    return {"total_value": last.total_value, "total_invested": last.total_invested, "profit": last.profit}
