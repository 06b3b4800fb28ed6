"""Growth projection package."""

from folio_core.projection.calculator import (
    blended_annual_rate,
    effective_monthly_rate,
    final_result,
    project,
    project_portfolio,
)

__all__ = ["blended_annual_rate", "effective_monthly_rate", "final_result", "project", "project_portfolio"]
