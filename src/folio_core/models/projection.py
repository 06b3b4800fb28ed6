"""Growth projection assumptions and output rows."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_EXPECTED_RETURNS: dict[str, float] = {
    "gold": 35.0,
    "stock": 30.0,
    "foreignStock": 25.0,
    "crypto": 50.0,
    "cash": 15.0,
}


class ProjectionSettings(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    base_capital: float = 0.0
    years: int = Field(default=5, ge=0)
    monthly_contribution: float = 0.0
    annual_increase: float = 20.0
    expected_returns: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_EXPECTED_RETURNS))


class YearlyProjection(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    year: int
    total_value: float
    total_invested: float
    profit: float
    monthly_contribution: float
