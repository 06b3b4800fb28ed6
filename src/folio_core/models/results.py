"""Operation outcome returned by the allocation engine."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from folio_core.exceptions import ErrorCode
from folio_core.models.portfolio import PortfolioState


class OperationResult(BaseModel):
    ok: bool
    state: PortfolioState
    reasons: list[str] = Field(default_factory=list)
    code: ErrorCode | None = None
    details: dict[str, Any] = Field(default_factory=dict)
