"""Allocation engine package."""

from folio_core.allocation.engine import AllocationEngine, require
from folio_core.allocation.rules import recalculate_percentages, split_evenly

__all__ = ["AllocationEngine", "recalculate_percentages", "require", "split_evenly"]
