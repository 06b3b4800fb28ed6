"""Allocation invariants shared by engine operations."""

from __future__ import annotations

import math
from collections.abc import Mapping

from folio_core.models.portfolio import CASH_KEY, Asset

VALUE_EPSILON = 1e-6


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_dust(value: float) -> float:
    """Snap float dust left by zero-sum transfers back to zero."""

    if -VALUE_EPSILON < value < 0.0:
        return 0.0
    return value


def total_value(assets: Mapping[str, Asset]) -> float:
    return sum(asset.value for asset in assets.values())


def percent_of(value: float, pct: float) -> float:
    return value * pct / 100.0


def split_evenly(asset: Asset) -> Asset:
    """Give every sub-item an equal share of the asset value."""

    if not asset.sub_items:
        return asset
    share = asset.value / len(asset.sub_items)
    return asset.model_copy(update={"sub_items": [sub.model_copy(update={"value": share}) for sub in asset.sub_items]})


def recalculate_percentages(assets: Mapping[str, Asset]) -> dict[str, Asset]:
    """Derive integer percentages from values; cash absorbs the rounding remainder.

    Cash never goes below 0%: an excess it cannot absorb is taken from the
    largest non-cash percentages. A zero total leaves every percentage untouched.
    """

    result = dict(assets)
    total = total_value(assets)
    if total == 0:
        return result

    percentages = {key: round_half_up(asset.value / total * 100.0) for key, asset in assets.items()}
    shortfall = 100 - sum(percentages.values())
    if shortfall and CASH_KEY in percentages:
        percentages[CASH_KEY] += shortfall
    if percentages.get(CASH_KEY, 0) < 0:
        excess = -percentages[CASH_KEY]
        percentages[CASH_KEY] = 0
        for key in sorted(percentages, key=lambda k: percentages[k], reverse=True):
            if key == CASH_KEY or not excess:
                continue
            taken = min(excess, percentages[key])
            percentages[key] -= taken
            excess -= taken

    for key, asset in assets.items():
        if asset.percentage != percentages[key]:
            result[key] = asset.model_copy(update={"percentage": percentages[key]})
    return result
