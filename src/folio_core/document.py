"""State document codec: JSON text <-> PortfolioState, with schema backfill."""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any

from pydantic import ValidationError

from folio_core.defaults import default_asset
from folio_core.exceptions import ErrorCode, FolioError
from folio_core.models.ledger import TransactionKind
from folio_core.models.portfolio import CASH_KEY, PortfolioState
from folio_core.models.projection import ProjectionSettings

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("assets", "transactions")

_PERSIAN_DIGITS = str.maketrans("۰۱۲۳۴۵۶۷۸۹٠١٢٣٤٥٦٧٨٩", "01234567890123456789")

# Description templates written by documents that predate ledger kinds.
_LEGACY_EXACT = {
    "سرمایه اولیه": TransactionKind.INITIAL_DEPOSIT,
    "افزایش سرمایه": TransactionKind.CAPITAL_INJECTION,
}
_LEGACY_PREFIXES = (
    ("تنظیم دستی ", TransactionKind.MANUAL_ADJUSTMENT),
    ("سود ", TransactionKind.PROFIT),
    ("زیان ", TransactionKind.LOSS),
)
_LEGACY_LIQUIDATION = ("نقد کردن ", " از ")


def _malformed(message: str, **details: Any) -> FolioError:
    return FolioError(
        ErrorCode.MALFORMED_IMPORT,
        message,
        details=details,
        suggestion="Export a fresh backup with `folio backup export` and retry.",
    )


def jalali_to_gregorian(jy: int, jm: int, jd: int) -> date:
    """Convert a Solar Hijri calendar date to its Gregorian equivalent."""

    jy += 1595
    days = -355668 + 365 * jy + (jy // 33) * 8 + ((jy % 33) + 3) // 4 + jd
    days += (jm - 1) * 31 if jm < 7 else (jm - 7) * 30 + 186

    gy = 400 * (days // 146097)
    days %= 146097
    if days > 36524:
        days -= 1
        gy += 100 * (days // 36524)
        days %= 36524
        if days >= 365:
            days += 1
    gy += 4 * (days // 1461)
    days %= 1461
    if days > 365:
        gy += (days - 1) // 365
        days = (days - 1) % 365

    gd = days + 1
    leap = (gy % 4 == 0 and gy % 100 != 0) or gy % 400 == 0
    month_lengths = (31, 29 if leap else 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)
    gm = 0
    while gm < 12 and gd > month_lengths[gm]:
        gd -= month_lengths[gm]
        gm += 1
    return date(gy, gm + 1, gd)


def normalize_legacy_date(raw: Any) -> Any:
    """Turn 'YYYY/MM/DD' strings (Persian digits, Solar Hijri years) into ISO dates."""

    if not isinstance(raw, str) or "/" not in raw:
        return raw
    parts = raw.translate(_PERSIAN_DIGITS).strip().split("/")
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        return raw
    year, month, day = (int(part) for part in parts)
    if year < 1700:
        return jalali_to_gregorian(year, month, day).isoformat()
    return date(year, month, day).isoformat()


def _name_to_key(assets: dict[str, Any]) -> dict[str, str]:
    return {str(asset.get("name")): key for key, asset in assets.items() if isinstance(asset, dict)}


def _infer_legacy_transaction(entry: dict[str, Any], names: dict[str, str]) -> dict[str, Any]:
    description = str(entry.get("description", ""))
    out = dict(entry)
    if "date" in entry:
        out["date"] = normalize_legacy_date(entry["date"])
    if "kind" in entry:
        return out

    kind = _LEGACY_EXACT.get(description)
    asset_name: str | None = None
    if kind is None:
        for prefix, prefix_kind in _LEGACY_PREFIXES:
            if description.startswith(prefix):
                kind, asset_name = prefix_kind, description[len(prefix) :]
                break
    if kind is None:
        head, separator = _LEGACY_LIQUIDATION
        if description.startswith(head) and separator in description:
            kind, asset_name = TransactionKind.LIQUIDATION, description.split(separator, 1)[1]

    out["kind"] = (kind or TransactionKind.OTHER).value
    if asset_name is not None and "assetKey" not in entry:
        out["assetKey"] = names.get(asset_name)
    return out


def _infer_legacy_trade(entry: dict[str, Any], names: dict[str, str]) -> dict[str, Any]:
    out = dict(entry)
    if "date" in entry:
        out["date"] = normalize_legacy_date(entry["date"])
    if "assetKey" not in entry:
        out["assetKey"] = names.get(str(entry.get("assetName")))
    return out


def migrate(raw: dict[str, Any]) -> dict[str, Any]:
    """Backfill fields introduced after a document was first persisted."""

    data = dict(raw)
    assets = dict(data["assets"])

    if "foreignStock" not in assets:
        backfill = default_asset("foreignStock").model_copy(update={"percentage": 0})
        reordered: dict[str, Any] = {}
        for key, value in assets.items():
            if key == CASH_KEY:
                reordered["foreignStock"] = backfill.model_dump(mode="json", by_alias=True)
            reordered[key] = value
        reordered.setdefault("foreignStock", backfill.model_dump(mode="json", by_alias=True))
        assets = reordered
        logger.info("document migration: backfilled foreignStock asset")
    data["assets"] = assets

    if data.get("tradeHistory") is None:
        data["tradeHistory"] = []
    if data.get("projectionSettings") is None:
        data["projectionSettings"] = ProjectionSettings().model_dump(mode="json", by_alias=True)

    names = _name_to_key(assets)
    data["transactions"] = [
        _infer_legacy_transaction(entry, names) if isinstance(entry, dict) else entry for entry in data["transactions"]
    ]
    data["tradeHistory"] = [
        _infer_legacy_trade(entry, names) if isinstance(entry, dict) else entry for entry in data["tradeHistory"]
    ]
    return data


def parse_document(data: Any) -> PortfolioState:
    if not isinstance(data, dict):
        raise _malformed("state document must be a JSON object", received=type(data).__name__)
    missing = [field for field in REQUIRED_FIELDS if field not in data]
    if missing:
        raise _malformed(f"state document is missing required fields: {', '.join(missing)}", missing=missing)
    if not isinstance(data["assets"], dict) or not isinstance(data["transactions"], list):
        raise _malformed("'assets' must be an object and 'transactions' a list")

    try:
        return PortfolioState.model_validate(migrate(data))
    except (ValidationError, ValueError) as exc:
        raise _malformed("state document failed validation", error=str(exc)) from exc


def load_document(text: str) -> PortfolioState:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise _malformed(f"state document is not valid JSON: {exc.msg}", line=exc.lineno, column=exc.colno) from exc
    return parse_document(data)


def dump_document(state: PortfolioState, *, indent: int | None = 2) -> str:
    return json.dumps(state.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=indent)
