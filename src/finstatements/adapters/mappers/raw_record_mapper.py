# src/finstatements/adapters/mappers/raw_record_mapper.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Stored report row mapping.

Purpose:
    Translate a stored report row into a :class:`RawRecord` and back,
    decoding the JSON report blob into tagged raw values at the boundary.

Layer:
    adapters/mappers

Notes:
    - Stored rows use the keys ``ID``, ``CompanyID``, ``Year``, ``Quarter``,
      ``EndDate``, ``IsHtmlParsed`` and ``FinancialDataJson``.
    - JSON numbers are decoded as ``Decimal`` so no precision is lost
      between the store and the aligned table.
    - A blob that is not valid JSON, or not a JSON object, marks the record
      as malformed (``raw_fields=None``). The row is still returned so the
      period shows up as missing instead of failing the whole read.
    - Missing or invalid identity fields (ids, year, quarter, end date) are
      a hard error.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from finstatements.domain.entities.raw_record import PeriodKey, RawRecord
from finstatements.domain.entities.raw_value import RawValue
from finstatements.domain.exceptions.statements import RecordMappingError

logger = logging.getLogger(__name__)

__all__ = ["decode_financial_data", "row_to_raw_record", "apply_year_to_row"]

_TRUE_STRINGS = frozenset({"1", "true", "yes", "y", "t"})


def decode_financial_data(blob: str | None, *, record_id: str = "") -> dict[str, RawValue] | None:
    """Decode a report blob into raw values.

    Args:
        blob: JSON text of the report's key/value pairs.
        record_id: Record identifier, used for the warning log only.

    Returns:
        Field name to raw value, or ``None`` when the blob is malformed.
        An absent or blank blob decodes to an empty mapping.
    """
    if blob is None or not blob.strip():
        return {}
    try:
        payload = json.loads(blob, parse_float=Decimal)
    except (json.JSONDecodeError, ValueError) as exc:
        logger.warning(
            "statements.mapper.malformed_blob",
            extra={"record_id": record_id, "error": str(exc)},
        )
        return None
    if not isinstance(payload, dict):
        logger.warning(
            "statements.mapper.malformed_blob",
            extra={"record_id": record_id, "error": f"expected object, got {type(payload).__name__}"},
        )
        return None
    return {str(name): RawValue.from_json(value) for name, value in payload.items()}


def _required(row: Mapping[str, Any], key: str) -> Any:
    value = row.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise RecordMappingError(f"Stored row is missing {key!r}.", details={"row_id": row.get("ID")})
    return value


def _as_int(row: Mapping[str, Any], key: str) -> int:
    value = _required(row, key)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise RecordMappingError(
            f"Stored row has a non-integer {key!r}.",
            details={"row_id": row.get("ID"), key: value},
        ) from exc


def _as_date(row: Mapping[str, Any], key: str) -> date:
    value = _required(row, key)
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value).strip()).date()
    except ValueError as exc:
        raise RecordMappingError(
            f"Stored row has an invalid {key!r}.",
            details={"row_id": row.get("ID"), key: value},
        ) from exc


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def row_to_raw_record(row: Mapping[str, Any]) -> RawRecord:
    """Map one stored row to a :class:`RawRecord`.

    Raises:
        RecordMappingError: If an identity field is missing or invalid.
    """
    record_id = str(_required(row, "ID"))
    return RawRecord(
        record_id=record_id,
        company_id=str(_required(row, "CompanyID")),
        period=PeriodKey(year=_as_int(row, "Year"), quarter=_as_int(row, "Quarter")),
        end_date=_as_date(row, "EndDate"),
        is_parsed=_as_bool(row.get("IsHtmlParsed", False)),
        raw_fields=decode_financial_data(row.get("FinancialDataJson"), record_id=record_id),
    )


def apply_year_to_row(row: Mapping[str, Any], year: int) -> dict[str, Any]:
    """Return a copy of ``row`` re-keyed to ``year``."""
    updated = dict(row)
    updated["Year"] = year
    return updated
