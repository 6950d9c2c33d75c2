# tests/unit/adapters/mappers/test_raw_record_mapper.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any

import pytest

from finstatements.adapters.mappers.raw_record_mapper import (
    apply_year_to_row,
    decode_financial_data,
    row_to_raw_record,
)
from finstatements.domain.entities.raw_record import PeriodKey
from finstatements.domain.entities.raw_value import RawValue
from finstatements.domain.exceptions.statements import RecordMappingError


def _row(**overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "ID": 7,
        "CompanyID": 1,
        "Year": "2023",
        "Quarter": 0,
        "EndDate": "2023-09-30",
        "IsHtmlParsed": True,
        "FinancialDataJson": '{"HTML_AnnualReport_BalanceSheet_Cash": 12.50}',
    }
    row.update(overrides)
    return row


def test_row_maps_to_raw_record() -> None:
    record = row_to_raw_record(_row())

    assert record.record_id == "7"
    assert record.company_id == "1"
    assert record.period == PeriodKey(2023, 0)
    assert record.end_date == date(2023, 9, 30)
    assert record.is_parsed is True
    assert record.raw_fields == {
        "HTML_AnnualReport_BalanceSheet_Cash": RawValue.of_number(Decimal("12.50"))
    }


def test_decimal_precision_is_kept() -> None:
    fields = decode_financial_data('{"a": 0.1, "b": 12345678901234567890, "c": "x", "d": null}')

    assert fields is not None
    assert fields["a"].number == Decimal("0.1")
    assert fields["b"].number == Decimal("12345678901234567890")
    assert fields["c"] == RawValue.of_string("x")
    assert fields["d"] == RawValue.null()


@pytest.mark.parametrize("blob", [None, "", "   "])
def test_absent_blob_decodes_to_empty_mapping(blob: str | None) -> None:
    assert decode_financial_data(blob) == {}


@pytest.mark.parametrize("blob", ["{not json", "[1, 2]", '"text"'])
def test_malformed_blob_marks_record(blob: str, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING)

    record = row_to_raw_record(_row(FinancialDataJson=blob))

    assert record.raw_fields is None
    assert record.is_malformed
    assert any(r.getMessage() == "statements.mapper.malformed_blob" for r in caplog.records)


@pytest.mark.parametrize(
    ("end_date", "expected"),
    [
        (date(2022, 12, 31), date(2022, 12, 31)),
        (datetime(2022, 12, 31, 18, 30), date(2022, 12, 31)),
        ("2022-12-31T00:00:00", date(2022, 12, 31)),
    ],
)
def test_end_date_forms(end_date: Any, expected: date) -> None:
    assert row_to_raw_record(_row(EndDate=end_date)).end_date == expected


@pytest.mark.parametrize(("flag", "expected"), [("true", True), ("1", True), ("no", False), (0, False), (None, False)])
def test_parsed_flag_forms(flag: Any, expected: bool) -> None:
    assert row_to_raw_record(_row(IsHtmlParsed=flag)).is_parsed is expected


@pytest.mark.parametrize(
    "overrides",
    [
        {"ID": None},
        {"CompanyID": " "},
        {"Year": "twenty"},
        {"Quarter": None},
        {"Quarter": 5},
        {"EndDate": "31/12/2022"},
    ],
)
def test_invalid_identity_fields_raise(overrides: dict[str, Any]) -> None:
    with pytest.raises(RecordMappingError):
        row_to_raw_record(_row(**overrides))


def test_apply_year_to_row_returns_copy() -> None:
    row = _row()
    updated = apply_year_to_row(row, 2022)

    assert updated["Year"] == 2022
    assert row["Year"] == "2023"
