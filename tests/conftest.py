# tests/conftest.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT

from __future__ import annotations

import json
from typing import Any

import pytest

from finstatements.adapters.repositories.in_memory_repositories import InMemoryStatementStore

OPS = "HTML_AnnualReport_ConsolidatedStatementsOfOperations_"
BS = "HTML_AnnualReport_ConsolidatedBalanceSheets_"
Q1_BS = "HTML_Q1Report_CondensedConsolidatedBalanceSheets_"


def _row(
    rid: str,
    company_id: str,
    year: int,
    quarter: int,
    end_date: str,
    fields: dict[str, Any],
    *,
    parsed: bool = True,
) -> dict[str, Any]:
    return {
        "ID": rid,
        "CompanyID": company_id,
        "Year": year,
        "Quarter": quarter,
        "EndDate": end_date,
        "IsHtmlParsed": parsed,
        "FinancialDataJson": json.dumps(fields),
    }


@pytest.fixture
def dataset() -> dict[str, Any]:
    """Two companies; record "12" is a stale duplicate of fiscal 2022."""
    return {
        "companies": [
            {"CompanyID": "1", "Name": "Apple Inc.", "Symbol": "AAPL"},
            {"CompanyID": "2", "Name": "Beta Corp", "Symbol": "BETA"},
        ],
        "records": [
            _row(
                "10",
                "1",
                2022,
                0,
                "2022-09-24",
                {
                    OPS + "NetSales": 394328000000,
                    OPS + "Revenue (Services)": 78129000000,
                    OPS + "Earnings Per Share Diluted": 6.11,
                    BS + "TotalAssets": 352755000000,
                    "us-gaap_Assets": 352755000000,
                },
            ),
            _row(
                "11",
                "1",
                2023,
                0,
                "2023-09-30",
                {
                    OPS + "NetSales": 383285000000,
                    OPS + "Revenue (Services)": 85200000000,
                    OPS + "Revenue (Products)": 298085000000,
                    OPS + "Earnings Per Share Diluted": 6.13,
                    BS + "TotalAssets": 352583000000,
                    "us-gaap_Assets": 352583000000,
                    "us-gaap_Goodwill": 0,
                },
            ),
            _row(
                "12",
                "1",
                2022,
                0,
                "2022-03-31",
                {BS + "TotalAssets": 351002000000, "us-gaap_Assets": 351002000000},
            ),
            _row(
                "13",
                "1",
                2023,
                1,
                "2022-12-31",
                {Q1_BS + "TotalAssets": 346747000000},
            ),
            _row("20", "2", 2023, 0, "2023-12-31", {BS + "Cash": 1}, parsed=False),
        ],
    }


@pytest.fixture
def store(dataset: dict[str, Any]) -> InMemoryStatementStore:
    return InMemoryStatementStore.from_dataset(dataset)
