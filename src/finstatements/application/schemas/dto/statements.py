# src/finstatements/application/schemas/dto/statements.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Application DTOs for normalized statement tables.

Synopsis:
    Strict (Pydantic v2) DTOs returned to outer layers (CLI, HTTP, templates).
    All cell values are display strings; ``"N/A"`` marks a missing value.

Layer:
    application/schemas/dto
"""

from __future__ import annotations

from pydantic import Field

from finstatements.application.schemas.dto.base import BaseDTO


class ReportPeriodDTO(BaseDTO):
    """One period column.

    Attributes:
        display_name: ``"2021"`` or ``"Q1Report 2022"``.
        composite_key: ``"{year}-{quarter}"``.
        year: Fiscal year.
        quarter: 0 for annual, 1-4 for quarterly.
    """

    display_name: str
    composite_key: str
    year: int
    quarter: int = Field(ge=0, le=4)


class DisplayMetricRowDTO(BaseDTO):
    """One display row of a statement."""

    display_name: str
    values: list[str]
    scaling_label: str = ""
    is_merged: bool = False


class StatementFinancialDataDTO(BaseDTO):
    """One statement block with its unit label and rows."""

    statement_type: str
    scaling_label: str = ""
    scaling_factor: int = 0
    rows: list[DisplayMetricRowDTO]


class MergeConflictDTO(BaseDTO):
    """A period where several variants of a metric carried numbers."""

    statement_type: str
    base_name: str
    period: str
    metric_names: list[str]


class StatementTablesDTO(BaseDTO):
    """Normalized statements for one company and report family.

    Attributes:
        company_name: Resolved company name.
        symbol: Ticker symbol.
        data_type: ``"annual"`` or ``"quarterly"``.
        mode: ``"basic"`` or ``"enhanced"``.
        periods: Ordered period columns.
        statements: Ordered statement blocks.
        stock_price: ``"$123.45"`` or ``"N/A"``.
        merge_conflicts: Present only when merge validation was requested.
    """

    company_name: str
    symbol: str
    data_type: str
    mode: str
    periods: list[ReportPeriodDTO]
    statements: list[StatementFinancialDataDTO]
    stock_price: str = "N/A"
    merge_conflicts: list[MergeConflictDTO] = Field(default_factory=list)


__all__ = [
    "ReportPeriodDTO",
    "DisplayMetricRowDTO",
    "StatementFinancialDataDTO",
    "MergeConflictDTO",
    "StatementTablesDTO",
]
