# src/finstatements/domain/entities/company_statements.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Company statement read model.

Purpose:
    Result of one normalization run for one company and one report family:
    the resolved company, the period window with display labels, the ordered
    statement blocks, and optional annotations (live price, merge conflicts).

Layer:
    domain/entities
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from finstatements.domain.entities.raw_record import PeriodKey
from finstatements.domain.entities.statement_table import MergeConflict, StatementBlock
from finstatements.domain.enums.statements import AlignmentMode, PeriodFamily

__all__ = ["CompanyRef", "ReportPeriod", "CompanyStatements"]


@dataclass(frozen=True)
class CompanyRef:
    """Resolved company identity.

    Attributes:
        company_id: Store identifier used to fetch raw records.
        name: Company name as stored.
        symbol: Ticker symbol, used for price lookups.
    """

    company_id: str
    name: str
    symbol: str


@dataclass(frozen=True)
class ReportPeriod:
    """Display metadata for one period column.

    Attributes:
        period: Underlying period key.
        display_name: ``"2021"`` for annual, ``"Q1Report 2022"`` for quarterly.
        composite_key: ``"{year}-{quarter}"``.
    """

    period: PeriodKey
    display_name: str
    composite_key: str


@dataclass(frozen=True)
class CompanyStatements:
    """Normalized, aligned statements for one company.

    Attributes:
        company: Resolved company.
        family: Report family of the window.
        mode: Alignment mode used.
        periods: Ordered period columns.
        statements: Ordered statement blocks.
        stock_price: Latest price, or ``None`` when not requested/unavailable.
        merge_conflicts: Conflicts found by the opt-in merge validation.
    """

    company: CompanyRef
    family: PeriodFamily
    mode: AlignmentMode
    periods: Sequence[ReportPeriod]
    statements: Sequence[StatementBlock]
    stock_price: Decimal | None = None
    merge_conflicts: Sequence[MergeConflict] = field(default_factory=tuple)
