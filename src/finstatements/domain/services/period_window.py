# src/finstatements/domain/services/period_window.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Reporting window selection.

Purpose:
    Choose which periods a statement table shows and label them for display.
    Annual windows hold the most recent distinct years that have a parsed
    annual report; quarterly windows hold the most recent distinct
    (year, quarter) pairs that have a parsed quarterly report. Both are
    returned oldest first.

Layer:
    domain/services
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Final

from finstatements.domain.entities.company_statements import ReportPeriod
from finstatements.domain.entities.raw_record import PeriodKey, RawRecord
from finstatements.domain.enums.statements import PeriodFamily

__all__ = [
    "DEFAULT_ANNUAL_WINDOW",
    "DEFAULT_QUARTERLY_WINDOW",
    "select_window",
    "build_report_periods",
    "period_display_name",
]

DEFAULT_ANNUAL_WINDOW: Final[int] = 10
DEFAULT_QUARTERLY_WINDOW: Final[int] = 6


def _belongs_to(family: PeriodFamily, period: PeriodKey) -> bool:
    if family is PeriodFamily.ANNUAL:
        return period.is_annual
    return not period.is_annual


def select_window(
    records: Iterable[RawRecord],
    family: PeriodFamily,
    *,
    size: int | None = None,
) -> tuple[PeriodKey, ...]:
    """Return the most recent ``size`` periods of ``family``, ascending.

    Only parsed records count towards the window.

    Args:
        records: Raw records for one company.
        family: Report family to select.
        size: Maximum number of periods; defaults to 10 (annual) or 6 (quarterly).

    Returns:
        Distinct period keys in chronological order.

    Raises:
        ValueError: If ``size`` is not positive.
    """
    if size is None:
        size = DEFAULT_ANNUAL_WINDOW if family is PeriodFamily.ANNUAL else DEFAULT_QUARTERLY_WINDOW
    if size < 1:
        raise ValueError("window size must be positive.")

    candidates = {r.period for r in records if r.is_parsed and _belongs_to(family, r.period)}
    newest_first = sorted(candidates, reverse=True)[:size]
    return tuple(reversed(newest_first))


def period_display_name(family: PeriodFamily, period: PeriodKey) -> str:
    """``"2021"`` for annual periods, ``"Q1Report 2022"`` for quarterly ones."""
    if family is PeriodFamily.ANNUAL:
        return str(period.year)
    return f"Q{period.quarter}Report {period.year}"


def build_report_periods(
    family: PeriodFamily,
    window: Sequence[PeriodKey],
) -> list[ReportPeriod]:
    """Build display metadata for every period of the window, in order."""
    return [
        ReportPeriod(
            period=period,
            display_name=period_display_name(family, period),
            composite_key=period.composite_key,
        )
        for period in window
    ]
