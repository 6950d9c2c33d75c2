# src/finstatements/adapters/presenters/statements_presenter.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Presenter: CompanyStatements -> StatementTablesDTO.

Synopsis:
    Renders the normalization read model into the strict application DTOs
    consumed by outer layers, and into canonical JSON for the CLI.

Layer:
    adapters/presenters
"""

from __future__ import annotations

import json
from decimal import ROUND_HALF_UP, Decimal

from finstatements.application.schemas.dto.statements import (
    DisplayMetricRowDTO,
    MergeConflictDTO,
    ReportPeriodDTO,
    StatementFinancialDataDTO,
    StatementTablesDTO,
)
from finstatements.domain.entities.company_statements import CompanyStatements
from finstatements.domain.entities.statement_table import MISSING_MARKER

_CENTS = Decimal("0.01")


def format_price(price: Decimal | None) -> str:
    """``"$123.45"`` for a finite price, the missing marker otherwise."""
    if price is None or not price.is_finite():
        return MISSING_MARKER
    return f"${price.quantize(_CENTS, rounding=ROUND_HALF_UP)}"


class StatementsPresenter:
    """Presenter for normalized statement tables."""

    def to_dto(self, result: CompanyStatements) -> StatementTablesDTO:
        """Map the read model to :class:`StatementTablesDTO`."""
        periods = [
            ReportPeriodDTO(
                display_name=p.display_name,
                composite_key=p.composite_key,
                year=p.period.year,
                quarter=p.period.quarter,
            )
            for p in result.periods
        ]
        statements = [
            StatementFinancialDataDTO(
                statement_type=block.statement_type,
                scaling_label=block.scaling_label,
                scaling_factor=block.scaling_factor,
                rows=[
                    DisplayMetricRowDTO(
                        display_name=row.display_name,
                        values=list(row.values),
                        scaling_label=block.scaling_label,
                        is_merged=row.is_merged,
                    )
                    for row in block.rows
                ],
            )
            for block in result.statements
        ]
        conflicts = [
            MergeConflictDTO(
                statement_type=c.statement_type,
                base_name=c.base_name,
                period=periods[c.period_index].display_name
                if c.period_index < len(periods)
                else str(c.period_index),
                metric_names=list(c.metric_names),
            )
            for c in result.merge_conflicts
        ]
        return StatementTablesDTO(
            company_name=result.company.name,
            symbol=result.company.symbol,
            data_type=result.family.value,
            mode=result.mode.value,
            periods=periods,
            statements=statements,
            stock_price=format_price(result.stock_price),
            merge_conflicts=conflicts,
        )

    def render_json(self, result: CompanyStatements, *, indent: int | None = 2) -> str:
        """Render the DTO as JSON text."""
        return json.dumps(self.to_dto(result).model_dump(mode="json"), indent=indent, ensure_ascii=False)
