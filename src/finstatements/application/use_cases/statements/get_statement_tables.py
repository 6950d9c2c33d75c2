# src/finstatements/application/use_cases/statements/get_statement_tables.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Use case: Build normalized, period-aligned statement tables for a company.

Purpose:
    Run the full normalization pipeline for one company and one report
    family and return display-ready statement blocks.

Pipeline:
    resolve company -> fetch records and resolve duplicate periods ->
    select period window -> align -> group by statement -> order ->
    per statement: scale, then merge variant rows -> optional price.

Layer:
    application

Notes:
    - Scaling runs before merging so the factor is chosen from every
      variant's values, not only the surviving ones.
    - ``CompanyNotFoundError`` and ``NoStatementDataError`` propagate as-is.
      Any other failure, a ``RecordMappingError`` from a malformed stored
      row included, is logged with company and window context and re-raised
      as ``StatementNormalizationError``.
    - The latest price is only an annotation; the price gateway reports
      unavailability as ``None``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, cast

from finstatements.application.interfaces.run_observer import StatementRunObserver
from finstatements.application.uow import UnitOfWork
from finstatements.application.use_cases.statements.resolve_duplicate_periods import (
    ResolveDuplicatePeriodsRequest,
    ResolveDuplicatePeriodsUseCase,
)
from finstatements.domain.entities.company_statements import CompanyRef, CompanyStatements
from finstatements.domain.entities.raw_record import PeriodKey
from finstatements.domain.entities.statement_table import MergeConflict, StatementBlock
from finstatements.domain.enums.statements import AlignmentMode, PeriodFamily
from finstatements.domain.exceptions.base import DomainError
from finstatements.domain.exceptions.statements import (
    CompanyNotFoundError,
    NoStatementDataError,
    StatementNormalizationError,
)
from finstatements.domain.interfaces.gateways.price_gateway import PriceGateway
from finstatements.domain.interfaces.repositories.companies_repository import (
    CompaniesRepository,
)
from finstatements.domain.services.metric_merger import find_merge_conflicts, merge_metric_rows
from finstatements.domain.services.period_aligner import PeriodAligner
from finstatements.domain.services.period_window import (
    DEFAULT_ANNUAL_WINDOW,
    DEFAULT_QUARTERLY_WINDOW,
    build_report_periods,
    select_window,
)
from finstatements.domain.services.scaling_engine import ScalingEngine
from finstatements.domain.services.statement_grouper import GroupedStatements, group_by_statement
from finstatements.domain.services.statement_orderer import order_statements

logger = logging.getLogger(__name__)

__all__ = ["GetStatementTablesRequest", "GetStatementTablesUseCase"]


@dataclass(frozen=True)
class GetStatementTablesRequest:
    """Request parameters for building statement tables.

    Attributes:
        company: Company name or ticker symbol.
        data_type: ``"annual"`` or ``"quarterly"``; anything else is annual.
        mode: ``"basic"`` or ``"enhanced"``; anything else is basic.
        include_price: Annotate the result with the latest stock price.
        validate_merges: Report merge conflicts on the result.
    """

    company: str
    data_type: str = PeriodFamily.ANNUAL.value
    mode: str = AlignmentMode.BASIC.value
    include_price: bool = False
    validate_merges: bool = False


class GetStatementTablesUseCase:
    """Normalize and align a company's raw reports into statement tables.

    Args:
        uow: Unit of work exposing the companies and raw records repositories.
        price_gateway: Optional latest-price lookup.
        observer: Optional run observer (metrics).
        duplicate_resolver: Duplicate-period resolution step; built from
            ``uow`` when omitted.
        annual_window: Number of annual periods shown.
        quarterly_window: Number of quarterly periods shown.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        *,
        price_gateway: PriceGateway | None = None,
        observer: StatementRunObserver | None = None,
        duplicate_resolver: ResolveDuplicatePeriodsUseCase | None = None,
        aligner: PeriodAligner | None = None,
        scaling_engine: ScalingEngine | None = None,
        annual_window: int = DEFAULT_ANNUAL_WINDOW,
        quarterly_window: int = DEFAULT_QUARTERLY_WINDOW,
    ) -> None:
        self._uow = uow
        self._price_gateway = price_gateway
        self._observer = observer
        self._duplicate_resolver = duplicate_resolver or ResolveDuplicatePeriodsUseCase(
            uow, observer=observer
        )
        self._aligner = aligner or PeriodAligner()
        self._scaling = scaling_engine or ScalingEngine()
        self._window_sizes = {
            PeriodFamily.ANNUAL: annual_window,
            PeriodFamily.QUARTERLY: quarterly_window,
        }

    async def execute(self, req: GetStatementTablesRequest) -> CompanyStatements:
        """Build the statement tables.

        Args:
            req: Company and rendering options.

        Returns:
            The normalized statements for the company.

        Raises:
            CompanyNotFoundError: If the company cannot be resolved.
            NoStatementDataError: If no parsed record falls in the window.
            StatementNormalizationError: On any other pipeline failure.
        """
        family = PeriodFamily.parse(req.data_type)
        mode = AlignmentMode.parse(req.mode)
        query = req.company.strip()
        context: dict[str, Any] = {
            "company": query,
            "family": family.value,
            "mode": mode.value,
        }

        logger.info(
            "statements.get_tables.start",
            extra={
                **context,
                "include_price": req.include_price,
                "validate_merges": req.validate_merges,
            },
        )

        started = time.perf_counter()
        outcome = "success"
        try:
            result = await self._run(query, family, mode, req, context)
        except (CompanyNotFoundError, NoStatementDataError) as exc:
            outcome = exc.code.lower()
            logger.info(
                "statements.get_tables.failure",
                extra={**context, "error_code": exc.code, "details": exc.details},
            )
            raise
        except Exception as exc:
            outcome = StatementNormalizationError.code.lower()
            details: dict[str, Any] = {**context, "error": type(exc).__name__}
            if isinstance(exc, DomainError):
                details["error_code"] = exc.code
            logger.exception("statements.get_tables.failure", extra=details)
            raise StatementNormalizationError(
                "Statement normalization failed.", details=details
            ) from exc
        finally:
            if self._observer is not None:
                self._observer.record_run(
                    family=family.value,
                    mode=mode.value,
                    outcome=outcome,
                    duration_s=time.perf_counter() - started,
                )

        logger.info(
            "statements.get_tables.success",
            extra={
                **context,
                "periods": len(result.periods),
                "statements": len(result.statements),
                "merge_conflicts": len(result.merge_conflicts),
            },
        )
        return result

    async def _run(
        self,
        query: str,
        family: PeriodFamily,
        mode: AlignmentMode,
        req: GetStatementTablesRequest,
        context: dict[str, Any],
    ) -> CompanyStatements:
        company = await self._resolve_company(query)
        context["company_id"] = company.company_id

        resolved = await self._duplicate_resolver.execute(
            ResolveDuplicatePeriodsRequest(company_id=company.company_id, family=family)
        )
        records = resolved.records

        window = select_window(records, family, size=self._window_sizes[family])
        if not window:
            raise NoStatementDataError(
                "No parsed report data found for company.",
                details={"company": company.name, "family": family.value},
            )
        context["window"] = [p.composite_key for p in window]

        table = self._aligner.align(records, window, mode)
        statements, conflicts = self._build_blocks(
            group_by_statement(table), window, validate=req.validate_merges
        )

        price = None
        if req.include_price and self._price_gateway is not None:
            price = await self._price_gateway.fetch_price(company.symbol)

        return CompanyStatements(
            company=company,
            family=family,
            mode=mode,
            periods=tuple(build_report_periods(family, window)),
            statements=tuple(statements),
            stock_price=price,
            merge_conflicts=tuple(conflicts),
        )

    async def _resolve_company(self, query: str) -> CompanyRef:
        if not query:
            raise CompanyNotFoundError("Company name or symbol must not be empty.")
        async with self._uow as tx:
            companies = cast(CompaniesRepository, tx.get_repository(CompaniesRepository))
            company = await companies.resolve_company(query)
        if company is None:
            raise CompanyNotFoundError("Company not found.", details={"company": query})
        return company

    def _build_blocks(
        self,
        grouped: GroupedStatements,
        window: tuple[PeriodKey, ...],
        *,
        validate: bool,
    ) -> tuple[list[StatementBlock], list[MergeConflict]]:
        blocks: list[StatementBlock] = []
        conflicts: list[MergeConflict] = []
        for statement in order_statements(list(grouped)):
            scaled = self._scaling.scale(grouped[statement])
            if validate:
                conflicts.extend(find_merge_conflicts(statement, scaled.metrics, len(window)))
            blocks.append(
                StatementBlock(
                    statement_type=statement,
                    rows=tuple(merge_metric_rows(scaled.metrics, len(window))),
                    scaling_label=scaled.label,
                    scaling_factor=scaled.factor,
                )
            )
        return blocks, conflicts
