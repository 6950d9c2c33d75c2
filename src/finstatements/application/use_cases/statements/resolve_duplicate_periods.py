# src/finstatements/application/use_cases/statements/resolve_duplicate_periods.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Use case: Resolve duplicate reporting periods for one company.

Purpose:
    Apply the year corrections produced by duplicate-period detection to the
    store, so that no two raw records of a company claim the same
    (year, quarter).

Layer:
    application

Notes:
    - Records are re-read inside the unit of work while holding a
      per-company lock. Two concurrent runs for one company therefore never
      decrement the same duplicate twice; the second run sees the corrected
      store and finds nothing to do.
    - Corrections are written through the raw records repository and
      become visible only when the unit of work commits.
    - A correction can move a duplicate onto a year already held by another
      record. That collision is logged and left for the next run.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import cast

from finstatements.application.interfaces.run_observer import StatementRunObserver
from finstatements.application.uow import UnitOfWork, run_in_uow
from finstatements.domain.entities.raw_record import RawRecord, YearCorrection
from finstatements.domain.enums.statements import PeriodFamily
from finstatements.domain.exceptions.statements import RecordMappingError
from finstatements.domain.interfaces.repositories.raw_records_repository import (
    RawRecordsRepository,
)
from finstatements.domain.services.duplicate_period_resolver import (
    apply_to_records,
    detect_duplicates,
    find_collisions,
)

logger = logging.getLogger(__name__)

__all__ = [
    "CompanyLocks",
    "ResolveDuplicatePeriodsRequest",
    "ResolveDuplicatePeriodsResult",
    "ResolveDuplicatePeriodsUseCase",
]


class CompanyLocks:
    """Registry of per-company ``asyncio.Lock`` objects (process-local).

    Entries are weakly referenced. A lock lives while some run holds it or
    waits on it, so companies that are no longer being resolved drop out of
    the registry instead of accumulating for the life of the process.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def __len__(self) -> int:
        return len(self._locks)

    def for_company(self, company_id: str) -> asyncio.Lock:
        lock = self._locks.get(company_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[company_id] = lock
        return lock


_DEFAULT_LOCKS = CompanyLocks()


@dataclass(frozen=True)
class ResolveDuplicatePeriodsRequest:
    """Request parameters.

    Attributes:
        company_id: Company whose records are checked.
        family: Restrict to one report family; ``None`` checks both.
    """

    company_id: str
    family: PeriodFamily | None = None


@dataclass(frozen=True)
class ResolveDuplicatePeriodsResult:
    """Corrected records and the corrections that were persisted."""

    records: Sequence[RawRecord]
    corrections: Sequence[YearCorrection] = field(default_factory=tuple)


class ResolveDuplicatePeriodsUseCase:
    """Detect and persist duplicate-period corrections.

    Args:
        uow: Unit of work exposing a :class:`RawRecordsRepository`.
        observer: Optional run observer notified of the correction count.
        locks: Per-company lock registry; defaults to a process-wide one.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        *,
        observer: StatementRunObserver | None = None,
        locks: CompanyLocks | None = None,
    ) -> None:
        self._uow = uow
        self._observer = observer
        self._locks = locks or _DEFAULT_LOCKS

    async def execute(self, req: ResolveDuplicatePeriodsRequest) -> ResolveDuplicatePeriodsResult:
        """Resolve duplicates for ``req.company_id``.

        Returns:
            The company's records as they read after the corrections, plus
            the corrections applied (empty when there were no duplicates).

        Raises:
            RecordMappingError: If ``company_id`` is empty or the store
                rejects a correction.
        """
        company_id = req.company_id.strip()
        if not company_id:
            raise RecordMappingError("company_id must not be empty for resolve_duplicate_periods().")

        async def _resolve(tx: UnitOfWork) -> ResolveDuplicatePeriodsResult:
            repo = cast(RawRecordsRepository, tx.get_repository(RawRecordsRepository))
            records = await repo.list_raw_records(company_id, req.family)
            corrections = detect_duplicates(records)
            if not corrections:
                return ResolveDuplicatePeriodsResult(records=tuple(records))

            for correction in corrections:
                await repo.apply_year_correction(correction)
                logger.info(
                    "statements.resolve_duplicates.correction",
                    extra={
                        "company_id": company_id,
                        "record_id": correction.record_id,
                        "year": correction.period.year,
                        "quarter": correction.period.quarter,
                        "new_year": correction.new_year,
                    },
                )

            corrected = apply_to_records(records, corrections)
            remaining = find_collisions(corrected)
            if remaining:
                logger.warning(
                    "statements.resolve_duplicates.collision_after_correction",
                    extra={
                        "company_id": company_id,
                        "periods": [p.composite_key for p in remaining],
                    },
                )
            return ResolveDuplicatePeriodsResult(
                records=tuple(corrected),
                corrections=tuple(corrections),
            )

        async with self._locks.for_company(company_id):
            result = await run_in_uow(self._uow, _resolve)

        if result.corrections:
            logger.info(
                "statements.resolve_duplicates.committed",
                extra={"company_id": company_id, "corrections": len(result.corrections)},
            )
            if self._observer is not None:
                self._observer.record_corrections(len(result.corrections))
        return result
