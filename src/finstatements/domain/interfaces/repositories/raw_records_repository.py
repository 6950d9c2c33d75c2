# src/finstatements/domain/interfaces/repositories/raw_records_repository.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Raw report records repository interface.

Purpose:
    Read a company's raw per-period report records and persist the single
    write the normalization system performs: re-keying a duplicate record to
    an earlier year.

Layer:
    domain

Notes:
    Implementations live in the adapters layer and must translate store or
    decoding errors into domain exceptions. Records whose blob cannot be
    decoded are returned with ``raw_fields=None`` rather than failing the
    whole read.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from finstatements.domain.entities.raw_record import RawRecord, YearCorrection
from finstatements.domain.enums.statements import PeriodFamily


class RawRecordsRepository(Protocol):
    """Protocol for repositories holding raw report records."""

    async def list_raw_records(
        self,
        company_id: str,
        family: PeriodFamily | None = None,
    ) -> Sequence[RawRecord]:
        """Return the company's raw records.

        Args:
            company_id: Owning company identifier.
            family: Restrict to annual (quarter 0) or quarterly (quarter 1-4)
                records. ``None`` returns both.

        Returns:
            Records in store order. Empty when the company has none.
        """

    async def apply_year_correction(self, correction: YearCorrection) -> None:
        """Persist a year correction for one record.

        Implementations may stage the write until the owning unit of work
        commits.

        Raises:
            RecordMappingError: If the record does not exist.
        """
