# src/finstatements/domain/entities/raw_record.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Raw per-period report records.

Purpose:
    Model one company's raw report blob for one reporting period, the period
    identity itself, and the year correction produced when two records claim
    the same period.

Layer:
    domain/entities

Notes:
    - Records are read-only inputs to a normalization pass. The single
      sanctioned mutation is a persisted year correction, modelled here as a
      separate value object and applied by the application layer.
    - ``raw_fields is None`` marks a record whose stored blob could not be
      decoded; the aligner treats such periods as entirely missing.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import date

from finstatements.domain.entities.raw_value import RawValue
from finstatements.domain.exceptions.statements import RecordMappingError

__all__ = ["PeriodKey", "RawRecord", "YearCorrection"]

_MAX_QUARTER = 4


@dataclass(frozen=True, order=True, slots=True)
class PeriodKey:
    """Reporting period identity.

    Attributes:
        year: Fiscal year.
        quarter: 1-4 for quarterly reports, 0 for the annual report.

    Ordering is by year, then quarter.
    """

    year: int
    quarter: int

    def __post_init__(self) -> None:
        """Validate the quarter range."""
        if not 0 <= self.quarter <= _MAX_QUARTER:
            raise RecordMappingError(
                "quarter must be between 0 (annual) and 4.",
                details={"year": self.year, "quarter": self.quarter},
            )

    @property
    def is_annual(self) -> bool:
        return self.quarter == 0

    @property
    def composite_key(self) -> str:
        """Machine-readable key, e.g. ``"2022-1"``."""
        return f"{self.year}-{self.quarter}"

    def shifted(self, years: int) -> PeriodKey:
        return PeriodKey(year=self.year + years, quarter=self.quarter)


@dataclass(frozen=True, slots=True)
class RawRecord:
    """One raw report blob for a company and period.

    Attributes:
        record_id:
            Store-assigned identifier, used when persisting corrections.
        company_id:
            Owning company identifier.
        period:
            Reporting period the record claims.
        end_date:
            Period end date as stated by the filing.
        is_parsed:
            Whether upstream extraction finished for this record. Unparsed
            records never contribute values.
        raw_fields:
            Decoded key/value pairs, or ``None`` when the blob was malformed.
    """

    record_id: str
    company_id: str
    period: PeriodKey
    end_date: date
    is_parsed: bool
    raw_fields: Mapping[str, RawValue] | None

    def __post_init__(self) -> None:
        """Validate identifiers."""
        if not str(self.record_id).strip():
            raise RecordMappingError("record_id must not be empty.")
        if not str(self.company_id).strip():
            raise RecordMappingError(
                "company_id must not be empty.",
                details={"record_id": self.record_id},
            )

    @property
    def is_malformed(self) -> bool:
        return self.raw_fields is None

    def with_year(self, year: int) -> RawRecord:
        """Return a copy re-keyed to ``year`` (quarter unchanged)."""
        return replace(self, period=PeriodKey(year=year, quarter=self.period.quarter))


@dataclass(frozen=True, slots=True)
class YearCorrection:
    """Re-keying of a stale duplicate record into the previous year.

    Attributes:
        record_id: Record to update.
        company_id: Owning company, used for per-company serialization.
        period: Period the record claimed before the correction.
        new_year: Year the record is persisted with after the correction.
    """

    record_id: str
    company_id: str
    period: PeriodKey
    new_year: int

    @property
    def new_period(self) -> PeriodKey:
        return PeriodKey(year=self.new_year, quarter=self.period.quarter)
