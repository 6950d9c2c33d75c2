# src/finstatements/adapters/repositories/in_memory_repositories.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""In-memory statement store and repositories.

Purpose:
    Back the repository ports with a plain in-memory dataset of companies and
    stored report rows. Used by the CLI (datasets loaded from JSON files) and
    by tests.

Layer:
    adapters/repositories

Notes:
    - The raw records repository stages year corrections in its unit of
      work session. Staged corrections are visible to reads through the same
      repository and are written to the store only on commit.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, MutableMapping, Sequence
from typing import Any

from finstatements.adapters.mappers.raw_record_mapper import apply_year_to_row, row_to_raw_record
from finstatements.domain.entities.company_statements import CompanyRef
from finstatements.domain.entities.raw_record import RawRecord, YearCorrection
from finstatements.domain.enums.statements import PeriodFamily
from finstatements.domain.exceptions.statements import RecordMappingError

__all__ = [
    "InMemoryStatementStore",
    "InMemoryCompaniesRepository",
    "InMemoryRawRecordsRepository",
]


class InMemoryStatementStore:
    """Companies and stored report rows, keyed by id.

    Dataset layout (as loaded from and written to JSON)::

        {
          "companies": [{"CompanyID": "1", "Name": "Apple Inc.", "Symbol": "AAPL"}],
          "records": [{"ID": "10", "CompanyID": "1", "Year": 2023, "Quarter": 0,
                       "EndDate": "2023-09-30", "IsHtmlParsed": true,
                       "FinancialDataJson": "{...}"}]
        }
    """

    def __init__(
        self,
        companies: Iterable[CompanyRef] = (),
        rows: Iterable[Mapping[str, Any]] = (),
    ) -> None:
        self.companies: list[CompanyRef] = list(companies)
        self.rows: dict[str, dict[str, Any]] = {}
        for row in rows:
            self.add_row(row)

    @classmethod
    def from_dataset(cls, dataset: Mapping[str, Any]) -> InMemoryStatementStore:
        """Build a store from a decoded dataset.

        Raises:
            RecordMappingError: If a list is malformed, a company lacks
                ``CompanyID`` or a record is not an object with an ``ID``.
        """
        companies = [_company_from_item(item) for item in _as_list(dataset, "companies")]
        return cls(companies=companies, rows=_as_list(dataset, "records"))

    def to_dataset(self) -> dict[str, Any]:
        return {
            "companies": [
                {"CompanyID": c.company_id, "Name": c.name, "Symbol": c.symbol}
                for c in self.companies
            ],
            "records": [dict(row) for row in self.rows.values()],
        }

    def add_row(self, row: Mapping[str, Any]) -> None:
        if not isinstance(row, Mapping):
            raise RecordMappingError(
                "Stored row must be an object.", details={"type": type(row).__name__}
            )
        row_id = row.get("ID")
        if row_id is None:
            raise RecordMappingError("Stored row is missing 'ID'.")
        self.rows[str(row_id)] = dict(row)

    def set_year(self, record_id: str, year: int) -> None:
        self.rows[record_id] = apply_year_to_row(self.rows[record_id], year)


def _as_list(dataset: Mapping[str, Any], key: str) -> list[Any]:
    items = dataset.get(key, [])
    if not isinstance(items, list):
        raise RecordMappingError(f"Dataset {key!r} must be a list.", details={"key": key})
    return items


def _company_from_item(item: Any) -> CompanyRef:
    if not isinstance(item, Mapping) or item.get("CompanyID") is None:
        raise RecordMappingError(
            "Company entry is missing 'CompanyID'.", details={"entry": repr(item)[:80]}
        )
    return CompanyRef(
        company_id=str(item["CompanyID"]),
        name=str(item.get("Name", "")),
        symbol=str(item.get("Symbol", "")),
    )


class InMemoryCompaniesRepository:
    """Company lookup over :class:`InMemoryStatementStore`."""

    def __init__(self, store: InMemoryStatementStore) -> None:
        self._store = store

    async def resolve_company(self, name_or_symbol: str) -> CompanyRef | None:
        needle = name_or_symbol.strip().casefold()
        if not needle:
            return None
        for company in self._store.companies:
            if company.symbol.casefold() == needle:
                return company
        for company in self._store.companies:
            if company.name.casefold() == needle:
                return company
        return None


class InMemoryRawRecordsRepository:
    """Raw records repository over :class:`InMemoryStatementStore`.

    Args:
        store: Backing store.
        staged: Session-owned mapping of pending corrections by record id.
    """

    def __init__(
        self,
        store: InMemoryStatementStore,
        staged: MutableMapping[str, YearCorrection] | None = None,
    ) -> None:
        self._store = store
        self._staged: MutableMapping[str, YearCorrection] = staged if staged is not None else {}

    async def list_raw_records(
        self,
        company_id: str,
        family: PeriodFamily | None = None,
    ) -> Sequence[RawRecord]:
        records: list[RawRecord] = []
        for row in self._store.rows.values():
            if str(row.get("CompanyID")) != company_id:
                continue
            record = row_to_raw_record(row)
            staged = self._staged.get(record.record_id)
            if staged is not None:
                record = record.with_year(staged.new_year)
            if family is PeriodFamily.ANNUAL and not record.period.is_annual:
                continue
            if family is PeriodFamily.QUARTERLY and record.period.is_annual:
                continue
            records.append(record)
        return records

    async def apply_year_correction(self, correction: YearCorrection) -> None:
        row = self._store.rows.get(correction.record_id)
        if row is None or str(row.get("CompanyID")) != correction.company_id:
            raise RecordMappingError(
                "Cannot correct unknown record.",
                details={"record_id": correction.record_id, "company_id": correction.company_id},
            )
        self._staged[correction.record_id] = correction
