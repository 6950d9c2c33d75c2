# src/finstatements/domain/services/duplicate_period_resolver.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Duplicate-period detection.

Purpose:
    A company sometimes has two raw records claiming the same
    (year, quarter), usually a mis-dated filing. The record with the latest
    end date is kept as primary; every other record of the group is moved to
    the previous year so it no longer collides.

Layer:
    domain/services

Notes:
    - Detection is pure and returns corrections. Persisting them is the
      caller's job (see ``ResolveDuplicatePeriodsUseCase``).
    - Running detection over already-corrected records yields nothing unless
      a correction itself produced a new collision; :func:`find_collisions`
      exposes that case.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from finstatements.domain.entities.raw_record import PeriodKey, RawRecord, YearCorrection

__all__ = ["detect_duplicates", "apply_to_records", "find_collisions"]


def _group_by_period(records: Iterable[RawRecord]) -> dict[PeriodKey, list[RawRecord]]:
    groups: dict[PeriodKey, list[RawRecord]] = {}
    for record in records:
        groups.setdefault(record.period, []).append(record)
    return groups


def detect_duplicates(records: Sequence[RawRecord]) -> list[YearCorrection]:
    """Return the year corrections needed to separate colliding records.

    Args:
        records: All raw records of one company.

    Returns:
        Corrections in input order of the affected records. Empty when no two
        records share a period.
    """
    corrections: list[YearCorrection] = []
    for period, group in _group_by_period(records).items():
        if len(group) < 2:
            continue
        primary = group[0]
        for candidate in group[1:]:
            if candidate.end_date > primary.end_date:
                primary = candidate
        for record in group:
            if record is primary:
                continue
            corrections.append(
                YearCorrection(
                    record_id=record.record_id,
                    company_id=record.company_id,
                    period=period,
                    new_year=period.shifted(-1).year,
                )
            )

    order = {record.record_id: index for index, record in enumerate(records)}
    corrections.sort(key=lambda c: order.get(c.record_id, len(order)))
    return corrections


def apply_to_records(
    records: Sequence[RawRecord],
    corrections: Iterable[YearCorrection],
) -> list[RawRecord]:
    """Return ``records`` with ``corrections`` applied (input untouched)."""
    by_id = {c.record_id: c for c in corrections}
    return [
        record.with_year(by_id[record.record_id].new_year) if record.record_id in by_id else record
        for record in records
    ]


def find_collisions(records: Iterable[RawRecord]) -> list[PeriodKey]:
    """Return periods still claimed by more than one record, ascending."""
    return sorted(p for p, group in _group_by_period(records).items() if len(group) > 1)
