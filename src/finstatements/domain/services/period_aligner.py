# src/finstatements/domain/services/period_aligner.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Sparse multi-period alignment.

Purpose:
    Build a dense :class:`AlignedTable` from sparse, schema-drifting raw
    records: every key observed in at least one period of the window gets a
    value (or the missing marker) for every period, in chronological order.

Layer:
    domain/services

Notes:
    - BASIC mode reads statement-tagged fields and canonicalizes their names.
      All keys are registered up front, then each period is filled.
    - ENHANCED mode reads un-tagged fields keyed by raw name. A key first
      seen at period ``i`` is back-filled with ``i`` missing markers; report
      schemas grow over time as new sections appear.
    - In both modes keys match case-insensitively, so ``us-gaap_Assets`` and
      ``us-gaap_ASSETS`` share one row. The row keeps the first spelling
      seen in the window.
    - Absent, unparsed and malformed periods render as all-missing columns.
    - Within one period, when two raw names normalize to the same key the
      last one wins.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from finstatements.domain.entities.raw_record import PeriodKey, RawRecord
from finstatements.domain.entities.raw_value import RawValue
from finstatements.domain.entities.statement_table import (
    MISSING_MARKER,
    AlignedTable,
    NormalizedKey,
)
from finstatements.domain.enums.statements import AlignmentMode
from finstatements.domain.services.key_canonicalizer import (
    canonicalize_key,
    is_statement_tagged,
    split_flat_key,
)
from finstatements.domain.services.value_codec import render_value

__all__ = ["PeriodAligner", "index_by_period"]

_Identity = tuple[str, str]


def index_by_period(records: Iterable[RawRecord]) -> dict[PeriodKey, RawRecord]:
    """Index records by period.

    When several records claim one period, the one with the latest end date
    is kept (the first of them on ties), matching the primary chosen by
    duplicate-period resolution.
    """
    indexed: dict[PeriodKey, RawRecord] = {}
    for record in records:
        current = indexed.get(record.period)
        if current is None or record.end_date > current.end_date:
            indexed[record.period] = record
    return indexed


def _usable_fields(record: RawRecord | None) -> Mapping[str, RawValue] | None:
    if record is None or not record.is_parsed or record.raw_fields is None:
        return None
    return record.raw_fields


class PeriodAligner:
    """Align raw records over an ordered period window."""

    def align(
        self,
        records: Iterable[RawRecord],
        periods: Sequence[PeriodKey],
        mode: AlignmentMode = AlignmentMode.BASIC,
    ) -> AlignedTable:
        """Align ``records`` over ``periods`` using ``mode``.

        Args:
            records: Raw records of one company; records outside the window are ignored.
            periods: Chronologically ordered window.
            mode: BASIC (statement-tagged fields) or ENHANCED (un-tagged fields).

        Returns:
            The dense aligned table.
        """
        by_period = index_by_period(records)
        if mode is AlignmentMode.ENHANCED:
            return self._align_enhanced(by_period, periods)
        return self._align_basic(by_period, periods)

    @staticmethod
    def _normalize_period(fields: Mapping[str, RawValue]) -> dict[_Identity, tuple[NormalizedKey, str]]:
        normalized: dict[_Identity, tuple[NormalizedKey, str]] = {}
        for name, value in fields.items():
            if not is_statement_tagged(name):
                continue
            key = canonicalize_key(name)
            normalized[key.identity] = (key, render_value(value))
        return normalized

    def _align_basic(
        self,
        by_period: Mapping[PeriodKey, RawRecord],
        periods: Sequence[PeriodKey],
    ) -> AlignedTable:
        keys: dict[_Identity, NormalizedKey] = {}
        columns: dict[_Identity, list[str]] = {}

        # Register every key observed anywhere in the window.
        for period in periods:
            fields = _usable_fields(by_period.get(period))
            if fields is None:
                continue
            for name in fields:
                if not is_statement_tagged(name):
                    continue
                key = canonicalize_key(name)
                if key.identity not in keys:
                    keys[key.identity] = key
                    columns[key.identity] = []

        for period in periods:
            fields = _usable_fields(by_period.get(period))
            if fields is None:
                for column in columns.values():
                    column.append(MISSING_MARKER)
                continue

            normalized = self._normalize_period(fields)
            for identity, column in columns.items():
                entry = normalized.get(identity)
                column.append(entry[1] if entry is not None else MISSING_MARKER)

        return AlignedTable(
            periods=tuple(periods),
            rows={keys[identity]: tuple(column) for identity, column in columns.items()},
        )

    def _align_enhanced(
        self,
        by_period: Mapping[PeriodKey, RawRecord],
        periods: Sequence[PeriodKey],
    ) -> AlignedTable:
        keys: dict[_Identity, NormalizedKey] = {}
        columns: dict[_Identity, list[str]] = {}

        for index, period in enumerate(periods):
            fields = _usable_fields(by_period.get(period)) or {}

            period_values: dict[_Identity, str] = {}
            for name, value in fields.items():
                if is_statement_tagged(name):
                    continue
                key = split_flat_key(name)
                if key.identity not in keys:
                    keys[key.identity] = key
                    columns[key.identity] = [MISSING_MARKER] * index
                period_values[key.identity] = render_value(value)

            for identity, column in columns.items():
                column.append(period_values.get(identity, MISSING_MARKER))

        return AlignedTable(
            periods=tuple(periods),
            rows={keys[identity]: tuple(column) for identity, column in columns.items()},
        )
