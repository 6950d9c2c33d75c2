# src/finstatements/domain/entities/statement_table.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Aligned statement tables.

Purpose:
    Value objects flowing through the normalization pipeline after raw
    records have been aligned: normalized keys, the dense aligned table, and
    the per-statement display blocks.

Layer:
    domain/entities

Notes:
    - All entities here are ephemeral and recomputed per request.
    - Value sequences are strings; ``MISSING_MARKER`` is the absent-value
      token used throughout.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field

from finstatements.domain.entities.raw_record import PeriodKey

__all__ = [
    "MISSING_MARKER",
    "NormalizedKey",
    "AlignedTable",
    "MetricRow",
    "StatementBlock",
    "MergeConflict",
]

MISSING_MARKER = "N/A"


@dataclass(frozen=True, slots=True)
class NormalizedKey:
    """(statement type, metric name) pair derived from a raw field name.

    Two keys that differ only by letter case denote the same line item; use
    :attr:`identity` for lookups.
    """

    statement_type: str
    metric_name: str

    @property
    def identity(self) -> tuple[str, str]:
        return (self.statement_type.casefold(), self.metric_name.casefold())

    def flat(self) -> str:
        return f"{self.statement_type}_{self.metric_name}"


@dataclass(frozen=True)
class AlignedTable:
    """Dense key → values table over an ordered period window.

    Attributes:
        periods:
            Ordered period window the values are aligned to.
        rows:
            Mapping in first-seen key order. Every value sequence has exactly
            ``len(periods)`` entries.

    Raises:
        ValueError: If any row breaks the completeness invariant.
    """

    periods: tuple[PeriodKey, ...]
    rows: Mapping[NormalizedKey, tuple[str, ...]]

    def __post_init__(self) -> None:
        """Enforce the alignment completeness invariant."""
        expected = len(self.periods)
        for key, values in self.rows.items():
            if len(values) != expected:
                raise ValueError(
                    f"Aligned row {key.flat()!r} has {len(values)} values; expected {expected}."
                )

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[NormalizedKey]:
        return iter(self.rows)

    def items(self) -> Iterator[tuple[NormalizedKey, tuple[str, ...]]]:
        return iter(self.rows.items())


@dataclass(frozen=True)
class MetricRow:
    """One display row of a statement.

    Attributes:
        display_name: Row label as shown to users.
        values: One string per period in the statement's window.
        is_merged: True when the row collapses more than one variant.
    """

    display_name: str
    values: tuple[str, ...]
    is_merged: bool = False


@dataclass(frozen=True)
class StatementBlock:
    """One statement table ready for display.

    Attributes:
        statement_type: Statement heading.
        rows: Ordered display rows.
        scaling_label: Unit label (e.g. ``"in Millions $"``); empty when unscaled.
        scaling_factor: Power of ten applied to non-exempt values (0, 3, 6 or 9).
    """

    statement_type: str
    rows: Sequence[MetricRow] = field(default_factory=tuple)
    scaling_label: str = ""
    scaling_factor: int = 0


@dataclass(frozen=True)
class MergeConflict:
    """A period in which several variants of one metric all report numbers.

    Produced only by the opt-in merge validation; the default merge keeps
    the first valid value and discards the rest.

    Attributes:
        statement_type: Statement the group belongs to.
        base_name: Shared base name of the merged variants.
        period_index: Index into the statement's period window.
        metric_names: Variant names holding a numeric value for the period.
    """

    statement_type: str
    base_name: str
    period_index: int
    metric_names: tuple[str, ...]
