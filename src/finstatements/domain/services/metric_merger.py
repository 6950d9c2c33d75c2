# src/finstatements/domain/services/metric_merger.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Metric-row merging.

Purpose:
    Report vintages often label one line item with different parenthetical
    qualifiers (``"Revenue (Total)"`` vs ``"Revenue (Net)"``). Rows sharing a
    base name are collapsed into one display row.

Layer:
    domain/services

Notes:
    - First valid value wins per period, scanning group members in their
      original order. Later members' values for that period are discarded;
      values are never combined numerically.
    - The merged row keeps the unstripped name of the group's first member.
    - :func:`find_merge_conflicts` is the stricter one-value-per-period check.
      It only reports; callers opt in to running it.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from finstatements.domain.entities.statement_table import (
    MISSING_MARKER,
    MergeConflict,
    MetricRow,
)
from finstatements.domain.services.value_codec import is_missing, parse_decimal

__all__ = ["base_name", "merge_metric_rows", "find_merge_conflicts"]


def base_name(metric_name: str) -> str:
    """Return the text before the first ``(``, trimmed.

    Names without ``(``, or starting with it, are returned unchanged.
    """
    index = metric_name.find("(")
    if index > 0:
        return metric_name[:index].strip()
    return metric_name


@dataclass
class _Group:
    base: str
    members: list[tuple[str, Sequence[str]]]


def _group_by_base_name(metrics: Mapping[str, Sequence[str]]) -> list[_Group]:
    groups: dict[str, _Group] = {}
    for name, values in metrics.items():
        base = base_name(name)
        group = groups.setdefault(base.casefold(), _Group(base=base, members=[]))
        group.members.append((name, values))
    return list(groups.values())


def merge_metric_rows(
    metrics: Mapping[str, Sequence[str]],
    period_count: int,
) -> list[MetricRow]:
    """Collapse parenthetical variants into one row per base name.

    Args:
        metrics: ``metric_name -> values`` for one statement, in display order.
        period_count: Number of periods in the statement's window.

    Returns:
        One row per base-name group, in first-seen group order, each with
        exactly ``period_count`` values.
    """
    rows: list[MetricRow] = []
    for group in _group_by_base_name(metrics):
        merged: list[str] = []
        for index in range(period_count):
            value = MISSING_MARKER
            for _, values in group.members:
                if index < len(values) and not is_missing(values[index]):
                    value = values[index]
                    break
            merged.append(value)

        rows.append(
            MetricRow(
                display_name=group.members[0][0],
                values=tuple(merged),
                is_merged=len(group.members) > 1,
            )
        )
    return rows


def find_merge_conflicts(
    statement_type: str,
    metrics: Mapping[str, Sequence[str]],
    period_count: int,
) -> list[MergeConflict]:
    """Report periods where more than one variant of a metric holds a number.

    Args:
        statement_type: Statement the metrics belong to (copied into results).
        metrics: ``metric_name -> values`` for one statement.
        period_count: Number of periods in the statement's window.

    Returns:
        One conflict per (group, period) with two or more numeric values.
    """
    conflicts: list[MergeConflict] = []
    for group in _group_by_base_name(metrics):
        if len(group.members) < 2:
            continue
        for index in range(period_count):
            holders = tuple(
                name
                for name, values in group.members
                if index < len(values) and parse_decimal(values[index]) is not None
            )
            if len(holders) > 1:
                conflicts.append(
                    MergeConflict(
                        statement_type=statement_type,
                        base_name=group.base,
                        period_index=index,
                        metric_names=holders,
                    )
                )
    return conflicts
