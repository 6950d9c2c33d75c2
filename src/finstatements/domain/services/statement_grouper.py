# src/finstatements/domain/services/statement_grouper.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Partition an aligned table by statement type."""

from __future__ import annotations

from finstatements.domain.entities.statement_table import AlignedTable

__all__ = ["GroupedStatements", "group_by_statement"]

GroupedStatements = dict[str, dict[str, tuple[str, ...]]]


def group_by_statement(table: AlignedTable) -> GroupedStatements:
    """Split ``table`` into ``statement_type -> (metric_name -> values)``.

    Statement and metric names are matched case-insensitively; the first
    spelling seen is kept. Insertion order follows the table. Values are
    passed through untouched.
    """
    grouped: GroupedStatements = {}
    statement_names: dict[str, str] = {}
    metric_names: dict[tuple[str, str], str] = {}

    for key, values in table.items():
        statement = statement_names.setdefault(key.statement_type.casefold(), key.statement_type)
        metrics = grouped.setdefault(statement, {})
        metric = metric_names.setdefault(
            (statement.casefold(), key.metric_name.casefold()),
            key.metric_name,
        )
        metrics[metric] = values

    return grouped
