# tests/unit/domain/services/test_statement_grouping.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT

from __future__ import annotations

from finstatements.domain.entities.raw_record import PeriodKey
from finstatements.domain.entities.statement_table import AlignedTable, NormalizedKey
from finstatements.domain.services.statement_grouper import group_by_statement
from finstatements.domain.services.statement_orderer import order_statements


def test_group_by_statement_partitions_in_insertion_order() -> None:
    table = AlignedTable(
        periods=(PeriodKey(2023, 0),),
        rows={
            NormalizedKey("Balance Sheet", "Cash"): ("1",),
            NormalizedKey("Income Statement", "Revenue"): ("2",),
            NormalizedKey("balance sheet", "Goodwill"): ("3",),
        },
    )

    grouped = group_by_statement(table)

    assert list(grouped) == ["Balance Sheet", "Income Statement"]
    assert grouped["Balance Sheet"] == {"Cash": ("1",), "Goodwill": ("3",)}
    assert grouped["Income Statement"] == {"Revenue": ("2",)}


def test_operations_statement_is_promoted_first() -> None:
    statements = ["Balance Sheet", "Income Statement", "Statement of Operations", "Cashflow Statement"]
    assert order_statements(statements) == [
        "Statement of Operations",
        "Income Statement",
        "Cashflow Statement",
        "Balance Sheet",
    ]


def test_unknown_statements_follow_in_insertion_order() -> None:
    statements = ["General", "Balance Sheet", "us-gaap", "Income Statement"]
    assert order_statements(statements) == ["Income Statement", "Balance Sheet", "General", "us-gaap"]


def test_each_statement_is_emitted_once() -> None:
    statements = ["Income Statement", "Statement of Operations", "Other Operations Data"]
    ordered = order_statements(statements)
    assert ordered == ["Statement of Operations", "Income Statement", "Other Operations Data"]
    assert len(ordered) == len(set(ordered))


def test_order_statements_with_custom_order() -> None:
    assert order_statements(["A", "B", "C"], desired_order=("C", "A")) == ["C", "A", "B"]
