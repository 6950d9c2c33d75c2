# src/finstatements/domain/services/statement_orderer.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Statement display ordering.

Purpose:
    Put statements into the order readers expect: operations first, then
    income, cash flow and balance sheet, then everything else in the order
    it was first seen.

Layer:
    domain/services

Notes:
    - Matching is case-insensitive equality or substring containment, so
      ``"Cashflow"`` matches ``"Cashflow Statement"``.
    - The first statement whose name contains ``"operations"`` takes the
      leading slot. With no such statement the placeholder matches nothing
      unless a statement is literally named after it.
    - Each statement is emitted once.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Final

__all__ = ["OPERATIONS_PLACEHOLDER", "DESIRED_ORDER", "order_statements"]

OPERATIONS_PLACEHOLDER: Final[str] = "Statements Of Operations"
DESIRED_ORDER: Final[tuple[str, ...]] = (
    OPERATIONS_PLACEHOLDER,
    "Income Statement",
    "Cashflow",
    "Balance Sheet",
)
_OPERATIONS_TOKEN: Final[str] = "operations"


def _matches(statement: str, desired: str) -> bool:
    folded = statement.casefold()
    target = desired.casefold()
    return folded == target or target in folded


def _operations_statement(statements: Sequence[str]) -> str | None:
    for name in statements:
        if name.casefold() == OPERATIONS_PLACEHOLDER.casefold() or _OPERATIONS_TOKEN in name.casefold():
            return name
    return None


def order_statements(
    statements: Sequence[str],
    desired_order: Sequence[str] = DESIRED_ORDER,
) -> list[str]:
    """Return ``statements`` in display order.

    Args:
        statements: Statement names in insertion (first-seen) order.
        desired_order: Preferred order; the operations placeholder entry is
            replaced by the actual operations statement when one exists.

    Returns:
        Every input statement exactly once: desired entries first (skipping
        entries with no match), then the rest in insertion order.
    """
    order = list(desired_order)
    operations = _operations_statement(statements)
    if operations is not None:
        if OPERATIONS_PLACEHOLDER in order:
            order.remove(OPERATIONS_PLACEHOLDER)
        order.insert(0, operations)

    ordered: list[str] = []
    emitted: set[str] = set()
    for desired in order:
        match = next(
            (s for s in statements if s not in emitted and _matches(s, desired)),
            None,
        )
        if match is not None:
            ordered.append(match)
            emitted.add(match)

    ordered.extend(s for s in statements if s not in emitted)
    return ordered
