# src/finstatements/domain/services/scaling_engine.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Per-statement magnitude scaling.

Purpose:
    Pick one power-of-ten divisor per statement so large monetary figures
    read as ``1.50`` "in Billions $" instead of ``1500000000``. Share counts
    and per-share figures are exempt: they are neither used to choose the
    divisor nor divided by it.

Layer:
    domain/services

Notes:
    - The divisor is chosen from the largest absolute numeric value among
      non-exempt rows across all periods.
    - Every non-exempt numeric value is re-rendered with two decimals, also
      when the factor is 0. Exempt and non-numeric cells are returned as-is.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Final

from finstatements.domain.services.value_codec import format_scaled, parse_decimal

__all__ = [
    "STATIC_EXEMPT_COLUMNS",
    "EXEMPT_KEYWORDS",
    "ScalingResult",
    "ScalingEngine",
    "scaling_label",
]

STATIC_EXEMPT_COLUMNS: Final[frozenset[str]] = frozenset(
    name.casefold()
    for name in (
        "DividendsDeclared",
        "CommonStockIssued",
        "DilutedInShares",
        "BasicInShares",
        "SharesUsedInComputingEarningsPerShareDiluted",
        "SharesUsedInComputingEarningsPerShareBasic",
    )
)
EXEMPT_KEYWORDS: Final[tuple[str, ...]] = (
    "per share",
    "earnings per share",
    "eps",
    "shares outstanding",
    "diluted",
)

# (threshold, factor, label), checked largest first.
_THRESHOLDS: Final[tuple[tuple[Decimal, int, str], ...]] = (
    (Decimal(1_000_000_000), 9, "in Billions $"),
    (Decimal(1_000_000), 6, "in Millions $"),
    (Decimal(1_000), 3, "in Thousands $"),
)


def scaling_label(factor: int) -> str:
    """Return the unit label for ``factor``; empty for 0 or unknown factors."""
    for _, candidate, label in _THRESHOLDS:
        if candidate == factor:
            return label
    return ""


@dataclass(frozen=True)
class ScalingResult:
    """Outcome of scaling one statement.

    Attributes:
        factor: Power of ten the non-exempt values were divided by.
        label: Unit label matching ``factor``.
        metrics: Scaled rows, same keys and order as the input.
    """

    factor: int
    label: str
    metrics: dict[str, tuple[str, ...]]


class ScalingEngine:
    """Choose and apply a scaling factor for one statement."""

    def __init__(
        self,
        *,
        static_exempt: Iterable[str] | None = None,
        exempt_keywords: Sequence[str] = EXEMPT_KEYWORDS,
    ) -> None:
        self._static_exempt = (
            STATIC_EXEMPT_COLUMNS
            if static_exempt is None
            else frozenset(name.casefold() for name in static_exempt)
        )
        self._keywords = tuple(k.casefold() for k in exempt_keywords)

    def is_exempt(self, metric_name: str) -> bool:
        """True for share-count and per-share style metrics."""
        folded = metric_name.casefold()
        if folded in self._static_exempt:
            return True
        return any(keyword in folded for keyword in self._keywords)

    def compute_factor(self, metrics: Mapping[str, Sequence[str]]) -> int:
        """Return 9, 6, 3 or 0 from the largest absolute non-exempt value."""
        largest: Decimal | None = None
        for name, values in metrics.items():
            if self.is_exempt(name):
                continue
            for cell in values:
                number = parse_decimal(cell)
                if number is None:
                    continue
                magnitude = abs(number)
                if largest is None or magnitude > largest:
                    largest = magnitude

        if largest is None:
            return 0
        for threshold, factor, _ in _THRESHOLDS:
            if largest >= threshold:
                return factor
        return 0

    def scale(self, metrics: Mapping[str, Sequence[str]]) -> ScalingResult:
        """Scale every non-exempt numeric cell of a statement.

        Args:
            metrics: ``metric_name -> values`` for one statement.

        Returns:
            The chosen factor, its label and the re-rendered rows.
        """
        factor = self.compute_factor(metrics)
        scaled: dict[str, tuple[str, ...]] = {}
        for name, values in metrics.items():
            if self.is_exempt(name):
                scaled[name] = tuple(values)
                continue
            scaled[name] = tuple(self._scale_cell(cell, factor) for cell in values)
        return ScalingResult(factor=factor, label=scaling_label(factor), metrics=scaled)

    @staticmethod
    def _scale_cell(cell: str, factor: int) -> str:
        number = parse_decimal(cell)
        if number is None:
            return cell
        return format_scaled(number, factor)
