# src/finstatements/application/interfaces/run_observer.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Run observer port.

Purpose:
    Let use cases report run outcomes (for metrics) without importing any
    metrics library. The Prometheus implementation lives in
    ``infrastructure/observability/metrics.py``.

Layer:
    application/interfaces
"""

from __future__ import annotations

from typing import Protocol


class StatementRunObserver(Protocol):
    """Receives one notification per normalization run and correction batch."""

    def record_run(self, *, family: str, mode: str, outcome: str, duration_s: float) -> None:
        """Record a finished run.

        Args:
            family: ``"annual"`` or ``"quarterly"``.
            mode: ``"basic"`` or ``"enhanced"``.
            outcome: ``"success"`` or the failing error code (lowercase).
            duration_s: Wall-clock duration in seconds.
        """

    def record_corrections(self, count: int) -> None:
        """Record ``count`` persisted duplicate-period corrections."""
