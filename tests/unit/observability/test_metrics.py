# tests/unit/observability/test_metrics.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT

from __future__ import annotations

import prometheus_client as prom
import pytest
from prometheus_client import CollectorRegistry

from finstatements.infrastructure.observability import metrics


@pytest.fixture
def registry(monkeypatch: pytest.MonkeyPatch) -> CollectorRegistry:
    fresh = CollectorRegistry()
    monkeypatch.setattr(prom, "REGISTRY", fresh)
    return fresh


def test_accessors_are_stable_per_registry(registry: CollectorRegistry) -> None:
    assert metrics.get_statement_runs_total() is metrics.get_statement_runs_total()
    assert metrics.get_statement_run_latency_seconds() is metrics.get_statement_run_latency_seconds()
    assert metrics.get_price_requests_total() is metrics.get_price_requests_total()


def test_observer_records_runs(registry: CollectorRegistry) -> None:
    observer = metrics.PrometheusRunObserver()

    observer.record_run(family="annual", mode="basic", outcome="success", duration_s=0.02)
    observer.record_run(family="annual", mode="basic", outcome="success", duration_s=0.03)
    observer.record_run(family="quarterly", mode="enhanced", outcome="company_not_found", duration_s=0.001)

    labels = {"family": "annual", "mode": "basic", "outcome": "success"}
    assert registry.get_sample_value("finstatements_runs_total", labels) == 2.0
    assert (
        registry.get_sample_value(
            "finstatements_runs_total",
            {"family": "quarterly", "mode": "enhanced", "outcome": "company_not_found"},
        )
        == 1.0
    )
    assert (
        registry.get_sample_value(
            "finstatements_run_latency_seconds_count", {"family": "annual", "mode": "basic"}
        )
        == 2.0
    )


def test_observer_records_corrections(registry: CollectorRegistry) -> None:
    observer = metrics.PrometheusRunObserver()

    observer.record_corrections(2)
    observer.record_corrections(0)

    assert registry.get_sample_value("finstatements_duplicate_corrections_total") == 2.0


def test_registry_swap_creates_fresh_collectors(monkeypatch: pytest.MonkeyPatch) -> None:
    first = CollectorRegistry()
    monkeypatch.setattr(prom, "REGISTRY", first)
    counter_a = metrics.get_duplicate_corrections_total()

    second = CollectorRegistry()
    monkeypatch.setattr(prom, "REGISTRY", second)
    counter_b = metrics.get_duplicate_corrections_total()

    assert counter_a is not counter_b
    counter_b.inc()
    assert second.get_sample_value("finstatements_duplicate_corrections_total") == 1.0
    assert first.get_sample_value("finstatements_duplicate_corrections_total") == 0.0
