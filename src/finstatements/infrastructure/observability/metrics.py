# src/finstatements/infrastructure/observability/metrics.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Prometheus metrics utilities (registry-aware, hot-reload safe).

Accessor functions return collectors bound to the **current**
``prometheus_client.REGISTRY``:
    - Safe under tests that swap the default registry.
    - No duplicate-registration errors.
    - Cache automatically resets when the active registry changes.

:class:`PrometheusRunObserver` implements the application's run-observer
port on top of these accessors.

Example:
    get_statement_runs_total().labels(family="annual", mode="basic", outcome="success").inc()
"""

from __future__ import annotations

import logging
import threading
from contextlib import suppress
from typing import Final

import prometheus_client as prom
from prometheus_client import Counter, Histogram

__all__ = [
    "get_statement_runs_total",
    "get_statement_run_latency_seconds",
    "get_duplicate_corrections_total",
    "get_price_requests_total",
    "PrometheusRunObserver",
]

_log = logging.getLogger(__name__)

# Normalization runs are CPU-bound and short; storage fetches dominate.
_BUCKETS: Final[tuple[float, ...]] = (
    0.005,
    0.010,
    0.025,
    0.050,
    0.100,
    0.250,
    0.500,
    1.000,
    2.500,
    5.000,
)

_registry_id: int | None = None
_hist_cache: dict[str, Histogram] = {}
_counter_cache: dict[str, Counter] = {}
_lock = threading.RLock()


def _ensure_registry() -> None:
    """Reset caches if the active registry changed."""
    global _registry_id
    with _lock:
        rid = id(prom.REGISTRY)
        if _registry_id != rid:
            _hist_cache.clear()
            _counter_cache.clear()
            _registry_id = rid


def _lookup_existing(name: str) -> object | None:
    """Return a collector already registered under ``name``, if any."""
    with _lock, suppress(Exception):
        mapping = getattr(prom.REGISTRY, "_names_to_collectors", None)
        if isinstance(mapping, dict):
            return mapping.get(name)
    return None


def _get_or_create_hist(
    name: str,
    help_text: str,
    *,
    labelnames: tuple[str, ...] = (),
) -> Histogram:
    """Get or create a registry-bound ``Histogram`` with stable identity.

    1. Return from module cache if present for the active registry.
    2. If the registry already has a collector by this name, reuse it.
    3. Otherwise register a new collector on the active registry.
    """
    _ensure_registry()
    with _lock:
        cached = _hist_cache.get(name)
        if cached is not None:
            return cached

        existing = _lookup_existing(name)
        if isinstance(existing, Histogram):
            _hist_cache[name] = existing
            return existing

        try:
            h = Histogram(name, help_text, labelnames, buckets=_BUCKETS, registry=prom.REGISTRY)
        except ValueError:
            _log.exception("Failed to register Prometheus histogram %s", name)
            raise
        _hist_cache[name] = h
        return h


def _get_or_create_counter(
    name: str,
    help_text: str,
    *,
    labelnames: tuple[str, ...] = (),
) -> Counter:
    """Get or create a registry-bound ``Counter`` with stable identity.

    The registry indexes counters by both ``name`` and ``name_total``; the
    lookup checks the bare name the collector was created with.
    """
    _ensure_registry()
    with _lock:
        cached = _counter_cache.get(name)
        if cached is not None:
            return cached

        existing = _lookup_existing(name)
        if isinstance(existing, Counter):
            _counter_cache[name] = existing
            return existing

        try:
            c = Counter(name, help_text, labelnames, registry=prom.REGISTRY)
        except ValueError:
            _log.exception("Failed to register Prometheus counter %s", name)
            raise
        _counter_cache[name] = c
        return c


def get_statement_runs_total() -> Counter:
    """Counter of normalization runs by family, mode and outcome."""
    return _get_or_create_counter(
        "finstatements_runs",
        "Statement normalization runs.",
        labelnames=("family", "mode", "outcome"),
    )


def get_statement_run_latency_seconds() -> Histogram:
    """Histogram of end-to-end normalization run latency."""
    return _get_or_create_hist(
        "finstatements_run_latency_seconds",
        "Statement normalization run latency (seconds).",
        labelnames=("family", "mode"),
    )


def get_duplicate_corrections_total() -> Counter:
    """Counter of persisted duplicate-period year corrections."""
    return _get_or_create_counter(
        "finstatements_duplicate_corrections",
        "Duplicate-period year corrections persisted.",
    )


class PrometheusRunObserver:
    """Run observer that records into the Prometheus accessors above."""

    def record_run(self, *, family: str, mode: str, outcome: str, duration_s: float) -> None:
        get_statement_runs_total().labels(family=family, mode=mode, outcome=outcome).inc()
        get_statement_run_latency_seconds().labels(family=family, mode=mode).observe(duration_s)

    def record_corrections(self, count: int) -> None:
        if count > 0:
            get_duplicate_corrections_total().inc(count)


def get_price_requests_total() -> Counter:
    """Counter of latest-price lookups by outcome."""
    return _get_or_create_counter(
        "finstatements_price_requests",
        "Latest-price lookups.",
        labelnames=("outcome",),
    )
