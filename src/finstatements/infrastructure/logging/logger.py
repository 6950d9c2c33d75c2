# src/finstatements/infrastructure/logging/logger.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Structured JSON logging utilities.

This module exposes an idempotent root configurator and a per-module logger
factory that produce one JSON object per line.

Features:
    * Stable keys: ``ts``, ``level``, ``logger``, ``message``.
    * Automatic enrichment with ``run_id`` and ``company`` via contextvars.
    * Fields passed through ``logger.info(..., extra={...})`` are merged into
      the payload.

Typical usage:
    configure_root_logging()
    log = get_json_logger(__name__)
    with run_context(company="AAPL"):
        log.info("statements.get_tables.start", extra={"mode": "basic"})
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

__all__ = [
    "configure_root_logging",
    "get_json_logger",
    "set_run_context",
    "run_context",
    "get_run_id",
    "get_company",
]

# Per-run correlation context (task-local via contextvars).
_RUN_ID_CTX: ContextVar[str | None] = ContextVar("finstatements_run_id", default=None)
_COMPANY_CTX: ContextVar[str | None] = ContextVar("finstatements_company", default=None)

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


def set_run_context(*, run_id: str | None = None, company: str | None = None) -> None:
    """Set per-run correlation identifiers on the current context.

    Args:
        run_id: Identifier of the current normalization run.
        company: Company name or symbol being processed.

    Notes:
        Additive: passing only one argument leaves the other unchanged.
    """
    if run_id is not None:
        _RUN_ID_CTX.set(run_id)
    if company is not None:
        _COMPANY_CTX.set(company)


@contextmanager
def run_context(*, company: str | None = None, run_id: str | None = None) -> Iterator[str]:
    """Bind a run id (generated when omitted) and company for the block.

    Yields:
        The active run id.
    """
    rid = run_id or uuid.uuid4().hex
    run_token = _RUN_ID_CTX.set(rid)
    company_token = _COMPANY_CTX.set(company)
    try:
        yield rid
    finally:
        _COMPANY_CTX.reset(company_token)
        _RUN_ID_CTX.reset(run_token)


def get_run_id() -> str | None:
    """Return the current run id from contextvars, if any."""
    return _RUN_ID_CTX.get(None)


def get_company() -> str | None:
    """Return the current company from contextvars, if any."""
    return _COMPANY_CTX.get(None)


def _json_default(value: Any) -> str:
    return str(value)


class _JsonFormatter(logging.Formatter):
    """JSON log formatter emitting stable keys and optional extras."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a JSON object.

        Args:
            record: Logging record.

        Returns:
            JSON-encoded log line.
        """
        payload: dict[str, Any] = {
            "ts": datetime.now(tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        rid = getattr(record, "run_id", None) or _RUN_ID_CTX.get(None)
        if rid:
            payload["run_id"] = rid
        company = getattr(record, "company", None) or _COMPANY_CTX.get(None)
        if company:
            payload["company"] = company

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            if exc_type is not None:
                payload["exc_type"] = exc_type.__name__
            if exc_value is not None:
                payload["exc_message"] = str(exc_value)

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in payload:
                continue
            payload[key] = value

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=_json_default)


def configure_root_logging(level: str | int | None = None) -> None:
    """Initialize the root logger with a JSON stream handler (idempotent).

    Args:
        level: Logging level or level name. If ``None``, use env ``LOG_LEVEL`` or ``INFO``.
    """
    root = logging.getLogger()

    env_level = os.getenv("LOG_LEVEL")
    resolved: int | str = (
        level if level is not None else (env_level.upper() if env_level else "INFO")
    )
    root.setLevel(resolved)

    if root.handlers:
        # Already configured; avoid duplicate handlers.
        return

    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter())
    root.addHandler(handler)


def get_json_logger(name: str) -> logging.Logger:
    """Return a module-specific logger backed by the JSON root handler.

    This does *not* implicitly configure the root logger. Call
    :func:`configure_root_logging` once at startup.

    Args:
        name: Logger name, typically ``__name__`` of the caller.

    Returns:
        Configured logger.
    """
    logger = logging.getLogger(name)
    logger.propagate = True
    return logger
