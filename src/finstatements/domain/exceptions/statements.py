# src/finstatements/domain/exceptions/statements.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""
Statement pipeline exceptions.

Purpose:
    Error taxonomy for the normalization pipeline. Resolution-level problems
    (unknown company, empty window) are client errors; anything else that
    escapes the pipeline is wrapped in :class:`StatementNormalizationError`.

Layer:
    domain

Notes:
    - Parsing-level anomalies (malformed raw blobs, unparseable values) are
      never raised; they degrade to missing markers where they occur.
"""

from __future__ import annotations

from finstatements.domain.exceptions.base import DomainError


class CompanyNotFoundError(DomainError):
    """Raised when a company name or symbol cannot be resolved."""

    code = "COMPANY_NOT_FOUND"


class NoStatementDataError(DomainError):
    """Raised when a resolved company has no parsed records in the window."""

    code = "NO_STATEMENT_DATA"


class RecordMappingError(DomainError):
    """Raised when a stored row cannot be mapped into a valid raw record."""

    code = "RECORD_MAPPING_ERROR"


class StatementNormalizationError(DomainError):
    """Raised when an unexpected fault aborts a normalization run."""

    code = "NORMALIZATION_FAILED"


class PriceUnavailableError(DomainError):
    """Raised by price transports when a live price cannot be obtained."""

    code = "PRICE_UNAVAILABLE"
