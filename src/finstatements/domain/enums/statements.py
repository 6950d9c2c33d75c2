# src/finstatements/domain/enums/statements.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""
Statement and reporting-period enumerations.

Purpose:
    Provide the small vocabulary shared by the normalization pipeline:
    report families (annual vs. quarterly windows), alignment modes, the
    canonical statement-type labels produced by key canonicalization, and
    the raw value tags decoded at the storage boundary.

Layer:
    domain

Notes:
    - Canonical statement labels are display strings, not codes. They are
      what users see as table headings and they are what the orderer matches
      against, so changing a value changes output ordering.
"""

from __future__ import annotations

from enum import Enum


class PeriodFamily(str, Enum):
    """Report family of a period window.

    Annual and quarterly windows are fetched and displayed separately and are
    never interleaved.
    """

    ANNUAL = "annual"
    QUARTERLY = "quarterly"

    @classmethod
    def parse(cls, raw: str | None) -> PeriodFamily:
        """Coerce user input into a family; anything unrecognized is annual."""
        if raw is not None and raw.strip().lower() == cls.QUARTERLY.value:
            return cls.QUARTERLY
        return cls.ANNUAL


class AlignmentMode(str, Enum):
    """Which raw fields feed the aligned table.

    BASIC:
        Statement-tagged (``HTML_...``) fields, canonicalized into
        (statement type, metric) keys.
    ENHANCED:
        Un-tagged (XBRL element) fields, keyed by raw name with back-fill
        for keys that appear late in the window.
    """

    BASIC = "basic"
    ENHANCED = "enhanced"

    @classmethod
    def parse(cls, raw: str | None) -> AlignmentMode:
        """Coerce user input into a mode; anything unrecognized is basic."""
        if raw is not None and raw.strip().lower() == cls.ENHANCED.value:
            return cls.ENHANCED
        return cls.BASIC


class CanonicalStatementType(str, Enum):
    """Canonical statement headings emitted by the key canonicalizer."""

    STATEMENT_OF_OPERATIONS = "Statement of Operations"
    INCOME_STATEMENT = "Income Statement"
    CASHFLOW_STATEMENT = "Cashflow Statement"
    BALANCE_SHEET = "Balance Sheet"
    GENERAL = "General"


class RawValueKind(str, Enum):
    """Tag of a decoded raw field value."""

    NUMBER = "number"
    STRING = "string"
    NULL = "null"
