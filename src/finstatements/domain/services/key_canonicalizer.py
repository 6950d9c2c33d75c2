# src/finstatements/domain/services/key_canonicalizer.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Raw field name canonicalization.

Purpose:
    Turn one raw report field name such as
    ``HTML_AnnualReport_ConsolidatedBalanceSheets_TotalAssets`` into a
    :class:`NormalizedKey` (``("Balance Sheet", "TotalAssets")``). Different
    report vintages spell statement headings differently; canonicalization is
    what lets one metric line up across periods.

Layer:
    domain/services

Notes:
    - Pure and deterministic; results are memoized.
    - Never raises: irregular names degrade to the ``"General"`` statement.
    - Only statement-tagged names (``HTML_`` prefix) are eligible. Everything
      else belongs to the enhanced (XBRL) alignment path.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Final

from finstatements.domain.entities.statement_table import NormalizedKey
from finstatements.domain.enums.statements import CanonicalStatementType

__all__ = [
    "STATEMENT_TAG_PREFIX",
    "KEY_DELIMITER",
    "is_statement_tagged",
    "canonicalize_statement_type",
    "canonicalize_key",
    "split_flat_key",
]

STATEMENT_TAG_PREFIX: Final[str] = "HTML_"
KEY_DELIMITER: Final[str] = "_"

_GENERAL: Final[str] = CanonicalStatementType.GENERAL.value

_REPORT_KEY_RE: Final[re.Pattern[str]] = re.compile(
    r"^(?:HTML_)?(?:AnnualReport|Q\dReport)_(?P<statement>.*?)_(?P<metric>.+)$",
    re.IGNORECASE,
)
_CAMEL_BOUNDARY_RE: Final[re.Pattern[str]] = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_PARENTHETICAL_RE: Final[re.Pattern[str]] = re.compile(r"\s*\(.*?\)\s*")
_STOP_WORDS: Final[tuple[str, ...]] = ("consolidated", "condensed", "unaudited", "the")
_STOP_WORD_RES: Final[tuple[re.Pattern[str], ...]] = tuple(
    re.compile(rf"\b{re.escape(word)}\b") for word in _STOP_WORDS
)
_WHITESPACE_RE: Final[re.Pattern[str]] = re.compile(r"\s+")
_STATEMENT_OF_RE: Final[re.Pattern[str]] = re.compile(r"^statements?of(?=.)")

# Keys are compared lower-cased with spaces removed and a leading
# "statement(s) of" dropped.
_STATEMENT_TYPE_LOOKUP: Final[dict[str, str]] = {
    "operations": CanonicalStatementType.STATEMENT_OF_OPERATIONS.value,
    "cashflows": CanonicalStatementType.CASHFLOW_STATEMENT.value,
    "cashflow": CanonicalStatementType.CASHFLOW_STATEMENT.value,
    "balancesheets": CanonicalStatementType.BALANCE_SHEET.value,
    "balancesheet": CanonicalStatementType.BALANCE_SHEET.value,
    "comprehensiveincome": CanonicalStatementType.INCOME_STATEMENT.value,
    "income": CanonicalStatementType.INCOME_STATEMENT.value,
    "incomestatement": CanonicalStatementType.INCOME_STATEMENT.value,
    "incomestatements": CanonicalStatementType.INCOME_STATEMENT.value,
}


def is_statement_tagged(raw_name: str) -> bool:
    """Return True when ``raw_name`` carries the statement-tag prefix."""
    return raw_name[: len(STATEMENT_TAG_PREFIX)].upper() == STATEMENT_TAG_PREFIX


def _lookup_key(titled: str) -> str:
    compact = titled.replace(" ", "").lower()
    return _STATEMENT_OF_RE.sub("", compact)


@lru_cache(maxsize=4096)
def canonicalize_statement_type(raw_statement_type: str) -> str:
    """Map free-form statement heading text to a canonical statement type.

    Steps: split camel-case words, lower-case, drop parenthetical qualifiers,
    drop stop words, collapse whitespace, title-case, then look the result up
    in a fixed table.

    Args:
        raw_statement_type: Heading text, e.g.
            ``"Condensed Consolidated Statements of Operations (Unaudited)"``.

    Returns:
        A :class:`CanonicalStatementType` value; ``"General"`` when nothing
        matches.
    """
    if not raw_statement_type or not raw_statement_type.strip():
        return _GENERAL

    text = _CAMEL_BOUNDARY_RE.sub(" ", raw_statement_type.strip()).lower()
    text = _PARENTHETICAL_RE.sub(" ", text)
    for pattern in _STOP_WORD_RES:
        text = pattern.sub("", text)
    titled = _WHITESPACE_RE.sub(" ", text).strip().title()

    return _STATEMENT_TYPE_LOOKUP.get(_lookup_key(titled), _GENERAL)


def _fallback_key(raw_name: str) -> NormalizedKey:
    parts = raw_name.split(KEY_DELIMITER)
    if len(parts) >= 4:
        statement_type = canonicalize_statement_type(parts[2].strip())
        metric_name = KEY_DELIMITER.join(parts[3:]).strip()
        return NormalizedKey(statement_type, metric_name)
    return NormalizedKey(_GENERAL, raw_name.strip())


@lru_cache(maxsize=16384)
def canonicalize_key(raw_name: str) -> NormalizedKey:
    """Parse a statement-tagged raw field name into a normalized key.

    Names matching ``[HTML_]<AnnualReport|QnReport>_<statement>_<metric>``
    (case-insensitive) are split on the pattern; anything else falls back to
    a positional split on ``_`` where segment 3 is the statement heading and
    the rest is the metric, or to ``"General"`` with the whole name.

    Args:
        raw_name: Raw field name from a report blob.

    Returns:
        The normalized key. Never raises.
    """
    match = _REPORT_KEY_RE.match(raw_name)
    if match is None:
        return _fallback_key(raw_name)

    statement_type = canonicalize_statement_type(match.group("statement").strip())
    return NormalizedKey(statement_type, match.group("metric").strip())


def split_flat_key(flat_key: str) -> NormalizedKey:
    """Split an un-tagged flat key on its first delimiter.

    ``"us-gaap_Revenues"`` becomes ``("us-gaap", "Revenues")``; keys with no
    delimiter land in ``"General"``.
    """
    statement_type, sep, metric_name = flat_key.partition(KEY_DELIMITER)
    if not sep or not statement_type.strip() or not metric_name.strip():
        return NormalizedKey(_GENERAL, flat_key.strip())
    return NormalizedKey(statement_type.strip(), metric_name.strip())
