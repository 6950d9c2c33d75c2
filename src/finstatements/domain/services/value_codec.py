# src/finstatements/domain/services/value_codec.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Rendering and parsing of aligned cell values.

Purpose:
    Convert decoded raw values into the display strings stored in aligned
    tables, and parse those strings back into decimals where scaling and
    merge validation need numbers.

Layer:
    domain/services

Notes:
    - Pure functions; no logging.
    - Numbers render in plain positional notation (never exponent form).
    - ``parse_decimal`` accepts ``,`` as a thousands separator and rejects
      exponent notation, parenthesised negatives and currency symbols.
    - Magnitudes above ``MAX_MAGNITUDE`` (the 96-bit decimal range report
      stores use) are not numbers here; such cells are displayed verbatim.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Final

from finstatements.domain.entities.raw_value import RawValue
from finstatements.domain.entities.statement_table import MISSING_MARKER
from finstatements.domain.enums.statements import RawValueKind

__all__ = [
    "MAX_MAGNITUDE",
    "render_value",
    "format_plain",
    "parse_decimal",
    "is_missing",
    "format_scaled",
]

_NUMBER_RE: Final[re.Pattern[str]] = re.compile(r"^[+-]?(?:\d[\d,]*)?(?:\.\d*)?$")
_TWO_PLACES: Final[Decimal] = Decimal("0.01")
MAX_MAGNITUDE: Final[Decimal] = Decimal(79228162514264337593543950335)
# Enough digits for MAX_MAGNITUDE plus two decimal places.
_FORMAT_PRECISION: Final[int] = 40


def format_plain(number: Decimal) -> str:
    """Render a decimal without exponent notation."""
    return format(number, "f")


def render_value(value: RawValue | None) -> str:
    """Render a raw value as an aligned-table cell.

    Args:
        value: Decoded raw value, or ``None`` when the key is absent.

    Returns:
        Plain decimal text for numbers, the verbatim text for non-blank
        strings, and the missing marker otherwise.
    """
    if value is None or value.kind is RawValueKind.NULL:
        return MISSING_MARKER
    if value.kind is RawValueKind.NUMBER and value.number is not None:
        return format_plain(value.number)
    if not value.text or not value.text.strip():
        return MISSING_MARKER
    return value.text


def is_missing(cell: str | None) -> bool:
    """Return True for empty cells and the missing marker."""
    return not cell or cell == MISSING_MARKER


def parse_decimal(cell: str | None) -> Decimal | None:
    """Parse a cell into a decimal, or return ``None`` if it is not numeric."""
    if cell is None:
        return None
    text = cell.strip()
    if not text or not any(ch.isdigit() for ch in text):
        return None
    if not _NUMBER_RE.match(text):
        return None
    try:
        number = Decimal(text.replace(",", ""))
    except InvalidOperation:
        return None
    if number.copy_abs() > MAX_MAGNITUDE:
        return None
    return number


def format_scaled(number: Decimal, factor: int) -> str:
    """Divide by ``10**factor`` and format with two decimals, halves away from zero."""
    with localcontext() as ctx:
        ctx.prec = _FORMAT_PRECISION
        scaled = number.scaleb(-factor)
        return format(scaled.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP), "f")
