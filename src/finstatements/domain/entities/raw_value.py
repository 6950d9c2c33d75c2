# src/finstatements/domain/entities/raw_value.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Raw field value (tagged variant).

Purpose:
    Represent one scalar from a report's raw key/value blob as an explicit
    ``{NUMBER, STRING, NULL}`` variant. Values are decoded once at the storage
    boundary so the pipeline never compares dynamically-typed objects.

Layer:
    domain/entities

Notes:
    - Numbers are held as :class:`~decimal.Decimal`; the JSON decoder used by
      adapters should pass ``parse_float=Decimal`` to avoid float drift.
    - Booleans become strings (``"True"``/``"False"``); containers and
      non-finite numbers become NULL.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from finstatements.domain.enums.statements import RawValueKind

__all__ = ["RawValue"]


@dataclass(frozen=True, slots=True)
class RawValue:
    """Decoded raw scalar.

    Attributes:
        kind:
            Variant tag.
        number:
            Decimal payload when ``kind`` is NUMBER, otherwise ``None``.
        text:
            String payload when ``kind`` is STRING, otherwise ``None``.
    """

    kind: RawValueKind
    number: Decimal | None = None
    text: str | None = None

    def __post_init__(self) -> None:
        """Enforce that exactly the payload matching ``kind`` is populated."""
        if self.kind is RawValueKind.NUMBER and (self.number is None or self.text is not None):
            raise ValueError("NUMBER raw values carry a decimal payload only.")
        if self.kind is RawValueKind.STRING and (self.text is None or self.number is not None):
            raise ValueError("STRING raw values carry a text payload only.")
        if self.kind is RawValueKind.NULL and (self.text is not None or self.number is not None):
            raise ValueError("NULL raw values carry no payload.")

    @classmethod
    def of_number(cls, value: Decimal) -> RawValue:
        return cls(kind=RawValueKind.NUMBER, number=value)

    @classmethod
    def of_string(cls, value: str) -> RawValue:
        return cls(kind=RawValueKind.STRING, text=value)

    @classmethod
    def null(cls) -> RawValue:
        return cls(kind=RawValueKind.NULL)

    @classmethod
    def from_json(cls, obj: Any) -> RawValue:
        """Decode a JSON-loaded scalar into a raw value.

        Args:
            obj: Value produced by ``json.loads`` for one blob entry.

        Returns:
            The tagged raw value. Never raises for unexpected input types.
        """
        if obj is None:
            return cls.null()
        # bool is a subclass of int; handle it first.
        if isinstance(obj, bool):
            return cls.of_string("True" if obj else "False")
        if isinstance(obj, (int, float, Decimal)):
            try:
                number = obj if isinstance(obj, Decimal) else Decimal(str(obj))
            except (InvalidOperation, ValueError):
                return cls.null()
            if not number.is_finite():
                return cls.null()
            return cls.of_number(number)
        if isinstance(obj, str):
            return cls.of_string(obj)
        return cls.null()

    @property
    def is_null(self) -> bool:
        return self.kind is RawValueKind.NULL
