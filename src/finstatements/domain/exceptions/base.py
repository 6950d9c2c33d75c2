# src/finstatements/domain/exceptions/base.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Base Domain Exceptions.

Summary:
    Canonical base class for domain/application exceptions so callers at the
    boundary can map them deterministically (client error vs. server fault).

Layer:
    domain/exceptions
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for all domain/application exceptions.

    Attributes:
        code:
            Stable error code suitable for mapping to transport status codes
            and metrics labels.
        details:
            Optional machine-readable diagnostic payload used by adapters and
            logging code.
    """

    code: str = "DOMAIN_ERROR"

    def __init__(self, message: str = "", *, details: dict[str, Any] | None = None) -> None:
        """Initialize a DomainError instance.

        Args:
            message:
                Human-readable error message, safe to surface to clients.
            details:
                Optional structured diagnostic payload for logs or adapters.
        """
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = details or {}

    def __str__(self) -> str:
        return self.message
