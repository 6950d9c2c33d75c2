# src/finstatements/domain/interfaces/repositories/companies_repository.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Company lookup interface."""

from __future__ import annotations

from typing import Protocol

from finstatements.domain.entities.company_statements import CompanyRef


class CompaniesRepository(Protocol):
    """Protocol for resolving a company by name or ticker symbol."""

    async def resolve_company(self, name_or_symbol: str) -> CompanyRef | None:
        """Return the company matching ``name_or_symbol``, case-insensitively.

        Exact symbol matches take precedence over name matches. Returns
        ``None`` when nothing matches.
        """
