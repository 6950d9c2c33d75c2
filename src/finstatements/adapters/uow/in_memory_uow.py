# src/finstatements/adapters/uow/in_memory_uow.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""In-memory Unit of Work implementation.

Purpose:
    Provide a concrete implementation of the application-layer UnitOfWork
    protocol over :class:`InMemoryStatementStore`. Each ``async with`` opens a
    session that stages year corrections; ``commit()`` writes them to the
    store, ``rollback()`` or leaving the block without committing discards
    them.

Layer:
    adapters/uow
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import TracebackType
from typing import Any

from finstatements.adapters.repositories.in_memory_repositories import (
    InMemoryCompaniesRepository,
    InMemoryRawRecordsRepository,
    InMemoryStatementStore,
)
from finstatements.application.uow import UnitOfWork
from finstatements.domain.entities.raw_record import YearCorrection
from finstatements.domain.interfaces.repositories.companies_repository import (
    CompaniesRepository,
)
from finstatements.domain.interfaces.repositories.raw_records_repository import (
    RawRecordsRepository,
)

_RepoFactory = Callable[[InMemoryStatementStore, dict[str, YearCorrection]], Any]


class InMemoryUnitOfWork(UnitOfWork):
    """Store-backed UnitOfWork.

    Intended usage:

        async with InMemoryUnitOfWork(store) as uow:
            repo = uow.get_repository(RawRecordsRepository)
            ...
            await uow.commit()
    """

    def __init__(
        self,
        store: InMemoryStatementStore,
        *,
        repo_factories: Mapping[type[Any], _RepoFactory] | None = None,
    ) -> None:
        """Initialize the UnitOfWork.

        Args:
            store: Backing dataset.
            repo_factories: Optional overrides mapping a repository type to a
                factory taking the store and the session's staged corrections.
        """
        self._store = store
        default_factories: dict[type[Any], _RepoFactory] = {
            RawRecordsRepository: lambda s, staged: InMemoryRawRecordsRepository(s, staged),
            CompaniesRepository: lambda s, _staged: InMemoryCompaniesRepository(s),
        }
        self._repo_factories: dict[type[Any], _RepoFactory] = {
            **default_factories,
            **(dict(repo_factories) if repo_factories is not None else {}),
        }
        self._staged: dict[str, YearCorrection] | None = None
        self._repos: dict[type[Any], Any] = {}
        self.commits = 0
        self.rollbacks = 0

    @property
    def store(self) -> InMemoryStatementStore:
        return self._store

    async def __aenter__(self) -> InMemoryUnitOfWork:
        """Open a session.

        Raises:
            RuntimeError: If a session is already active (nested usage).
        """
        if self._staged is not None:
            raise RuntimeError("UnitOfWork is already active; nested usage is not supported.")
        self._staged = {}
        self._repos.clear()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool | None:
        """Close the session, discarding anything not committed."""
        try:
            if exc_type is not None:
                await self.rollback()
        finally:
            self._staged = None
            self._repos.clear()
        return None

    async def commit(self) -> None:
        """Write staged corrections to the store.

        Raises:
            RuntimeError: If called without an active session.
        """
        if self._staged is None:
            raise RuntimeError("Cannot commit: UnitOfWork has no active session.")
        for correction in self._staged.values():
            self._store.set_year(correction.record_id, correction.new_year)
        self._staged.clear()
        self.commits += 1

    async def rollback(self) -> None:
        """Discard staged corrections. No-op without an active session."""
        if self._staged is None:
            return
        self._staged.clear()
        self.rollbacks += 1

    def get_repository(self, repo_type: type[Any]) -> Any:
        """Return the session's repository for ``repo_type``.

        Raises:
            RuntimeError: If called without an active session.
            KeyError: If no factory is registered for ``repo_type``.
        """
        if self._staged is None:
            raise RuntimeError("UnitOfWork has no active session.")
        repo = self._repos.get(repo_type)
        if repo is None:
            factory = self._repo_factories.get(repo_type)
            if factory is None:
                raise KeyError(f"No repository registered for {repo_type!r}")
            repo = self._repos[repo_type] = factory(self._store, self._staged)
        return repo
