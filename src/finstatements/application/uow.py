# src/finstatements/application/uow.py
# Copyright (c) Finstatements.
# SPDX-License-Identifier: MIT
"""Transactional session port for statement use cases.

Purpose:
    A session groups the reads of one normalization run with the
    duplicate-period corrections it decides on. Corrections staged inside a
    session are visible to that session's own reads and reach the store only
    when the session commits.

Layer:
    application

Notes:
    - ``async with uow as tx`` opens a session. Leaving the block without
      ``commit()`` drops whatever was staged.
    - ``run_in_uow`` is the usual entry point: it commits when the callback
      returns and rolls back when it raises.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from types import TracebackType
from typing import Any, Protocol, TypeVar, runtime_checkable

logger = logging.getLogger(__name__)

__all__ = ["UnitOfWork", "run_in_uow"]

T = TypeVar("T")


@runtime_checkable
class UnitOfWork(Protocol):
    """Session boundary over the statement store."""

    async def __aenter__(self) -> UnitOfWork: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool | None: ...

    async def commit(self) -> None:
        """Write staged corrections to the store."""
        ...

    async def rollback(self) -> None:
        """Drop staged corrections; the session stays open."""
        ...

    def get_repository(self, repo_type: type[Any]) -> Any:
        """Return the session's repository implementing ``repo_type``.

        ``repo_type`` is a port class such as ``RawRecordsRepository``.
        Unknown ports raise ``KeyError``; calls outside an open session are
        rejected by the implementation.
        """
        ...


async def run_in_uow(uow: UnitOfWork, fn: Callable[[UnitOfWork], Awaitable[T]]) -> T:
    """Run ``fn`` in a fresh session, committing on return and rolling back on error."""
    async with uow as tx:
        try:
            result = await fn(tx)
        except Exception:
            logger.debug("uow.rollback", exc_info=True)
            await tx.rollback()
            raise
        await tx.commit()
        return result
