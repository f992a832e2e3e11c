"""
Batch existence checker.

Fans one lookup key out to every configured existence statement, reads the
results in configuration order and stops at the first match or the first
failure. Exactly one outcome is produced per call, and the batch is always
released before the outcome is returned.
"""

from __future__ import annotations

import asyncio
from contextlib import AbstractAsyncContextManager
from typing import AsyncIterator, Protocol, Sequence, Tuple, runtime_checkable

import psycopg

from domain_exists.domain.models import BatchOutcome, ExistenceStatement


@runtime_checkable
class BatchExecutor(Protocol):
    """
    Anything that can run a batch of statements and stream ordered results.

    `ExistencePool` is the production implementation.
    """

    def execute_batch(
        self, statements: Sequence[ExistenceStatement], param: str
    ) -> AbstractAsyncContextManager[AsyncIterator[bool]]:
        ...


class ExistenceChecker:
    """
    Evaluate the pre-built statements for one lookup key.

    Parameters
    ----------
    statements : Sequence[ExistenceStatement]
        Statements in configuration order. Held read-only for the lifetime of
        the checker.
    executor : BatchExecutor
        Pool handle the batches run against.
    """

    def __init__(self, statements: Sequence[ExistenceStatement], executor: BatchExecutor) -> None:
        self._statements: Tuple[ExistenceStatement, ...] = tuple(statements)
        self._executor = executor

    @property
    def statements(self) -> Tuple[ExistenceStatement, ...]:
        return self._statements

    async def _first_match(self, key: str) -> bool:
        async with self._executor.execute_batch(self._statements, key) as results:
            async for exists in results:
                if exists:
                    return True
        return False

    async def check(self, key: str) -> BatchOutcome:
        """
        Return `found`, `not_found` or `execution_error` for a normalized key.

        Database and transport failures never escape: they become an
        `execution_error` outcome carrying the driver's message. Cancellation
        is reported the same way once the batch has been released.
        """
        try:
            found = await self._first_match(key)
        except (psycopg.Error, OSError) as exc:
            return BatchOutcome.execution_error(f"{type(exc).__name__}: {exc}")
        except asyncio.CancelledError:
            return BatchOutcome.execution_error("batch execution cancelled")

        return BatchOutcome.found() if found else BatchOutcome.not_found()


__all__ = ["BatchExecutor", "ExistenceChecker"]
