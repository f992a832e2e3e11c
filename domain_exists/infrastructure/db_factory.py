"""
Connection pool handle for the domain existence service.

Wraps a psycopg `AsyncConnectionPool` and exposes the one operation the
checker needs: run a batch of statements in a single round trip and read the
per-statement results back in submission order. Batches use psycopg pipeline
mode, so every statement is sent before the first result is read.

Pool opening retries transient connection failures using tenacity.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional, Sequence

import psycopg
from psycopg import AsyncConnection, AsyncCursor, pq
from psycopg.conninfo import conninfo_to_dict, make_conninfo
from psycopg_pool import AsyncConnectionPool, PoolTimeout
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from domain_exists.domain.models import ExistenceStatement
from domain_exists.utils.logging import get_logger

log = get_logger(__name__)


def _has_own_result(cursor: AsyncCursor[Any]) -> bool:
    result = cursor.pgresult
    return result is not None and result.status == pq.ExecStatus.TUPLES_OK


class BatchResults:
    """
    Ordered, lazily read results of one pipelined batch.

    Iterating yields one boolean per statement. A failure to read a position
    raises `psycopg.Error` from the iterator instead of yielding a value.
    """

    def __init__(self) -> None:
        self._cursors: List[AsyncCursor[Any]] = []
        self._position = 0
        self._deferred: Optional[psycopg.Error] = None
        self.failed = False

    def _append(self, cursor: AsyncCursor[Any]) -> None:
        self._cursors.append(cursor)

    @property
    def exhausted(self) -> bool:
        return self._position >= len(self._cursors)

    @property
    def consumed(self) -> int:
        return self._position

    def __len__(self) -> int:
        return len(self._cursors)

    def __aiter__(self) -> "BatchResults":
        return self

    async def __anext__(self) -> bool:
        if self.exhausted:
            raise StopAsyncIteration
        cursor = self._cursors[self._position]
        self._position += 1
        try:
            row = await cursor.fetchone()
        except psycopg.Error as exc:
            if not _has_own_result(cursor):
                self.failed = True
                if self._deferred is not None:
                    raise self._deferred from exc
                raise
            # Pipelined fetches also process later results; the error raised
            # here belongs to a later statement, this position is intact.
            self._deferred = exc
            row = await cursor.fetchone()
        if row is None:
            self.failed = True
            raise psycopg.DataError("existence statement returned no row")
        return bool(row[0])

    async def _close(self) -> None:
        for cursor in self._cursors:
            await cursor.close()


class ExistencePool:
    """
    Shared, concurrency-safe handle to the backing PostgreSQL database.

    Connection checkout/return, reconnection and health checks belong to
    psycopg_pool; this class only adds batching and lifecycle helpers.
    """

    def __init__(
        self,
        conninfo: str,
        min_size: int = 1,
        max_size: int = 10,
        statement_timeout_ms: int = 0,
        open_timeout: float = 30.0,
        pool: Optional[AsyncConnectionPool] = None,
    ) -> None:
        self.conninfo = conninfo
        self.min_size = min_size
        self.max_size = max_size
        self.statement_timeout_ms = statement_timeout_ms
        self.open_timeout = open_timeout
        self._pool = pool

    @property
    def is_open(self) -> bool:
        return self._pool is not None and not self._pool.closed

    def _connection_kwargs(self) -> dict:
        kwargs: dict = {"autocommit": True}
        if self.statement_timeout_ms > 0:
            kwargs["options"] = f"-c statement_timeout={self.statement_timeout_ms}"
        return kwargs

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((psycopg.OperationalError, PoolTimeout)),
        reraise=True,
    )
    async def _open_pool(self) -> AsyncConnectionPool:
        """
        Create a pool and wait until its minimum connections are ready.

        Retries up to 3 times with exponential backoff; a pool that fails to
        fill within `open_timeout` is closed by psycopg_pool before retrying.
        """
        pool = AsyncConnectionPool(
            conninfo=self.conninfo,
            min_size=self.min_size,
            max_size=self.max_size,
            kwargs=self._connection_kwargs(),
            open=False,
        )
        await pool.open(wait=True, timeout=self.open_timeout)
        return pool

    async def open(self) -> None:
        """Open the underlying pool (idempotent)."""
        if self.is_open:
            return
        self._pool = await self._open_pool()
        log.info(
            "Connection pool ready",
            extra={"database": mask_conninfo(self.conninfo), "max_size": self.max_size},
        )

    async def close(self) -> None:
        """Close the underlying pool and release every connection."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def lifespan(self, app: Any = None) -> AsyncIterator[None]:
        """FastAPI lifespan: pool open while the application serves."""
        del app
        await self.open()
        try:
            yield
        finally:
            await self.close()

    def _require_pool(self) -> AsyncConnectionPool:
        if self._pool is None:
            raise psycopg.OperationalError("connection pool is not open")
        return self._pool

    async def _queue(
        self, conn: AsyncConnection[Any], statement: ExistenceStatement, param: str
    ) -> AsyncCursor[Any]:
        cursor = conn.cursor()
        await cursor.execute(statement.sql, (param,))
        return cursor

    @asynccontextmanager
    async def execute_batch(
        self, statements: Sequence[ExistenceStatement], param: str
    ) -> AsyncIterator[BatchResults]:
        """
        Run every statement with the same parameter in one round trip.

        Example
        -------
            async with pool.execute_batch(statements, "example.com") as results:
                async for exists in results:
                    if exists:
                        break

        The pipeline and the pooled connection are released when the block
        exits, whether the results were read fully, partially or not at all.
        Errors from positions the caller never read are discarded.
        """
        pool = self._require_pool()
        async with pool.connection() as conn:
            results = BatchResults()
            stopped_early = False
            try:
                async with conn.pipeline():
                    for statement in statements:
                        results._append(await self._queue(conn, statement, param))
                    yield results
                    stopped_early = not (results.exhausted or results.failed)
            except psycopg.Error as exc:
                if not stopped_early:
                    raise
                log.debug(
                    "Discarded error from unread batch positions",
                    extra={
                        "consumed": results.consumed,
                        "batch_size": len(results),
                        "error": str(exc),
                    },
                )
            finally:
                await results._close()


def mask_conninfo(conninfo: str) -> str:
    """Render a connection string with its password hidden, for logs and CLI output."""
    try:
        params = conninfo_to_dict(conninfo)
    except psycopg.ProgrammingError:
        return "<invalid connection string>"
    if params.get("password"):
        params["password"] = "***"
    return make_conninfo(**params)


__all__ = ["BatchResults", "ExistencePool", "mask_conninfo"]
