"""
Warehouse Connection
====================

A single long-lived DuckDB / MotherDuck connection shared by all requests.

The driver does not support concurrent statements on one connection, so every
statement runs under an asyncio lock, in a worker thread. Connection-class
failures drop the handle, reconnect and retry the same (read-only) statement a
bounded number of times.
"""

import asyncio
from typing import Any, Callable

import duckdb
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from nl_gateway.errors import WarehouseConnectionError, WarehouseQueryError

logger = structlog.get_logger(__name__)

_CONNECTION_HINTS = ("closed", "not established", "lost", "reset", "broken pipe")


def is_connection_error(exc: BaseException) -> bool:
    """True for errors that a fresh connection could fix."""
    if isinstance(exc, duckdb.ConnectionException):
        return True
    if isinstance(exc, duckdb.Error):
        message = str(exc).lower()
        return "connection" in message and any(h in message for h in _CONNECTION_HINTS)
    return False


class Warehouse:
    """Serialised, self-healing access to the analytical warehouse."""

    def __init__(
        self,
        database: str = "md:chat_rfb",
        token: str | None = None,
        max_attempts: int = 3,
        backoff: float = 0.2,
        connect: Callable[..., Any] | None = None,
    ) -> None:
        """
        Args:
            database: DuckDB database path or MotherDuck ``md:`` identifier
            token: MotherDuck access token
            max_attempts: Attempts per statement for connection failures
            backoff: Base delay in seconds for exponential backoff
            connect: Connection factory, ``duckdb.connect`` by default
        """
        self.database = database
        self._token = token
        self.max_attempts = max_attempts
        self.backoff = backoff
        self._connect = connect or duckdb.connect
        self._conn = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    @property
    def has_credentials(self) -> bool:
        return bool(self._token) or not self.database.startswith("md:")

    def _open(self):
        config = {"motherduck_token": self._token} if self._token else {}
        logger.info("warehouse_connect", database=self.database)
        return self._connect(self.database, config=config)

    def _drop(self) -> None:
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            conn.close()
        except duckdb.Error as exc:
            logger.debug("warehouse_close_failed", error=str(exc))

    def _execute_sync(self, sql: str) -> tuple[list[str], list[tuple]]:
        if self._conn is None:
            self._conn = self._open()
        cursor = self._conn.execute(sql)
        columns = [d[0] for d in (cursor.description or [])]
        return columns, cursor.fetchall()

    def _before_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "warehouse_reconnect",
            attempt=retry_state.attempt_number,
            max_attempts=self.max_attempts,
            error=str(exc),
        )
        self._drop()

    async def _run(self, sql: str) -> tuple[list[str], list[tuple]]:
        task = asyncio.ensure_future(asyncio.to_thread(self._execute_sync, sql))
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            # The driver thread cannot be interrupted; keep the lock until it ends
            await asyncio.wait({task})
            raise

    async def query(self, sql: str) -> tuple[list[str], list[tuple]]:
        """
        Run one statement and return (column names, raw rows).

        Raises:
            WarehouseConnectionError: connection failures outlasted the retries
            WarehouseQueryError: the warehouse rejected the statement
        """
        async with self._lock:
            try:
                async for attempt in AsyncRetrying(
                    stop=stop_after_attempt(self.max_attempts),
                    wait=wait_exponential(multiplier=self.backoff, max=2),
                    retry=retry_if_exception(is_connection_error),
                    before_sleep=self._before_retry,
                    reraise=True,
                ):
                    with attempt:
                        return await self._run(sql)
            except duckdb.Error as exc:
                if is_connection_error(exc):
                    self._drop()
                    logger.error("warehouse_unavailable", error=str(exc))
                    raise WarehouseConnectionError(
                        f"Warehouse connection failed after {self.max_attempts} attempts"
                    ) from exc
                raise WarehouseQueryError(f"Query failed: {exc}") from exc

    async def ping(self) -> bool:
        try:
            await self.query("SELECT 1")
        except (WarehouseConnectionError, WarehouseQueryError):
            return False
        return True

    async def close(self) -> None:
        async with self._lock:
            self._drop()
