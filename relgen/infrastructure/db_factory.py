"""
Connection factory used by the CLI `fetch` command.

Compiled accessors never open connections: callers hand them a store wrapping
a connection they own. This module exists so the CLI can be that caller. It
opens one dedicated connection per command, retries transient connect failures
with tenacity, and closes the connection when the command finishes.
"""

from __future__ import annotations

import asyncio
import sqlite3
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncGenerator, Generator, Optional

import asyncpg
import psycopg
from tenacity import AsyncRetrying, Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from relgen.config import get_settings
from relgen.domain.errors import ConfigurationError
from relgen.domain.models import Backend
from relgen.stores.asyncpg_store import AsyncpgStore
from relgen.stores.base import AsyncRelationStore, RelationStore
from relgen.stores.sql import SqlStore
from relgen.stores.threaded import ThreadedAsyncStore
from relgen.utils.logging import get_logger

log = get_logger(__name__)

_TRANSIENT_SYNC = (psycopg.OperationalError, psycopg.InterfaceError, sqlite3.OperationalError)
_TRANSIENT_ASYNC = (OSError, ConnectionError, asyncpg.CannotConnectNowError)


def _attempts(attempts: Optional[int]) -> int:
    return attempts or get_settings().db_connect_attempts


def open_connection(backend: Backend | str, dsn: str, attempts: Optional[int] = None) -> Any:
    """
    Open a dedicated DB-API connection, retrying transient failures.

    Retries with exponential backoff up to `attempts` times (default from
    settings), then re-raises the last error.

    Raises
    ------
    ConfigurationError
        For backends without a bundled driver (mysql).
    """
    backend = Backend(backend)
    if backend is Backend.MYSQL:
        raise ConfigurationError(
            "No MySQL driver is bundled; wrap your own DB-API connection in SqlStore.",
            field="backend",
        )

    for attempt in Retrying(
        stop=stop_after_attempt(_attempts(attempts)),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(_TRANSIENT_SYNC),
        reraise=True,
    ):
        with attempt:
            log.debug(
                f"[CONNECT] {backend.value} attempt {attempt.retry_state.attempt_number}",
                extra={"backend": backend.value},
            )
            if backend is Backend.POSTGRES:
                return psycopg.connect(dsn, autocommit=True)
            # asyncio.to_thread may run fetches on any worker thread.
            return sqlite3.connect(dsn, check_same_thread=False)
    raise AssertionError("unreachable")  # pragma: no cover


async def open_async_connection(dsn: str, attempts: Optional[int] = None) -> asyncpg.Connection:
    """Open a dedicated asyncpg connection, retrying transient failures."""
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(_attempts(attempts)),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(_TRANSIENT_ASYNC),
        reraise=True,
    ):
        with attempt:
            return await asyncpg.connect(dsn)
    raise AssertionError("unreachable")  # pragma: no cover


@contextmanager
def sync_store(backend: Backend | str, dsn: str) -> Generator[RelationStore, None, None]:
    """
    Yield a blocking store over a fresh connection, closed on exit.

    Example
    -------
        with sync_store("sqlite", "app.db") as store:
            user.get_posts(store)
    """
    conn = open_connection(backend, dsn)
    try:
        yield SqlStore(conn, backend)
    finally:
        conn.close()


@asynccontextmanager
async def async_store(backend: Backend | str, dsn: str) -> AsyncGenerator[AsyncRelationStore, None]:
    """
    Yield a suspending store: asyncpg for postgres, a thread-offloaded
    blocking store otherwise.
    """
    backend = Backend(backend)
    if backend is Backend.POSTGRES:
        conn = await open_async_connection(dsn)
        try:
            yield AsyncpgStore(conn)
        finally:
            await conn.close()
        return

    # Connect, retry backoff and close all block; keep them off the event loop.
    conn = await asyncio.to_thread(open_connection, backend, dsn)
    try:
        yield ThreadedAsyncStore(SqlStore(conn, backend))
    finally:
        await asyncio.to_thread(conn.close)


__all__ = [
    "open_connection",
    "open_async_connection",
    "sync_store",
    "async_store",
]
