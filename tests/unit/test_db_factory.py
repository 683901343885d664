from __future__ import annotations

import asyncio
import sqlite3

import pytest

from relgen.domain.errors import ConfigurationError
from relgen.infrastructure.db_factory import async_store, open_connection, sync_store
from relgen.stores.sql import SqlStore
from relgen.stores.threaded import ThreadedAsyncStore

TICK_SECONDS = 0.02
# One retry backoff is at least 1s, so a free loop ticks far more than this.
MIN_TICKS_DURING_RETRY = 10


async def _tick(ticks: list) -> None:
    while True:
        ticks.append(asyncio.get_running_loop().time())
        await asyncio.sleep(TICK_SECONDS)


@pytest.mark.asyncio
async def test_async_store_connect_retries_do_not_block_loop(tmp_path, override_settings):
    override_settings(DB_CONNECT_ATTEMPTS="2")
    dsn = str(tmp_path / "missing_dir" / "blog.db")
    ticks: list = []
    ticker = asyncio.create_task(_tick(ticks))
    await asyncio.sleep(0)
    started = len(ticks)

    try:
        with pytest.raises(sqlite3.OperationalError):
            async with async_store("sqlite", dsn):
                pass
    finally:
        ticker.cancel()

    assert len(ticks) - started >= MIN_TICKS_DURING_RETRY


@pytest.mark.asyncio
async def test_async_store_sqlite_fetches(tmp_path, sqlite_conn):
    path = tmp_path / "blog.db"
    target = sqlite3.connect(path)
    sqlite_conn.backup(target)
    target.close()

    async with async_store("sqlite", str(path)) as store:
        assert isinstance(store, ThreadedAsyncStore)
        user = await store.fetch_by_primary_key("users", 2)

    assert user == {"id": 2, "name": "Bob"}


def test_sync_store_yields_sql_store(tmp_path):
    with sync_store("sqlite", str(tmp_path / "empty.db")) as store:
        assert isinstance(store, SqlStore)
        assert store.backend == "sqlite"


def test_open_connection_rejects_mysql():
    with pytest.raises(ConfigurationError):
        open_connection("mysql", "mysql://localhost/db")
