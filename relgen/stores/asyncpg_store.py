"""
Suspending store over an asyncpg connection.

asyncpg is used directly rather than psycopg's async API because it binds
Python lists to Postgres arrays natively, which keeps membership fetches to a
single `= ANY($1)` parameter.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

import asyncpg

from relgen.domain.errors import RuntimeFetchError
from relgen.stores.dialects import ASYNCPG, Dialect
from relgen.utils.logging import get_logger

log = get_logger(__name__)

# Anything that aborts a fetch, on the server or on the wire.
_FETCH_ERRORS: Tuple[Type[BaseException], ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)


class AsyncpgStore:
    backend: str = "postgres"

    def __init__(self, conn: asyncpg.Connection, dialect: Dialect = ASYNCPG) -> None:
        self.conn = conn
        self.dialect = dialect

    async def _query(self, table: str, sql: str, params: Tuple[Any, ...]) -> List[Dict[str, Any]]:
        log.debug(sql, extra={"table": table, "backend": self.backend, "params": len(params)})
        try:
            records = await self.conn.fetch(sql, *params)
        except _FETCH_ERRORS as exc:
            raise RuntimeFetchError(
                f"postgres fetch from '{table}' failed: {exc}", table=table, backend=self.backend
            ) from exc
        return [dict(record) for record in records]

    async def fetch_by_equality(self, table: str, column: str, value: Any) -> List[Dict[str, Any]]:
        return await self._query(table, *self.dialect.equality(table, column, value))

    async def fetch_by_membership(
        self, table: str, column: str, values: Sequence[Any]
    ) -> List[Dict[str, Any]]:
        if not values:
            return []
        return await self._query(table, *self.dialect.membership(table, column, values))

    async def fetch_by_primary_key(
        self, table: str, key: Any, key_column: str = "id"
    ) -> Optional[Dict[str, Any]]:
        rows = await self._query(table, *self.dialect.primary_key(table, key_column, key))
        return rows[0] if rows else None


__all__ = ["AsyncpgStore"]
