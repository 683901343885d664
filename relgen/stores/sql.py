"""
Blocking store over any DB-API 2.0 connection (psycopg, sqlite3, MySQL drivers).

The caller owns the connection; this adapter never opens, commits or closes
it. Driver errors are re-raised as ``RuntimeFetchError`` chained from the
original exception.
"""

from __future__ import annotations

import sqlite3
from contextlib import closing
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

import psycopg

from relgen.domain.errors import RuntimeFetchError
from relgen.domain.models import Backend
from relgen.stores.base import AbstractRelationStore
from relgen.stores.dialects import Dialect, dialect_for
from relgen.utils.logging import get_logger

log = get_logger(__name__)

_DRIVER_ERRORS: Dict[Backend, Tuple[Type[BaseException], ...]] = {
    Backend.POSTGRES: (psycopg.Error,),
    Backend.SQLITE: (sqlite3.Error,),
}


def _driver_errors_for(conn: Any, backend: Backend) -> Tuple[Type[BaseException], ...]:
    if backend in _DRIVER_ERRORS:
        return _DRIVER_ERRORS[backend]
    # DB-API optional extension: connections expose their module's Error class.
    error = getattr(conn, "Error", None)
    if isinstance(error, type) and issubclass(error, BaseException):
        return (error,)
    raise ValueError(f"Cannot tell which exceptions a {backend.value} connection raises; pass driver_errors.")


class SqlStore(AbstractRelationStore):
    def __init__(
        self,
        conn: Any,
        backend: Backend | str,
        driver_errors: Optional[Tuple[Type[BaseException], ...]] = None,
        dialect: Optional[Dialect] = None,
    ) -> None:
        self.conn = conn
        self.backend = Backend(backend).value
        self.dialect = dialect or dialect_for(backend)
        self._driver_errors = driver_errors or _driver_errors_for(conn, Backend(backend))

    def _query(self, table: str, sql: str, params: Tuple[Any, ...]) -> List[Dict[str, Any]]:
        log.debug(sql, extra={"table": table, "backend": self.backend, "params": len(params)})
        try:
            with closing(self.conn.cursor()) as cur:
                cur.execute(sql, params)
                columns = [column[0] for column in cur.description]
                return [dict(zip(columns, row)) for row in cur.fetchall()]
        except self._driver_errors as exc:
            raise RuntimeFetchError(
                f"{self.backend} fetch from '{table}' failed: {exc}", table=table, backend=self.backend
            ) from exc

    def fetch_by_equality(self, table: str, column: str, value: Any) -> List[Dict[str, Any]]:
        return self._query(table, *self.dialect.equality(table, column, value))

    def fetch_by_membership(
        self, table: str, column: str, values: Sequence[Any]
    ) -> List[Dict[str, Any]]:
        if not values:
            return []
        return self._query(table, *self.dialect.membership(table, column, values))

    def fetch_by_primary_key(
        self, table: str, key: Any, key_column: str = "id"
    ) -> Optional[Dict[str, Any]]:
        rows = self._query(table, *self.dialect.primary_key(table, key_column, key))
        return rows[0] if rows else None


__all__ = ["SqlStore"]
