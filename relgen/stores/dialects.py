"""
Per-backend SQL text for the three store primitives.

A ``Dialect`` knows how its driver spells parameters, quotes identifiers and
tests membership. Only store adapters select one; compiled plans carry the
backend name through untouched.

Queries never add ORDER BY: rows come back in whatever order the database
returns them, and eager grouping preserves that order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple

from relgen.domain.models import Backend

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

Query = Tuple[str, Tuple[Any, ...]]


@dataclass(frozen=True)
class Dialect:
    """
    Attributes
    ----------
    name : str
        Short label, used in logs.
    quote : str
        Identifier quote character.
    paramstyle : str
        "format" (%s), "qmark" (?) or "numeric_dollar" ($1).
    array_membership : bool
        Whether membership binds one array parameter (`= ANY(...)`) instead of
        one parameter per value (`IN (...)`).
    """

    name: str
    quote: str
    paramstyle: str
    array_membership: bool

    def quote_identifier(self, identifier: str) -> str:
        if not _IDENTIFIER.match(identifier):
            raise ValueError(f"Refusing to quote non-identifier {identifier!r}")
        return f"{self.quote}{identifier}{self.quote}"

    def param(self, position: int) -> str:
        if self.paramstyle == "numeric_dollar":
            return f"${position}"
        return "?" if self.paramstyle == "qmark" else "%s"

    def _select(self, table: str) -> str:
        return f"SELECT * FROM {self.quote_identifier(table)}"

    def equality(self, table: str, column: str, value: Any) -> Query:
        sql = f"{self._select(table)} WHERE {self.quote_identifier(column)} = {self.param(1)}"
        return sql, (value,)

    def membership(self, table: str, column: str, values: Sequence[Any]) -> Query:
        column_sql = self.quote_identifier(column)
        if self.array_membership:
            return f"{self._select(table)} WHERE {column_sql} = ANY({self.param(1)})", (list(values),)
        placeholders = ", ".join(self.param(i) for i in range(1, len(values) + 1))
        return f"{self._select(table)} WHERE {column_sql} IN ({placeholders})", tuple(values)

    def primary_key(self, table: str, key_column: str, key: Any) -> Query:
        sql, params = self.equality(table, key_column, key)
        return f"{sql} LIMIT 1", params


POSTGRES = Dialect(name="postgres", quote='"', paramstyle="format", array_membership=True)
SQLITE = Dialect(name="sqlite", quote='"', paramstyle="qmark", array_membership=False)
MYSQL = Dialect(name="mysql", quote="`", paramstyle="format", array_membership=False)
# asyncpg speaks Postgres with numbered parameters.
ASYNCPG = Dialect(name="asyncpg", quote='"', paramstyle="numeric_dollar", array_membership=True)

_BY_BACKEND: Dict[Backend, Dialect] = {
    Backend.POSTGRES: POSTGRES,
    Backend.SQLITE: SQLITE,
    Backend.MYSQL: MYSQL,
}


def dialect_for(backend: Backend | str) -> Dialect:
    return _BY_BACKEND[Backend(backend)]


__all__ = ["Dialect", "POSTGRES", "SQLITE", "MYSQL", "ASYNCPG", "dialect_for"]
