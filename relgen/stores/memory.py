"""
In-memory store.

Holds tables as lists of dicts and answers the three primitives by scanning
them in insertion order, which stands in for a database's result order. Every
call is recorded in ``calls`` so tests can count round trips.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from relgen.domain.errors import RuntimeFetchError
from relgen.stores.base import AbstractRelationStore


class InMemoryStore(AbstractRelationStore):
    backend: str = "memory"

    def __init__(
        self,
        tables: Mapping[str, Iterable[Mapping[str, Any]]] | None = None,
        failing_tables: Iterable[str] = (),
    ) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }
        self.failing_tables: Set[str] = set(failing_tables)
        self.calls: List[Tuple[str, str, str, Any]] = []

    def insert(self, table: str, *rows: Mapping[str, Any]) -> None:
        self.tables.setdefault(table, []).extend(dict(row) for row in rows)

    def _scan(self, table: str) -> List[Dict[str, Any]]:
        if table in self.failing_tables:
            raise RuntimeFetchError(f"table '{table}' is unavailable", table=table, backend=self.backend)
        if table not in self.tables:
            raise RuntimeFetchError(f"no such table: {table}", table=table, backend=self.backend)
        return self.tables[table]

    def fetch_by_equality(self, table: str, column: str, value: Any) -> List[Dict[str, Any]]:
        self.calls.append(("fetch_by_equality", table, column, value))
        return [dict(row) for row in self._scan(table) if row.get(column) == value]

    def fetch_by_membership(
        self, table: str, column: str, values: Sequence[Any]
    ) -> List[Dict[str, Any]]:
        self.calls.append(("fetch_by_membership", table, column, tuple(values)))
        wanted = set(values)
        return [dict(row) for row in self._scan(table) if row.get(column) in wanted]

    def fetch_by_primary_key(
        self, table: str, key: Any, key_column: str = "id"
    ) -> Optional[Dict[str, Any]]:
        self.calls.append(("fetch_by_primary_key", table, key_column, key))
        for row in self._scan(table):
            if row.get(key_column) == key:
                return dict(row)
        return None


__all__ = ["InMemoryStore"]
