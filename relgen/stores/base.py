"""
Store interfaces consumed by bound accessors.

Accessors need exactly three primitives from the store layer. Anything that
implements them, sync or async, can back an accessor call: a DB-API connection
wrapper, an asyncpg connection wrapper, or the in-memory store used in tests.

Rows may be mappings or plain objects; accessors read key columns by item
access on mappings and by attribute access otherwise.

Stores raise ``RuntimeFetchError`` (chained from the driver error) when a fetch
fails. That is the "native error" accessors either surface or convert.
"""

from __future__ import annotations

import abc
from typing import Any, List, Optional, Protocol, Sequence, runtime_checkable

Row = Any


@runtime_checkable
class RelationStore(Protocol):
    """Blocking store: each call is one round trip."""

    def fetch_by_equality(self, table: str, column: str, value: Any) -> List[Row]:
        """Rows of `table` where `column = value`, in store order."""
        ...

    def fetch_by_membership(self, table: str, column: str, values: Sequence[Any]) -> List[Row]:
        """Rows of `table` where `column` is one of `values`, in store order."""
        ...

    def fetch_by_primary_key(self, table: str, key: Any, key_column: str = "id") -> Optional[Row]:
        """The row of `table` whose `key_column` equals `key`, or None."""
        ...


@runtime_checkable
class AsyncRelationStore(Protocol):
    """Suspending store: same primitives as coroutines."""

    async def fetch_by_equality(self, table: str, column: str, value: Any) -> List[Row]:
        ...

    async def fetch_by_membership(
        self, table: str, column: str, values: Sequence[Any]
    ) -> List[Row]:
        ...

    async def fetch_by_primary_key(
        self, table: str, key: Any, key_column: str = "id"
    ) -> Optional[Row]:
        ...


class AbstractRelationStore(abc.ABC):
    """
    Optional ABC helper for class-based blocking stores.

    Subclasses implement the three primitives; `backend` names the dialect the
    store speaks and is informational only.
    """

    backend: str

    @abc.abstractmethod
    def fetch_by_equality(self, table: str, column: str, value: Any) -> List[Row]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def fetch_by_membership(self, table: str, column: str, values: Sequence[Any]) -> List[Row]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def fetch_by_primary_key(self, table: str, key: Any, key_column: str = "id") -> Optional[Row]:  # pragma: no cover - interface only
        raise NotImplementedError


__all__ = [
    "Row",
    "RelationStore",
    "AsyncRelationStore",
    "AbstractRelationStore",
]
