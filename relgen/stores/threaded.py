"""
Async adapter for blocking stores.

Runs each primitive of a blocking store in a worker thread so suspending
accessors can use drivers that have no async API (sqlite3, the in-memory
store). Calls stay strictly sequential; nothing is fanned out.
"""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional, Sequence

from relgen.stores.base import RelationStore, Row


class ThreadedAsyncStore:
    def __init__(self, store: RelationStore) -> None:
        self.store = store

    async def fetch_by_equality(self, table: str, column: str, value: Any) -> List[Row]:
        return await asyncio.to_thread(self.store.fetch_by_equality, table, column, value)

    async def fetch_by_membership(
        self, table: str, column: str, values: Sequence[Any]
    ) -> List[Row]:
        return await asyncio.to_thread(self.store.fetch_by_membership, table, column, values)

    async def fetch_by_primary_key(
        self, table: str, key: Any, key_column: str = "id"
    ) -> Optional[Row]:
        return await asyncio.to_thread(
            self.store.fetch_by_primary_key, table, key, key_column=key_column
        )


__all__ = ["ThreadedAsyncStore"]
