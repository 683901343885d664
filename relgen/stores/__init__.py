"""
Store adapters for relgen.

Re-exports the store interfaces and the bundled adapters so callers can import
from `relgen.stores` directly.
"""

from relgen.stores.asyncpg_store import AsyncpgStore
from relgen.stores.base import (
    AbstractRelationStore,
    AsyncRelationStore,
    RelationStore,
    Row,
)
from relgen.stores.dialects import Dialect, dialect_for
from relgen.stores.memory import InMemoryStore
from relgen.stores.sql import SqlStore
from relgen.stores.threaded import ThreadedAsyncStore

__all__ = [
    # Interfaces
    "AbstractRelationStore",
    "AsyncRelationStore",
    "RelationStore",
    "Row",
    # Dialects
    "Dialect",
    "dialect_for",
    # Adapters
    "AsyncpgStore",
    "InMemoryStore",
    "SqlStore",
    "ThreadedAsyncStore",
]
