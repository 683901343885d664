"""
Infrastructure package for relgen.

Connection opening for the CLI. Keep this layer focused on I/O; the compiler
and runtime never import it.
"""

from relgen.infrastructure.db_factory import (
    async_store,
    open_async_connection,
    open_connection,
    sync_store,
)

__all__ = [
    "async_store",
    "open_async_connection",
    "open_connection",
    "sync_store",
]
