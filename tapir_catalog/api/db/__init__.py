"""Database module."""

from .connection import (
    close_pool,
    execute,
    fetch,
    fetchrow,
    fetchval,
    get_connection,
    get_pool,
    init_pool,
    transaction,
)
from .migrations import run_migrations
from .store import CatalogStore, DuplicatePostError, FeedBoundary, PostgresCatalogStore

__all__ = [
    "init_pool",
    "close_pool",
    "get_pool",
    "get_connection",
    "execute",
    "fetch",
    "fetchrow",
    "fetchval",
    "transaction",
    "run_migrations",
    "CatalogStore",
    "DuplicatePostError",
    "FeedBoundary",
    "PostgresCatalogStore",
]
