"""
asyncpg pool for the catalog database.

One pool is shared by the API process (opened in the app lifespan) and by
the import CLI (opened around a single run). Statements are short: every
catalog write is a single-row statement, so only schema migrations need an
explicit transaction.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import asyncpg
from asyncpg import Pool

logger = logging.getLogger(__name__)

POOL_MIN_SIZE = 2
POOL_MAX_SIZE = 10
COMMAND_TIMEOUT = 60

_pool: Pool | None = None


def get_database_url() -> str:
    """DATABASE_URL, required for both the API and the import CLI."""
    url = os.getenv("DATABASE_URL")
    if not url:
        raise ValueError("DATABASE_URL environment variable not set")
    return url


def get_ssl_mode() -> str | None:
    """DATABASE_SSL (e.g. 'require' for hosted Postgres); unset leaves it to the URL."""
    return os.getenv("DATABASE_SSL") or None


async def init_pool() -> Pool:
    """Open the shared pool once; later calls return it unchanged."""
    global _pool
    if _pool is not None:
        return _pool

    _pool = await asyncpg.create_pool(
        get_database_url(),
        min_size=POOL_MIN_SIZE,
        max_size=POOL_MAX_SIZE,
        command_timeout=COMMAND_TIMEOUT,
        ssl=get_ssl_mode(),
    )
    logger.info("Catalog pool opened (%d..%d connections)", POOL_MIN_SIZE, POOL_MAX_SIZE)
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return
    await _pool.close()
    _pool = None
    logger.info("Catalog pool closed")


async def get_pool() -> Pool:
    return _pool if _pool is not None else await init_pool()


@asynccontextmanager
async def get_connection() -> AsyncGenerator[asyncpg.Connection, None]:
    """Borrow a pooled connection for one or more statements."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


@asynccontextmanager
async def transaction() -> AsyncGenerator[asyncpg.Connection, None]:
    """Borrow a connection inside a transaction; any error rolls everything back."""
    async with get_connection() as conn:
        async with conn.transaction():
            yield conn


async def execute(query: str, *args) -> str:
    async with get_connection() as conn:
        return await conn.execute(query, *args)


async def fetch(query: str, *args) -> list[dict]:
    """Rows as plain dicts, so callers and test stores share one row shape."""
    async with get_connection() as conn:
        return [dict(row) for row in await conn.fetch(query, *args)]


async def fetchrow(query: str, *args) -> dict | None:
    async with get_connection() as conn:
        row = await conn.fetchrow(query, *args)
    return dict(row) if row else None


async def fetchval(query: str, *args):
    async with get_connection() as conn:
        return await conn.fetchval(query, *args)
