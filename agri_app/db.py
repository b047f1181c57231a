"""
Postgres access for the predictions backend

- One AsyncConnectionPool per process, opened on first query
- q(): read query returning dict rows; a saturated pool falls back to a
  one-off direct connection instead of failing the dashboard
- connect_listener(): unpooled autocommit connection for LISTEN
"""
from __future__ import annotations

import os
import sys
import asyncio
import psycopg
import psycopg_pool
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool
from agri_app.utils.logger import get_logger, log_function
from agri_app.utils.secure_config import get_settings

logger = get_logger(__name__)

# psycopg async cannot run on the Windows Proactor loop
if sys.platform == 'win32' and not os.environ.get('DOCKER_CONTAINER'):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

STATEMENT_TIMEOUT = "15s"
SLOW_QUERY_SECONDS = 1.0
POOL_SIZE = (1, 5)

_pool: AsyncConnectionPool | None = None
_pool_lock: asyncio.Lock | None = None


def _dsn() -> str:
    dsn = get_settings().db_dsn
    if not dsn:
        raise RuntimeError("SUPABASE_DB_DSN is not configured")
    return dsn


async def _open_pool() -> AsyncConnectionPool:
    min_size, max_size = POOL_SIZE
    pool = AsyncConnectionPool(
        _dsn(),
        min_size=min_size,
        max_size=max_size,
        max_waiting=50,
        timeout=5.0,
        kwargs={"autocommit": True},
        open=False,
    )
    await pool.open()
    logger.info(f"Connection pool opened (pid={os.getpid()}, max={max_size})")
    return pool


async def get_pool() -> AsyncConnectionPool:
    """Process-wide pool; concurrent first callers share one open()"""
    global _pool, _pool_lock

    if _pool is not None:
        return _pool
    if _pool_lock is None:
        _pool_lock = asyncio.Lock()
    async with _pool_lock:
        if _pool is None:
            try:
                _pool = await _open_pool()
            except Exception as e:
                logger.error(f"Could not open connection pool: {e}")
                raise
    return _pool


async def _fetch_rows(conn: psycopg.AsyncConnection, sql: str, params: tuple | dict) -> list[dict]:
    await conn.execute(f"SET statement_timeout = '{STATEMENT_TIMEOUT}'")
    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(sql, params)
        return await cur.fetchall()


async def _direct(sql: str, params: tuple | dict) -> list[dict]:
    async with await psycopg.AsyncConnection.connect(_dsn(), autocommit=True) as conn:
        return await _fetch_rows(conn, sql, params)


@log_function
async def q(sql: str, params: tuple | dict = (), timeout: float = 10.0) -> list[dict]:
    """Run a read query; `timeout` bounds the wait for a pooled connection"""
    loop = asyncio.get_running_loop()
    started = loop.time()

    try:
        pool = await get_pool()
        async with pool.connection(timeout=timeout) as conn:
            rows = await _fetch_rows(conn, sql, params)
    except (psycopg_pool.PoolTimeout, asyncio.TimeoutError) as e:
        logger.warning(f"No pooled connection within {timeout}s ({e}); querying directly")
        rows = await _direct(sql, params)
    except Exception as e:
        logger.error(f"Query failed: {e} | SQL: {sql} | params: {params}")
        raise

    elapsed = loop.time() - started
    if elapsed > SLOW_QUERY_SECONDS:
        logger.warning(f"Slow query ({elapsed:.2f}s): {sql[:100]}")
    else:
        logger.debug(f"{len(rows)} rows in {elapsed:.3f}s")
    return rows


async def connect_listener() -> psycopg.AsyncConnection:
    return await psycopg.AsyncConnection.connect(_dsn(), autocommit=True)


async def close_pool():
    global _pool

    pool, _pool = _pool, None
    if pool is None:
        return
    try:
        await pool.close()
        logger.info("Connection pool closed")
    except Exception as e:
        logger.error(f"Error closing connection pool: {e}")
