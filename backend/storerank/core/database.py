"""
Query helpers over the asyncpg pool.

Every helper records query duration by query type and re-raises database
errors unchanged after logging them.
"""
import asyncio
import time
from contextlib import asynccontextmanager
from typing import Optional, List, Dict, Any, AsyncIterator

import asyncpg

from storerank.core.database_pool import get_primary_pool
from storerank.core.logging import get_logger
from storerank.core.metrics import record_db_query_duration

logger = get_logger(__name__)


def _require_pool(query_type: str) -> asyncpg.Pool:
    pool = get_primary_pool()
    if not pool:
        logger.error("db_pool_unavailable", query_type=query_type)
        raise RuntimeError("Database pool not available")
    return pool


async def execute_read_query(
    query: str,
    *args,
    query_type: str = "read",
) -> List[Dict[str, Any]]:
    """
    Execute a read query.

    Args:
        query: SQL query string
        *args: Query parameters
        query_type: Type of query for metrics ("listing_page", "listing", "weights", ...)

    Returns:
        List of result dictionaries
    """
    start_time = time.time()
    pool = _require_pool(query_type)

    try:
        async with pool.acquire() as conn:
            rows = await conn.fetch(query, *args)
            return [dict(row) for row in rows]
    except asyncio.TimeoutError:
        logger.error("db_query_timeout", query_type=query_type)
        raise
    except Exception as e:
        logger.error(
            "db_read_query_error",
            query_type=query_type,
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        raise
    finally:
        record_db_query_duration(query_type, time.time() - start_time)


async def execute_read_one(
    query: str,
    *args,
    query_type: str = "read",
) -> Optional[Dict[str, Any]]:
    """Execute a read query expected to return at most one row."""
    rows = await execute_read_query(query, *args, query_type=query_type)
    return rows[0] if rows else None


async def execute_write_query(
    query: str,
    *args,
    query_type: str = "write",
) -> Optional[Any]:
    """
    Execute a single write statement.

    Returns:
        asyncpg status string (e.g. "UPDATE 1")
    """
    start_time = time.time()
    pool = _require_pool(query_type)

    try:
        async with pool.acquire() as conn:
            return await conn.execute(query, *args)
    except asyncio.TimeoutError:
        logger.error("db_query_timeout", query_type=query_type)
        raise
    except Exception as e:
        logger.error(
            "db_write_query_error",
            query_type=query_type,
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        raise
    finally:
        record_db_query_duration(query_type, time.time() - start_time)


@asynccontextmanager
async def transaction(query_type: str = "transaction") -> AsyncIterator[asyncpg.Connection]:
    """
    Acquire a connection and open a transaction on it.

    The transaction commits when the block exits normally and rolls back
    when it raises.
    """
    start_time = time.time()
    pool = _require_pool(query_type)

    try:
        async with pool.acquire() as conn:
            async with conn.transaction():
                yield conn
    except Exception as e:
        logger.error(
            "db_transaction_error",
            query_type=query_type,
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        raise
    finally:
        record_db_query_duration(query_type, time.time() - start_time)
