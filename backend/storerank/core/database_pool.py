"""
Async database connection pool using asyncpg.

A single primary pool serves both reads and writes: score writes must see
the same listing rows the recompute pass just read.
"""
import asyncpg
from typing import Optional

from storerank.core.config import get_database_url, get_pool_settings
from storerank.core.logging import get_logger

logger = get_logger(__name__)

_primary_pool: Optional[asyncpg.Pool] = None


async def initialize_database_pool() -> bool:
    """
    Initialize the primary connection pool.

    Returns:
        True if initialization successful, False otherwise
    """
    global _primary_pool

    try:
        primary_url = get_database_url()
        settings = get_pool_settings()
        logger.info("db_pool_initializing", type="primary", url_prefix=primary_url[:30])

        _primary_pool = await asyncpg.create_pool(
            primary_url,
            min_size=settings["min_size"],
            max_size=settings["max_size"],
            max_queries=50000,
            max_inactive_connection_lifetime=3600,
            command_timeout=settings["command_timeout"],
        )

        logger.info("db_pool_initialized", type="primary", **settings)
        return True

    except Exception as e:
        logger.error(
            "db_pool_initialization_failed",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        _primary_pool = None
        return False


async def close_database_pools() -> None:
    """Close the connection pool."""
    global _primary_pool

    if _primary_pool:
        try:
            await _primary_pool.close()
            logger.info("db_pool_closed", type="primary")
        except Exception as e:
            logger.error("db_pool_close_failed", type="primary", error=str(e))
        finally:
            _primary_pool = None


def get_primary_pool() -> Optional[asyncpg.Pool]:
    """Get primary database connection pool."""
    return _primary_pool
