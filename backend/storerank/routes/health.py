"""
Health check endpoints.
"""
from fastapi import APIRouter

from storerank.core.database import execute_read_one
from storerank.core.database_pool import get_primary_pool
from storerank.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("")
async def health_check():
    """
    Basic health check endpoint.
    """
    return {
        "status": "ok",
        "message": "API is running"
    }


@router.get("/db")
async def database_health():
    """
    Database health: whether the pool is initialized and answers a trivial query.
    """
    if get_primary_pool() is None:
        return {
            "status": "unavailable",
            "pool_initialized": False,
            "message": "Database connection pool not initialized",
        }

    try:
        await execute_read_one("SELECT 1 AS ok", query_type="health")
    except Exception as e:
        logger.warning(
            "health_db_check_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        return {
            "status": "unavailable",
            "pool_initialized": True,
            "message": "Database query failed",
        }

    return {
        "status": "ok",
        "pool_initialized": True,
        "message": "Database is reachable",
    }
