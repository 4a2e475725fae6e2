"""
Environment-driven configuration.

Values are read from the process environment, optionally seeded from a
`.env` file at the repository root.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

from storerank.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_RANKING_BATCH_SIZE = 100

env_path = Path(__file__).parent.parent.parent.parent / ".env"

if env_path.exists():
    load_dotenv(env_path)
    logger.info("env_loaded", env_path=str(env_path))
else:
    logger.debug("env_file_not_found", expected_path=str(env_path))


def get_database_url() -> str:
    """Get database URL from environment."""
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    # Fallback: construct from individual components
    host = os.getenv("DB_HOST", "postgres")
    port = int(os.getenv("DB_PORT", "5432"))
    user = os.getenv("DB_USER", "postgres")
    password = os.getenv("DB_PASSWORD", "postgres")
    database = os.getenv("DB_NAME", "postgres")

    return f"postgresql://{user}:{password}@{host}:{port}/{database}"


def get_pool_settings() -> dict:
    """Connection pool sizing and timeouts for asyncpg."""
    return {
        "min_size": int(os.getenv("DB_POOL_MIN_SIZE", "2")),
        "max_size": int(os.getenv("DB_POOL_MAX_SIZE", "10")),
        "command_timeout": float(os.getenv("DB_COMMAND_TIMEOUT", "30")),
    }


def get_ranking_batch_size() -> int:
    """
    Page size for full catalog recompute passes.

    Falls back to the default when the variable is unset or not a positive integer.
    """
    raw = os.getenv("RANKING_BATCH_SIZE")
    if not raw:
        return DEFAULT_RANKING_BATCH_SIZE
    try:
        value = int(raw)
    except ValueError:
        logger.warning("ranking_batch_size_invalid", value=raw)
        return DEFAULT_RANKING_BATCH_SIZE
    if value <= 0:
        logger.warning("ranking_batch_size_invalid", value=raw)
        return DEFAULT_RANKING_BATCH_SIZE
    return value


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO")


def get_log_json() -> bool:
    return os.getenv("LOG_JSON", "true").lower() == "true"
