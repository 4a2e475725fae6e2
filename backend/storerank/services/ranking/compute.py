"""
Batch recompute job.

Runs one full scoring pass over the ACTIVE catalog. Intended to be called
periodically (e.g., via cron):

    python -m storerank.services.ranking.compute --batch-size 200
"""
import argparse
import asyncio
import sys
from typing import Optional, Sequence

from storerank.core.config import get_log_json, get_log_level, get_ranking_batch_size
from storerank.core.database_pool import close_database_pools, initialize_database_pool
from storerank.core.logging import configure_logging, get_logger
from storerank.services.ranking.recompute import recompute_all_scores
from storerank.storage.catalog import CatalogStore
from storerank.storage.postgres import get_catalog_store

logger = get_logger(__name__)


async def run_score_recompute(batch_size: int, store: Optional[CatalogStore] = None) -> int:
    """
    Open the database pool, run one full pass, close the pool.

    Returns:
        Number of listings updated
    """
    logger.info("ranking_job_started", batch_size=batch_size)

    if store is None:
        if not await initialize_database_pool():
            raise RuntimeError("Database pool could not be initialized")
        store = get_catalog_store()
        owns_pool = True
    else:
        owns_pool = False

    try:
        updated = await recompute_all_scores(store, batch_size)
    finally:
        if owns_pool:
            await close_database_pools()

    logger.info("ranking_job_completed", updated=updated)
    return updated


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Recompute ranking scores for all active listings")
    parser.add_argument(
        "--batch-size",
        type=int,
        default=get_ranking_batch_size(),
        help="Listings per committed batch (default: RANKING_BATCH_SIZE or 100)",
    )
    args = parser.parse_args(argv)
    if args.batch_size <= 0:
        parser.error("--batch-size must be a positive integer")
    return args


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(log_level=get_log_level(), json_output=get_log_json())

    try:
        asyncio.run(run_score_recompute(args.batch_size))
    except Exception as e:
        logger.error(
            "ranking_job_failed",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
