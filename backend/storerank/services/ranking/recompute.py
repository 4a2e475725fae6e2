"""
Score recomputation: full catalog passes and single listings.

A full pass walks ACTIVE listings with a keyset cursor on id, scores each
page and commits the page's writes as one batch before fetching the next.
A crash mid-pass leaves whole pages applied, never a partial page.
"""
import time
from datetime import datetime, timezone
from typing import Optional

from storerank.core.config import DEFAULT_RANKING_BATCH_SIZE
from storerank.core.logging import get_logger
from storerank.core.metrics import record_ranking_score, record_recompute
from storerank.core.tracing import get_tracer, set_span_attribute, record_exception
from storerank.models.ranking import RankingWeights
from storerank.services.ranking.errors import ListingNotFoundError
from storerank.services.ranking.score import score_listing
from storerank.services.ranking.weights import get_ranking_weights
from storerank.storage.catalog import CatalogStore

logger = get_logger(__name__)


async def recompute_all_scores(
    store: CatalogStore,
    batch_size: int = DEFAULT_RANKING_BATCH_SIZE,
    *,
    weights: Optional[RankingWeights] = None,
    now: Optional[datetime] = None,
) -> int:
    """
    Recompute and persist scores for every ACTIVE listing.

    Weights are loaded once and `now` is fixed once, so every listing in the
    pass is scored against the same configuration and clock.

    Args:
        store: Catalog store
        batch_size: Listings per page (and per committed batch)
        weights: Weight vector (loaded from configuration when omitted)
        now: Reference time (defaults to current UTC time)

    Returns:
        Number of listings updated
    """
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size <= 0:
        raise ValueError("batch_size must be a positive integer")

    start_time = time.time()
    tracer = get_tracer()
    updated = 0
    pages = 0

    with tracer.start_as_current_span("ranking.recompute_all") as span:
        set_span_attribute("ranking.batch_size", batch_size)
        try:
            if weights is None:
                weights = await get_ranking_weights(store)
            if now is None:
                now = datetime.now(timezone.utc)

            logger.info(
                "ranking_recompute_started",
                batch_size=batch_size,
                weights=weights.as_dict(),
            )

            after_id: Optional[str] = None
            while True:
                listings = await store.fetch_active_page(after_id, batch_size)
                if not listings:
                    break

                with tracer.start_as_current_span("ranking.recompute_page"):
                    set_span_attribute("ranking.page", pages)
                    set_span_attribute("ranking.page_size", len(listings))

                    batch = store.begin_batch()
                    for listing in listings:
                        result = score_listing(listing, weights, now)
                        batch.stage(listing.id, result.final_score)
                        record_ranking_score(result.final_score)
                    await batch.commit()

                updated += len(listings)
                pages += 1
                after_id = listings[-1].id

                logger.debug(
                    "ranking_batch_committed",
                    page=pages,
                    page_size=len(listings),
                    last_id=after_id,
                    updated=updated,
                )

                if len(listings) < batch_size:
                    break

        except Exception as e:
            record_exception(e)
            record_recompute("batch", "error", time.time() - start_time, updated)
            logger.error(
                "ranking_recompute_failed",
                updated=updated,
                pages=pages,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            raise

        span.set_attribute("ranking.updated", updated)

    duration = time.time() - start_time
    record_recompute("batch", "success", duration, updated)
    logger.info(
        "ranking_recompute_completed",
        updated=updated,
        pages=pages,
        duration_ms=int(duration * 1000),
    )
    return updated


async def recompute_product_score(
    store: CatalogStore,
    product_id: str,
    *,
    weights: Optional[RankingWeights] = None,
    now: Optional[datetime] = None,
) -> float:
    """
    Recompute and persist the score of one listing.

    Raises:
        ListingNotFoundError: product_id does not resolve to a listing
    """
    start_time = time.time()
    tracer = get_tracer()

    with tracer.start_as_current_span("ranking.recompute_one"):
        set_span_attribute("ranking.product_id", product_id)
        try:
            if weights is None:
                weights = await get_ranking_weights(store)
            if now is None:
                now = datetime.now(timezone.utc)

            listing = await store.fetch_listing(product_id)
            if listing is None:
                raise ListingNotFoundError(product_id)

            result = score_listing(listing, weights, now)
            await store.update_score(product_id, result.final_score)
        except ListingNotFoundError:
            record_recompute("single", "error", time.time() - start_time)
            logger.warning("ranking_listing_not_found", product_id=product_id)
            raise
        except Exception as e:
            record_exception(e)
            record_recompute("single", "error", time.time() - start_time)
            logger.error(
                "ranking_recompute_one_failed",
                product_id=product_id,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            raise

    record_recompute("single", "success", time.time() - start_time, 1)
    record_ranking_score(result.final_score)
    logger.info(
        "ranking_product_rescored",
        product_id=product_id,
        base_score=result.base_score,
        final_score=result.final_score,
        score_breakdown=result.factors,
    )
    return result.final_score
