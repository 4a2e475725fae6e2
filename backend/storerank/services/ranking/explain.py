"""
Score explanation for audit and debugging surfaces.

Runs the same scoring path as recompute_product_score without persisting,
and reports every term of the computation. Numbers are rounded to three
decimal places for display.
"""
from datetime import datetime, timezone
from typing import Dict, Optional

from storerank.core.logging import get_logger
from storerank.core.tracing import get_tracer, set_span_attribute
from storerank.models.ranking import (
    FACTOR_NAMES,
    FactorExplanation,
    ListingFacts,
    RankingWeights,
    ScoreExplanation,
    ScoreFacts,
    ScoreResult,
)
from storerank.services.ranking.errors import ListingNotFoundError
from storerank.services.ranking.factors import (
    FULL_STOCK_QUANTITY,
    RECENCY_HORIZON_DAYS,
)
from storerank.services.ranking.score import score_listing, weighted_contributions
from storerank.services.ranking.weights import get_ranking_weights
from storerank.storage.catalog import CatalogStore

logger = get_logger(__name__)

DISPLAY_PRECISION = 3


def _r(value: float) -> float:
    return round(value, DISPLAY_PRECISION)


def _rating_rationale(subject: str, rating_avg: float, rating_count: int) -> str:
    if rating_count <= 0:
        return f"{subject} has no ratings yet; neutral score of 0.5"
    return f"{subject} rated {rating_avg:.2f}/5 across {rating_count} ratings"


def factor_rationales(listing: ListingFacts, age_days: float) -> Dict[str, str]:
    """Human-readable reason for each factor value."""
    shown_age = round(age_days, 1)
    if shown_age > RECENCY_HORIZON_DAYS:
        recency = f"Listed {shown_age:.1f} days ago; older than {RECENCY_HORIZON_DAYS:.0f} days earns no recency credit"
    else:
        recency = f"Listed {shown_age:.1f} days ago; decays linearly to zero at {RECENCY_HORIZON_DAYS:.0f} days"

    if listing.order_count <= 0:
        orders = "No orders yet"
    else:
        orders = f"{listing.order_count} orders; log-scaled, full credit from 99 orders"

    if listing.quantity <= 0:
        stock = "Out of stock"
    elif listing.quantity >= FULL_STOCK_QUANTITY:
        stock = f"{listing.quantity} units in stock; full credit from {FULL_STOCK_QUANTITY} units"
    else:
        stock = f"{listing.quantity} units in stock; below {FULL_STOCK_QUANTITY} units scales linearly"

    return {
        "recency": recency,
        "rating": _rating_rationale("Product", listing.rating_avg, listing.rating_count),
        "orders": orders,
        "stock": stock,
        "seller_reputation": _rating_rationale("Seller", listing.seller_rating_avg, listing.seller_rating_count),
    }


def build_explanation(
    listing: ListingFacts,
    weights: RankingWeights,
    result: ScoreResult,
    now: datetime,
) -> ScoreExplanation:
    """Assemble the rounded breakdown from an unrounded score result."""
    weight_map = weights.as_dict()
    contributions = weighted_contributions(result.factors, weights)
    rationales = factor_rationales(listing, result.age_days)

    factors = [
        FactorExplanation(
            name=name,
            raw=_r(result.factors[name]),
            weight=_r(weight_map[name]),
            weighted=_r(contributions[name]),
            rationale=rationales[name],
        )
        for name in FACTOR_NAMES
    ]

    return ScoreExplanation(
        product_id=listing.id,
        factors=factors,
        base_score=_r(result.base_score),
        manual_boost=_r(listing.manual_boost),
        penalty_score=_r(listing.penalty_score),
        final_score=_r(result.final_score),
        pinned=listing.pinned,
        facts=ScoreFacts(
            age_days=_r(result.age_days),
            rating_avg=_r(listing.rating_avg),
            rating_count=listing.rating_count,
            order_count=listing.order_count,
            quantity=listing.quantity,
            seller_rating_avg=_r(listing.seller_rating_avg),
            seller_rating_count=listing.seller_rating_count,
        ),
        weights=RankingWeights(**{name: _r(value) for name, value in weight_map.items()}),
        computed_at=now,
    )


async def explain_score(
    store: CatalogStore,
    product_id: str,
    *,
    weights: Optional[RankingWeights] = None,
    now: Optional[datetime] = None,
) -> ScoreExplanation:
    """
    Explain how a listing's score is produced, without persisting it.

    Raises:
        ListingNotFoundError: product_id does not resolve to a listing
    """
    tracer = get_tracer()
    with tracer.start_as_current_span("ranking.explain"):
        set_span_attribute("ranking.product_id", product_id)

        if weights is None:
            weights = await get_ranking_weights(store)
        if now is None:
            now = datetime.now(timezone.utc)

        listing = await store.fetch_listing(product_id)
        if listing is None:
            logger.warning("ranking_listing_not_found", product_id=product_id)
            raise ListingNotFoundError(product_id)

        result = score_listing(listing, weights, now)
        explanation = build_explanation(listing, weights, result, now)

    logger.debug(
        "ranking_score_explained",
        product_id=product_id,
        final_score=explanation.final_score,
    )
    return explanation
