"""
Factor calculators for listing ranking.

Each factor is a pure function of explicit inputs and returns a value in
[0.0, 1.0]:
- recency: linear decay from 1.0 (new) to 0.0 at 365 days
- rating: average rating over 5, neutral 0.5 for unrated listings
- orders: log10-compressed order count, full credit from 99 orders
- stock: linear ramp over the first 10 units
- seller_reputation: seller average rating over 5, neutral 0.5 when unrated
"""
from datetime import datetime, timezone
from typing import Dict

import numpy as np

from storerank.models.ranking import ListingFacts

RECENCY_HORIZON_DAYS = 365.0
RATING_SCALE = 5.0
NEUTRAL_RATING_SCORE = 0.5
ORDER_LOG_DIVISOR = 2.0
FULL_STOCK_QUANTITY = 10

SECONDS_PER_DAY = 24 * 3600


def listing_age_days(created_at: datetime, now: datetime) -> float:
    """
    Age of a listing in fractional days. Future timestamps count as age zero.
    """
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    days_old = (now - created_at).total_seconds() / SECONDS_PER_DAY
    return max(0.0, days_old)


def recency_score(created_at: datetime, now: datetime) -> float:
    days_old = listing_age_days(created_at, now)
    if days_old > RECENCY_HORIZON_DAYS:
        return 0.0
    return max(0.0, 1.0 - days_old / RECENCY_HORIZON_DAYS)


def _normalized_rating(rating_avg: float, rating_count: int) -> float:
    if rating_count <= 0:
        return NEUTRAL_RATING_SCORE
    # Plain average over the 5-star scale; no confidence interval for small counts.
    return float(np.clip(rating_avg / RATING_SCALE, 0.0, 1.0))


def rating_score(rating_avg: float, rating_count: int) -> float:
    return _normalized_rating(rating_avg, rating_count)


def orders_score(order_count: int) -> float:
    """
    Logarithmic scaling keeps high-volume listings from dominating.

    log10(n + 1) / 2 reaches 1.0 at n = 99.
    """
    order_count = max(0, order_count)
    return float(min(1.0, np.log10(order_count + 1) / ORDER_LOG_DIVISOR))


def stock_score(quantity: int) -> float:
    if quantity <= 0:
        return 0.0
    if quantity >= FULL_STOCK_QUANTITY:
        return 1.0
    return quantity / FULL_STOCK_QUANTITY


def seller_reputation_score(seller_rating_avg: float, seller_rating_count: int) -> float:
    return _normalized_rating(seller_rating_avg, seller_rating_count)


def compute_factors(listing: ListingFacts, now: datetime) -> Dict[str, float]:
    """
    Compute all five factors for one listing.

    Returns:
        Dictionary keyed by factor name (see FACTOR_NAMES)
    """
    return {
        "recency": recency_score(listing.created_at, now),
        "rating": rating_score(listing.rating_avg, listing.rating_count),
        "orders": orders_score(listing.order_count),
        "stock": stock_score(listing.quantity),
        "seller_reputation": seller_reputation_score(
            listing.seller_rating_avg, listing.seller_rating_count
        ),
    }
