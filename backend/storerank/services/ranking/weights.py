"""
Ranking weight configuration.

Weights live in the singleton admin settings record as a JSON object keyed
w_recency, w_rating, w_orders, w_stock, w_sellerRep (the keys the admin
console writes). Missing records and missing keys fall back to defaults.
"""
import math
from typing import Any, Dict, Mapping

from storerank.core.logging import get_logger
from storerank.core.metrics import record_weights_defaulted
from storerank.models.ranking import FACTOR_NAMES, RankingWeights
from storerank.storage.catalog import CatalogStore

logger = get_logger(__name__)

DEFAULT_WEIGHTS = RankingWeights(
    recency=0.30,
    rating=0.25,
    orders=0.20,
    stock=0.15,
    seller_reputation=0.10,
)

STORAGE_KEYS = {
    "recency": "w_recency",
    "rating": "w_rating",
    "orders": "w_orders",
    "stock": "w_stock",
    "seller_reputation": "w_sellerRep",
}

WEIGHT_SUM_TOLERANCE = 1e-6


def _valid_coefficient(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


def merge_ranking_weights(stored: Any) -> RankingWeights:
    """
    Merge a stored weight record over the defaults.

    A record that is not a JSON object yields the defaults. Invalid
    coefficients (non-numeric, negative, NaN/inf) are ignored in favour of
    the default for that factor.
    """
    if not stored:
        record_weights_defaulted()
        logger.debug("ranking_weights_defaulted", reason="missing")
        return DEFAULT_WEIGHTS

    if not isinstance(stored, Mapping):
        record_weights_defaulted()
        logger.warning("ranking_weights_invalid_record", value_type=type(stored).__name__)
        return DEFAULT_WEIGHTS

    merged = DEFAULT_WEIGHTS.as_dict()
    missing = []
    for name in FACTOR_NAMES:
        key = STORAGE_KEYS[name]
        if key not in stored:
            missing.append(key)
            continue
        value = stored[key]
        if not _valid_coefficient(value):
            logger.warning("ranking_weight_invalid", key=key, value=str(value))
            missing.append(key)
            continue
        merged[name] = float(value)

    if missing:
        record_weights_defaulted()
        logger.debug("ranking_weights_defaulted", reason="partial", keys=missing)

    weights = RankingWeights(**merged)
    if abs(weights.total - 1.0) > WEIGHT_SUM_TOLERANCE:
        # Accepted as-is: the sum scales base scores rather than only reordering them.
        logger.warning("ranking_weights_unnormalized", total=round(weights.total, 6))
    return weights


def to_storage(weights: Mapping[str, float]) -> Dict[str, float]:
    """Translate factor-name keys to the stored JSON keys."""
    return {STORAGE_KEYS[name]: value for name, value in weights.items()}


async def get_ranking_weights(store: CatalogStore) -> RankingWeights:
    """
    Current effective weight vector.

    Absent configuration is a normal case and yields the defaults.
    Storage errors propagate.
    """
    stored = await store.fetch_ranking_weights()
    return merge_ranking_weights(stored)


async def update_ranking_weights(store: CatalogStore, changes: Mapping[str, float]) -> RankingWeights:
    """
    Merge a partial update over the stored record and persist it.

    Args:
        store: Catalog store
        changes: New coefficients keyed by factor name, each in [0, 1]

    Returns:
        Effective weight vector after the update
    """
    for name, value in changes.items():
        if name not in STORAGE_KEYS:
            raise ValueError(f"Unknown ranking weight: {name}")
        if not _valid_coefficient(value) or value > 1:
            raise ValueError(f"Ranking weight {name} must be between 0 and 1")

    stored = await store.fetch_ranking_weights()
    # A malformed record is replaced rather than merged into
    current = dict(stored) if isinstance(stored, Mapping) else {}
    current.update(to_storage(changes))
    await store.save_ranking_weights(current)

    weights = merge_ranking_weights(current)
    logger.info(
        "ranking_weights_updated",
        changes=dict(changes),
        weights=weights.as_dict(),
    )
    return weights
