"""
Score composition.

base_score = sum(weight_i * factor_i) over the five factors
final_score = clamp(base_score + manual_boost - penalty_score, 0, 10)

The weight vector is always passed in; nothing here reads configuration.
"""
from datetime import datetime
from typing import Dict, Mapping, Tuple

from storerank.models.ranking import FACTOR_NAMES, ListingFacts, RankingWeights, ScoreResult
from storerank.services.ranking.factors import compute_factors, listing_age_days

MIN_SCORE = 0.0
MAX_SCORE = 10.0


def compose_score(
    factors: Mapping[str, float],
    weights: RankingWeights,
    manual_boost: float,
    penalty_score: float,
) -> Tuple[float, float]:
    """
    Combine factors into (base_score, final_score).

    Args:
        factors: Factor values keyed by factor name
        weights: Weight vector
        manual_boost: Signed additive adjustment
        penalty_score: Subtractive adjustment

    Returns:
        Tuple of unclamped weighted base score and clamped final score
    """
    weight_map = weights.as_dict()
    base_score = 0.0
    for name in FACTOR_NAMES:
        base_score += weight_map[name] * factors[name]

    final_score = base_score + manual_boost - penalty_score
    final_score = max(MIN_SCORE, min(MAX_SCORE, final_score))
    return base_score, final_score


def weighted_contributions(factors: Mapping[str, float], weights: RankingWeights) -> Dict[str, float]:
    weight_map = weights.as_dict()
    return {name: weight_map[name] * factors[name] for name in FACTOR_NAMES}


def score_listing(listing: ListingFacts, weights: RankingWeights, now: datetime) -> ScoreResult:
    """
    Shared scoring path used by batch recompute, single recompute and explain.
    """
    factors = compute_factors(listing, now)
    base_score, final_score = compose_score(
        factors,
        weights,
        listing.manual_boost,
        listing.penalty_score,
    )
    return ScoreResult(
        factors=factors,
        base_score=base_score,
        final_score=final_score,
        age_days=listing_age_days(listing.created_at, now),
    )
