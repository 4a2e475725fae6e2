"""Ranking services for deterministic listing scores."""

from .errors import ListingNotFoundError
from .explain import explain_score
from .recompute import recompute_all_scores, recompute_product_score
from .score import compose_score, score_listing
from .weights import DEFAULT_WEIGHTS, get_ranking_weights, update_ranking_weights

__all__ = [
    "DEFAULT_WEIGHTS",
    "ListingNotFoundError",
    "compose_score",
    "explain_score",
    "get_ranking_weights",
    "recompute_all_scores",
    "recompute_product_score",
    "score_listing",
    "update_ranking_weights",
]
