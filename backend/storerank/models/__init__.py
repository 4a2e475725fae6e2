"""Pydantic models for ranking inputs, outputs and API payloads."""

from .ranking import (
    FACTOR_NAMES,
    FactorExplanation,
    ListingFacts,
    PaginationMeta,
    RankedProduct,
    RankedProductPage,
    RankingOverrides,
    RankingStats,
    RankingWeights,
    RankingWeightsUpdate,
    ScoreExplanation,
    ScoreFacts,
    ScoreResult,
)

__all__ = [
    "FACTOR_NAMES",
    "FactorExplanation",
    "ListingFacts",
    "PaginationMeta",
    "RankedProduct",
    "RankedProductPage",
    "RankingOverrides",
    "RankingStats",
    "RankingWeights",
    "RankingWeightsUpdate",
    "ScoreExplanation",
    "ScoreFacts",
    "ScoreResult",
]
