"""
Ranking data models.

ListingFacts is the read-only view of a listing the scorer consumes;
RankingWeights is the tunable coefficient vector; ScoreExplanation is the
audit breakdown returned by the explainer.
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Order matters: base score sums terms in this order.
FACTOR_NAMES = ("recency", "rating", "orders", "stock", "seller_reputation")


class ListingFacts(BaseModel):
    """Listing fields plus seller reputation and order count attached."""
    id: str
    created_at: datetime
    rating_avg: float = 0.0
    rating_count: int = 0
    quantity: int = 0
    manual_boost: float = 0.0
    penalty_score: float = 0.0
    pinned: bool = False
    status: str = "ACTIVE"
    seller_rating_avg: float = 0.0
    seller_rating_count: int = 0
    order_count: int = 0


class RankingWeights(BaseModel):
    """Five non-negative coefficients; defaults sum to 1.0."""
    model_config = ConfigDict(frozen=True)

    recency: float = Field(0.30, ge=0.0)
    rating: float = Field(0.25, ge=0.0)
    orders: float = Field(0.20, ge=0.0)
    stock: float = Field(0.15, ge=0.0)
    seller_reputation: float = Field(0.10, ge=0.0)

    def as_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in FACTOR_NAMES}

    @property
    def total(self) -> float:
        return sum(self.as_dict().values())


class RankingWeightsUpdate(BaseModel):
    """Partial weight update submitted by an administrator."""
    recency: Optional[float] = Field(None, ge=0.0, le=1.0)
    rating: Optional[float] = Field(None, ge=0.0, le=1.0)
    orders: Optional[float] = Field(None, ge=0.0, le=1.0)
    stock: Optional[float] = Field(None, ge=0.0, le=1.0)
    seller_reputation: Optional[float] = Field(None, ge=0.0, le=1.0)

    def changes(self) -> Dict[str, float]:
        return {name: value for name, value in self.model_dump().items() if value is not None}


class ScoreResult(BaseModel):
    """Unrounded output of the shared scoring path."""
    factors: Dict[str, float]
    base_score: float
    final_score: float
    age_days: float


class FactorExplanation(BaseModel):
    name: str
    raw: float
    weight: float
    weighted: float
    rationale: str


class ScoreFacts(BaseModel):
    age_days: float
    rating_avg: float
    rating_count: int
    order_count: int
    quantity: int
    seller_rating_avg: float
    seller_rating_count: int


class ScoreExplanation(BaseModel):
    """Term-by-term breakdown of one listing's score, rounded for display."""
    product_id: str
    factors: List[FactorExplanation]
    base_score: float
    manual_boost: float
    penalty_score: float
    final_score: float
    pinned: bool
    facts: ScoreFacts
    weights: RankingWeights
    computed_at: datetime


class RankingOverrides(BaseModel):
    """Administrator overrides for one listing."""
    pinned: Optional[bool] = None
    manual_boost: Optional[float] = Field(None, ge=-10.0, le=10.0)
    penalty_score: Optional[float] = Field(None, ge=0.0, le=10.0)

    def changes(self) -> Dict[str, object]:
        return {name: value for name, value in self.model_dump().items() if value is not None}


class RankedProduct(BaseModel):
    """Row of the admin ranking list."""
    id: str
    title: Optional[str] = None
    seller_id: Optional[str] = None
    score: float
    pinned: bool
    manual_boost: float
    penalty_score: float
    rating_avg: float
    rating_count: int
    order_count: int
    created_at: datetime


class RankingStats(BaseModel):
    total: int = 0
    avg_score: float = 0.0
    avg_boost: float = 0.0
    avg_penalty: float = 0.0
    pinned_count: int = 0
    boosted_count: int = 0
    penalized_count: int = 0


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class RankedProductPage(BaseModel):
    products: List[RankedProduct]
    stats: RankingStats
    pagination: PaginationMeta
