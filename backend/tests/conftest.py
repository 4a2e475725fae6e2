"""
Shared fixtures: an in-memory catalog store and listing factories.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pytest

from storerank.models.ranking import ListingFacts
from storerank.storage.catalog import CatalogStore, ScoreWriteBatch

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


class InMemoryScoreWriteBatch(ScoreWriteBatch):
    def __init__(self, store: "InMemoryCatalogStore"):
        super().__init__()
        self._store = store

    async def _write(self, updates: List[Tuple[str, float]]) -> None:
        self._store.commit_calls += 1
        if self._store.fail_on_commit == self._store.commit_calls:
            raise ConnectionError("connection lost during commit")
        for product_id, score in updates:
            self._store.scores[product_id] = score
            self._store.writes.append(product_id)
        self._store.committed_batches.append([product_id for product_id, _ in updates])


class InMemoryCatalogStore(CatalogStore):
    """CatalogStore over plain dicts, recording every read and write."""

    def __init__(self, listings: Optional[List[ListingFacts]] = None, weights: Optional[Dict[str, Any]] = None):
        self.listings: Dict[str, ListingFacts] = {listing.id: listing for listing in listings or []}
        self.titles: Dict[str, str] = {}
        self.scores: Dict[str, float] = {}
        self.weights = weights
        self.writes: List[str] = []
        self.committed_batches: List[List[str]] = []
        self.page_requests: List[Tuple[Optional[str], int]] = []
        self.audit: List[Dict[str, Any]] = []
        self.commit_calls = 0
        self.fail_on_commit: Optional[int] = None
        self.fail_reads = False

    def add(self, listing: ListingFacts) -> None:
        self.listings[listing.id] = listing

    async def fetch_active_page(self, after_id: Optional[str], limit: int) -> List[ListingFacts]:
        if self.fail_reads:
            raise ConnectionError("database unavailable")
        self.page_requests.append((after_id, limit))
        active = sorted(
            (listing for listing in self.listings.values() if listing.status == "ACTIVE"),
            key=lambda listing: listing.id,
        )
        if after_id is not None:
            active = [listing for listing in active if listing.id > after_id]
        return active[:limit]

    async def fetch_listing(self, product_id: str) -> Optional[ListingFacts]:
        if self.fail_reads:
            raise ConnectionError("database unavailable")
        return self.listings.get(product_id)

    async def update_score(self, product_id: str, score: float) -> None:
        self.scores[product_id] = score
        self.writes.append(product_id)

    def begin_batch(self) -> ScoreWriteBatch:
        return InMemoryScoreWriteBatch(self)

    async def fetch_ranking_weights(self) -> Optional[Mapping[str, Any]]:
        if self.fail_reads:
            raise ConnectionError("database unavailable")
        return dict(self.weights) if self.weights is not None else None

    async def save_ranking_weights(self, stored: Mapping[str, float]) -> None:
        self.weights = dict(stored)

    async def update_ranking_overrides(self, product_id: str, changes: Mapping[str, Any]) -> bool:
        listing = self.listings.get(product_id)
        if listing is None:
            return False
        self.listings[product_id] = listing.model_copy(update=dict(changes))
        return True

    async def list_ranked_products(
        self,
        *,
        sort: str,
        offset: int,
        limit: int,
        pinned_only: bool = False,
        has_boost: bool = False,
        has_penalty: bool = False,
    ) -> Tuple[List[Dict[str, Any]], int]:
        rows = [listing for listing in self.listings.values() if listing.status == "ACTIVE"]
        if pinned_only:
            rows = [listing for listing in rows if listing.pinned]
        if has_boost:
            rows = [listing for listing in rows if listing.manual_boost > 0]
        if has_penalty:
            rows = [listing for listing in rows if listing.penalty_score > 0]

        if sort == "score":
            rows.sort(key=lambda listing: (not listing.pinned, -self.scores.get(listing.id, 0.0), listing.id))
        elif sort == "newest":
            rows.sort(key=lambda listing: listing.created_at, reverse=True)
        elif sort == "boosted":
            rows.sort(key=lambda listing: listing.manual_boost, reverse=True)
        else:
            rows.sort(key=lambda listing: listing.penalty_score, reverse=True)

        page = [
            {
                "id": listing.id,
                "title": self.titles.get(listing.id),
                "seller_id": None,
                "score": self.scores.get(listing.id, 0.0),
                "pinned": listing.pinned,
                "manual_boost": listing.manual_boost,
                "penalty_score": listing.penalty_score,
                "rating_avg": listing.rating_avg,
                "rating_count": listing.rating_count,
                "order_count": listing.order_count,
                "created_at": listing.created_at,
            }
            for listing in rows[offset:offset + limit]
        ]
        return page, len(rows)

    async def ranking_stats(self) -> Dict[str, Any]:
        active = [listing for listing in self.listings.values() if listing.status == "ACTIVE"]
        if not active:
            return {"total": 0}
        return {
            "total": len(active),
            "avg_score": sum(self.scores.get(listing.id, 0.0) for listing in active) / len(active),
            "avg_boost": sum(listing.manual_boost for listing in active) / len(active),
            "avg_penalty": sum(listing.penalty_score for listing in active) / len(active),
            "pinned_count": sum(1 for listing in active if listing.pinned),
            "boosted_count": sum(1 for listing in active if listing.manual_boost > 0),
            "penalized_count": sum(1 for listing in active if listing.penalty_score > 0),
        }

    async def record_audit(
        self,
        admin_id: str,
        action: str,
        entity_type: str,
        entity_id: str,
        metadata: Mapping[str, Any],
    ) -> None:
        self.audit.append({
            "admin_id": admin_id,
            "action": action,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "metadata": dict(metadata),
        })


def build_listing(product_id: str = "p001", age_days: float = 0.0, **overrides: Any) -> ListingFacts:
    """
    Listing matching the reference scenario unless overridden:
    brand new, unrated, 20 in stock, no orders, unrated seller, no adjustments.
    """
    fields: Dict[str, Any] = {
        "id": product_id,
        "created_at": NOW - timedelta(days=age_days),
        "rating_avg": 0.0,
        "rating_count": 0,
        "quantity": 20,
        "manual_boost": 0.0,
        "penalty_score": 0.0,
        "pinned": False,
        "status": "ACTIVE",
        "seller_rating_avg": 0.0,
        "seller_rating_count": 0,
        "order_count": 0,
    }
    fields.update(overrides)
    return ListingFacts(**fields)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_listing():
    return build_listing


@pytest.fixture
def store() -> InMemoryCatalogStore:
    return InMemoryCatalogStore()


@pytest.fixture
def catalog(make_listing) -> InMemoryCatalogStore:
    """Seven active listings with varied facts plus two inactive ones."""
    listings = [
        make_listing("p001"),
        make_listing("p002", age_days=30, rating_avg=4.5, rating_count=12, order_count=40),
        make_listing("p003", age_days=200, quantity=3, seller_rating_avg=4.0, seller_rating_count=8),
        make_listing("p004", age_days=400, quantity=0, manual_boost=2.5),
        make_listing("p005", age_days=10, penalty_score=1.0, order_count=150),
        make_listing("p006", age_days=90, pinned=True, rating_avg=3.0, rating_count=2),
        make_listing("p007", age_days=5, manual_boost=20.0),
        make_listing("p008", status="DRAFT"),
        make_listing("p009", status="SUSPENDED", age_days=15),
    ]
    return InMemoryCatalogStore(listings)
