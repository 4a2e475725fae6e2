"""
Storage interface the ranking engine reads listings from and writes scores to.

The engine only depends on CatalogStore; the PostgreSQL implementation lives
in storerank.storage.postgres.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Tuple

from storerank.models.ranking import ListingFacts

RANKING_SORTS = ("score", "newest", "boosted", "penalized")


class ScoreWriteBatch(ABC):
    """
    Unit of work for score writes.

    Scores are staged in memory and written by commit() as one atomic unit:
    either every staged score is persisted or none is.
    """

    def __init__(self) -> None:
        self._pending: List[Tuple[str, float]] = []
        self._committed = False

    def stage(self, product_id: str, score: float) -> None:
        if self._committed:
            raise RuntimeError("Score batch already committed")
        self._pending.append((product_id, score))

    @property
    def pending(self) -> List[Tuple[str, float]]:
        return list(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    async def commit(self) -> int:
        """Persist every staged score atomically. Returns the number written."""
        if self._committed:
            raise RuntimeError("Score batch already committed")
        if self._pending:
            await self._write(self._pending)
        self._committed = True
        return len(self._pending)

    @abstractmethod
    async def _write(self, updates: List[Tuple[str, float]]) -> None:
        """Write all updates in one transaction."""


class CatalogStore(ABC):
    """Read access to listings and configuration, write access to scores."""

    @abstractmethod
    async def fetch_active_page(self, after_id: Optional[str], limit: int) -> List[ListingFacts]:
        """
        Return up to `limit` ACTIVE listings with id > after_id, ordered by id.

        after_id=None starts from the beginning of the catalog.
        """

    @abstractmethod
    async def fetch_listing(self, product_id: str) -> Optional[ListingFacts]:
        """Return one listing regardless of status, or None when it does not exist."""

    @abstractmethod
    async def update_score(self, product_id: str, score: float) -> None:
        """Overwrite the stored score of one listing."""

    @abstractmethod
    def begin_batch(self) -> ScoreWriteBatch:
        """Open a new score write batch."""

    @abstractmethod
    async def fetch_ranking_weights(self) -> Optional[Mapping[str, Any]]:
        """Return the stored weight record (storage keys), or None when absent."""

    @abstractmethod
    async def save_ranking_weights(self, stored: Mapping[str, float]) -> None:
        """Upsert the singleton weight record (storage keys)."""

    @abstractmethod
    async def update_ranking_overrides(self, product_id: str, changes: Mapping[str, Any]) -> bool:
        """Apply pinned/manual_boost/penalty_score changes. False when the listing does not exist."""

    @abstractmethod
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
        """Return (rows, total matching) for the admin ranking list of ACTIVE listings."""

    @abstractmethod
    async def ranking_stats(self) -> Dict[str, Any]:
        """Aggregate score/boost/penalty statistics over ACTIVE listings."""

    @abstractmethod
    async def record_audit(
        self,
        admin_id: str,
        action: str,
        entity_type: str,
        entity_id: str,
        metadata: Mapping[str, Any],
    ) -> None:
        """Append an administrative audit entry."""
