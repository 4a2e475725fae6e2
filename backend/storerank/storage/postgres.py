"""
PostgreSQL implementation of CatalogStore over the asyncpg pool.

Tables (snake_case): products, sellers, order_items, admin_settings, audit_logs.
The order association count is derived with a correlated count over order_items.
"""
import json
from typing import Any, Dict, List, Mapping, Optional, Tuple

from storerank.core.database import (
    execute_read_one,
    execute_read_query,
    execute_write_query,
    transaction,
)
from storerank.core.logging import get_logger
from storerank.models.ranking import ListingFacts
from storerank.storage.catalog import RANKING_SORTS, CatalogStore, ScoreWriteBatch

logger = get_logger(__name__)

SETTINGS_ID = "singleton"

_LISTING_COLUMNS = """
    p.id,
    p.created_at,
    p.rating_avg,
    p.rating_count,
    p.quantity,
    p.manual_boost,
    p.penalty_score,
    p.pinned,
    p.status,
    COALESCE(s.rating_avg, 0) AS seller_rating_avg,
    COALESCE(s.rating_count, 0) AS seller_rating_count,
    (SELECT COUNT(*) FROM order_items oi WHERE oi.product_id = p.id) AS order_count
"""

_ORDER_BY = {
    "score": "p.pinned DESC, p.score DESC, p.id",
    "newest": "p.created_at DESC, p.id",
    "boosted": "p.manual_boost DESC, p.id",
    "penalized": "p.penalty_score DESC, p.id",
}

_OVERRIDE_COLUMNS = ("pinned", "manual_boost", "penalty_score")


class PostgresScoreWriteBatch(ScoreWriteBatch):
    """Writes a page of scores inside one transaction."""

    async def _write(self, updates: List[Tuple[str, float]]) -> None:
        async with transaction(query_type="score_batch") as conn:
            await conn.executemany(
                "UPDATE products SET score = $2 WHERE id = $1",
                updates,
            )


class PostgresCatalogStore(CatalogStore):

    async def fetch_active_page(self, after_id: Optional[str], limit: int) -> List[ListingFacts]:
        rows = await execute_read_query(
            f"""
            SELECT {_LISTING_COLUMNS}
            FROM products p
            LEFT JOIN sellers s ON s.id = p.seller_id
            WHERE p.status = 'ACTIVE'
              AND ($1::text IS NULL OR p.id > $1::text)
            ORDER BY p.id
            LIMIT $2
            """,
            after_id,
            limit,
            query_type="listing_page",
        )
        return [ListingFacts(**row) for row in rows]

    async def fetch_listing(self, product_id: str) -> Optional[ListingFacts]:
        row = await execute_read_one(
            f"""
            SELECT {_LISTING_COLUMNS}
            FROM products p
            LEFT JOIN sellers s ON s.id = p.seller_id
            WHERE p.id = $1
            """,
            product_id,
            query_type="listing",
        )
        return ListingFacts(**row) if row else None

    async def update_score(self, product_id: str, score: float) -> None:
        await execute_write_query(
            "UPDATE products SET score = $2 WHERE id = $1",
            product_id,
            score,
            query_type="score_single",
        )

    def begin_batch(self) -> ScoreWriteBatch:
        return PostgresScoreWriteBatch()

    async def fetch_ranking_weights(self) -> Optional[Mapping[str, Any]]:
        row = await execute_read_one(
            "SELECT ranking_weights FROM admin_settings WHERE id = $1",
            SETTINGS_ID,
            query_type="weights",
        )
        if not row or row.get("ranking_weights") is None:
            return None
        stored = row["ranking_weights"]
        # jsonb comes back as text unless a codec is registered
        if isinstance(stored, str):
            stored = json.loads(stored)
        return stored

    async def save_ranking_weights(self, stored: Mapping[str, float]) -> None:
        await execute_write_query(
            """
            INSERT INTO admin_settings (id, ranking_weights)
            VALUES ($1, $2::jsonb)
            ON CONFLICT (id) DO UPDATE SET ranking_weights = EXCLUDED.ranking_weights
            """,
            SETTINGS_ID,
            json.dumps(dict(stored)),
            query_type="weights_update",
        )

    async def update_ranking_overrides(self, product_id: str, changes: Mapping[str, Any]) -> bool:
        columns = [name for name in _OVERRIDE_COLUMNS if name in changes]
        if not columns:
            row = await execute_read_one(
                "SELECT id FROM products WHERE id = $1", product_id, query_type="listing"
            )
            return row is not None

        assignments = ", ".join(f"{name} = ${i + 2}" for i, name in enumerate(columns))
        status = await execute_write_query(
            f"UPDATE products SET {assignments} WHERE id = $1",
            product_id,
            *[changes[name] for name in columns],
            query_type="ranking_overrides",
        )
        return status is not None and not status.endswith(" 0")

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
        if sort not in RANKING_SORTS:
            raise ValueError(f"Unknown sort: {sort}")

        conditions = ["p.status = 'ACTIVE'"]
        if pinned_only:
            conditions.append("p.pinned")
        if has_boost:
            conditions.append("p.manual_boost > 0")
        if has_penalty:
            conditions.append("p.penalty_score > 0")
        where = " AND ".join(conditions)

        rows = await execute_read_query(
            f"""
            SELECT
                p.id, p.title, p.seller_id, p.score, p.pinned, p.manual_boost,
                p.penalty_score, p.rating_avg, p.rating_count, p.created_at,
                (SELECT COUNT(*) FROM order_items oi WHERE oi.product_id = p.id) AS order_count
            FROM products p
            WHERE {where}
            ORDER BY {_ORDER_BY[sort]}
            OFFSET $1
            LIMIT $2
            """,
            offset,
            limit,
            query_type="ranking_list",
        )
        total_row = await execute_read_one(
            f"SELECT COUNT(*) AS total FROM products p WHERE {where}",
            query_type="ranking_list_count",
        )
        return rows, int(total_row["total"]) if total_row else 0

    async def ranking_stats(self) -> Dict[str, Any]:
        row = await execute_read_one(
            """
            SELECT
                COUNT(*) AS total,
                COALESCE(AVG(score), 0) AS avg_score,
                COALESCE(AVG(manual_boost), 0) AS avg_boost,
                COALESCE(AVG(penalty_score), 0) AS avg_penalty,
                COUNT(*) FILTER (WHERE pinned) AS pinned_count,
                COUNT(*) FILTER (WHERE manual_boost > 0) AS boosted_count,
                COUNT(*) FILTER (WHERE penalty_score > 0) AS penalized_count
            FROM products
            WHERE status = 'ACTIVE'
            """,
            query_type="ranking_stats",
        )
        return dict(row) if row else {}

    async def record_audit(
        self,
        admin_id: str,
        action: str,
        entity_type: str,
        entity_id: str,
        metadata: Mapping[str, Any],
    ) -> None:
        await execute_write_query(
            """
            INSERT INTO audit_logs (admin_id, action, entity_type, entity_id, metadata)
            VALUES ($1, $2, $3, $4, $5::jsonb)
            """,
            admin_id,
            action,
            entity_type,
            entity_id,
            json.dumps(dict(metadata), default=str),
            query_type="audit",
        )


_catalog_store: Optional[PostgresCatalogStore] = None


def get_catalog_store() -> CatalogStore:
    """Process-wide PostgreSQL catalog store (FastAPI dependency)."""
    global _catalog_store
    if _catalog_store is None:
        _catalog_store = PostgresCatalogStore()
    return _catalog_store
