"""
Admin ranking endpoints.

POST  /admin/ranking/recompute
POST  /admin/ranking/products/{product_id}/recompute
GET   /admin/ranking/explain/{product_id}
GET   /admin/ranking/weights
PATCH /admin/ranking/weights
GET   /admin/ranking/products
PATCH /admin/ranking/products/{product_id}

Security: admin authentication is enforced upstream; the acting admin is
taken from the X-User-ID header for audit entries.
"""
import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from storerank.core.config import get_ranking_batch_size
from storerank.core.logging import get_logger, get_user_id
from storerank.models.ranking import (
    PaginationMeta,
    RankedProduct,
    RankedProductPage,
    RankingOverrides,
    RankingStats,
    RankingWeights,
    RankingWeightsUpdate,
    ScoreExplanation,
)
from storerank.services.ranking import (
    ListingNotFoundError,
    explain_score,
    get_ranking_weights,
    recompute_all_scores,
    recompute_product_score,
    update_ranking_weights,
)
from storerank.storage import RANKING_SORTS, CatalogStore, get_catalog_store

logger = get_logger(__name__)

router = APIRouter()

MAX_PAGE_LIMIT = 50


def _admin_id() -> str:
    return get_user_id() or "system"


def _not_found(product_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Product not found: {product_id}")


@router.post("/recompute")
async def recompute_rankings(
    batch_size: Optional[int] = Query(None, gt=0, description="Listings per committed batch"),
    store: CatalogStore = Depends(get_catalog_store),
):
    """Recompute scores for every active listing."""
    batch_size = batch_size or get_ranking_batch_size()
    updated = await recompute_all_scores(store, batch_size)

    await store.record_audit(
        admin_id=_admin_id(),
        action="RECOMPUTE_RANKINGS",
        entity_type="Product",
        entity_id="batch",
        metadata={"products_updated": updated, "batch_size": batch_size},
    )
    return {
        "message": f"Updated ranking for {updated} products",
        "products_updated": updated,
    }


@router.post("/products/{product_id}/recompute")
async def recompute_product(product_id: str, store: CatalogStore = Depends(get_catalog_store)):
    """
    Recompute one listing's score.

    Called by order-creation and listing-edit hooks.
    """
    try:
        score = await recompute_product_score(store, product_id)
    except ListingNotFoundError:
        raise _not_found(product_id)
    return {"product_id": product_id, "score": score}


@router.get("/explain/{product_id}", response_model=ScoreExplanation)
async def explain_product_score(product_id: str, store: CatalogStore = Depends(get_catalog_store)):
    """Detailed score breakdown for a listing."""
    try:
        return await explain_score(store, product_id)
    except ListingNotFoundError:
        raise _not_found(product_id)


@router.get("/weights", response_model=RankingWeights)
async def read_ranking_weights(store: CatalogStore = Depends(get_catalog_store)):
    return await get_ranking_weights(store)


@router.patch("/weights", response_model=RankingWeights)
async def patch_ranking_weights(
    update: RankingWeightsUpdate,
    store: CatalogStore = Depends(get_catalog_store),
):
    """
    Update one or more ranking weights.

    Coefficients are not required to sum to 1; the sum scales base scores.
    """
    changes = update.changes()
    if not changes:
        raise HTTPException(status_code=400, detail="No ranking weights provided")

    weights = await update_ranking_weights(store, changes)
    await store.record_audit(
        admin_id=_admin_id(),
        action="UPDATE_RANKING_WEIGHTS",
        entity_type="AdminSettings",
        entity_id="singleton",
        metadata={"changes": changes},
    )
    return weights


@router.get("/products", response_model=RankedProductPage)
async def list_ranked_products(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    sort: str = Query("score"),
    pinned: bool = Query(False),
    has_boost: bool = Query(False),
    has_penalty: bool = Query(False),
    store: CatalogStore = Depends(get_catalog_store),
):
    """List active listings with ranking information and summary stats."""
    if sort not in RANKING_SORTS:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid sort. Must be one of: {', '.join(RANKING_SORTS)}",
        )
    limit = min(limit, MAX_PAGE_LIMIT)

    rows, total = await store.list_ranked_products(
        sort=sort,
        offset=(page - 1) * limit,
        limit=limit,
        pinned_only=pinned,
        has_boost=has_boost,
        has_penalty=has_penalty,
    )
    stats = await store.ranking_stats()

    return RankedProductPage(
        products=[RankedProduct(**row) for row in rows],
        stats=RankingStats(**stats),
        pagination=PaginationMeta(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if total else 0,
        ),
    )


@router.patch("/products/{product_id}")
async def update_product_ranking(
    product_id: str,
    overrides: RankingOverrides,
    store: CatalogStore = Depends(get_catalog_store),
):
    """Update pin/boost/penalty for a listing and recompute its score."""
    changes = overrides.changes()
    if not await store.update_ranking_overrides(product_id, changes):
        raise _not_found(product_id)

    try:
        new_score = await recompute_product_score(store, product_id)
    except ListingNotFoundError:
        raise _not_found(product_id)

    listing = await store.fetch_listing(product_id)
    if listing is None:
        raise _not_found(product_id)

    await store.record_audit(
        admin_id=_admin_id(),
        action="UPDATE_PRODUCT_RANKING",
        entity_type="Product",
        entity_id=product_id,
        metadata={"changes": changes, "new_score": new_score},
    )
    logger.info(
        "ranking_overrides_updated",
        product_id=product_id,
        changes=changes,
        new_score=new_score,
    )
    return {
        "id": listing.id,
        "pinned": listing.pinned,
        "manual_boost": listing.manual_boost,
        "penalty_score": listing.penalty_score,
        "score": new_score,
    }
