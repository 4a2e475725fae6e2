"""
Tests for batch and single-listing score recomputation.
"""
from collections import Counter

import pytest

from storerank.models.ranking import RankingWeights
from storerank.services.ranking import (
    ListingNotFoundError,
    recompute_all_scores,
    recompute_product_score,
)
from storerank.services.ranking.score import score_listing
from storerank.services.ranking.weights import DEFAULT_WEIGHTS

ACTIVE_IDS = {"p001", "p002", "p003", "p004", "p005", "p006", "p007"}


class TestRecomputeAll:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("batch_size", [1, 2, 3, 7, 100])
    async def test_every_active_listing_updated_exactly_once(self, catalog, now, batch_size):
        updated = await recompute_all_scores(catalog, batch_size, now=now)

        assert updated == len(ACTIVE_IDS)
        counts = Counter(catalog.writes)
        assert set(counts) == ACTIVE_IDS
        assert all(count == 1 for count in counts.values())

    @pytest.mark.asyncio
    async def test_inactive_listings_untouched(self, catalog, now):
        await recompute_all_scores(catalog, 3, now=now)

        assert "p008" not in catalog.scores
        assert "p009" not in catalog.scores

    @pytest.mark.asyncio
    async def test_pages_committed_separately_and_bounded(self, catalog, now):
        await recompute_all_scores(catalog, 3, now=now)

        assert catalog.committed_batches == [
            ["p001", "p002", "p003"],
            ["p004", "p005", "p006"],
            ["p007"],
        ]

    @pytest.mark.asyncio
    async def test_pages_follow_id_cursor(self, catalog, now):
        await recompute_all_scores(catalog, 2, now=now)

        assert catalog.page_requests == [
            (None, 2),
            ("p002", 2),
            ("p004", 2),
            ("p006", 2),
        ]

    @pytest.mark.asyncio
    async def test_exact_multiple_stops_on_empty_page(self, catalog, now):
        updated = await recompute_all_scores(catalog, 7, now=now)

        assert updated == 7
        assert catalog.page_requests == [(None, 7), ("p007", 7)]

    @pytest.mark.asyncio
    async def test_scores_match_shared_scoring_path(self, catalog, now):
        await recompute_all_scores(catalog, 4, now=now)

        for product_id in ACTIVE_IDS:
            expected = score_listing(catalog.listings[product_id], DEFAULT_WEIGHTS, now).final_score
            assert catalog.scores[product_id] == expected

    @pytest.mark.asyncio
    async def test_reference_scores(self, catalog, now):
        await recompute_all_scores(catalog, 100, now=now)

        assert catalog.scores["p001"] == pytest.approx(0.625)
        assert catalog.scores["p007"] == 10.0
        assert all(0.0 <= score <= 10.0 for score in catalog.scores.values())

    @pytest.mark.asyncio
    async def test_uses_stored_weights(self, catalog, now):
        catalog.weights = {"w_recency": 0.0, "w_rating": 0.0, "w_orders": 0.0, "w_stock": 1.0, "w_sellerRep": 0.0}

        await recompute_all_scores(catalog, 100, now=now)

        # Only stock counts: 20 units -> 1.0
        assert catalog.scores["p001"] == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_explicit_weights_override_configuration(self, catalog, now):
        catalog.weights = {"w_stock": 0.9}
        weights = RankingWeights(recency=1.0, rating=0.0, orders=0.0, stock=0.0, seller_reputation=0.0)

        await recompute_all_scores(catalog, 100, weights=weights, now=now)

        assert catalog.scores["p001"] == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_empty_catalog_returns_zero(self, store, now):
        assert await recompute_all_scores(store, 10, now=now) == 0
        assert store.committed_batches == []

    @pytest.mark.asyncio
    async def test_unconditional_overwrite(self, catalog, now):
        catalog.scores = {product_id: 9.99 for product_id in ACTIVE_IDS}

        await recompute_all_scores(catalog, 5, now=now)

        assert catalog.scores["p001"] == pytest.approx(0.625)
        assert Counter(catalog.writes) == Counter(ACTIVE_IDS)

    @pytest.mark.asyncio
    async def test_failed_commit_leaves_only_whole_pages(self, catalog, now):
        catalog.fail_on_commit = 2

        with pytest.raises(ConnectionError):
            await recompute_all_scores(catalog, 3, now=now)

        assert set(catalog.scores) == {"p001", "p002", "p003"}
        assert catalog.committed_batches == [["p001", "p002", "p003"]]

    @pytest.mark.asyncio
    async def test_read_failure_propagates(self, catalog, now):
        catalog.fail_reads = True

        with pytest.raises(ConnectionError):
            await recompute_all_scores(catalog, 3, now=now)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("batch_size", [0, -5, 2.5, True, "10"])
    async def test_rejects_invalid_batch_size(self, catalog, batch_size):
        with pytest.raises(ValueError):
            await recompute_all_scores(catalog, batch_size)

        assert catalog.page_requests == []


class TestRecomputeOne:

    @pytest.mark.asyncio
    async def test_persists_and_returns_score(self, catalog, now):
        score = await recompute_product_score(catalog, "p001", now=now)

        assert score == pytest.approx(0.625)
        assert catalog.scores == {"p001": score}

    @pytest.mark.asyncio
    async def test_boosted_listing(self, store, make_listing, now):
        store.add(make_listing("p100", manual_boost=5.0))

        assert await recompute_product_score(store, "p100", now=now) == pytest.approx(5.625)

    @pytest.mark.asyncio
    async def test_old_listing(self, store, make_listing, now):
        store.add(make_listing("p200", age_days=400))

        assert await recompute_product_score(store, "p200", now=now) == pytest.approx(0.325)

    @pytest.mark.asyncio
    async def test_inactive_listing_can_be_rescored(self, catalog, now):
        score = await recompute_product_score(catalog, "p008", now=now)
        assert catalog.scores["p008"] == score

    @pytest.mark.asyncio
    async def test_idempotent(self, catalog, now):
        first = await recompute_product_score(catalog, "p005", now=now)
        second = await recompute_product_score(catalog, "p005", now=now)

        assert first == second
        assert catalog.writes == ["p005", "p005"]

    @pytest.mark.asyncio
    async def test_agrees_with_batch_pass(self, catalog, now):
        single = await recompute_product_score(catalog, "p003", now=now)
        await recompute_all_scores(catalog, 2, now=now)

        assert catalog.scores["p003"] == single

    @pytest.mark.asyncio
    async def test_missing_listing_raises_not_found(self, catalog, now):
        with pytest.raises(ListingNotFoundError) as exc_info:
            await recompute_product_score(catalog, "missing", now=now)

        assert exc_info.value.product_id == "missing"
        assert catalog.writes == []

    @pytest.mark.asyncio
    async def test_not_found_is_a_lookup_error(self, store):
        with pytest.raises(LookupError):
            await recompute_product_score(store, "nope")

    @pytest.mark.asyncio
    async def test_read_failure_propagates(self, catalog):
        catalog.fail_reads = True

        with pytest.raises(ConnectionError):
            await recompute_product_score(catalog, "p001")
