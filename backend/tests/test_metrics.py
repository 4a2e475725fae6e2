"""
Unit tests for Prometheus metrics collection.
"""
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from storerank.core.metrics import (
    get_metrics,
    get_metrics_content_type,
    normalize_endpoint,
    record_db_query_duration,
    record_http_request,
    record_ranking_score,
    record_recompute,
    record_weights_defaulted,
    registry,
    update_resource_metrics,
)


def sample(name, **labels):
    return registry.get_sample_value(name, labels) or 0.0


@pytest.mark.parametrize(
    "path,expected",
    [
        ("/admin/ranking/explain/p_123", "/admin/ranking/explain/{product_id}"),
        ("/admin/ranking/products/p_123", "/admin/ranking/products/{product_id}"),
        ("/admin/ranking/products/p_123/recompute", "/admin/ranking/products/{product_id}/recompute"),
        ("/admin/ranking/products", "/admin/ranking/products"),
        ("/admin/ranking/weights", "/admin/ranking/weights"),
        ("/health?verbose=1", "/health"),
    ],
)
def test_normalize_endpoint(path, expected):
    assert normalize_endpoint(path) == expected


def test_record_http_request_counts_errors():
    endpoint = "/admin/ranking/explain/{product_id}"
    before = sample("http_requests_total", method="GET", endpoint=endpoint, status="404")
    errors_before = sample("http_errors_total", method="GET", endpoint=endpoint, status_code="404")

    record_http_request("GET", "/admin/ranking/explain/p_999", 404, 0.01)

    assert sample("http_requests_total", method="GET", endpoint=endpoint, status="404") == before + 1
    assert sample("http_errors_total", method="GET", endpoint=endpoint, status_code="404") == errors_before + 1


def test_record_http_request_success_is_not_an_error():
    errors_before = sample("http_errors_total", method="GET", endpoint="/health", status_code="200")

    record_http_request("GET", "/health", 200, 0.001)

    assert sample("http_errors_total", method="GET", endpoint="/health", status_code="200") == errors_before


def test_record_recompute():
    runs_before = sample("ranking_recompute_runs_total", mode="batch", outcome="success")
    rescored_before = sample("ranking_listings_rescored_total", mode="batch")

    record_recompute("batch", "success", 1.5, listings=250)

    assert sample("ranking_recompute_runs_total", mode="batch", outcome="success") == runs_before + 1
    assert sample("ranking_listings_rescored_total", mode="batch") == rescored_before + 250


def test_record_recompute_error_writes_nothing():
    rescored_before = sample("ranking_listings_rescored_total", mode="single")
    errors_before = sample("ranking_recompute_runs_total", mode="single", outcome="error")

    record_recompute("single", "error", 0.2)

    assert sample("ranking_recompute_runs_total", mode="single", outcome="error") == errors_before + 1
    assert sample("ranking_listings_rescored_total", mode="single") == rescored_before


def test_record_ranking_score():
    count_before = sample("ranking_score_distribution_count")
    low_bucket_before = sample("ranking_score_distribution_bucket", le="0.75")

    record_ranking_score(0.625)
    record_ranking_score(9.5)

    assert sample("ranking_score_distribution_count") == count_before + 2
    assert sample("ranking_score_distribution_bucket", le="0.75") == low_bucket_before + 1


def test_record_weights_defaulted():
    before = sample("ranking_weights_defaulted_total")

    record_weights_defaulted()

    assert sample("ranking_weights_defaulted_total") == before + 1


def test_record_db_query_duration():
    before = sample("db_query_duration_seconds_count", query_type="listing_page")

    record_db_query_duration("listing_page", 0.004)

    assert sample("db_query_duration_seconds_count", query_type="listing_page") == before + 1


def test_update_resource_metrics_tolerates_psutil_failure():
    with patch("storerank.core.metrics.psutil.cpu_percent", side_effect=OSError("no procfs")):
        update_resource_metrics()


def test_get_metrics_text_format():
    record_recompute("batch", "success", 0.1, listings=1)

    output = get_metrics().decode("utf-8")

    assert "ranking_recompute_runs_total" in output
    assert "system_memory_usage_bytes" in output
    assert get_metrics_content_type().startswith("text/plain")


def test_metrics_endpoint():
    from storerank.main import app

    response = TestClient(app).get("/metrics")

    assert response.status_code == 200
    assert "http_requests_total" in response.text


def test_metrics_endpoint_survives_collection_failure():
    from storerank.main import app

    with patch("storerank.routes.metrics.get_metrics", side_effect=RuntimeError("registry broken")):
        response = TestClient(app).get("/metrics")

    assert response.status_code == 200
    assert response.text.startswith("# ranking metrics unavailable")
