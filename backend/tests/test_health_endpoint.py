"""
Integration tests for health check endpoints.
"""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from storerank.main import app


@pytest.fixture
def client():
    return TestClient(app)


def test_basic_health_check(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_database_health_without_pool(client):
    with patch("storerank.routes.health.get_primary_pool", return_value=None):
        response = client.get("/health/db")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "unavailable"
    assert data["pool_initialized"] is False


def test_database_health_reachable(client):
    with patch("storerank.routes.health.get_primary_pool", return_value=MagicMock()), \
            patch("storerank.routes.health.execute_read_one", new=AsyncMock(return_value={"ok": 1})):
        response = client.get("/health/db")

    assert response.json() == {
        "status": "ok",
        "pool_initialized": True,
        "message": "Database is reachable",
    }


def test_database_health_query_failure(client):
    failing = AsyncMock(side_effect=ConnectionError("connection refused"))
    with patch("storerank.routes.health.get_primary_pool", return_value=MagicMock()), \
            patch("storerank.routes.health.execute_read_one", new=failing):
        response = client.get("/health/db")

    data = response.json()
    assert data["status"] == "unavailable"
    assert data["pool_initialized"] is True
