"""
Tests for the schema cache API.
"""

import pytest
from fastapi.testclient import TestClient

from schema_cache.api.app import create_app
from schema_cache.repositories import HashEmbeddingProvider
from schema_cache.services import CacheService
from tests.test_cache_service import UnavailableRepository

BLOG = {
    "prompt": "Create a blog schema",
    "schema": {"tables": [{"name": "posts"}, {"name": "authors"}]},
    "sql": "CREATE TABLE posts (id uuid primary key);",
    "tokens_used": 500,
}


@pytest.fixture
def unavailable_client():
    """Client whose store fails on every lookup and write."""
    service = CacheService(
        repository=UnavailableRepository(),
        embedding_provider=HashEmbeddingProvider(dimension=1536),
    )
    with TestClient(create_app(cache_service=service)) as test_client:
        yield test_client


def test_root(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Schema Cache API"


def test_health(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "cache_healthy": True}


def test_lookup_miss_then_hit(client):
    """Store after a miss, then hit with the stored artifact."""
    response = client.post("/cache/lookup", json={"prompt": BLOG["prompt"]})
    assert response.status_code == 200
    assert response.json()["found"] is False

    response = client.post("/cache/store", json=BLOG)
    assert response.status_code == 200
    cache_key = response.json()["cache_key"]

    response = client.post("/cache/lookup", json={"prompt": "create a BLOG schema", "threshold": 0.95})
    assert response.status_code == 200
    data = response.json()
    assert data["found"] is True
    assert data["cache_key"] == cache_key
    assert data["schema"] == BLOG["schema"]
    assert data["sql"] == BLOG["sql"]
    assert data["similarity"] == 1.0
    assert data["tokens_saved"] == 500
    assert data["cost_saved"] == pytest.approx(0.0225)


def test_search(client):
    """Test the public search endpoint."""
    client.post("/cache/store", json=BLOG)

    response = client.post("/cache/search", json={"prompt": BLOG["prompt"]})
    assert response.status_code == 200
    assert response.json()["found"] is True

    response = client.post("/cache/search", json={"prompt": "Completely unrelated text"})
    assert response.json()["found"] is False


def test_stats_and_ranking(client):
    """Stats count reuse only; ranking orders by usage."""
    client.post("/cache/store", json=BLOG)
    client.post("/cache/store", json={**BLOG, "prompt": "Create a shop schema", "tokens_used": 100})
    for _ in range(2):
        client.post("/cache/lookup", json={"prompt": BLOG["prompt"]})

    response = client.get("/cache/stats")
    assert response.status_code == 200
    data = response.json()
    assert data["total_cached"] == 2
    assert data["total_hits"] == 2
    assert data["total_tokens_saved"] == 1000
    assert data["hit_rate"] == pytest.approx(0.5)
    assert data["cost_saved"] == pytest.approx(0.045)

    response = client.get("/cache/top", params={"limit": 1})
    assert response.status_code == 200
    top = response.json()
    assert len(top) == 1
    assert top[0]["prompt"] == BLOG["prompt"]
    assert top[0]["usage_count"] == 3


def test_empty_stats(client):
    response = client.get("/cache/stats")
    assert response.status_code == 200
    assert response.json() == {
        "total_cached": 0,
        "total_hits": 0,
        "total_tokens_saved": 0,
        "hit_rate": 0.0,
        "cost_saved": 0.0,
    }


def test_invalidate(client):
    """Invalidation removes the entry and is a no-op when repeated."""
    cache_key = client.post("/cache/store", json=BLOG).json()["cache_key"]

    response = client.delete(f"/cache/{cache_key}")
    assert response.status_code == 200
    assert response.json() == {"cache_key": cache_key, "deleted": True}

    response = client.delete(f"/cache/{cache_key}")
    assert response.status_code == 200
    assert response.json()["deleted"] is False

    assert client.post("/cache/lookup", json={"prompt": BLOG["prompt"]}).json()["found"] is False


def test_prune(client):
    client.post("/cache/store", json=BLOG)

    response = client.post("/cache/prune", json={"max_age_days": 30})
    assert response.status_code == 200
    assert response.json() == {"max_age_days": 30, "deleted_count": 0}


def test_cost(client):
    response = client.get("/cache/cost", params={"tokens": 1000})
    assert response.status_code == 200
    assert response.json()["cost_saved"] == pytest.approx(0.045)


def test_embedding_status(client):
    response = client.get("/cache/embedding")
    assert response.status_code == 200
    data = response.json()
    assert data["configured"] is False
    assert data["fallback"] is True
    assert data["dimension"] == 1536
    assert "OPENAI_API_KEY" in data["recommendation"]


@pytest.mark.parametrize(
    "payload",
    [
        {"prompt": ""},
        {"prompt": "Create a blog schema", "threshold": 0},
        {"prompt": "Create a blog schema", "threshold": 1.5},
    ],
)
def test_lookup_validation(client, payload):
    response = client.post("/cache/lookup", json=payload)
    assert response.status_code == 422


def test_store_validation(client):
    response = client.post("/cache/store", json={**BLOG, "tokens_used": -1})
    assert response.status_code == 422


def test_lookup_degrades_to_miss_when_store_unavailable(unavailable_client):
    response = unavailable_client.post("/cache/lookup", json={"prompt": BLOG["prompt"]})
    assert response.status_code == 200
    assert response.json()["found"] is False


def test_store_fails_when_store_unavailable(unavailable_client):
    response = unavailable_client.post("/cache/store", json=BLOG)
    assert response.status_code == 500
    assert "store unavailable" in response.json()["detail"]
