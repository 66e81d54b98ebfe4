"""
HTTP Surface Tests

The application is built with the in-memory backend and a fake embedder;
the lifespan runs for real inside TestClient.
"""

import pytest
from fastapi.testclient import TestClient

from fakes import FakeEmbedder, unit_vector
from semsearch.config import Settings
from semsearch.core.errors import ConfigError, ProviderHTTPError
from semsearch.main import create_app


def _settings(**overrides):
    values = dict(
        _env_file=None,
        vector_backend="memory",
        search_similarity_threshold=0.5,
        embedding_dimension=2,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def embedder():
    return FakeEmbedder(
        vectors={
            "How to waterproof boots.": unit_vector(0.9),
            "Trail Boot searchable": unit_vector(0.8),
            "Sandal searchable": unit_vector(0.2),
        }
    )


@pytest.fixture
def client(embedder):
    app = create_app(_settings(), embedder=embedder)
    with TestClient(app) as c:
        yield c


def _ingest(client):
    resp = client.post(
        "/ingest/content",
        json={
            "tenant_id": "site-a",
            "documents": [
                {"id": "waterproofing", "title": "Waterproofing", "content": "How to waterproof boots."}
            ],
        },
    )
    assert resp.status_code == 200
    resp = client.post(
        "/ingest/catalog",
        json={
            "tenant_id": "site-a",
            "items": [
                {
                    "id": "boot",
                    "title": "Trail Boot",
                    "searchable_text": "Trail Boot searchable",
                    "attributes": {"category": "footwear", "price": 120, "currency": "USD"},
                },
                {"id": "sandal", "title": "Sandal", "searchable_text": "Sandal searchable"},
            ],
        },
    )
    assert resp.status_code == 200
    return resp.json()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "vector_backend": "memory"}


def test_ingest_reports_counts(client):
    report = _ingest(client)
    assert report == {
        "processed_count": 2,
        "skipped_count": 0,
        "documents_count": 2,
        "skipped": [],
    }


def test_search_merges_types(client):
    _ingest(client)

    resp = client.post("/search", json={"tenant_id": "site-a", "query": "boots"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["searched_types"] == ["content", "catalog"]
    assert data["failed_types"] == []
    assert [r["source_kind"] for r in data["results"]] == ["content_chunk", "catalog_item"]
    assert data["results"][0]["payload"]["parent_document_id"] == "waterproofing"
    assert data["results"][1]["payload"]["item_id"] == "boot"


def test_search_with_filters(client):
    _ingest(client)

    resp = client.post(
        "/search",
        json={
            "tenant_id": "site-a",
            "query": "boots",
            "content_types": ["catalog"],
            "filters": {"category": "footwear"},
        },
    )

    assert resp.status_code == 200
    assert [r["payload"]["item_id"] for r in resp.json()["results"]] == ["boot"]


def test_invalid_tenant_in_body_rejected(client):
    resp = client.post("/search", json={"tenant_id": "bad tenant", "query": "boots"})
    assert resp.status_code == 422


def test_invalid_tenant_in_path_rejected(client):
    resp = client.get("/tenants/bad%20tenant/stats")
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_tenant"


def test_intent(client):
    resp = client.post("/search/intent", json={"query": "buy boots on sale"})
    assert resp.status_code == 200
    assert resp.json()["suggested_type"] == "catalog"


def test_tenant_listing_stats_and_deletion(client):
    _ingest(client)

    assert client.get("/tenants").json() == {"tenants": ["site-a"]}

    stats = client.get("/tenants/site-a/stats").json()
    assert stats == {"tenant_id": "site-a", "content_chunk_count": 1, "catalog_item_count": 2}

    resp = client.delete("/tenants/site-a/documents/waterproofing")
    assert resp.json()["count"] == 1

    resp = client.delete("/tenants/site-a/catalog")
    assert resp.json() == {"status": "deleted", "count": 2, "details": None}

    assert client.get("/tenants").json() == {"tenants": []}


def test_provider_failure_maps_to_502(embedder):
    embedder.failures["boots"] = ProviderHTTPError("down", 400)
    app = create_app(_settings(), embedder=embedder)

    with TestClient(app) as client:
        resp = client.post(
            "/search",
            json={"tenant_id": "site-a", "query": "boots", "content_types": ["content"]},
        )

    assert resp.status_code == 502
    assert resp.json()["error"] == "embedding_provider_error"


def test_missing_threshold_fails_startup(embedder):
    app = create_app(_settings(search_similarity_threshold=None), embedder=embedder)

    with pytest.raises(ConfigError):
        with TestClient(app):
            pass
