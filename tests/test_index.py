"""
In-Memory Index and Backend Tests
"""

import pytest

from semsearch.core.errors import VectorStoreError
from semsearch.embeddings.index import TenantVectorIndex, VectorIndexError
from semsearch.embeddings.models import ContentPayload, SourceKind, VectorRecord
from semsearch.embeddings.registry import InMemoryVectorBackend, TenantIndexRegistry
from semsearch.tenants import InvalidTenantError


def _record(tenant_id, record_id, vector, document_id="doc"):
    return VectorRecord(
        record_id=record_id,
        tenant_id=tenant_id,
        embedding=vector,
        payload=ContentPayload(
            chunk_id=record_id,
            parent_document_id=document_id,
            sequence_index=0,
            text=record_id,
            start_offset=0,
            end_offset=len(record_id),
        ),
    )


class TestTenantVectorIndex:
    def test_search_orders_by_score_then_record_id(self):
        index = TenantVectorIndex("site-a")
        index.upsert(_record("site-a", "c", [1.0, 0.0]))
        index.upsert(_record("site-a", "a", [1.0, 0.0]))
        index.upsert(_record("site-a", "b", [0.0, 1.0]))

        hits = index.search([1.0, 0.0], threshold=-1.0)

        assert [record.record_id for record, _ in hits] == ["a", "c", "b"]
        assert hits[0][1] == pytest.approx(1.0)
        assert hits[2][1] == pytest.approx(0.0)

    def test_vectors_are_compared_by_direction(self):
        index = TenantVectorIndex("site-a")
        index.upsert(_record("site-a", "long", [10.0, 0.0]))

        [(record, score)] = index.search([0.5, 0.0], threshold=0.0)
        assert score == pytest.approx(1.0)

    def test_upsert_replaces(self):
        index = TenantVectorIndex("site-a")
        index.upsert(_record("site-a", "a", [1.0, 0.0]))
        index.upsert(_record("site-a", "a", [0.0, 1.0]))

        assert len(index) == 1
        assert index.search([1.0, 0.0], threshold=0.5) == []

    def test_rejects_foreign_tenant(self):
        index = TenantVectorIndex("site-a")
        with pytest.raises(VectorIndexError):
            index.upsert(_record("site-b", "a", [1.0, 0.0]))

    def test_rejects_dimension_mismatch(self):
        index = TenantVectorIndex("site-a")
        index.upsert(_record("site-a", "a", [1.0, 0.0]))
        with pytest.raises(VectorIndexError):
            index.upsert(_record("site-a", "b", [1.0, 0.0, 0.0]))

    def test_rejects_zero_vector(self):
        index = TenantVectorIndex("site-a")
        with pytest.raises(VectorIndexError):
            index.upsert(_record("site-a", "a", [0.0, 0.0]))

    def test_filters_and_delete_where(self):
        index = TenantVectorIndex("site-a")
        index.upsert(_record("site-a", "a", [1.0, 0.0], document_id="x"))
        index.upsert(_record("site-a", "b", [1.0, 0.0], document_id="y"))

        hits = index.search([1.0, 0.0], 0.0, filters={"parent_document_id": "y"})
        assert [r.record_id for r, _ in hits] == ["b"]

        assert index.delete_where(lambda r: r.payload.parent_document_id == "x") == 1
        assert len(index) == 1


class TestRegistry:
    def test_invalid_tenant_rejected(self):
        with pytest.raises(InvalidTenantError):
            TenantIndexRegistry().get_or_create("no spaces allowed")

    def test_tenants_lists_non_empty_indexes(self):
        registry = TenantIndexRegistry()
        registry.get_or_create("site-b").upsert(_record("site-b", "a", [1.0]))
        registry.get_or_create("site-a")

        assert registry.tenants() == ["site-b"]
        assert registry.drop("site-b") == 1
        assert registry.tenants() == []


class TestInMemoryBackend:
    async def test_wrong_source_kind_rejected(self):
        backend = InMemoryVectorBackend(SourceKind.CATALOG_ITEM)
        with pytest.raises(VectorStoreError):
            await backend.upsert(_record("site-a", "a", [1.0, 0.0]))

    async def test_configured_dimension_enforced(self):
        backend = InMemoryVectorBackend(SourceKind.CONTENT_CHUNK, dimension=3)
        with pytest.raises(VectorStoreError):
            await backend.upsert(_record("site-a", "a", [1.0, 0.0]))

    async def test_search_returns_hits_without_vectors(self):
        backend = InMemoryVectorBackend(SourceKind.CONTENT_CHUNK)
        await backend.upsert(_record("site-a", "a", [1.0, 0.0]))

        [hit] = await backend.search("site-a", [1.0, 0.0], threshold=0.5)

        assert hit.record_id == "a"
        assert hit.tenant_id == "site-a"
        assert hit.score == pytest.approx(1.0)
