"""
Tenant-Aware In-Memory Index Registry

This module provides a registry of per-tenant in-memory vector indexes and the
in-memory storage backend built on it. Each tenant gets its own isolated
index, so a query for one tenant can only ever scan that tenant's vectors.

Thread Safety
-------------
- The registry is protected by an RLock
- Individual TenantVectorIndex instances have their own locks
- Safe for concurrent use across async request handlers
"""

from __future__ import annotations

from threading import RLock
from typing import Any, Dict, List, Mapping, Optional

from .index import TenantVectorIndex, VectorIndexError
from .models import SourceKind, StoredHit, VectorRecord
from ..core.errors import VectorStoreError
from ..tenants import validate_tenant_id


# ---------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------

class TenantIndexRegistry:
    """
    Holds one TenantVectorIndex per tenant.

    Instances are constructed explicitly and owned by a backend; there is
    no process-wide registry.
    """

    def __init__(self, dimension: Optional[int] = None) -> None:
        self._dimension = dimension
        self._indexes: Dict[str, TenantVectorIndex] = {}
        self._lock = RLock()

    def get(self, tenant_id: str) -> Optional[TenantVectorIndex]:
        with self._lock:
            return self._indexes.get(tenant_id)

    def get_or_create(self, tenant_id: str) -> TenantVectorIndex:
        """
        Get or create the index for a tenant.

        Raises
        ------
        InvalidTenantError
            If tenant_id is invalid.
        """
        with self._lock:
            index = self._indexes.get(tenant_id)
            if index is None:
                index = TenantVectorIndex(validate_tenant_id(tenant_id), self._dimension)
                self._indexes[tenant_id] = index
            return index

    def drop(self, tenant_id: str) -> int:
        """
        Remove a tenant's index. Returns the number of records it held.
        """
        with self._lock:
            index = self._indexes.pop(tenant_id, None)
            return len(index) if index is not None else 0

    def tenants(self) -> List[str]:
        """
        Return tenant IDs that currently hold at least one record.
        """
        with self._lock:
            return sorted(t for t, index in self._indexes.items() if len(index) > 0)


# ---------------------------------------------------------------------
# Backend
# ---------------------------------------------------------------------

class InMemoryVectorBackend:
    """
    Storage backend keeping vectors in process memory.

    Implements the same interface as PgVectorBackend. Intended for local
    development and tests; data does not survive a restart.
    """

    def __init__(self, source_kind: SourceKind, dimension: Optional[int] = None) -> None:
        self.source_kind = source_kind
        self._registry = TenantIndexRegistry(dimension)

    async def upsert(self, record: VectorRecord) -> None:
        if record.source_kind is not self.source_kind:
            raise VectorStoreError(
                f"{self.source_kind.value} backend cannot store {record.source_kind.value} records"
            )
        try:
            self._registry.get_or_create(record.tenant_id).upsert(record)
        except VectorIndexError as exc:
            raise VectorStoreError(str(exc)) from exc

    async def search(
        self,
        tenant_id: str,
        query_embedding: List[float],
        threshold: float,
        limit: Optional[int] = None,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> List[StoredHit]:
        index = self._registry.get(tenant_id)
        if index is None:
            return []
        try:
            pairs = index.search(query_embedding, threshold, limit=limit, filters=filters)
        except VectorIndexError as exc:
            raise VectorStoreError(str(exc)) from exc
        return [
            StoredHit(
                record_id=record.record_id,
                tenant_id=record.tenant_id,
                payload=record.payload,
                score=score,
            )
            for record, score in pairs
        ]

    async def count(self, tenant_id: str) -> int:
        index = self._registry.get(tenant_id)
        return len(index) if index is not None else 0

    async def drop(self, tenant_id: str) -> int:
        return self._registry.drop(tenant_id)

    async def delete(self, tenant_id: str, filters: Mapping[str, Any]) -> int:
        index = self._registry.get(tenant_id)
        if index is None:
            return 0
        return index.delete_where(
            lambda rec: all(getattr(rec.payload, k, None) == v for k, v in filters.items())
        )

    async def list_tenants(self) -> List[str]:
        return self._registry.tenants()
