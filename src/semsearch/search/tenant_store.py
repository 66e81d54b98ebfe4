"""
Tenant Vector Store Base

Shared write and read plumbing for the content and catalog stores:

- Best-effort ingestion: each unit is embedded and written on its own; a
  failing unit is logged and skipped, never aborting the batch
- Bounded sub-batches processed concurrently
- Deadlines on every backend operation
- Tenant post-checks on every hit returned by a backend

Subclasses decide how a unit is identified, which text is embedded, and how
the stored record is built.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Generic, List, Mapping, Optional, Sequence, TypeVar

from ..core.errors import (
    ConfigError,
    EmbeddingError,
    VectorStoreError,
)
from ..embeddings.models import SourceKind, StoredHit, VectorRecord
from ..ingestion.batch import BatchOutcome, UnitResult, sub_batches
from ..tenants import ensure_same_tenant, validate_tenant_id

T = TypeVar("T")
U = TypeVar("U")


class TenantVectorStore(Generic[U]):
    """
    Base class for tenant-scoped stores of one source kind.

    Parameters
    ----------
    embedder
        Object with an ``async embed(text) -> List[float]`` method.

    backend
        PgVectorBackend or InMemoryVectorBackend of the matching source kind.

    batch_size : int
        Units embedded concurrently within one sub-batch.

    max_candidates : int
        Upper bound on rows fetched from the backend per query.

    operation_timeout : float
        Default deadline in seconds for backend operations.
    """

    source_kind: SourceKind
    logger: logging.Logger

    def __init__(
        self,
        embedder: Any,
        backend: Any,
        batch_size: int = 10,
        max_candidates: int = 1000,
        operation_timeout: float = 30.0,
    ) -> None:
        if backend.source_kind is not self.source_kind:
            raise ValueError(
                f"{type(self).__name__} requires a {self.source_kind.value} backend"
            )
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        self.embedder = embedder
        self.backend = backend
        self.batch_size = batch_size
        self.max_candidates = max_candidates
        self.operation_timeout = operation_timeout

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------

    def unit_id(self, unit: U) -> str:
        raise NotImplementedError

    def embedding_text(self, unit: U) -> str:
        raise NotImplementedError

    def build_record(self, tenant_id: str, unit: U, embedding: List[float]) -> VectorRecord:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _with_deadline(
        self,
        operation: Awaitable[T],
        timeout: Optional[float],
        what: str,
    ) -> T:
        deadline = self.operation_timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(operation, timeout=deadline)
        except asyncio.TimeoutError as exc:
            raise VectorStoreError(f"{what} exceeded deadline of {deadline:.1f}s") from exc

    async def _try_upsert(self, tenant_id: str, unit: U, timeout: Optional[float]) -> UnitResult:
        unit_id = self.unit_id(unit)
        try:
            embedding = await self.embedder.embed(self.embedding_text(unit))
            record = self.build_record(tenant_id, unit, embedding)
            await self._with_deadline(self.backend.upsert(record), timeout, "upsert")
        except ConfigError:
            raise
        except (EmbeddingError, VectorStoreError) as exc:
            self.logger.warning(
                "Skipping %s %s for tenant=%s: %s",
                self.source_kind.value,
                unit_id,
                tenant_id,
                exc,
            )
            return UnitResult.skipped(unit_id, f"{type(exc).__name__}: {exc}")

        return UnitResult.success(unit_id)

    async def _search(
        self,
        tenant_id: str,
        query_text: str,
        threshold: Optional[float],
        limit: int,
        filters: Optional[Mapping[str, Any]],
        timeout: Optional[float],
    ) -> List[StoredHit]:
        if threshold is None:
            raise ConfigError("SEARCH_SIMILARITY_THRESHOLD is not configured")

        tenant_id = validate_tenant_id(tenant_id)
        query_embedding = await self.embedder.embed(query_text)

        hits = await self._with_deadline(
            self.backend.search(
                tenant_id,
                query_embedding,
                threshold,
                limit=limit,
                filters=filters,
            ),
            timeout,
            "search",
        )

        for hit in hits:
            ensure_same_tenant(tenant_id, hit.tenant_id, f"Record {hit.record_id}")

        return [hit for hit in hits if hit.score >= threshold]

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    async def upsert(self, tenant_id: str, unit: U, timeout: Optional[float] = None) -> bool:
        """
        Embed and store a single unit.

        Returns
        -------
        bool
            True if stored, False if it was skipped after a logged failure.

        Raises
        ------
        ConfigError
            The embedding provider is not configured.
        TenantIsolationViolation
            The unit belongs to another tenant.
        """
        tenant_id = validate_tenant_id(tenant_id)
        result = await self._try_upsert(tenant_id, unit, timeout)
        return result.ok

    async def upsert_batch(
        self,
        tenant_id: str,
        units: Sequence[U],
        timeout: Optional[float] = None,
    ) -> BatchOutcome:
        """
        Store many units with per-unit skip-on-failure and no rollback.
        """
        tenant_id = validate_tenant_id(tenant_id)
        outcome = BatchOutcome()

        for batch in sub_batches(units, self.batch_size):
            results = await asyncio.gather(
                *(self._try_upsert(tenant_id, unit, timeout) for unit in batch),
                return_exceptions=True,
            )
            # Fatal errors surface only after every sibling write has settled
            for result in results:
                if isinstance(result, BaseException):
                    raise result
            outcome = outcome.extend(results)

        if outcome.all_failed:
            self.logger.error(
                "All %d %s units failed for tenant=%s",
                outcome.total,
                self.source_kind.value,
                tenant_id,
            )
        else:
            self.logger.info(
                "Stored %d/%d %s units for tenant=%s",
                outcome.processed_count,
                outcome.total,
                self.source_kind.value,
                tenant_id,
            )

        return outcome

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def count(self, tenant_id: str, timeout: Optional[float] = None) -> int:
        return await self._with_deadline(
            self.backend.count(validate_tenant_id(tenant_id)), timeout, "count"
        )

    async def drop(self, tenant_id: str, timeout: Optional[float] = None) -> int:
        """
        Delete every record of the tenant. Returns the number removed.
        """
        tenant_id = validate_tenant_id(tenant_id)
        removed = await self._with_deadline(self.backend.drop(tenant_id), timeout, "drop")
        self.logger.info(
            "Dropped %d %s records for tenant=%s", removed, self.source_kind.value, tenant_id
        )
        return removed

    async def list_tenants(self, timeout: Optional[float] = None) -> List[str]:
        return await self._with_deadline(self.backend.list_tenants(), timeout, "list_tenants")
