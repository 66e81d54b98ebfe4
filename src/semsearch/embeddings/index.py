"""
In-Memory Vector Index

This module implements a numpy-backed exact cosine-similarity index holding
the vector records of ONE tenant and ONE source kind.

Key Properties
--------------
- Explicit record-id keyed storage (upsert = full replace)
- Exact brute-force cosine similarity, no approximation
- Deterministic ordering: score descending, record_id ascending on ties
- Concurrency-safe (thread locking)
- Strong validation of vector dimensionality
"""

from __future__ import annotations

from threading import RLock
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import numpy as np

from .models import VectorRecord


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class VectorIndexError(RuntimeError):
    """Base error for in-memory index failures."""


# ---------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------

class TenantVectorIndex:
    """
    Exact cosine index for a single tenant.

    Vectors are L2-normalized on insert so a similarity query is one
    matrix-vector product.
    """

    def __init__(self, tenant_id: str, dimension: Optional[int] = None) -> None:
        self.tenant_id = tenant_id
        self._dimension = dimension

        self._records: Dict[str, VectorRecord] = {}
        self._vectors: Dict[str, np.ndarray] = {}

        # Lazily rebuilt search matrix
        self._matrix: Optional[np.ndarray] = None
        self._matrix_ids: List[str] = []

        self._lock = RLock()

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    def _normalized(self, embedding: List[float]) -> np.ndarray:
        vector = np.asarray(embedding, dtype="float64")

        if vector.ndim != 1 or vector.size == 0:
            raise VectorIndexError("Embedding vectors must be non-empty and flat.")

        if self._dimension is not None and vector.size != self._dimension:
            raise VectorIndexError(
                f"Embedding dimension {vector.size} does not match index dimension {self._dimension}."
            )

        norm = float(np.linalg.norm(vector))
        if norm == 0.0:
            raise VectorIndexError("Cannot index a zero vector.")

        return vector / norm

    def _search_matrix(self) -> Tuple[Optional[np.ndarray], List[str]]:
        if self._matrix is None and self._vectors:
            self._matrix_ids = sorted(self._vectors)
            self._matrix = np.vstack([self._vectors[i] for i in self._matrix_ids])
        return self._matrix, self._matrix_ids

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def dimension(self) -> Optional[int]:
        return self._dimension

    def upsert(self, record: VectorRecord) -> None:
        """
        Insert or fully replace the record with the same record_id.
        """
        if record.tenant_id != self.tenant_id:
            raise VectorIndexError(
                f"Record for tenant '{record.tenant_id}' cannot enter index of '{self.tenant_id}'."
            )

        with self._lock:
            vector = self._normalized(record.embedding)
            if self._dimension is None:
                self._dimension = int(vector.size)

            self._records[record.record_id] = record
            self._vectors[record.record_id] = vector
            self._matrix = None

    def delete_where(self, predicate: Callable[[VectorRecord], bool]) -> int:
        """
        Remove all records matching a predicate.

        Returns
        -------
        int
            Number of removed records.
        """
        with self._lock:
            ids = [rid for rid, rec in self._records.items() if predicate(rec)]
            for rid in ids:
                self._records.pop(rid, None)
                self._vectors.pop(rid, None)
            if ids:
                self._matrix = None
            return len(ids)

    def search(
        self,
        query_embedding: List[float],
        threshold: float,
        limit: Optional[int] = None,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> List[Tuple[VectorRecord, float]]:
        """
        Return (record, score) pairs with score >= threshold.

        Filters are exact-match conditions on payload fields, applied before
        scoring.
        """
        with self._lock:
            matrix, ids = self._search_matrix()
            if matrix is None:
                return []

            query = self._normalized(query_embedding)
            scores = matrix @ query

            results: List[Tuple[VectorRecord, float]] = []
            for rid, score in zip(ids, scores.tolist()):
                record = self._records[rid]
                if filters and not _matches(record, filters):
                    continue
                if score >= threshold:
                    results.append((record, float(score)))

        # ids are pre-sorted and sort() is stable, so ties stay in record_id order
        results.sort(key=lambda pair: pair[1], reverse=True)
        if limit is not None:
            results = results[:limit]
        return results

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


def _matches(record: VectorRecord, filters: Mapping[str, Any]) -> bool:
    payload = record.payload
    return all(getattr(payload, key, None) == value for key, value in filters.items())
