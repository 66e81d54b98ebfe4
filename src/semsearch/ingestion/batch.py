"""
Best-Effort Batch Outcomes

Bulk ingestion never aborts on a single bad unit. Each unit produces a
UnitResult; a batch folds unit results into a BatchOutcome carrying the
processed ids and the skipped ids with their reasons.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Sequence, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class UnitResult:
    unit_id: str
    ok: bool
    reason: str = ""

    @classmethod
    def success(cls, unit_id: str) -> "UnitResult":
        return cls(unit_id=unit_id, ok=True)

    @classmethod
    def skipped(cls, unit_id: str, reason: str) -> "UnitResult":
        return cls(unit_id=unit_id, ok=False, reason=reason)


@dataclass(frozen=True)
class BatchOutcome:
    processed: Tuple[str, ...] = ()
    skipped: Tuple[UnitResult, ...] = ()

    @property
    def processed_count(self) -> int:
        return len(self.processed)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def total(self) -> int:
        return self.processed_count + self.skipped_count

    @property
    def all_failed(self) -> bool:
        return self.total > 0 and self.processed_count == 0

    def add(self, result: UnitResult) -> "BatchOutcome":
        if result.ok:
            return BatchOutcome(self.processed + (result.unit_id,), self.skipped)
        return BatchOutcome(self.processed, self.skipped + (result,))

    def extend(self, results: Iterable[UnitResult]) -> "BatchOutcome":
        outcome = self
        for result in results:
            outcome = outcome.add(result)
        return outcome

    def merge(self, other: "BatchOutcome") -> "BatchOutcome":
        return BatchOutcome(self.processed + other.processed, self.skipped + other.skipped)


def sub_batches(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yield consecutive slices of at most `size` items."""
    if size < 1:
        raise ValueError("batch size must be at least 1")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])
