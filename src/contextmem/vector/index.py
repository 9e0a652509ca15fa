"""In-memory vector index with brute-force cosine search."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from collections.abc import Sequence
from typing import Protocol

from contextmem.vector.schemas import QueryResult
from contextmem.vector.schemas import VectorDocument

logger = logging.getLogger(__name__)

_EPSILON = 1e-8


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between *a* and *b*.

    Components missing from the shorter vector count as zero, and a zero
    norm is replaced by a tiny epsilon so the result is 0 instead of NaN.
    """
    dot = sum(x * y for x, y in zip(a, b))
    denominator = math.hypot(*a) * math.hypot(*b)
    return dot / (denominator or _EPSILON)


class VectorIndex(Protocol):
    """Minimal vector store protocol used by the record indexer."""

    async def upsert(self, docs: Iterable[VectorDocument]) -> int: ...

    async def query(
        self, query: Sequence[float] | str, limit: int = 5
    ) -> list[QueryResult]: ...

    async def delete(self, doc_id: str) -> None: ...

    async def clear(self) -> None: ...


class InMemoryVectorIndex(VectorIndex):
    """Dictionary of ``id -> (document, vector)``; last write wins per id."""

    def __init__(self) -> None:
        self._store: dict[str, tuple[VectorDocument, list[float]]] = {}

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._store

    async def upsert(self, docs: Iterable[VectorDocument]) -> int:
        """Store documents that carry a vector; return how many were stored."""
        stored = 0
        for doc in docs:
            if not doc.vector:
                continue
            self._store[doc.id] = (doc, list(doc.vector))
            stored += 1
        return stored

    async def query(
        self, query: Sequence[float] | str, limit: int = 5
    ) -> list[QueryResult]:
        """Top-*limit* documents by cosine similarity to a query vector.

        A raw string cannot be embedded here; it yields no results.
        """
        if isinstance(query, str) or not query:
            return []

        results = [
            QueryResult(
                id=doc_id,
                score=cosine_similarity(query, vector),
                metadata=doc.metadata,
                text=doc.text,
            )
            for doc_id, (doc, vector) in self._store.items()
        ]
        results.sort(key=lambda result: result.score, reverse=True)
        return results[: max(limit, 0)]

    async def delete(self, doc_id: str) -> None:
        self._store.pop(doc_id, None)

    async def clear(self) -> None:
        self._store.clear()
