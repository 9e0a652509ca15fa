"""Record indexer: domain records → embeddings → vector index."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from collections.abc import Sequence
from typing import Protocol

from contextmem.observability import track_latency
from contextmem.vector.embeddings import EmbeddingBridge
from contextmem.vector.index import VectorIndex
from contextmem.vector.schemas import DomainRecord
from contextmem.vector.schemas import IndexingResult
from contextmem.vector.schemas import QueryResult

logger = logging.getLogger(__name__)


class RecordVectorSink(Protocol):
    """Durable record store that keeps the last computed vector per record."""

    async def persist_vectors(self, vectors: dict[str, list[float]]) -> None: ...


class RecordStore(RecordVectorSink, Protocol):
    """Record store whose persisted vectors can be read back at startup."""

    def all(self) -> list[DomainRecord]: ...


class InMemoryRecordStore(RecordStore):
    """Dict-backed record store, used for tests and single-process setups."""

    def __init__(self, records: Iterable[DomainRecord] = ()) -> None:
        self._records: dict[str, DomainRecord] = {}
        self.upsert_records(records)

    def __len__(self) -> int:
        return len(self._records)

    def upsert_records(self, records: Iterable[DomainRecord]) -> None:
        for record in records:
            self._records[record.id] = record

    def get(self, record_id: str) -> DomainRecord | None:
        return self._records.get(record_id)

    def all(self) -> list[DomainRecord]:
        return list(self._records.values())

    async def persist_vectors(self, vectors: dict[str, list[float]]) -> None:
        for record_id, vector in vectors.items():
            record = self._records.get(record_id)
            if record is None:
                continue
            self._records[record_id] = record.model_copy(update={"vector": vector})


class RecordIndexer:
    """Embeds domain records in one batch and upserts them into an index."""

    def __init__(
        self,
        bridge: EmbeddingBridge,
        index: VectorIndex,
        record_store: RecordVectorSink | None = None,
    ) -> None:
        self._bridge = bridge
        self._index = index
        self._record_store = record_store

    @property
    def index(self) -> VectorIndex:
        return self._index

    async def bootstrap(self, records: Iterable[DomainRecord]) -> int:
        """Upsert vectors already persisted on *records*; no provider calls.

        Lets similarity search work offline right after a restart.
        Returns the number of documents loaded into the index.
        """
        docs = [
            record.to_document().model_copy(update={"vector": record.vector})
            for record in records
            if record.vector
        ]
        if not docs:
            return 0
        with track_latency("vector.bootstrap"):
            loaded = await self._index.upsert(docs)
        logger.info("Bootstrapped vector index with %d persisted record vectors", loaded)
        return loaded

    @staticmethod
    def pending_records(records: Iterable[DomainRecord]) -> list[DomainRecord]:
        """Records that still need an embedding."""
        return [record for record in records if not record.vector]

    async def index_records(
        self,
        records: Sequence[DomainRecord],
        *,
        api_key: str | None = None,
        model: str | None = None,
        only_missing: bool = False,
    ) -> IndexingResult:
        if only_missing:
            records = self.pending_records(records)
        if not records:
            return IndexingResult(status="skipped", message="No records to index.")

        with track_latency("vector.index_records"):
            docs = [record.to_document() for record in records]
            vectors = await self._bridge.embed(
                [doc.text for doc in docs], api_key=api_key, model=model
            )

            if not any(vectors):
                logger.warning(
                    "Embeddings: empty vectors for %d records, skipping upsert",
                    len(records),
                )
                return IndexingResult(
                    status="failed",
                    skipped=len(records),
                    message="Embedding provider returned no vectors.",
                )

            docs = [
                doc.model_copy(update={"vector": vector or None})
                for doc, vector in zip(docs, vectors)
            ]
            fresh = {
                record.id: vector
                for record, vector in zip(records, vectors)
                if vector
            }

            if self._record_store is not None:
                try:
                    await self._record_store.persist_vectors(fresh)
                except Exception:
                    logger.exception(
                        "Failed to persist %d record vectors; continuing with index upsert",
                        len(fresh),
                    )

            indexed = await self._index.upsert(docs)

        logger.debug("Indexed %d of %d records", indexed, len(records))
        return IndexingResult(
            status="indexed",
            indexed=indexed,
            skipped=len(records) - indexed,
        )

    async def query_records(
        self,
        text: str,
        k: int = 5,
        *,
        api_key: str | None = None,
        model: str | None = None,
    ) -> list[QueryResult]:
        with track_latency("vector.query_records"):
            vectors = await self._bridge.embed([text], api_key=api_key, model=model)
            vector = vectors[0] if vectors else []
            if not vector:
                return []
            return await self._index.query(vector, k)
