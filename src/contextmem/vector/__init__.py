"""Vector domain — embeddings, similarity index and record indexing."""

from contextmem.vector.embeddings import build_embedding_bridge
from contextmem.vector.embeddings import EmbeddingBridge
from contextmem.vector.embeddings import EmbeddingError
from contextmem.vector.embeddings import GoogleEmbeddingBridge
from contextmem.vector.embeddings import HttpEmbeddingBridge
from contextmem.vector.embeddings import NoopEmbeddingBridge
from contextmem.vector.embeddings import OpenAIEmbeddingBridge
from contextmem.vector.index import cosine_similarity
from contextmem.vector.index import InMemoryVectorIndex
from contextmem.vector.index import VectorIndex
from contextmem.vector.indexer import InMemoryRecordStore
from contextmem.vector.indexer import RecordIndexer
from contextmem.vector.indexer import RecordStore
from contextmem.vector.indexer import RecordVectorSink
from contextmem.vector.schemas import DomainRecord
from contextmem.vector.schemas import IndexingResult
from contextmem.vector.schemas import QueryResult
from contextmem.vector.schemas import record_document_id
from contextmem.vector.schemas import VectorDocument

__all__ = [
    "DomainRecord",
    "EmbeddingBridge",
    "EmbeddingError",
    "GoogleEmbeddingBridge",
    "HttpEmbeddingBridge",
    "IndexingResult",
    "InMemoryRecordStore",
    "InMemoryVectorIndex",
    "NoopEmbeddingBridge",
    "OpenAIEmbeddingBridge",
    "QueryResult",
    "RecordIndexer",
    "RecordStore",
    "RecordVectorSink",
    "VectorDocument",
    "VectorIndex",
    "build_embedding_bridge",
    "cosine_similarity",
    "record_document_id",
]
