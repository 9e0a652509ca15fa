"""Vector search data models."""

from __future__ import annotations

from typing import Any
from typing import Literal

from pydantic import BaseModel
from pydantic import Field

RECORD_ID_PREFIX = "record:"


def record_document_id(record_id: str) -> str:
    """Document id tying a vector back to its source record."""
    return f"{RECORD_ID_PREFIX}{record_id}"


def record_id_from_document(document_id: str) -> str | None:
    if not document_id.startswith(RECORD_ID_PREFIX):
        return None
    return document_id[len(RECORD_ID_PREFIX) :]


class VectorDocument(BaseModel):
    """A searchable document. Only indexed once ``vector`` is non-empty."""

    id: str = Field(description="Document id, ``record:<domainId>`` for records.")
    text: str = Field(description="Text the vector was computed from.")
    metadata: dict[str, Any] = Field(default_factory=dict)
    vector: list[float] | None = Field(
        default=None,
        description="Embedding; documents without one are skipped on upsert.",
    )

    @property
    def is_indexable(self) -> bool:
        return bool(self.vector)


class QueryResult(BaseModel):
    """One similarity hit."""

    id: str
    score: float = Field(description="Cosine similarity in [-1, 1].")
    metadata: dict[str, Any] = Field(default_factory=dict)
    text: str | None = None


class DomainRecord(BaseModel):
    """A record (e.g. a task) as seen by the indexer."""

    id: str
    title: str = ""
    description: str = ""
    project_id: str | None = None
    vector: list[float] | None = Field(
        default=None,
        description="Last persisted embedding, reused offline.",
    )

    def to_document(self) -> VectorDocument:
        return VectorDocument(
            id=record_document_id(self.id),
            text=f"{self.title}\n{self.description}",
            metadata={"record_id": self.id, "project_id": self.project_id},
        )


class IndexingResult(BaseModel):
    """Outcome of one indexing pass."""

    status: Literal["indexed", "failed", "skipped"]
    indexed: int = 0
    skipped: int = 0
    message: str | None = None
