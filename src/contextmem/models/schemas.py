"""Pydantic models for the MCP interface.

Input models validate tool arguments; output models shape responses.
FastMCP serializes Pydantic models automatically.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel
from pydantic import Field

from contextmem.engine.schemas import DomainContext
from contextmem.memory.schemas import ContextPattern
from contextmem.memory.schemas import MemoryEntry
from contextmem.vector.schemas import DomainRecord
from contextmem.vector.schemas import QueryResult

# ---------------------------------------------------------------------------
# Input models
# ---------------------------------------------------------------------------


class RecordTurnInput(BaseModel):
    """Input for record_turn tool."""

    user_query: str = Field(
        min_length=1,
        description="What the user asked.",
    )
    ai_response: str = Field(
        default="",
        description="What the assistant answered.",
    )
    session_id: str = Field(
        default="default",
        min_length=1,
        description="Conversation session the turn belongs to.",
    )
    actions_taken: list[str] = Field(
        default_factory=list,
        description="Actions the assistant performed during the turn.",
    )
    domain_context: DomainContext | None = Field(
        default=None,
        description="Snapshot of known tasks and clients for name matching.",
    )


class RelevantContextInput(BaseModel):
    """Input for get_relevant_context tool."""

    query: str = Field(description="The user's current query.")
    limit: int = Field(default=5, ge=1, le=50)


class SearchMemoryInput(BaseModel):
    """Input for search_memory tool."""

    query: str = Field(description="Free-text search over past turns.")
    limit: int = Field(default=10, ge=1, le=100)


class TopPatternsInput(BaseModel):
    """Input for get_top_patterns tool."""

    limit: int = Field(default=10, ge=1, le=100)


class IndexRecordsInput(BaseModel):
    """Input for index_records tool."""

    records: list[DomainRecord] = Field(
        description="Records to embed and add to the vector index.",
    )
    api_key: str | None = Field(default=None, description="Provider key override.")
    model: str | None = Field(default=None, description="Embedding model override.")


class QueryRecordsInput(BaseModel):
    """Input for query_records tool."""

    text: str = Field(min_length=1, description="Text to search similar records for.")
    k: int = Field(default=5, ge=1, le=50)
    api_key: str | None = Field(default=None, description="Provider key override.")
    model: str | None = Field(default=None, description="Embedding model override.")


# ---------------------------------------------------------------------------
# Output models
# ---------------------------------------------------------------------------


class ToolResult(BaseModel):
    """Fields shared by every tool response."""

    status: str = Field(
        default="ok",
        description="Outcome status (ok, rejected).",
    )
    error_code: str | None = Field(
        default=None,
        description="Machine-readable reason when status is rejected.",
    )
    message: str | None = Field(
        default=None,
        description="Human-readable detail when status is rejected.",
    )


class RecordTurnResult(ToolResult):
    """Response from record_turn."""

    memory_id: str = Field(
        default="",
        description="ID assigned to the stored entry.",
    )
    topics: list[str] = Field(default_factory=list)
    sentiment: str | None = None
    importance: float | None = None
    entity_mentions: list[str] = Field(default_factory=list)


class ContextEntryView(BaseModel):
    """One selected entry with its score breakdown."""

    id: str
    timestamp: datetime
    session_id: str
    user_query: str
    ai_response: str
    topics: list[str]
    score: float = Field(description="Weighted priority total in [0, 1].")
    reasons: list[str] = Field(default_factory=list)


class RelevantContextResult(ToolResult):
    """Response from get_relevant_context."""

    query: str = ""
    entries: list[ContextEntryView] = Field(default_factory=list)
    total_chars: int = Field(
        default=0,
        description="Combined query and response length of the selection.",
    )


class SearchMemoryResult(ToolResult):
    """Response from search_memory."""

    entries: list[MemoryEntry] = Field(default_factory=list)


class TopPatternsResult(ToolResult):
    """Response from get_top_patterns."""

    patterns: list[ContextPattern] = Field(default_factory=list)


class ClearMemoryResult(ToolResult):
    """Response from clear_memory."""


class ExportMemoryResult(ToolResult):
    """Response from export_memory."""

    data: str = Field(default="", description="Indented JSON export document.")


class ImportMemoryResult(ToolResult):
    """Response from import_memory."""

    entries_imported: int = 0
    patterns_imported: int = 0


class IndexRecordsResult(ToolResult):
    """Response from index_records."""

    indexed: int = 0
    skipped: int = 0


class QueryRecordsResult(ToolResult):
    """Response from query_records."""

    results: list[QueryResult] = Field(default_factory=list)
