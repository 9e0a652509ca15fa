"""ContextMem — FastMCP server exposing conversational memory tools.

Tools delegate to a ``ContextMemoryService`` for the conversation log
and to a ``RecordIndexer`` for semantic record search.  Call
``configure(...)`` before using the server.
"""

from __future__ import annotations

from time import perf_counter

from fastmcp import FastMCP
from pydantic import ValidationError

from contextmem.config import EmbeddingConfig
from contextmem.config import LearningConfig
from contextmem.config import MemoryStoreConfig
from contextmem.config import PersistenceConfig
from contextmem.config import PrioritizationConfig
from contextmem.engine import ContextPrioritizer
from contextmem.engine import TopicWorkflowLearner
from contextmem.memory import build_persistence
from contextmem.memory import MemoryImportError
from contextmem.memory import MemoryPersistence
from contextmem.memory import MemoryStore
from contextmem.models.schemas import ClearMemoryResult
from contextmem.models.schemas import ContextEntryView
from contextmem.models.schemas import ExportMemoryResult
from contextmem.models.schemas import ImportMemoryResult
from contextmem.models.schemas import IndexRecordsInput
from contextmem.models.schemas import IndexRecordsResult
from contextmem.models.schemas import QueryRecordsInput
from contextmem.models.schemas import QueryRecordsResult
from contextmem.models.schemas import RecordTurnInput
from contextmem.models.schemas import RecordTurnResult
from contextmem.models.schemas import RelevantContextInput
from contextmem.models.schemas import RelevantContextResult
from contextmem.models.schemas import SearchMemoryInput
from contextmem.models.schemas import SearchMemoryResult
from contextmem.models.schemas import TopPatternsInput
from contextmem.models.schemas import TopPatternsResult
from contextmem.observability import record_latency
from contextmem.service import ContextMemoryService
from contextmem.vector import build_embedding_bridge
from contextmem.vector import EmbeddingBridge
from contextmem.vector import InMemoryRecordStore
from contextmem.vector import InMemoryVectorIndex
from contextmem.vector import RecordIndexer
from contextmem.vector import RecordStore

mcp = FastMCP("ContextMem")

# ---------------------------------------------------------------------------
# Service instances (set via configure())
# ---------------------------------------------------------------------------

_service: ContextMemoryService | None = None
_indexer: RecordIndexer | None = None


async def configure(
    persistence_config: PersistenceConfig | None = None,
    *,
    persistence: MemoryPersistence | None = None,
    store_config: MemoryStoreConfig | None = None,
    prioritization_config: PrioritizationConfig | None = None,
    learning_config: LearningConfig | None = None,
    embedding_config: EmbeddingConfig | None = None,
    embedding_bridge: EmbeddingBridge | None = None,
    record_store: RecordStore | None = None,
) -> None:
    """Initialize the memory service and record indexer.

    Must be called before the MCP tools can function.  Previously
    persisted memory is loaded, and record vectors already held by
    *record_store* are loaded into the index, before returning.
    """
    global _service, _indexer
    if _service is not None:
        try:
            await _service.close()
        except RuntimeError:
            # Tests may reconfigure across event loops.
            pass

    backend = persistence or build_persistence(persistence_config or PersistenceConfig())
    _service = ContextMemoryService(
        MemoryStore(store_config),
        backend,
        ContextPrioritizer(prioritization_config),
        TopicWorkflowLearner(learning_config),
    )
    await _service.load()

    bridge = embedding_bridge or build_embedding_bridge(
        embedding_config or EmbeddingConfig()
    )
    records = record_store if record_store is not None else InMemoryRecordStore()
    _indexer = RecordIndexer(bridge, InMemoryVectorIndex(), records)
    await _indexer.bootstrap(records.all())


async def shutdown() -> None:
    """Close backend clients and release server resources."""
    global _service, _indexer
    if _service is not None:
        await _service.close()
        _service = None
    _indexer = None


async def _reset_memory() -> None:
    """Clear memory and the vector index (used by test cleanup)."""
    if _service is not None:
        await _service.clear()
    if _indexer is not None:
        await _indexer.index.clear()


def _get_service() -> ContextMemoryService:
    """Return the memory service or raise."""
    if _service is None:
        raise RuntimeError("Memory service not configured. Call configure() first.")
    return _service


def _get_indexer() -> RecordIndexer:
    if _indexer is None:
        raise RuntimeError("Record indexer not configured. Call configure() first.")
    return _indexer


def _validation_message(exc: ValidationError) -> str:
    err = exc.errors()[0] if exc.errors() else {}
    return str(err.get("msg", "Invalid input"))


def _elapsed_ms(start: float) -> float:
    return (perf_counter() - start) * 1000


# ---------------------------------------------------------------------------
# Tools — conversation memory
# ---------------------------------------------------------------------------


@mcp.tool
async def record_turn(
    user_query: str,
    ai_response: str = "",
    session_id: str = "default",
    actions_taken: list[str] | None = None,
    domain_context: dict | None = None,
) -> RecordTurnResult:
    """Store one user/assistant exchange in conversational memory.

    Args:
        user_query: What the user asked.
        ai_response: What the assistant answered.
        session_id: Conversation session identifier.
        actions_taken: Actions the assistant performed (e.g. create_task).
        domain_context: Known ``tasks`` and ``clients`` as ``{id, name}`` lists.
    """
    start = perf_counter()
    ok = False
    try:
        service = _get_service()
        try:
            validated = RecordTurnInput.model_validate(
                {
                    "user_query": user_query,
                    "ai_response": ai_response,
                    "session_id": session_id,
                    "actions_taken": actions_taken or [],
                    "domain_context": domain_context,
                }
            )
        except ValidationError as exc:
            return RecordTurnResult(
                status="rejected",
                error_code="validation_error",
                message=_validation_message(exc),
            )

        entry = await service.record_turn(
            validated.user_query,
            validated.ai_response,
            validated.session_id,
            actions_taken=validated.actions_taken,
            domain_context=validated.domain_context,
        )
        ok = True
        return RecordTurnResult(
            memory_id=entry.id,
            topics=entry.topics,
            sentiment=entry.sentiment,
            importance=entry.importance,
            entity_mentions=entry.entity_mentions,
        )
    finally:
        record_latency(
            operation="mcp.record_turn", duration_ms=_elapsed_ms(start), ok=ok
        )


@mcp.tool
async def get_relevant_context(query: str, limit: int = 5) -> RelevantContextResult:
    """Select the past turns most worth injecting into the next prompt.

    Args:
        query: The user's current query.
        limit: Maximum number of entries returned.
    """
    start = perf_counter()
    ok = False
    try:
        service = _get_service()
        try:
            validated = RelevantContextInput.model_validate(
                {"query": query, "limit": limit}
            )
        except ValidationError as exc:
            return RelevantContextResult(
                status="rejected",
                error_code="validation_error",
                message=_validation_message(exc),
                query=query,
            )

        context = service.get_relevant_context(validated.query, validated.limit)
        ok = True
        return RelevantContextResult(
            query=validated.query,
            entries=[
                ContextEntryView(
                    id=score.entry.id,
                    timestamp=score.entry.timestamp,
                    session_id=score.entry.session_id,
                    user_query=score.entry.user_query,
                    ai_response=score.entry.ai_response,
                    topics=score.entry.topics,
                    score=score.total,
                    reasons=score.reasons,
                )
                for score in context.priorities
            ],
            total_chars=context.text_length,
        )
    finally:
        record_latency(
            operation="mcp.get_relevant_context", duration_ms=_elapsed_ms(start), ok=ok
        )


@mcp.tool
async def search_memory(query: str, limit: int = 10) -> SearchMemoryResult:
    """Keyword search over past turns, weighted by recency and importance.

    Args:
        query: Search text; words shorter than three characters are ignored.
        limit: Maximum number of entries returned.
    """
    start = perf_counter()
    ok = False
    try:
        service = _get_service()
        try:
            validated = SearchMemoryInput.model_validate({"query": query, "limit": limit})
        except ValidationError as exc:
            return SearchMemoryResult(
                status="rejected",
                error_code="validation_error",
                message=_validation_message(exc),
            )
        entries = service.search_memory(validated.query, validated.limit)
        ok = True
        return SearchMemoryResult(entries=entries)
    finally:
        record_latency(
            operation="mcp.search_memory", duration_ms=_elapsed_ms(start), ok=ok
        )


@mcp.tool
async def get_top_patterns(limit: int = 10) -> TopPatternsResult:
    """Return the most frequent query tokens seen so far.

    Args:
        limit: Maximum number of patterns returned.
    """
    start = perf_counter()
    ok = False
    try:
        service = _get_service()
        try:
            validated = TopPatternsInput.model_validate({"limit": limit})
        except ValidationError as exc:
            return TopPatternsResult(
                status="rejected",
                error_code="validation_error",
                message=_validation_message(exc),
            )
        patterns = service.get_top_patterns(validated.limit)
        ok = True
        return TopPatternsResult(patterns=patterns)
    finally:
        record_latency(
            operation="mcp.get_top_patterns", duration_ms=_elapsed_ms(start), ok=ok
        )


@mcp.tool
async def clear_memory() -> ClearMemoryResult:
    """Erase the conversation log, the pattern table and persisted copies."""
    start = perf_counter()
    ok = False
    try:
        await _get_service().clear()
        ok = True
        return ClearMemoryResult(status="cleared")
    finally:
        record_latency(
            operation="mcp.clear_memory", duration_ms=_elapsed_ms(start), ok=ok
        )


@mcp.tool
async def export_memory() -> ExportMemoryResult:
    """Serialize the whole memory to a JSON document."""
    start = perf_counter()
    ok = False
    try:
        data = _get_service().export_memory()
        ok = True
        return ExportMemoryResult(data=data)
    finally:
        record_latency(
            operation="mcp.export_memory", duration_ms=_elapsed_ms(start), ok=ok
        )


@mcp.tool
async def import_memory(data: str) -> ImportMemoryResult:
    """Replace the whole memory with a document produced by export_memory.

    Args:
        data: JSON export document.
    """
    start = perf_counter()
    ok = False
    try:
        service = _get_service()
        try:
            imported = await service.import_memory(data)
        except MemoryImportError as exc:
            return ImportMemoryResult(
                status="rejected",
                error_code="invalid_payload",
                message=str(exc).splitlines()[0],
            )
        ok = True
        return ImportMemoryResult(
            status="imported",
            entries_imported=len(service.store),
            patterns_imported=len(imported.context_patterns),
        )
    finally:
        record_latency(
            operation="mcp.import_memory", duration_ms=_elapsed_ms(start), ok=ok
        )


# ---------------------------------------------------------------------------
# Tools — record vectors
# ---------------------------------------------------------------------------


@mcp.tool
async def index_records(
    records: list[dict],
    api_key: str | None = None,
    model: str | None = None,
) -> IndexRecordsResult:
    """Embed domain records and add them to the similarity index.

    Args:
        records: Records as ``{id, title, description, project_id}``.
        api_key: Embedding provider key override.
        model: Embedding model override.
    """
    start = perf_counter()
    ok = False
    try:
        indexer = _get_indexer()
        try:
            validated = IndexRecordsInput.model_validate(
                {"records": records, "api_key": api_key, "model": model}
            )
        except ValidationError as exc:
            return IndexRecordsResult(
                status="rejected",
                error_code="validation_error",
                message=_validation_message(exc),
            )

        result = await indexer.index_records(
            validated.records, api_key=validated.api_key, model=validated.model
        )
        ok = result.status != "failed"
        return IndexRecordsResult(
            status=result.status,
            indexed=result.indexed,
            skipped=result.skipped,
            message=result.message,
        )
    finally:
        record_latency(
            operation="mcp.index_records", duration_ms=_elapsed_ms(start), ok=ok
        )


@mcp.tool
async def query_records(
    text: str,
    k: int = 5,
    api_key: str | None = None,
    model: str | None = None,
) -> QueryRecordsResult:
    """Find the records most similar to a piece of text.

    Args:
        text: Text to embed and compare against indexed records.
        k: Maximum number of results.
        api_key: Embedding provider key override.
        model: Embedding model override.
    """
    start = perf_counter()
    ok = False
    try:
        indexer = _get_indexer()
        try:
            validated = QueryRecordsInput.model_validate(
                {"text": text, "k": k, "api_key": api_key, "model": model}
            )
        except ValidationError as exc:
            return QueryRecordsResult(
                status="rejected",
                error_code="validation_error",
                message=_validation_message(exc),
            )

        results = await indexer.query_records(
            validated.text,
            validated.k,
            api_key=validated.api_key,
            model=validated.model,
        )
        ok = True
        return QueryRecordsResult(results=results)
    finally:
        record_latency(
            operation="mcp.query_records", duration_ms=_elapsed_ms(start), ok=ok
        )
