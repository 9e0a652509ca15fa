"""Orchestration layer tying extraction, the memory store and persistence.

The store stays the in-memory source of truth.  Every mutation is
followed by a flush to the configured ``MemoryPersistence``; a failed
flush is logged and the in-memory state keeps serving reads until the
next successful one.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import field

from contextmem.engine.extraction import build_memory_draft
from contextmem.engine.extraction import SignalExtractor
from contextmem.engine.learning import LearnedPattern
from contextmem.engine.learning import MemoryConsumer
from contextmem.engine.prioritization import ContextPrioritizer
from contextmem.engine.prioritization import PriorityScore
from contextmem.engine.schemas import DomainContext
from contextmem.memory.persistence import MemoryPersistence
from contextmem.memory.persistence import PersistedMemory
from contextmem.memory.schemas import ContextPattern
from contextmem.memory.schemas import MemoryEntry
from contextmem.memory.schemas import MemoryEntryDraft
from contextmem.memory.schemas import MemoryExport
from contextmem.memory.store import MemoryStore
from contextmem.observability import track_latency

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelevantContext:
    """Entries chosen for the next prompt, with the scores that chose them."""

    entries: list[MemoryEntry] = field(default_factory=list)
    priorities: list[PriorityScore] = field(default_factory=list)

    @property
    def text_length(self) -> int:
        return sum(entry.text_length for entry in self.entries)


class ContextMemoryService:
    """Per-turn entry point: record turns, pick context, flush state."""

    def __init__(
        self,
        store: MemoryStore,
        persistence: MemoryPersistence,
        prioritizer: ContextPrioritizer | None = None,
        learner: MemoryConsumer | None = None,
        *,
        extractor: SignalExtractor | None = None,
    ) -> None:
        self._store = store
        self._persistence = persistence
        self._prioritizer = prioritizer or ContextPrioritizer()
        self._learner = learner
        self._extractor = extractor

    @property
    def store(self) -> MemoryStore:
        return self._store

    @property
    def prioritizer(self) -> ContextPrioritizer:
        return self._prioritizer

    @property
    def persistence(self) -> MemoryPersistence:
        return self._persistence

    # -- lifecycle --

    async def load(self) -> PersistedMemory:
        """Rehydrate the store from durable storage."""
        with track_latency("memory.load"):
            persisted = await self._persistence.load()
        self._store.restore(persisted.entries, persisted.patterns)
        logger.info(
            "Loaded %d memory entries and %d patterns (source=%s)",
            len(persisted.entries),
            len(persisted.patterns),
            persisted.source,
        )
        return persisted

    async def close(self) -> None:
        await self._persistence.close()

    # -- writes --

    async def record_turn(
        self,
        user_query: str,
        ai_response: str,
        session_id: str,
        *,
        actions_taken: Sequence[str] = (),
        domain_context: DomainContext | None = None,
    ) -> MemoryEntry:
        """Extract signals from one exchange, store it and flush."""
        draft = build_memory_draft(
            user_query,
            ai_response,
            session_id,
            actions_taken=actions_taken,
            domain_context=domain_context,
            extractor=self._extractor,
        )
        return await self.add_entry(draft)

    async def add_entry(self, draft: MemoryEntryDraft) -> MemoryEntry:
        entry = self._store.add_entry(draft)
        await self._flush()
        return entry

    async def clear(self) -> None:
        self._store.clear()
        try:
            await self._persistence.clear()
        except Exception:
            logger.exception("Failed to clear persisted memory")

    async def import_memory(self, data: str) -> MemoryExport:
        """Replace state from an export; ``MemoryImportError`` leaves it untouched."""
        imported = self._store.import_memory(data)
        await self._flush()
        return imported

    def export_memory(self) -> str:
        return self._store.export_memory()

    async def _flush(self) -> None:
        entries, patterns = self._store.snapshot()
        try:
            with track_latency("memory.flush"):
                await self._persistence.save(entries, patterns)
        except Exception:
            logger.exception(
                "Failed to flush %d memory entries; keeping in-memory state",
                len(entries),
            )

    # -- reads --

    def get_relevant_context(self, current_query: str, limit: int = 5) -> RelevantContext:
        """Rank the recent window against *current_query* and keep the best."""
        with track_latency("memory.get_relevant_context"):
            window = self._store.recent(self._store.config.context_window)
            priorities = self._prioritizer.prioritize_context(window, current_query)
            priorities = priorities[: max(limit, 0)]

        context = RelevantContext(
            entries=[score.entry for score in priorities],
            priorities=priorities,
        )
        logger.debug(
            "Selected %d of %d entries (%d chars) for query %r",
            len(context.entries),
            len(window),
            context.text_length,
            current_query[:80],
        )
        return context

    def search_memory(self, query: str, limit: int = 10) -> list[MemoryEntry]:
        return self._store.search_memory(query, limit)

    def get_top_patterns(self, limit: int = 10) -> list[ContextPattern]:
        return self._store.get_top_patterns(limit)

    def learn_patterns(self) -> list[LearnedPattern]:
        """Run the configured consumer over the log (oldest-first handled there)."""
        if self._learner is None:
            return []
        return self._learner.analyze(self._store.entries)
