"""In-memory conversation log with a recurring-token side table.

The log is newest-first and capacity-bounded: inserting past
``max_entries`` drops the oldest entries.  Every inserted query also
feeds a ``ContextPattern`` table keyed by lowercase token.

The store performs no I/O.  Durability is the job of a
``MemoryPersistence`` adapter driven by the orchestration layer
(see ``contextmem.service``), which flushes ``snapshot()`` after each
mutation and calls ``restore()`` on startup.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from collections.abc import Sequence
from datetime import datetime

from pydantic import ValidationError

from contextmem.config import MemoryStoreConfig
from contextmem.engine.vocabulary import STOPWORDS
from contextmem.memory.schemas import ContextPattern
from contextmem.memory.schemas import MemoryEntry
from contextmem.memory.schemas import MemoryEntryDraft
from contextmem.memory.schemas import MemoryExport
from contextmem.timeutils import days_since
from contextmem.timeutils import utcnow

logger = logging.getLogger(__name__)

_PATTERN_MIN_LENGTH = 4
_SEARCH_MIN_LENGTH = 3
_SEARCH_WINDOW_DAYS = 30
_SEARCH_RECENCY_FLOOR = 0.1


class MemoryImportError(ValueError):
    """Raised when an import payload is rejected; state is left untouched."""


# ---------------------------------------------------------------------------
# Tokenizers
# ---------------------------------------------------------------------------


def pattern_tokens(query: str) -> list[str]:
    """Whitespace tokens of *query* worth tracking as patterns.

    Repeated tokens are kept so each occurrence counts.
    """
    return [
        word
        for word in query.lower().split()
        if len(word) >= _PATTERN_MIN_LENGTH and word not in STOPWORDS
    ]


def search_tokens(query: str) -> list[str]:
    return [word for word in query.lower().split() if len(word) >= _SEARCH_MIN_LENGTH]


# ---------------------------------------------------------------------------
# MemoryStore
# ---------------------------------------------------------------------------


class MemoryStore:
    """Append-only, capacity-bounded log of conversation turns."""

    def __init__(
        self,
        config: MemoryStoreConfig | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config or MemoryStoreConfig()
        self._clock = clock or utcnow
        self._entries: list[MemoryEntry] = []
        self._patterns: dict[str, ContextPattern] = {}

    @property
    def config(self) -> MemoryStoreConfig:
        return self._config

    @property
    def entries(self) -> list[MemoryEntry]:
        """Copy of the log, newest first."""
        return list(self._entries)

    @property
    def patterns(self) -> list[ContextPattern]:
        """Copy of the pattern table in first-seen order."""
        return [pattern.model_copy() for pattern in self._patterns.values()]

    def __len__(self) -> int:
        return len(self._entries)

    # -- write --

    def add_entry(self, draft: MemoryEntryDraft) -> MemoryEntry:
        """Stamp *draft* with an id and timestamp and prepend it to the log."""
        now = self._clock()
        fields = draft.model_dump(include=set(MemoryEntryDraft.model_fields))
        entry = MemoryEntry(**fields, timestamp=now)

        self._entries.insert(0, entry)
        evicted = len(self._entries) - self._config.max_entries
        if evicted > 0:
            del self._entries[self._config.max_entries :]
            logger.debug("Evicted %d oldest memory entries", evicted)

        self._track_patterns(entry, now)
        return entry

    def clear(self) -> None:
        self._entries.clear()
        self._patterns.clear()

    def _track_patterns(self, entry: MemoryEntry, now: datetime) -> None:
        has_actions = bool(entry.actions_taken)
        for token in pattern_tokens(entry.user_query):
            existing = self._patterns.get(token)
            if existing is None:
                self._patterns[token] = ContextPattern(
                    pattern=token,
                    frequency=1,
                    last_seen=now,
                    contexts=list(dict.fromkeys(entry.topics)),
                    success_rate=1.0 if has_actions else 0.5,
                )
                continue
            existing.frequency += 1
            existing.last_seen = now
            existing.contexts = list(dict.fromkeys([*existing.contexts, *entry.topics]))

        self._evict_stale_patterns()

    def _evict_stale_patterns(self) -> None:
        overflow = len(self._patterns) - self._config.max_patterns
        if overflow <= 0:
            return
        # sorted() is stable, so equal last_seen evicts the earliest-inserted first.
        stale = sorted(self._patterns.values(), key=lambda p: p.last_seen)[:overflow]
        for pattern in stale:
            del self._patterns[pattern.pattern]
        logger.debug("Evicted %d least recently seen patterns", overflow)

    # -- read --

    def recent(self, limit: int) -> list[MemoryEntry]:
        return self._entries[: max(limit, 0)]

    def search_memory(self, query: str, limit: int = 10) -> list[MemoryEntry]:
        """Lexical search ranked by occurrences, recency and importance."""
        tokens = search_tokens(query)
        if not tokens:
            return []

        now = self._clock()
        scored: list[tuple[float, MemoryEntry]] = []
        for entry in self._entries:
            text = entry.search_text
            if not any(token in text for token in tokens):
                continue
            scored.append((self._search_score(entry, text, tokens, now), entry))

        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [entry for _, entry in scored[: max(limit, 0)]]

    @staticmethod
    def _search_score(
        entry: MemoryEntry, text: str, tokens: Sequence[str], now: datetime
    ) -> float:
        occurrences = sum(text.count(token) for token in tokens)
        recency = max(
            _SEARCH_RECENCY_FLOOR,
            1 - days_since(entry.timestamp, now) / _SEARCH_WINDOW_DAYS,
        )
        return occurrences * recency * (1 + entry.importance / 10)

    def get_top_patterns(self, limit: int = 10) -> list[ContextPattern]:
        ranked = sorted(self._patterns.values(), key=lambda p: p.frequency, reverse=True)
        return [pattern.model_copy() for pattern in ranked[: max(limit, 0)]]

    # -- snapshot / restore --

    def snapshot(self) -> tuple[list[MemoryEntry], list[ContextPattern]]:
        """Return the state a persistence adapter should flush."""
        return self.entries, self.patterns

    def restore(
        self,
        entries: Sequence[MemoryEntry],
        patterns: Sequence[ContextPattern],
    ) -> None:
        """Replace the whole state, e.g. after loading from durable storage."""
        self._entries = list(entries)[: self._config.max_entries]
        self._patterns = {
            pattern.pattern: pattern.model_copy(deep=True) for pattern in patterns
        }
        self._evict_stale_patterns()

    def export_memory(self) -> str:
        """Serialize log and patterns to an indented JSON document."""
        export = MemoryExport(
            memory_entries=self._entries,
            context_patterns=list(self._patterns.values()),
            exported_at=self._clock(),
        )
        return export.model_dump_json(indent=2)

    def import_memory(self, data: str) -> MemoryExport:
        """Replace state with a previously exported document.

        Raises ``MemoryImportError`` before touching anything when the
        payload is not JSON or lacks the expected arrays.
        """
        try:
            imported = MemoryExport.model_validate_json(data)
        except ValidationError as exc:
            raise MemoryImportError(f"Invalid memory export payload: {exc}") from exc

        self.restore(imported.memory_entries, imported.context_patterns)
        logger.info(
            "Imported %d memory entries and %d patterns",
            len(self._entries),
            len(self._patterns),
        )
        return imported
