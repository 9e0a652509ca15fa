"""Durable storage adapters for the memory log and pattern table.

Three logical JSON documents are kept per installation:

- ``memory`` — the serialized ``MemoryEntry`` log (newest first),
- ``memory_backup`` — a second copy of the log, written before the
  primary so a torn or corrupted primary can be recovered,
- ``patterns`` — the serialized ``ContextPattern`` table.

Loading never raises on bad data: an unparsable or unreadable primary
log falls back to the backup, an unusable backup yields an empty log,
and an unusable pattern table yields an empty table.  Each fallback is logged.
"""

from __future__ import annotations

import asyncio
import logging
import os
from abc import ABC
from abc import abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

from pydantic import TypeAdapter
from pydantic import ValidationError
from redis.asyncio import Redis  # type: ignore[import-untyped]

from contextmem.config import PersistenceConfig
from contextmem.memory.schemas import ContextPattern
from contextmem.memory.schemas import MemoryEntry

logger = logging.getLogger(__name__)

MEMORY_DOC = "memory"
BACKUP_DOC = "memory_backup"
PATTERNS_DOC = "patterns"

_ENTRIES_ADAPTER = TypeAdapter(list[MemoryEntry])
_PATTERNS_ADAPTER = TypeAdapter(list[ContextPattern])

# Undecodable bytes and unreadable files count as corrupt documents.
_UNREADABLE = (ValidationError, UnicodeDecodeError, OSError)


@dataclass(frozen=True)
class PersistedMemory:
    """State read back from durable storage."""

    entries: list[MemoryEntry] = field(default_factory=list)
    patterns: list[ContextPattern] = field(default_factory=list)
    source: str = "empty"


# ---------------------------------------------------------------------------
# Base adapter
# ---------------------------------------------------------------------------


class MemoryPersistence(ABC):
    """Document-oriented persistence with backup fallback on load.

    Subclasses only implement raw document reads, writes and deletes.
    """

    async def load(self) -> PersistedMemory:
        entries, source = await self._load_entries()
        patterns = await self._load_patterns()
        return PersistedMemory(entries=entries, patterns=patterns, source=source)

    async def save(
        self,
        entries: Sequence[MemoryEntry],
        patterns: Sequence[ContextPattern],
    ) -> None:
        log = _ENTRIES_ADAPTER.dump_json(list(entries)).decode("utf-8")
        table = _PATTERNS_ADAPTER.dump_json(list(patterns)).decode("utf-8")
        await self._write_documents(
            [(BACKUP_DOC, log), (MEMORY_DOC, log), (PATTERNS_DOC, table)]
        )

    async def clear(self) -> None:
        for name in (MEMORY_DOC, BACKUP_DOC, PATTERNS_DOC):
            await self._delete(name)

    async def close(self) -> None:
        """Release backend resources (no-op by default)."""

    async def _load_entries(self) -> tuple[list[MemoryEntry], str]:
        for name, source in ((MEMORY_DOC, "primary"), (BACKUP_DOC, "backup")):
            try:
                raw = await self._read(name)
                if raw is None:
                    continue
                return _ENTRIES_ADAPTER.validate_json(raw), source
            except _UNREADABLE:
                logger.exception("Failed to read persisted %s document", name)
        return [], "empty"

    async def _load_patterns(self) -> list[ContextPattern]:
        try:
            raw = await self._read(PATTERNS_DOC)
            if raw is None:
                return []
            return _PATTERNS_ADAPTER.validate_json(raw)
        except _UNREADABLE:
            logger.exception("Failed to read persisted %s document", PATTERNS_DOC)
            return []

    async def _write_documents(self, documents: list[tuple[str, str]]) -> None:
        for name, text in documents:
            await self._write(name, text)

    @abstractmethod
    async def _read(self, name: str) -> str | bytes | None: ...

    @abstractmethod
    async def _write(self, name: str, text: str) -> None: ...

    @abstractmethod
    async def _delete(self, name: str) -> None: ...


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class InMemoryPersistence(MemoryPersistence):
    """Dictionary-backed adapter for tests and ephemeral sessions."""

    def __init__(self) -> None:
        self.documents: dict[str, str] = {}

    async def _read(self, name: str) -> str | None:
        return self.documents.get(name)

    async def _write(self, name: str, text: str) -> None:
        self.documents[name] = text

    async def _delete(self, name: str) -> None:
        self.documents.pop(name, None)


# ---------------------------------------------------------------------------
# JSON files
# ---------------------------------------------------------------------------

_FILE_NAMES = {
    MEMORY_DOC: "context-memory.json",
    BACKUP_DOC: "context-memory.backup.json",
    PATTERNS_DOC: "context-patterns.json",
}


class JsonFilePersistence(MemoryPersistence):
    """One JSON file per document inside *directory*.

    Uses ``asyncio.to_thread`` for file operations to avoid blocking
    the event loop, guarded by an ``asyncio.Lock`` for serialization.
    Writes go through a temporary file and ``os.replace``.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self._lock = asyncio.Lock()

    def path_for(self, name: str) -> Path:
        return self.directory / _FILE_NAMES[name]

    async def _write_documents(self, documents: list[tuple[str, str]]) -> None:
        async with self._lock:
            for name, text in documents:
                await asyncio.to_thread(self._replace, self.path_for(name), text)

    async def _read(self, name: str) -> bytes | None:
        path = self.path_for(name)
        async with self._lock:
            return await asyncio.to_thread(self._read_bytes, path)

    async def _write(self, name: str, text: str) -> None:
        async with self._lock:
            await asyncio.to_thread(self._replace, self.path_for(name), text)

    async def _delete(self, name: str) -> None:
        async with self._lock:
            await asyncio.to_thread(self.path_for(name).unlink, missing_ok=True)

    @staticmethod
    def _read_bytes(path: Path) -> bytes | None:
        if not path.exists():
            return None
        return path.read_bytes()

    @staticmethod
    def _replace(path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, path)


# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------

_PREFIX = "contextmem"


class RedisMemoryPersistence(MemoryPersistence):
    """Redis-backed adapter storing each document as a JSON string.

    Keys: ``contextmem:memory``, ``contextmem:memory:backup`` and
    ``contextmem:patterns``.  A save is a single MULTI/EXEC pipeline.
    """

    def __init__(self, redis: Redis, *, prefix: str = _PREFIX) -> None:
        self._redis = redis
        self._keys = {
            MEMORY_DOC: f"{prefix}:memory",
            BACKUP_DOC: f"{prefix}:memory:backup",
            PATTERNS_DOC: f"{prefix}:patterns",
        }

    def key_for(self, name: str) -> str:
        return self._keys[name]

    async def _write_documents(self, documents: list[tuple[str, str]]) -> None:
        pipe = self._redis.pipeline(transaction=True)
        for name, text in documents:
            pipe.set(self._keys[name], text)
        await pipe.execute()

    async def _read(self, name: str) -> bytes | str | None:
        return await self._redis.get(self._keys[name])

    async def _write(self, name: str, text: str) -> None:
        await self._redis.set(self._keys[name], text)

    async def _delete(self, name: str) -> None:
        await self._redis.delete(self._keys[name])

    async def close(self) -> None:
        await self._redis.aclose()


def build_persistence(config: PersistenceConfig) -> MemoryPersistence:
    """Create a concrete adapter from ``PersistenceConfig``."""

    backend = config.backend.strip().lower()
    if backend == "memory":
        return InMemoryPersistence()
    if backend == "file":
        return JsonFilePersistence(config.directory)
    if backend == "redis":
        return RedisMemoryPersistence(Redis.from_url(config.redis_url))
    raise ValueError(
        f"Unsupported persistence backend '{config.backend}'. "
        "Supported backends: memory, file, redis."
    )
