"""Memory domain — conversation log, pattern table and persistence."""

from contextmem.memory.persistence import build_persistence
from contextmem.memory.persistence import InMemoryPersistence
from contextmem.memory.persistence import JsonFilePersistence
from contextmem.memory.persistence import MemoryPersistence
from contextmem.memory.persistence import PersistedMemory
from contextmem.memory.persistence import RedisMemoryPersistence
from contextmem.memory.schemas import ContextPattern
from contextmem.memory.schemas import MemoryEntry
from contextmem.memory.schemas import MemoryEntryDraft
from contextmem.memory.schemas import MemoryExport
from contextmem.memory.store import MemoryImportError
from contextmem.memory.store import MemoryStore

__all__ = [
    "ContextPattern",
    "InMemoryPersistence",
    "JsonFilePersistence",
    "MemoryEntry",
    "MemoryEntryDraft",
    "MemoryExport",
    "MemoryImportError",
    "MemoryPersistence",
    "MemoryStore",
    "PersistedMemory",
    "RedisMemoryPersistence",
    "build_persistence",
]
