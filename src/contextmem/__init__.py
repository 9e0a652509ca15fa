"""ContextMem — conversational context memory and record retrieval."""

from contextmem.service import ContextMemoryService
from contextmem.service import RelevantContext

__all__ = ["ContextMemoryService", "RelevantContext"]
