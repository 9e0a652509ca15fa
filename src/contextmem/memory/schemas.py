"""Memory domain data models."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel
from pydantic import Field
from pydantic import field_validator

from contextmem.timeutils import ensure_utc
from contextmem.timeutils import utcnow

EXPORT_VERSION = "1.0"


class MemoryEntryDraft(BaseModel):
    """Caller-supplied part of a conversational turn, signals pre-extracted."""

    model_config = {"frozen": True}

    session_id: str = Field(
        description="Groups entries from one conversation session.",
    )
    user_query: str = Field(
        description="Raw user text for the turn.",
    )
    ai_response: str = Field(
        default="",
        description="Raw assistant reply for the turn.",
    )
    entity_mentions: list[str] = Field(
        default_factory=list,
        description="Matched entity names, in match order, duplicates allowed.",
    )
    topics: list[str] = Field(
        default_factory=lambda: ["general"],
        description="Topic labels from the closed topic vocabulary.",
    )
    sentiment: Literal["positive", "neutral", "negative"] = Field(
        default="neutral",
    )
    importance: float = Field(
        default=5.0,
        ge=1.0,
        le=10.0,
        description="Derived importance on a 1-10 scale.",
    )
    actions_taken: list[str] = Field(
        default_factory=list,
        description="Action identifiers executed as a side effect of the turn.",
    )


class MemoryEntry(MemoryEntryDraft):
    """One stored conversational turn. Never mutated after insertion."""

    id: str = Field(
        default_factory=lambda: f"memory_{uuid.uuid4().hex}",
        description="Unique identifier, auto-generated as memory_{uuid4_hex}.",
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="Creation time (UTC).",
    )

    @field_validator("timestamp")
    @classmethod
    def _timestamp_is_aware(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def text_length(self) -> int:
        """Characters this entry costs in a prompt budget."""
        return len(self.user_query) + len(self.ai_response)

    @property
    def search_text(self) -> str:
        """Lowercased text used by lexical memory search."""
        return " ".join(
            (
                self.user_query,
                self.ai_response,
                " ".join(self.entity_mentions),
                " ".join(self.topics),
            )
        ).lower()


class ContextPattern(BaseModel):
    """Frequency record for one recurring query token."""

    pattern: str = Field(description="Lowercase token, unique key.")
    frequency: int = Field(default=1, ge=1)
    last_seen: datetime = Field(default_factory=utcnow)
    contexts: list[str] = Field(
        default_factory=list,
        description="Union of topics seen alongside the token, first-seen order.",
    )
    success_rate: float = Field(default=0.5, ge=0.0, le=1.0)

    @field_validator("last_seen")
    @classmethod
    def _last_seen_is_aware(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class MemoryExport(BaseModel):
    """Portable dump of the whole memory log and pattern table."""

    memory_entries: list[MemoryEntry]
    context_patterns: list[ContextPattern]
    exported_at: datetime = Field(default_factory=utcnow)
    version: str = EXPORT_VERSION
