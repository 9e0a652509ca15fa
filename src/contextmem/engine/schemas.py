"""Signal extraction models.

Pydantic schemas for the output of keyword-based signal extraction and
for the domain snapshot the extractor can match against.  These are
intermediate representations; the memory store only keeps the flattened
form carried by ``MemoryEntryDraft``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel
from pydantic import Field

Sentiment = Literal["positive", "neutral", "negative"]
EntityType = Literal["task", "client", "collaborator", "quote", "project"]


class NamedRecord(BaseModel):
    """Minimal ``{id, name}`` view of a domain record."""

    id: str = Field(description="Identifier of the record in its own store.")
    name: str = Field(description="Display name matched against conversation text.")


class DomainContext(BaseModel):
    """Snapshot of real tasks and clients for specific-entity matching."""

    tasks: list[NamedRecord] = Field(default_factory=list)
    clients: list[NamedRecord] = Field(default_factory=list)


class EntityMention(BaseModel):
    """One entity reference found in text."""

    type: EntityType = Field(description="Kind of entity referenced.")
    name: str = Field(description="Matched keyword or real record name.")
    id: str | None = Field(
        default=None,
        description="Record id, only set for specific (domain) mentions.",
    )
    confidence: float = Field(description="0.8 for keywords, 0.95 for records.")


class TopicExtraction(BaseModel):
    """Topics detected in a conversation turn."""

    topics: list[str] = Field(description="Matched topic labels, table order.")
    primary_topic: str = Field(description="Topic with the most keyword hits.")
    confidence: float


class SentimentAnalysis(BaseModel):
    """Keyword-vote sentiment of a conversation turn."""

    sentiment: Sentiment
    confidence: float
    indicators: list[str] = Field(
        default_factory=list,
        description="Indicator keywords that matched, in vote order.",
    )


class ExtractedSignals(BaseModel):
    """Everything the extractor derives from one ``(query, response)`` pair."""

    entity_mentions: list[EntityMention] = Field(default_factory=list)
    topics: TopicExtraction
    sentiment: SentimentAnalysis
    importance: float = Field(ge=1.0, le=10.0)

    @property
    def mention_names(self) -> list[str]:
        return [mention.name for mention in self.entity_mentions]
