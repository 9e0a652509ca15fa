"""Keyword-based signal extraction.

Turns a raw ``(user_query, ai_response)`` pair into structured signals:
entity mentions, topics, sentiment and a derived importance score.
Everything here is pure and deterministic; unmatched text yields the
neutral defaults (``general`` topic, ``neutral`` sentiment, base
importance) rather than an error.

The ``SignalExtractor`` protocol is the seam for swapping the keyword
heuristics for a trained model without touching the store or the
prioritizer.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol
from typing import runtime_checkable

from contextmem.engine.schemas import DomainContext
from contextmem.engine.schemas import EntityMention
from contextmem.engine.schemas import ExtractedSignals
from contextmem.engine.schemas import SentimentAnalysis
from contextmem.engine.schemas import TopicExtraction
from contextmem.engine.vocabulary import DEFAULT_TOPIC
from contextmem.engine.vocabulary import ENTITY_KEYWORDS
from contextmem.engine.vocabulary import matching_keywords
from contextmem.engine.vocabulary import NEGATIVE_INDICATORS
from contextmem.engine.vocabulary import NEUTRAL_INDICATORS
from contextmem.engine.vocabulary import POSITIVE_INDICATORS
from contextmem.engine.vocabulary import TOPIC_KEYWORDS
from contextmem.engine.vocabulary import URGENCY_KEYWORDS
from contextmem.memory.schemas import MemoryEntryDraft

_KEYWORD_CONFIDENCE = 0.8
_RECORD_CONFIDENCE = 0.95

_BASE_IMPORTANCE = 5.0
_MIN_IMPORTANCE = 1.0
_MAX_IMPORTANCE = 10.0


# ---------------------------------------------------------------------------
# Extractor abstraction
# ---------------------------------------------------------------------------


@runtime_checkable
class SignalExtractor(Protocol):
    """Protocol for text → signals extractors."""

    def extract(
        self,
        user_query: str,
        ai_response: str = "",
        *,
        domain_context: DomainContext | None = None,
        actions_taken: Sequence[str] = (),
    ) -> ExtractedSignals: ...


class KeywordSignalExtractor(SignalExtractor):
    """Default extractor backed by the bilingual keyword tables."""

    def extract(
        self,
        user_query: str,
        ai_response: str = "",
        *,
        domain_context: DomainContext | None = None,
        actions_taken: Sequence[str] = (),
    ) -> ExtractedSignals:
        return extract_signals(
            user_query,
            ai_response,
            domain_context=domain_context,
            actions_taken=actions_taken,
        )


# ---------------------------------------------------------------------------
# Individual signals
# ---------------------------------------------------------------------------


def extract_entity_mentions(
    text: str, domain_context: DomainContext | None = None
) -> list[EntityMention]:
    """Find generic keyword mentions, then specific record mentions.

    Mentions are not deduplicated: every keyword hit and every record
    name hit produces its own entry.
    """
    lowered = text.lower()
    mentions: list[EntityMention] = []

    for entity_type, keywords in ENTITY_KEYWORDS.items():
        for keyword in matching_keywords(lowered, keywords):
            mentions.append(
                EntityMention(
                    type=entity_type,
                    name=keyword,
                    confidence=_KEYWORD_CONFIDENCE,
                )
            )

    if domain_context is None:
        return mentions

    for entity_type, records in (
        ("task", domain_context.tasks),
        ("client", domain_context.clients),
    ):
        for record in records:
            if record.name and record.name.lower() in lowered:
                mentions.append(
                    EntityMention(
                        type=entity_type,
                        name=record.name,
                        id=record.id,
                        confidence=_RECORD_CONFIDENCE,
                    )
                )
    return mentions


def extract_topics(user_query: str, ai_response: str = "") -> TopicExtraction:
    """Detect topic categories in the combined query and response."""
    combined = f"{user_query} {ai_response}".lower()

    topics: list[str] = []
    primary_topic = DEFAULT_TOPIC
    max_hits = 0
    for topic, keywords in TOPIC_KEYWORDS.items():
        hits = len(matching_keywords(combined, keywords))
        if hits == 0:
            continue
        topics.append(topic)
        # Strict comparison keeps the earlier category on ties.
        if hits > max_hits:
            max_hits = hits
            primary_topic = topic

    if not topics:
        return TopicExtraction(
            topics=[DEFAULT_TOPIC], primary_topic=DEFAULT_TOPIC, confidence=0.3
        )
    return TopicExtraction(
        topics=topics,
        primary_topic=primary_topic,
        confidence=min(0.9, len(topics) * 0.3),
    )


def analyze_sentiment(user_query: str, ai_response: str = "") -> SentimentAnalysis:
    """Vote between positive, negative and neutral indicator hits."""
    combined = f"{user_query} {ai_response}".lower()

    positive = matching_keywords(combined, POSITIVE_INDICATORS)
    negative = matching_keywords(combined, NEGATIVE_INDICATORS)
    neutral = matching_keywords(combined, NEUTRAL_INDICATORS)
    indicators = [*positive, *negative, *neutral]

    pos, neg, neu = len(positive), len(negative), len(neutral)
    if pos > neg and pos > neu:
        return SentimentAnalysis(
            sentiment="positive",
            confidence=min(0.9, 0.5 + pos * 0.2),
            indicators=indicators,
        )
    if neg > pos and neg > neu:
        return SentimentAnalysis(
            sentiment="negative",
            confidence=min(0.9, 0.5 + neg * 0.2),
            indicators=indicators,
        )
    return SentimentAnalysis(
        sentiment="neutral",
        confidence=max(0.3, 0.7 - abs(pos - neg) * 0.1),
        indicators=indicators,
    )


def calculate_importance(
    user_query: str,
    ai_response: str,
    entity_mentions: Sequence[EntityMention],
    actions_taken: Sequence[str] = (),
) -> float:
    """Additive importance heuristic clamped to ``[1, 10]``."""
    importance = _BASE_IMPORTANCE
    importance += len(entity_mentions) * 0.5
    importance += sum(1 for mention in entity_mentions if mention.confidence > 0.9)
    importance += len(actions_taken) * 2

    total_length = len(user_query) + len(ai_response)
    if total_length > 200:
        importance += 1
    if total_length > 500:
        importance += 1

    combined = f"{user_query} {ai_response}".lower()
    importance += len(matching_keywords(combined, URGENCY_KEYWORDS)) * 1.5

    return min(_MAX_IMPORTANCE, max(_MIN_IMPORTANCE, importance))


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


def extract_signals(
    user_query: str,
    ai_response: str = "",
    *,
    domain_context: DomainContext | None = None,
    actions_taken: Sequence[str] = (),
) -> ExtractedSignals:
    """Run every extractor over one conversation turn."""
    mentions = extract_entity_mentions(f"{user_query} {ai_response}", domain_context)
    return ExtractedSignals(
        entity_mentions=mentions,
        topics=extract_topics(user_query, ai_response),
        sentiment=analyze_sentiment(user_query, ai_response),
        importance=calculate_importance(
            user_query, ai_response, mentions, actions_taken
        ),
    )


def build_memory_draft(
    user_query: str,
    ai_response: str,
    session_id: str,
    *,
    actions_taken: Sequence[str] = (),
    domain_context: DomainContext | None = None,
    extractor: SignalExtractor | None = None,
) -> MemoryEntryDraft:
    """Extract signals and flatten them into a storable draft."""
    signals = (extractor or KeywordSignalExtractor()).extract(
        user_query,
        ai_response,
        domain_context=domain_context,
        actions_taken=actions_taken,
    )
    return MemoryEntryDraft(
        session_id=session_id,
        user_query=user_query,
        ai_response=ai_response,
        entity_mentions=signals.mention_names,
        topics=signals.topics.topics,
        sentiment=signals.sentiment.sentiment,
        importance=signals.importance,
        actions_taken=list(actions_taken),
    )
