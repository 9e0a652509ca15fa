"""Context prioritization: five-axis scoring and budget-constrained selection.

Every candidate entry is scored against the live query on recency,
relevance, importance, sentiment and whether actions were taken.  The
weighted total ranks entries; a greedy walk then accepts entries in
rank order until the first one that would break the entry-count or
character budget.  The walk deliberately stops there instead of skipping
ahead to smaller entries, which keeps the selection predictable at the
cost of sometimes leaving budget unused.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from collections.abc import Callable
from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime

from contextmem.config import PrioritizationConfig
from contextmem.engine.vocabulary import detect_topics
from contextmem.engine.vocabulary import STOPWORDS
from contextmem.memory.schemas import MemoryEntry
from contextmem.timeutils import days_since
from contextmem.timeutils import utcnow

logger = logging.getLogger(__name__)

_RECENCY_WINDOW_DAYS = 30
_NON_WORD_RE = re.compile(r"[^\w]")

_SENTIMENT_SCORES = {"positive": 0.8, "neutral": 0.5, "negative": 0.3}
_DEFAULT_SENTIMENT_SCORE = 0.5

# Relevance blend
_KEYWORD_SHARE = 0.5
_TOPIC_SHARE = 0.3
_ENTITY_SHARE = 0.2


@dataclass(frozen=True)
class PriorityScore:
    """Per-entry, per-query evaluation. Never persisted."""

    entry: MemoryEntry
    recency: float
    relevance: float
    importance: float
    sentiment: float
    action_taken: float
    total: float
    reasons: list[str] = field(default_factory=list)


def extract_keywords(query: str) -> list[str]:
    """Lowercase content words of *query*, punctuation stripped."""
    words = (
        word
        for word in query.lower().split()
        if len(word) > 2 and word not in STOPWORDS
    )
    stripped = (_NON_WORD_RE.sub("", word) for word in words)
    return [word for word in stripped if word]


class ContextPrioritizer:
    """Ranks memory entries for a live query under a size budget."""

    def __init__(
        self,
        config: PrioritizationConfig | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config or PrioritizationConfig()
        self._clock = clock or utcnow

    @property
    def config(self) -> PrioritizationConfig:
        return self._config

    def update_config(self, **changes: float | int) -> PrioritizationConfig:
        """Replace individual settings; unknown names raise ``TypeError``."""
        self._config = dataclasses.replace(self._config, **changes)
        return self._config

    def prioritize_context(
        self,
        entries: Sequence[MemoryEntry],
        current_query: str,
        current_topics: Sequence[str] | None = None,
    ) -> list[PriorityScore]:
        """Score, rank and budget-trim *entries* for *current_query*."""
        if not entries:
            return []

        keywords = extract_keywords(current_query)
        topics = (
            list(current_topics)
            if current_topics is not None
            else detect_topics(current_query)
        )
        now = self._clock()

        scored = [self.score_entry(entry, keywords, topics, now) for entry in entries]
        # list.sort is stable: equal totals keep input order.
        scored.sort(key=lambda score: score.total, reverse=True)
        return self._select_within_budget(scored)

    def score_entry(
        self,
        entry: MemoryEntry,
        keywords: Sequence[str],
        topics: Sequence[str],
        now: datetime | None = None,
    ) -> PriorityScore:
        cfg = self._config
        recency = max(
            0.0,
            1 - days_since(entry.timestamp, now or self._clock()) / _RECENCY_WINDOW_DAYS,
        )
        relevance = _relevance(entry, keywords, topics)
        importance = entry.importance / 10
        sentiment = _SENTIMENT_SCORES.get(entry.sentiment, _DEFAULT_SENTIMENT_SCORE)
        action_taken = 1.0 if entry.actions_taken else 0.0

        total = (
            recency * cfg.recency_weight
            + relevance * cfg.relevance_weight
            + importance * cfg.importance_weight
            + sentiment * cfg.sentiment_weight
            + action_taken * cfg.action_weight
        )
        score = PriorityScore(
            entry=entry,
            recency=recency,
            relevance=relevance,
            importance=importance,
            sentiment=sentiment,
            action_taken=action_taken,
            total=min(1.0, total),
        )
        return dataclasses.replace(score, reasons=_reasons(score, keywords, topics))

    def _select_within_budget(self, ranked: list[PriorityScore]) -> list[PriorityScore]:
        selected: list[PriorityScore] = []
        used_chars = 0
        for score in ranked:
            if len(selected) >= self._config.max_entries:
                break
            length = score.entry.text_length
            if used_chars + length > self._config.max_context_length:
                break
            selected.append(score)
            used_chars += length

        logger.debug(
            "Selected %d of %d entries (%d chars)",
            len(selected),
            len(ranked),
            used_chars,
        )
        return selected


# ---------------------------------------------------------------------------
# Scoring helpers
# ---------------------------------------------------------------------------


def _conversation_text(entry: MemoryEntry) -> str:
    return f"{entry.user_query} {entry.ai_response}".lower()


def _relevance(
    entry: MemoryEntry, keywords: Sequence[str], topics: Sequence[str]
) -> float:
    text = _conversation_text(entry)
    keyword_hits = sum(1 for word in keywords if word in text)
    keyword_score = min(1.0, keyword_hits / max(1, len(keywords)))

    topic_hits = sum(1 for topic in topics if topic in entry.topics)
    topic_score = min(1.0, topic_hits / max(1, len(topics)))

    entity_score = _entity_overlap(entry, keywords)

    return min(
        1.0,
        keyword_score * _KEYWORD_SHARE
        + topic_score * _TOPIC_SHARE
        + entity_score * _ENTITY_SHARE,
    )


def _entity_overlap(entry: MemoryEntry, keywords: Sequence[str]) -> float:
    if not entry.entity_mentions:
        return 0.0
    hits = sum(
        1
        for mention in entry.entity_mentions
        if any(word in mention.lower() for word in keywords)
    )
    return min(1.0, hits / len(entry.entity_mentions))


def _reasons(
    score: PriorityScore, keywords: Sequence[str], topics: Sequence[str]
) -> list[str]:
    reasons: list[str] = []
    if score.recency > 0.7:
        reasons.append("Recent conversation")
    if score.relevance > 0.6:
        reasons.append("High topic relevance")
    if score.importance > 0.7:
        reasons.append("High importance entry")
    if score.action_taken > 0:
        reasons.append("Contains actionable content")
    if score.sentiment == _SENTIMENT_SCORES["positive"]:
        reasons.append("Positive interaction")

    entry = score.entry
    topic_matches = [topic for topic in topics if topic in entry.topics]
    if topic_matches:
        reasons.append(f"Matches topics: {', '.join(topic_matches)}")

    text = _conversation_text(entry)
    keyword_matches = [word for word in keywords if word in text]
    if keyword_matches:
        reasons.append(f"Contains keywords: {', '.join(keyword_matches[:3])}")
    return reasons
