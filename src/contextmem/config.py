"""Application configuration dataclasses.

Frozen dataclasses with sensible defaults for each subsystem.
No env-var loading or YAML parsing, just plain defaults that can
be overridden at construction time.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PrioritizationConfig:
    """Weights and budget for the context prioritizer."""

    # Scoring weights (sum to 1.0 by default)
    recency_weight: float = 0.30
    relevance_weight: float = 0.40
    importance_weight: float = 0.20
    sentiment_weight: float = 0.05
    action_weight: float = 0.05
    # Selection budget
    max_entries: int = 5
    max_context_length: int = 2000


@dataclass(frozen=True)
class MemoryStoreConfig:
    """Capacity limits for the conversation log and pattern table."""

    max_entries: int = 500
    max_patterns: int = 2000
    context_window: int = 100


@dataclass(frozen=True)
class EmbeddingConfig:
    """Embedding provider settings used by the record indexer."""

    provider: str = "google"
    model: str | None = None
    api_key: str | None = None
    base_url: str | None = None
    timeout_seconds: float = 15.0


@dataclass(frozen=True)
class LearningConfig:
    """Thresholds for the topic workflow learner."""

    min_frequency: int = 2
    confidence_threshold: float = 0.1
    max_patterns: int = 50
    window_minutes: float = 30.0


@dataclass(frozen=True)
class PersistenceConfig:
    """Where the memory log is flushed to."""

    backend: str = "memory"
    directory: str = ".contextmem"
    redis_url: str = "redis://localhost:6379"
