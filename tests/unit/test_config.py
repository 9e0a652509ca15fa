"""Unit tests for configuration dataclasses."""

from dataclasses import FrozenInstanceError

import pytest

from contextmem.config import EmbeddingConfig
from contextmem.config import LearningConfig
from contextmem.config import MemoryStoreConfig
from contextmem.config import PersistenceConfig
from contextmem.config import PrioritizationConfig


# ---------------------------------------------------------------------------
# PrioritizationConfig
# ---------------------------------------------------------------------------


class TestPrioritizationConfig:
    def test_defaults(self):
        cfg = PrioritizationConfig()
        assert cfg.recency_weight == 0.30
        assert cfg.relevance_weight == 0.40
        assert cfg.importance_weight == 0.20
        assert cfg.sentiment_weight == 0.05
        assert cfg.action_weight == 0.05
        assert cfg.max_entries == 5
        assert cfg.max_context_length == 2000

    def test_weights_sum_to_one(self):
        cfg = PrioritizationConfig()
        total = (
            cfg.recency_weight
            + cfg.relevance_weight
            + cfg.importance_weight
            + cfg.sentiment_weight
            + cfg.action_weight
        )
        assert total == pytest.approx(1.0)

    def test_frozen(self):
        cfg = PrioritizationConfig()
        with pytest.raises(FrozenInstanceError):
            cfg.max_entries = 10  # type: ignore[misc]


# ---------------------------------------------------------------------------
# MemoryStoreConfig
# ---------------------------------------------------------------------------


class TestMemoryStoreConfig:
    def test_defaults(self):
        cfg = MemoryStoreConfig()
        assert cfg.max_entries == 500
        assert cfg.max_patterns == 2000
        assert cfg.context_window == 100


# ---------------------------------------------------------------------------
# EmbeddingConfig
# ---------------------------------------------------------------------------


class TestEmbeddingConfig:
    def test_defaults(self):
        cfg = EmbeddingConfig()
        assert cfg.provider == "google"
        assert cfg.model is None
        assert cfg.api_key is None
        assert cfg.base_url is None
        assert cfg.timeout_seconds == 15.0


# ---------------------------------------------------------------------------
# LearningConfig / PersistenceConfig
# ---------------------------------------------------------------------------


class TestLearningConfig:
    def test_defaults(self):
        cfg = LearningConfig()
        assert cfg.min_frequency == 2
        assert cfg.confidence_threshold == 0.1
        assert cfg.max_patterns == 50
        assert cfg.window_minutes == 30.0


class TestPersistenceConfig:
    def test_defaults(self):
        cfg = PersistenceConfig()
        assert cfg.backend == "memory"
        assert cfg.directory == ".contextmem"
        assert cfg.redis_url == "redis://localhost:6379"

    def test_frozen(self):
        cfg = PersistenceConfig()
        with pytest.raises(FrozenInstanceError):
            cfg.backend = "redis"  # type: ignore[misc]
