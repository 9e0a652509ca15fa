"""Pluggable consumers of the memory log.

A ``MemoryConsumer`` reads entries through the store's public API and
derives higher-level behavioural patterns.  ``TopicWorkflowLearner`` is
the bundled reference consumer: it counts topic transitions between
consecutive turns that happen close together in time.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from datetime import timedelta
from typing import Protocol
from typing import runtime_checkable

from contextmem.config import LearningConfig
from contextmem.memory.schemas import MemoryEntry

_ID_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9]")
_TRANSITION_ARROW = "→"


@dataclass(frozen=True)
class LearnedPattern:
    """A behavioural pattern inferred from the memory log."""

    id: str
    type: str
    pattern: str
    confidence: float
    frequency: int
    last_seen: datetime
    contexts: tuple[str, ...] = ()


@runtime_checkable
class MemoryConsumer(Protocol):
    """Anything that turns memory entries into learned patterns."""

    def analyze(self, entries: Sequence[MemoryEntry]) -> list[LearnedPattern]: ...


@dataclass
class _Transition:
    frequency: int
    last_seen: datetime
    contexts: list[str]


class TopicWorkflowLearner(MemoryConsumer):
    """Detects recurring ``topics → topics`` transitions between turns."""

    def __init__(self, config: LearningConfig | None = None) -> None:
        self._config = config or LearningConfig()

    @property
    def config(self) -> LearningConfig:
        return self._config

    def analyze(self, entries: Sequence[MemoryEntry]) -> list[LearnedPattern]:
        cfg = self._config
        window = timedelta(minutes=cfg.window_minutes)
        ordered = sorted(entries, key=lambda entry: entry.timestamp)

        transitions: dict[str, _Transition] = {}
        for index, (current, following) in enumerate(zip(ordered, ordered[1:])):
            if following.timestamp - current.timestamp > window:
                continue
            key = (
                f"{','.join(current.topics)}{_TRANSITION_ARROW}"
                f"{','.join(following.topics)}"
            )
            transition = transitions.get(key)
            if transition is None:
                transition = _Transition(0, following.timestamp, [])
                transitions[key] = transition
            transition.frequency += 1
            transition.last_seen = following.timestamp
            transition.contexts.append(f"{current.session_id}-{index}")

        patterns = [
            LearnedPattern(
                id=f"workflow-{_ID_UNSAFE_RE.sub('-', key)}",
                type="workflow",
                pattern=key,
                confidence=min(data.frequency / 10, 0.95),
                frequency=data.frequency,
                last_seen=data.last_seen,
                contexts=tuple(data.contexts),
            )
            for key, data in transitions.items()
            if data.frequency >= cfg.min_frequency
        ]
        patterns = [p for p in patterns if p.confidence >= cfg.confidence_threshold]
        patterns.sort(key=lambda p: p.confidence * p.frequency, reverse=True)
        return patterns[: cfg.max_patterns]
