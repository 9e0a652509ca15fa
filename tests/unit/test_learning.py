"""Unit tests for the topic workflow learner."""

from __future__ import annotations

from datetime import datetime
from datetime import timedelta
from datetime import UTC

from contextmem.config import LearningConfig
from contextmem.engine import MemoryConsumer
from contextmem.engine import TopicWorkflowLearner
from contextmem.memory import MemoryEntry

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


def _entry(minutes: float, topics: list[str], session_id: str = "s") -> MemoryEntry:
    return MemoryEntry(
        session_id=session_id,
        user_query="turn",
        topics=topics,
        timestamp=T0 + timedelta(minutes=minutes),
    )


def _task_then_finance_twice() -> list[MemoryEntry]:
    return [
        _entry(0, ["task_management"]),
        _entry(5, ["financial"]),
        _entry(120, ["task_management"]),
        _entry(125, ["financial"]),
    ]


class TestTopicWorkflowLearner:
    def test_is_a_memory_consumer(self):
        assert isinstance(TopicWorkflowLearner(), MemoryConsumer)

    def test_detects_repeated_transition(self):
        patterns = TopicWorkflowLearner().analyze(_task_then_finance_twice())

        assert len(patterns) == 1
        pattern = patterns[0]
        assert pattern.pattern == "task_management→financial"
        assert pattern.id == "workflow-task-management-financial"
        assert pattern.type == "workflow"
        assert pattern.frequency == 2
        assert pattern.confidence == 0.2
        assert pattern.last_seen == T0 + timedelta(minutes=125)
        assert pattern.contexts == ("s-0", "s-2")

    def test_input_order_does_not_matter(self):
        entries = _task_then_finance_twice()
        forward = TopicWorkflowLearner().analyze(entries)
        newest_first = TopicWorkflowLearner().analyze(list(reversed(entries)))
        assert forward == newest_first

    def test_gaps_beyond_window_are_ignored(self):
        entries = [
            _entry(0, ["task_management"]),
            _entry(45, ["financial"]),
            _entry(90, ["task_management"]),
            _entry(135, ["financial"]),
        ]
        assert TopicWorkflowLearner().analyze(entries) == []

    def test_single_occurrence_below_min_frequency(self):
        entries = [_entry(0, ["reporting"]), _entry(1, ["scheduling"])]
        assert TopicWorkflowLearner().analyze(entries) == []

    def test_confidence_threshold_filters(self):
        learner = TopicWorkflowLearner(LearningConfig(confidence_threshold=0.5))
        assert learner.analyze(_task_then_finance_twice()) == []

    def test_confidence_is_capped(self):
        entries = [_entry(i, ["reporting"]) for i in range(15)]
        patterns = TopicWorkflowLearner().analyze(entries)
        assert patterns[0].frequency == 14
        assert patterns[0].confidence == 0.95

    def test_max_patterns_keeps_strongest(self):
        entries = [
            *(_entry(i, ["reporting"]) for i in range(6)),
            _entry(6, ["scheduling"]),
            _entry(7, ["reporting"]),
            _entry(8, ["scheduling"]),
        ]
        learner = TopicWorkflowLearner(LearningConfig(max_patterns=1))
        patterns = learner.analyze(entries)
        assert [p.pattern for p in patterns] == ["reporting→reporting"]

    def test_empty_log(self):
        assert TopicWorkflowLearner().analyze([]) == []
