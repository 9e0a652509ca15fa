"""Unit tests for in-process latency observability helpers."""

from __future__ import annotations

import pytest

from contextmem.observability import latency_metrics_snapshot
from contextmem.observability import record_latency
from contextmem.observability import reset_latency_metrics
from contextmem.observability import track_latency


class TestObservabilityLatency:
    def setup_method(self):
        reset_latency_metrics()

    def teardown_method(self):
        reset_latency_metrics()

    def test_records_latency_aggregates(self):
        record_latency(operation="mcp.record_turn", duration_ms=10.0, ok=True)
        record_latency(operation="mcp.record_turn", duration_ms=30.0, ok=False)

        metrics = latency_metrics_snapshot()["mcp.record_turn"]
        assert metrics["count"] == 2
        assert metrics["error_count"] == 1
        assert metrics["total_ms"] == 40.0
        assert metrics["avg_ms"] == 20.0
        assert metrics["min_ms"] == 10.0
        assert metrics["max_ms"] == 30.0
        assert metrics["last_ms"] == 30.0

    def test_negative_durations_clamp_to_zero(self):
        record_latency(operation="memory.flush", duration_ms=-5.0)
        assert latency_metrics_snapshot()["memory.flush"]["min_ms"] == 0.0

    def test_track_latency_success(self):
        with track_latency("vector.query_records"):
            pass
        metrics = latency_metrics_snapshot()["vector.query_records"]
        assert metrics["count"] == 1
        assert metrics["error_count"] == 0

    def test_track_latency_counts_exceptions_as_errors(self):
        with pytest.raises(RuntimeError):
            with track_latency("memory.load"):
                raise RuntimeError("boom")
        metrics = latency_metrics_snapshot()["memory.load"]
        assert metrics["count"] == 1
        assert metrics["error_count"] == 1

    def test_reset_clears_all_metrics(self):
        record_latency(operation="memory.flush", duration_ms=12.0, ok=True)
        assert "memory.flush" in latency_metrics_snapshot()
        reset_latency_metrics()
        assert latency_metrics_snapshot() == {}
